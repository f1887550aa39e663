"""앱 전역 커스텀 예외 클래스.

AppException을 상속하면 전역 핸들러(error_handlers.py)가 자동으로
{"code": 400, "message": "...", "error": {"type": "...", "field": "..."}}
형식의 JSON 응답을 생성한다.

계층 구조:
    AppException
    ├── ValidationError      400  잘못된 입력 형식
    ├── AuthenticationError  401  세션 없음 / 유효하지 않음
    ├── AuthorizationError   403  세션은 유효하지만 권한 부족
    ├── NotFoundError        404  참조 대상 없음
    ├── ConflictError        409  유일성 위반
    └── InfrastructureError  500  DB / 파일 시스템 장애
"""


class AppException(Exception):
    """앱 전역 베이스 예외.

    서브클래스에서 status_code, error_code, message를 클래스 변수로 정의하면
    전역 핸들러가 해당 값을 읽어 HTTP 응답을 생성한다.
    field는 폼 필드 단위 에러 표시에 사용한다.
    """

    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"
    message: str = "서버 내부 오류가 발생했습니다"
    field: str | None = None

    def __init__(self, message: str | None = None, field: str | None = None):
        if message:
            self.message = message
        if field:
            self.field = field
        super().__init__(self.message)


# --- 분류별 베이스 ---


class ValidationError(AppException):
    status_code = 400
    error_code = "VALIDATION_ERROR"
    message = "입력값이 올바르지 않습니다"


class AuthenticationError(AppException):
    status_code = 401
    error_code = "UNAUTHORIZED"
    message = "로그인이 필요합니다"


class AuthorizationError(AppException):
    status_code = 403
    error_code = "FORBIDDEN"
    message = "접근 권한이 없습니다"


class NotFoundError(AppException):
    status_code = 404
    error_code = "NOT_FOUND"
    message = "대상을 찾을 수 없습니다"


class ConflictError(AppException):
    status_code = 409
    error_code = "CONFLICT"
    message = "이미 존재하는 데이터입니다"


class InfrastructureError(AppException):
    status_code = 500
    error_code = "INTERNAL_ERROR"
    message = "서버 내부 오류가 발생했습니다"


# --- 입력 검증 ---


class MissingFields(ValidationError):
    error_code = "MISSING_FIELDS"
    message = "필수 항목이 비어 있습니다"


class InvalidUsername(ValidationError):
    error_code = "INVALID_USERNAME"
    message = "사용자 이름은 영문, 숫자, 밑줄만 사용한 3-20자여야 합니다"
    field = "username"


class InvalidEmail(ValidationError):
    error_code = "INVALID_EMAIL"
    message = "이메일 형식이 올바르지 않습니다"
    field = "email"


class WeakPassword(ValidationError):
    error_code = "WEAK_PASSWORD"
    message = "패스워드 강도가 부족합니다"
    field = "password"


class PasswordMismatch(ValidationError):
    error_code = "PASSWORD_MISMATCH"
    message = "두 패스워드가 일치하지 않습니다"
    field = "confirmPassword"


class InvalidName(ValidationError):
    error_code = "INVALID_NAME"
    message = "이름은 최소 2자 이상이어야 합니다"
    field = "name"


class InvalidRole(ValidationError):
    error_code = "INVALID_ROLE"
    message = "유효하지 않은 권한입니다"
    field = "role"


class InvalidPassword(ValidationError):
    error_code = "INVALID_PASSWORD"
    message = "현재 패스워드가 올바르지 않습니다"
    field = "currentPassword"


class SamePassword(ValidationError):
    error_code = "SAME_PASSWORD"
    message = "새 패스워드가 현재 패스워드와 같습니다"
    field = "newPassword"


class InvalidImage(ValidationError):
    error_code = "INVALID_IMAGE"
    message = "이미지 파일이 아니거나 크기 제한을 초과했습니다"
    field = "file"


# --- 관리자 자기 자신 보호 ---


class CannotDisableSelf(ValidationError):
    error_code = "CANNOT_DISABLE_SELF"
    message = "자신의 계정은 비활성화할 수 없습니다"


class CannotDemoteSelf(ValidationError):
    error_code = "CANNOT_DEMOTE_SELF"
    message = "자신의 관리자 권한은 해제할 수 없습니다"


class CannotDeleteSelf(ValidationError):
    error_code = "CANNOT_DELETE_SELF"
    message = "자신의 계정은 삭제할 수 없습니다"


# --- 인증 / 인가 ---


class InvalidCredentials(AuthenticationError):
    error_code = "INVALID_CREDENTIALS"
    message = "사용자 이름 또는 패스워드가 올바르지 않습니다"


class Unauthorized(AuthenticationError):
    error_code = "UNAUTHORIZED"
    message = "로그인이 필요합니다"


class UserInactive(AuthorizationError):
    error_code = "USER_INACTIVE"
    message = "비활성화된 계정입니다"


class Forbidden(AuthorizationError):
    error_code = "FORBIDDEN"
    message = "관리자 권한이 필요합니다"


# --- 조회 실패 ---


class UserNotFound(NotFoundError):
    error_code = "USER_NOT_FOUND"
    message = "사용자를 찾을 수 없습니다"


class RecipeNotFound(NotFoundError):
    error_code = "RECIPE_NOT_FOUND"
    message = "레시피를 찾을 수 없습니다"


class ImageNotFound(NotFoundError):
    error_code = "IMAGE_NOT_FOUND"
    message = "이미지를 찾을 수 없습니다"


# --- 중복 ---


class DuplicateUsername(ConflictError):
    error_code = "DUPLICATE_USERNAME"
    message = "이미 사용 중인 사용자 이름입니다"
    field = "username"


class DuplicateEmail(ConflictError):
    error_code = "DUPLICATE_EMAIL"
    message = "이미 등록된 이메일입니다"
    field = "email"


# --- 인프라 ---


class ImageStorageError(InfrastructureError):
    error_code = "IMAGE_STORAGE_ERROR"
    message = "이미지를 저장하지 못했습니다"
