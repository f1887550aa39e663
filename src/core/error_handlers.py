"""전역 예외 핸들러.

모든 에러를 {"code", "message", "error": {"type", "field"}} 봉투로 변환한다.
main.py에서 app.add_exception_handler()로 등록한다.

- AppException: 예외 클래스에 정의된 상태코드 그대로
- RequestValidationError: 요청 DTO 파싱 실패 → 400
- 그 외 예외: 로그만 남기고 내부 정보 없이 500
"""

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from core.exceptions import AppException


def error_body(status_code: int, message: str, error_type: str, field: str | None = None) -> dict:
    error = {"type": error_type}
    if field:
        error["field"] = field
    return {"code": status_code, "message": message, "error": error}


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, exc.error_code, exc.field),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """pydantic 검증 실패를 ValidationError와 동일한 400 응답으로 맞춘다.

    필수 필드 누락이면 MISSING_FIELDS, 그 외는 VALIDATION_ERROR.
    첫 번째 에러의 loc 마지막 요소를 field로 보고한다.
    """
    errors = exc.errors()
    first = errors[0] if errors else {}
    loc = first.get("loc") or ()
    field = loc[-1] if loc and isinstance(loc[-1], str) and loc[-1] != "body" else None

    if first.get("type") == "missing":
        error_type, message = "MISSING_FIELDS", "필수 항목이 비어 있습니다"
    else:
        error_type = "VALIDATION_ERROR"
        message = first.get("msg") or "입력값이 올바르지 않습니다"

    return JSONResponse(status_code=400, content=error_body(400, message, error_type, field))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=error_body(500, "서버 내부 오류가 발생했습니다", "INTERNAL_ERROR"),
    )
