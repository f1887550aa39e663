from dataclasses import dataclass

from loguru import logger
from sqlmodel import Session

from core.exceptions import (
    InvalidCredentials,
    InvalidEmail,
    InvalidName,
    InvalidPassword,
    InvalidUsername,
    MissingFields,
    PasswordMismatch,
    SamePassword,
    UserInactive,
    WeakPassword,
)
from core.security import (
    hash_password,
    is_valid_email,
    is_valid_username,
    should_rehash,
    validate_password_strength,
    verify_password,
)
from model.user import Role, User
from service import session_service, user_store

MIN_NAME_LENGTH = 2


@dataclass
class LoginResult:
    user: User
    session_id: str
    remember: bool


def find_login_user(db: Session, identifier: str) -> User | None:
    """username으로 먼저 찾고, 없으면 이메일 형식일 때만 email로 찾는다."""
    user = user_store.get_by_username(db, identifier)
    if user is None and is_valid_email(identifier):
        user = user_store.get_by_email(db, identifier)
    return user


def check_new_account(username: str, email: str, password: str, name: str) -> None:
    """회원가입 / 관리자 생성 공통 입력 검증."""
    if not username or not email or not password or not name:
        raise MissingFields
    if len(name.strip()) < MIN_NAME_LENGTH:
        raise InvalidName
    if not is_valid_username(username):
        raise InvalidUsername
    if not is_valid_email(email):
        raise InvalidEmail
    ensure_strong_password(password)


def ensure_strong_password(password: str, field: str = "password") -> None:
    strength = validate_password_strength(password)
    if not strength.is_valid:
        raise WeakPassword(strength.message, field=field)


def register(
    db: Session,
    username: str,
    email: str,
    password: str,
    confirm_password: str,
    name: str,
) -> User:
    """새 사용자를 등록한다.

    1. 필수값 / 패스워드 확인 일치 검사
    2. 이름, 사용자 이름, 이메일 형식 + 패스워드 강도 검사
    3. 패스워드를 bcrypt로 해싱 (평문 저장 절대 금지)
    4. username / email 중복이면 409
    """
    username = (username or "").strip()
    email = (email or "").strip().lower()
    name = (name or "").strip()

    if not username or not email or not password or not confirm_password or not name:
        raise MissingFields
    if password != confirm_password:
        raise PasswordMismatch
    check_new_account(username, email, password, name)

    user = user_store.create_user(
        db,
        username=username,
        email=email,
        name=name,
        password_hash=hash_password(password),
        role=Role.USER,
    )
    logger.info(f"User registered: id={user.id} username={user.username}")
    return user


def login(db: Session, identifier: str, password: str, remember: bool = False) -> LoginResult:
    """자격 증명을 확인하고 세션을 발급한다.

    - 존재하지 않는 사용자와 잘못된 패스워드는 같은 INVALID_CREDENTIALS
    - 비활성 계정은 403 USER_INACTIVE
    - work factor가 바뀐 해시는 이 시점에 다시 해싱한다
    """
    identifier = (identifier or "").strip()
    if not identifier or not password:
        raise MissingFields("사용자 이름과 패스워드를 입력해 주세요")

    user = find_login_user(db, identifier)
    if user is None:
        logger.info(f"Login failed: unknown user '{identifier}'")
        raise InvalidCredentials

    if not user.is_active:
        logger.info(f"Login rejected: inactive user {user.id}")
        raise UserInactive

    if not verify_password(password, user.password_hash):
        logger.info(f"Login failed: wrong password for user {user.id}")
        raise InvalidCredentials

    if should_rehash(user.password_hash):
        user_store.set_password_hash(db, user, hash_password(password))
        logger.info(f"Password hash upgraded for user {user.id}")

    session_id = session_service.create_session(db, user.id, remember)
    db.refresh(user)
    return LoginResult(user=user, session_id=session_id, remember=remember)


def logout(db: Session, session_id: str | None) -> None:
    session_service.destroy_session(db, session_id)


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not current_password or not new_password:
        raise MissingFields("현재 패스워드와 새 패스워드를 입력해 주세요")

    ensure_strong_password(new_password, field="newPassword")

    if not verify_password(current_password, user.password_hash):
        raise InvalidPassword
    if verify_password(new_password, user.password_hash):
        raise SamePassword

    user_store.set_password_hash(db, user, hash_password(new_password))
    logger.info(f"Password changed for user {user.id}")
