"""관리자용 사용자 관리 + 최초 관리자 계정 시딩.

관리자는 이 경로로 자기 자신을 비활성화 / 강등 / 삭제할 수 없다.
검사는 어떤 변경보다도 먼저 수행하므로 거부된 요청은 행을 건드리지 않는다.
"""

from loguru import logger
from sqlmodel import Session

from core.config import settings
from core.exceptions import (
    CannotDeleteSelf,
    CannotDemoteSelf,
    CannotDisableSelf,
    InvalidEmail,
    InvalidName,
    InvalidRole,
    UserNotFound,
)
from core.security import generate_random_password, hash_password, is_valid_email
from model.user import Role, User
from service import session_service, user_store
from service.auth_service import MIN_NAME_LENGTH, check_new_account


def parse_role(value: str | Role | None) -> Role | None:
    if value is None or isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        raise InvalidRole


def get_user_or_raise(db: Session, user_id: int) -> User:
    user = user_store.get_by_id(db, user_id)
    if user is None:
        raise UserNotFound
    return user


def create_user(
    db: Session,
    username: str,
    email: str,
    password: str,
    name: str,
    role: str | Role = Role.USER,
) -> User:
    role = parse_role(role) or Role.USER
    username = (username or "").strip()
    email = (email or "").strip().lower()
    name = (name or "").strip()
    check_new_account(username, email, password, name)

    user = user_store.create_user(
        db,
        username=username,
        email=email,
        name=name,
        password_hash=hash_password(password),
        role=role,
    )
    logger.info(f"User created by admin: id={user.id} role={user.role.value}")
    return user


def update_user(
    db: Session,
    admin: User,
    user_id: int,
    email: str | None = None,
    name: str | None = None,
    role: str | Role | None = None,
    is_active: bool | None = None,
) -> User:
    role = parse_role(role)

    if user_id == admin.id:
        if is_active is False:
            raise CannotDisableSelf
        if role == Role.USER:
            raise CannotDemoteSelf

    if email is not None:
        email = email.strip().lower()
        if not is_valid_email(email):
            raise InvalidEmail
    if name is not None:
        name = name.strip()
        if len(name) < MIN_NAME_LENGTH:
            raise InvalidName

    user = get_user_or_raise(db, user_id)
    role_changed = role is not None and role != user.role
    deactivated = is_active is False and user.is_active

    user = user_store.update_user(db, user, email=email, name=name, role=role, is_active=is_active)

    # 비활성화 / 권한 변경 시 기존 세션은 모두 폐기
    if deactivated or role_changed:
        session_service.destroy_user_sessions(db, user.id)

    logger.info(
        f"User {user.id} updated by admin {admin.id} "
        f"(role_changed={role_changed}, deactivated={deactivated})"
    )
    return user


def delete_user(db: Session, admin: User, user_id: int) -> None:
    if user_id == admin.id:
        raise CannotDeleteSelf

    user = get_user_or_raise(db, user_id)
    session_service.destroy_user_sessions(db, user.id)
    user_store.delete_user(db, user)
    logger.info(f"User {user_id} deleted by admin {admin.id}")


def seed_default_admin(db: Session) -> User | None:
    """사용자 테이블이 비어 있을 때만 관리자 계정을 하나 만든다.

    DEFAULT_ADMIN_PASSWORD가 비어 있으면 랜덤 패스워드를 만들어 한 번만 로그로 남긴다.
    """
    if user_store.count_users(db) > 0:
        logger.debug("Users already exist, skipping admin seed")
        return None

    password = settings.DEFAULT_ADMIN_PASSWORD
    generated = not password
    if generated:
        password = generate_random_password(16)

    admin = user_store.create_user(
        db,
        username=settings.DEFAULT_ADMIN_USERNAME,
        email=settings.DEFAULT_ADMIN_EMAIL,
        name=settings.DEFAULT_ADMIN_NAME,
        password_hash=hash_password(password),
        role=Role.ADMIN,
    )
    if generated:
        logger.warning(
            f"Default admin '{admin.username}' created with generated password: {password}"
        )
    else:
        logger.info(f"Default admin '{admin.username}' created")
    return admin
