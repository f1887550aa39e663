"""사용자 레코드 / 패스워드 해시 저장소.

사용자 행을 직접 쓰는 곳은 이 모듈뿐이다.
유일성 검사는 조회로 먼저 하고, 동시 요청으로 빠져나간 경우는
IntegrityError를 잡아 같은 409로 변환한다.
"""

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from core.exceptions import DuplicateEmail, DuplicateUsername
from model.user import Role, User
from utility.clock import utcnow


def get_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_by_username(db: Session, username: str) -> User | None:
    return db.exec(select(User).where(User.username == username)).first()


def get_by_email(db: Session, email: str) -> User | None:
    return db.exec(select(User).where(User.email == email.lower())).first()


def count_users(db: Session) -> int:
    return db.exec(select(func.count()).select_from(User)).one()


def create_user(
    db: Session,
    username: str,
    email: str,
    name: str,
    password_hash: str,
    role: Role = Role.USER,
) -> User:
    email = email.lower()
    if get_by_username(db, username):
        raise DuplicateUsername
    if get_by_email(db, email):
        raise DuplicateEmail

    user = User(
        username=username,
        email=email,
        name=name,
        password_hash=password_hash,
        role=role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if get_by_username(db, username):
            raise DuplicateUsername
        raise DuplicateEmail
    db.refresh(user)
    return user


def update_user(db: Session, user: User, **changes) -> User:
    """None이 아닌 값만 반영한다. email 변경 시 중복이면 DuplicateEmail."""
    changes = {k: v for k, v in changes.items() if v is not None}
    if "email" in changes:
        changes["email"] = changes["email"].lower()
        other = get_by_email(db, changes["email"])
        if other and other.id != user.id:
            raise DuplicateEmail

    for key, value in changes.items():
        setattr(user, key, value)
    user.updated_at = utcnow()
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise DuplicateEmail
    db.refresh(user)
    return user


def set_password_hash(db: Session, user: User, password_hash: str) -> None:
    user.password_hash = password_hash
    user.updated_at = utcnow()
    db.add(user)
    db.commit()
    db.refresh(user)


def touch_last_login(db: Session, user_id: int) -> None:
    user = db.get(User, user_id)
    if user:
        user.last_login_at = utcnow()
        db.add(user)
        db.commit()


def delete_user(db: Session, user: User) -> None:
    db.delete(user)
    db.commit()


def list_users(
    db: Session,
    search: str | None = None,
    role: Role | None = None,
    is_active: bool | None = None,
    page: int = 1,
    limit: int = 20,
) -> tuple[list[User], int]:
    """검색/필터 + 페이지네이션. (목록, 전체 개수)를 반환한다."""
    conditions = []
    if search:
        pattern = f"%{search}%"
        conditions.append(
            or_(User.name.like(pattern), User.email.like(pattern), User.username.like(pattern))
        )
    if role is not None:
        conditions.append(User.role == role)
    if is_active is not None:
        conditions.append(User.is_active == is_active)

    total = db.exec(select(func.count()).select_from(User).where(*conditions)).one()
    users = db.exec(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    return list(users), total
