"""세션 발급 / 검증 / 회전 / 폐기.

상태 전이: CREATED → VALID → {EXPIRED, REVOKED}

- 세션은 제자리 갱신하지 않는다. refresh = 기존 삭제 + 새로 발급.
- "정상적인" 무효(없음/만료/사용자 없음/비활성)는 예외가 아니라
  SessionValidation 결과로 표현한다. DB 장애만 예외로 전파된다.
- 만료 세션은 조회 시점에 지우고(lazy expiry), 주기 작업(cleanup_expired)이
  나머지를 쓸어 담는다.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from loguru import logger
from sqlmodel import Session

from core.config import settings
from core.security import generate_session_token, token_preview
from model.session import UserSession
from model.user import User
from service import session_store, user_store
from utility.clock import utcnow


class InvalidReason(str, Enum):
    MISSING_TOKEN = "missing token"
    NOT_FOUND = "not found"
    EXPIRED = "expired"
    USER_MISSING = "user missing"
    USER_INACTIVE = "user inactive"


@dataclass
class SessionValidation:
    valid: bool
    user: User | None = None
    session: UserSession | None = None
    reason: InvalidReason | None = None


def session_lifetime(remember: bool) -> timedelta:
    """remember-me면 30일, 아니면 24시간 (설정값)."""
    if remember:
        return timedelta(seconds=settings.session_remember_seconds)
    return timedelta(seconds=settings.session_ttl_seconds)


def create_session(db: Session, user_id: int, remember: bool = False) -> str:
    """새 세션을 저장하고 토큰을 반환한다. 마지막 로그인 시각도 여기서 갱신한다."""
    session_id = generate_session_token()
    expires_at = utcnow() + session_lifetime(remember)

    session_store.insert(db, session_id, user_id, expires_at)
    user_store.touch_last_login(db, user_id)

    logger.info(
        f"Session created: user={user_id} token={token_preview(session_id)} "
        f"remember={remember} expires={expires_at.isoformat()}"
    )
    return session_id


def validate_session(db: Session, session_id: str | None) -> SessionValidation:
    if not session_id:
        return SessionValidation(valid=False, reason=InvalidReason.MISSING_TOKEN)

    row = session_store.get(db, session_id)
    if row is None:
        return SessionValidation(valid=False, reason=InvalidReason.NOT_FOUND)

    now = utcnow()
    if now >= row.expires_at:
        # 동시에 돌던 sweep이 먼저 지웠어도 0건 삭제로 끝난다
        session_store.delete_if_expired(db, session_id, now)
        logger.debug(f"Session expired: token={token_preview(session_id)}")
        return SessionValidation(valid=False, reason=InvalidReason.EXPIRED)

    user = user_store.get_by_id(db, row.user_id)
    if user is None:
        session_store.delete_by_id(db, session_id)
        return SessionValidation(valid=False, reason=InvalidReason.USER_MISSING)

    if not user.is_active:
        removed = session_store.delete_for_user(db, user.id)
        logger.info(f"Inactive user {user.id}: revoked {removed} session(s)")
        return SessionValidation(valid=False, reason=InvalidReason.USER_INACTIVE)

    return SessionValidation(valid=True, user=user, session=row)


def destroy_session(db: Session, session_id: str | None) -> None:
    """멱등 삭제. 없는 세션이어도 에러 없음."""
    if not session_id:
        return
    if session_store.delete_by_id(db, session_id):
        logger.info(f"Session destroyed: token={token_preview(session_id)}")


def destroy_user_sessions(db: Session, user_id: int) -> int:
    removed = session_store.delete_for_user(db, user_id)
    if removed:
        logger.info(f"Revoked {removed} session(s) for user {user_id}")
    return removed


def refresh_session(db: Session, session_id: str, remember: bool = False) -> str | None:
    """유효한 세션이면 폐기 후 새 토큰을 발급한다 (세션 고정 방지용 회전)."""
    validation = validate_session(db, session_id)
    if not validation.valid or validation.user is None:
        return None

    destroy_session(db, session_id)
    return create_session(db, validation.user.id, remember)


def cleanup_expired(db: Session) -> int:
    """expires_at <= now 인 세션을 한 번에 삭제하고 삭제 건수를 반환한다."""
    removed = session_store.delete_expired(db, utcnow())
    if removed:
        logger.info(f"Session sweep removed {removed} expired session(s)")
    return removed


def remaining_seconds(db: Session, session_id: str | None) -> int:
    """세션 남은 시간(초). 무효한 세션이면 0."""
    validation = validate_session(db, session_id)
    if not validation.valid or validation.session is None:
        return 0
    remaining = (validation.session.expires_at - utcnow()).total_seconds()
    return max(0, int(remaining))


def is_expiring_soon(db: Session, session_id: str | None) -> bool:
    remaining = remaining_seconds(db, session_id)
    return 0 < remaining < settings.SESSION_EXPIRING_SOON_MINUTES * 60


def get_expiry(db: Session, session_id: str | None) -> datetime | None:
    row = session_store.get(db, session_id) if session_id else None
    return row.expires_at if row else None
