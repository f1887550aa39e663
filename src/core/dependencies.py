"""인증 게이트웨이: 모든 보호 요청에서 세션을 DB 기준으로 검증한다.

엣지 필터(middleware.EdgeRequestFilter)는 쿠키 "존재"만 보고 통과시키므로,
실제 권한 판단은 항상 여기서 한다.

- require_auth / require_admin: 사용자 또는 None 반환 (예외 없음)
- get_current_user / get_current_admin: FastAPI 의존성.
  미인증 → 401, 인증됐지만 관리자가 아님 → 403
"""

from fastapi import Depends, Request, Response
from sqlmodel import Session

from core.config import settings
from core.exceptions import Forbidden, Unauthorized
from model.database import get_session
from model.user import User
from service import session_service


def get_session_token(request: Request) -> str | None:
    """엣지 필터가 붙여 둔 토큰을 우선 사용하고, 없으면 쿠키에서 읽는다."""
    token = getattr(request.state, "session_token", None)
    return token or request.cookies.get(settings.SESSION_COOKIE_NAME)


def require_auth(request: Request, db: Session) -> User | None:
    validation = session_service.validate_session(db, get_session_token(request))
    return validation.user if validation.valid else None


def require_admin(request: Request, db: Session) -> User | None:
    user = require_auth(request, db)
    return user if user is not None and user.is_admin else None


def get_current_user(request: Request, db: Session = Depends(get_session)) -> User:
    user = require_auth(request, db)
    if user is None:
        raise Unauthorized
    return user


def get_current_admin(request: Request, db: Session = Depends(get_session)) -> User:
    user = require_auth(request, db)
    if user is None:
        raise Unauthorized
    if not user.is_admin:
        raise Forbidden
    return user


# --- 세션 쿠키 ---


def set_session_cookie(response: Response, session_id: str, remember: bool = False) -> None:
    max_age = settings.session_remember_seconds if remember else settings.session_ttl_seconds
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session_id,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
