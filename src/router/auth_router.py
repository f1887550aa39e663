from datetime import datetime

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from core.dependencies import (
    clear_session_cookie,
    get_current_user,
    get_session_token,
    set_session_cookie,
)
from core.exceptions import Unauthorized
from model.database import get_session
from model.user import User
from service import auth_service, session_service

router = APIRouter(prefix="/auth", tags=["auth"])


# --- 요청/응답 스키마 ---


class LoginRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str
    password: str
    remember_me: bool = Field(default=False, alias="rememberMe")


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str
    email: str
    password: str
    confirm_password: str = Field(alias="confirmPassword")
    name: str


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: str = Field(alias="currentPassword")
    new_password: str = Field(alias="newPassword")


class RefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    remember_me: bool = Field(default=False, alias="rememberMe")


def user_summary(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "name": user.name,
        "role": user.role.value,
        "isActive": user.is_active,
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
        "lastLoginAt": _iso(user.last_login_at),
    }


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# --- 엔드포인트 ---


@router.post("/login")
def login(
    req: LoginRequest,
    response: Response,
    session: Session = Depends(get_session),
):
    """로그인: username(또는 이메일) + 패스워드 → 세션 쿠키 발급."""
    result = auth_service.login(session, req.username, req.password, req.remember_me)
    set_session_cookie(response, result.session_id, result.remember)
    return {"code": 200, "message": "로그인 성공", "data": {"user": user_summary(result.user)}}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(req: RegisterRequest, session: Session = Depends(get_session)):
    """회원가입. 로그인은 별도로 해야 한다 (세션 발급 없음)."""
    user = auth_service.register(
        session,
        username=req.username,
        email=req.email,
        password=req.password,
        confirm_password=req.confirm_password,
        name=req.name,
    )
    return {"code": 201, "message": "회원가입 성공", "data": {"user": user_summary(user)}}


@router.post("/logout")
def logout(request: Request, response: Response, session: Session = Depends(get_session)):
    """항상 200. 서버 세션이 있으면 삭제하고 쿠키를 지운다."""
    auth_service.logout(session, get_session_token(request))
    clear_session_cookie(response)
    return {"code": 200, "message": "로그아웃 되었습니다"}


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    """현재 로그인한 사용자 정보 조회. (세션 필수)"""
    return {"code": 200, "message": "ok", "data": {"user": user_summary(current_user)}}


@router.post("/change-password")
def change_password(
    req: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    auth_service.change_password(session, current_user, req.current_password, req.new_password)
    return {"code": 200, "message": "패스워드가 변경되었습니다"}


@router.get("/session")
def session_status(request: Request, session: Session = Depends(get_session)):
    """세션 만료 시각 / 남은 시간 / 곧 만료 여부 (클라이언트 세션 모니터용)."""
    token = get_session_token(request)
    remaining = session_service.remaining_seconds(session, token)
    if remaining <= 0:
        raise Unauthorized("세션이 만료되었습니다. 다시 로그인해 주세요")
    return {
        "code": 200,
        "message": "ok",
        "data": {
            "expiresAt": _iso(session_service.get_expiry(session, token)),
            "remainingSeconds": remaining,
            "expiringSoon": session_service.is_expiring_soon(session, token),
        },
    }


@router.post("/refresh")
def refresh(
    request: Request,
    response: Response,
    req: RefreshRequest | None = None,
    session: Session = Depends(get_session),
):
    """세션 회전: 기존 토큰 폐기 + 새 토큰 발급."""
    remember = req.remember_me if req else False
    new_id = session_service.refresh_session(session, get_session_token(request), remember)
    if new_id is None:
        raise Unauthorized("세션이 만료되었습니다. 다시 로그인해 주세요")
    set_session_cookie(response, new_id, remember)
    return {"code": 200, "message": "세션이 갱신되었습니다"}
