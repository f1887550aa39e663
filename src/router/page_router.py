"""페이지 셸.

UI 자체는 이 서비스 범위 밖이고, 여기서는 최소한의 HTML만 돌려준다.
보호 페이지는 엣지 필터가 쿠키 존재만 보고 통과시킨 요청이므로
핸들러에서 한 번 더 세션을 검증하고, 만료됐으면 로그인으로 돌려보낸다.
"""

import html

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlmodel import Session

from core.dependencies import clear_session_cookie, require_auth
from core.middleware import login_redirect_url
from model.database import get_session

router = APIRouter(tags=["pages"], include_in_schema=False)


def _shell(title: str, body: str = "") -> HTMLResponse:
    return HTMLResponse(
        f"<!doctype html><html><head><meta charset='utf-8'><title>{title}</title></head>"
        f"<body><main data-page='{title}'>{body}</main></body></html>"
    )


def _protected_page(request: Request, db: Session, title: str):
    user = require_auth(request, db)
    if user is None:
        # 쿠키는 있었지만 세션이 무효: 다시 로그인 안내
        response = RedirectResponse(login_redirect_url(request.url.path), status_code=307)
        clear_session_cookie(response)
        return response
    return _shell(title, f"<p>{html.escape(user.name)}</p>")


@router.get("/")
def home(request: Request, session: Session = Depends(get_session)):
    return _protected_page(request, session, "home")


@router.get("/checkout")
def checkout(request: Request, session: Session = Depends(get_session)):
    return _protected_page(request, session, "checkout")


@router.get("/profile")
def profile(request: Request, session: Session = Depends(get_session)):
    return _protected_page(request, session, "profile")


@router.get("/login")
def login_page():
    return _shell("login")


@router.get("/register")
def register_page():
    return _shell("register")
