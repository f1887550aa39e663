import time
from enum import Enum
from urllib.parse import urlencode

from fastapi import Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from core.config import settings
from core.error_handlers import error_body


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """요청 한 건당 한 줄: 메서드, 경로, 클라이언트 IP, 상태코드, 처리시간(ms).

    SLOW_REQUEST_MS를 넘으면 WARNING, 정적 파일은 DEBUG로 내린다.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"
        line = f"{request.method} {path} | {client_ip} | {response.status_code} | {elapsed_ms:.0f}ms"

        if elapsed_ms > settings.SLOW_REQUEST_MS:
            logger.warning(f"{line} (slow)")
        elif classify_path(path) == PathClass.STATIC_ASSET:
            logger.debug(line)
        else:
            logger.info(line)
        return response


# --- 엣지 요청 필터 ---
# 핸들러보다 먼저 실행되며 DB에 접근하지 않는다.
# 쿠키가 "있는지"만 보고 통과/리다이렉트/401을 결정하는 낙관적 필터이고,
# 세션의 실제 유효성은 core.dependencies(인증 게이트웨이)가 판단한다.


class PathClass(str, Enum):
    STATIC_ASSET = "static-asset"
    PUBLIC_API = "public-api"
    PROTECTED_API = "protected-api"
    ADMIN_API = "admin-api"
    PUBLIC_PAGE = "public-page"
    AUTH_PAGE = "auth-page"
    PROTECTED_PAGE = "protected-page"


PUBLIC_API_PATHS = (
    "/auth/login",
    "/auth/register",
    "/auth/logout",
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
)
ADMIN_API_PREFIXES = ("/admin/",)
PROTECTED_API_PREFIXES = ("/auth/", "/api/")

AUTH_PAGE_PATHS = ("/login", "/register")
PROTECTED_PAGE_PATHS = ("/", "/checkout", "/profile")

LOGIN_PAGE = "/login"
HOME_PAGE = "/"


def _matches(path: str, candidates: tuple[str, ...]) -> bool:
    """정확히 일치하거나 하위 경로("/x/...")면 True. "/"는 정확히 일치할 때만."""
    for candidate in candidates:
        if path == candidate:
            return True
        if candidate != "/" and path.startswith(candidate.rstrip("/") + "/"):
            return True
    return False


def _is_static(path: str) -> bool:
    upload_base = settings.UPLOAD_URL_BASE.rstrip("/") + "/"
    if path.startswith(("/static/", "/favicon", upload_base)):
        return True
    last_segment = path.rsplit("/", 1)[-1]
    return "." in last_segment


def classify_path(path: str) -> PathClass:
    """경로를 정확히 하나의 분류로 나눈다. 앞의 규칙이 우선."""
    if _is_static(path):
        return PathClass.STATIC_ASSET
    if _matches(path, PUBLIC_API_PATHS):
        return PathClass.PUBLIC_API
    if path.startswith(ADMIN_API_PREFIXES) or path == "/admin":
        return PathClass.ADMIN_API
    if path.startswith(PROTECTED_API_PREFIXES):
        return PathClass.PROTECTED_API
    if _matches(path, AUTH_PAGE_PATHS):
        return PathClass.AUTH_PAGE
    if _matches(path, PROTECTED_PAGE_PATHS):
        return PathClass.PROTECTED_PAGE
    return PathClass.PUBLIC_PAGE


def login_redirect_url(path: str) -> str:
    return f"{LOGIN_PAGE}?{urlencode({'redirect': path})}"


class EdgeRequestFilter(BaseHTTPMiddleware):
    """경로 분류 + 쿠키 존재 여부로 결정하는 표.

    | 분류                   | 쿠키 | 동작                                   |
    |------------------------|------|----------------------------------------|
    | static / public API    |  -   | 통과                                   |
    | protected / admin API  |  X   | 401 (관리자 여부는 게이트웨이가 판단)  |
    | protected / admin API  |  O   | 통과 + request.state.session_token     |
    | auth page              |  O   | / 로 리다이렉트                        |
    | auth page              |  X   | 통과                                   |
    | protected page         |  X   | /login?redirect=<원래 경로>            |
    | protected page         |  O   | 통과                                   |
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        path_class = classify_path(path)
        token = request.cookies.get(settings.SESSION_COOKIE_NAME)

        if path_class in (PathClass.STATIC_ASSET, PathClass.PUBLIC_API, PathClass.PUBLIC_PAGE):
            return await call_next(request)

        if path_class in (PathClass.PROTECTED_API, PathClass.ADMIN_API):
            if not token:
                return JSONResponse(
                    status_code=401,
                    content=error_body(401, "로그인이 필요합니다", "UNAUTHORIZED"),
                )
            request.state.session_token = token
            return await call_next(request)

        if path_class == PathClass.AUTH_PAGE:
            if token:
                return RedirectResponse(HOME_PAGE, status_code=307)
            return await call_next(request)

        # PROTECTED_PAGE
        if not token:
            return RedirectResponse(login_redirect_url(path), status_code=307)
        return await call_next(request)
