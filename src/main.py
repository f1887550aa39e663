import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles

from core.config import settings
from core.error_handlers import (
    app_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from core.exceptions import AppException
from core.lifespan import lifespan
from core.middleware import EdgeRequestFilter, RequestLoggingMiddleware
from router.admin_router import router as admin_router
from router.auth_router import router as auth_router
from router.image_router import router as image_router
from router.page_router import router as page_router
from router.recipe_router import router as recipe_router

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="메뉴 주문 서비스 백엔드 (세션 인증 / 관리자 / 이미지 생명주기)",
    lifespan=lifespan,
)

# 나중에 추가한 미들웨어가 바깥쪽: 로깅 → 엣지 필터 → 라우터
app.add_middleware(EdgeRequestFilter)
app.add_middleware(RequestLoggingMiddleware)

app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(image_router)
app.include_router(recipe_router)
app.include_router(page_router)

app.mount(
    settings.UPLOAD_URL_BASE,
    StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False),
    name="uploads",
)


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        access_log=False,
    )
