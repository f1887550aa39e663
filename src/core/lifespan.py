import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger
from sqlmodel import Session

from core.config import settings
from core.scheduler import Scheduler
from model.database import create_db_and_tables, engine
from service import session_service, user_service
from service.image_service import image_manager
from utility.logger import setup_logger

SESSION_SWEEP_JOB = "session-sweep"
TEMP_IMAGE_SWEEP_JOB = "temp-image-sweep"


def sweep_sessions() -> int:
    with Session(engine) as db:
        return session_service.cleanup_expired(db)


def sweep_temp_images() -> int:
    with Session(engine) as db:
        return image_manager.cleanup_temp(db, settings.TEMP_IMAGE_MAX_AGE_HOURS)


def build_scheduler() -> Scheduler:
    scheduler = Scheduler()
    scheduler.add_job(SESSION_SWEEP_JOB, sweep_sessions, settings.SESSION_CLEANUP_INTERVAL_SECONDS)
    scheduler.add_job(
        TEMP_IMAGE_SWEEP_JOB, sweep_temp_images, settings.TEMP_IMAGE_CLEANUP_INTERVAL_SECONDS
    )
    return scheduler


def initialize() -> Scheduler:
    """기동 시 한 번: 로거 → 스키마 → 기본 관리자 → 기동 정리 → 스케줄러 생성.

    스케줄러 start()는 이벤트 루프 안에서 lifespan이 호출한다.
    """
    setup_logger(settings.LOG_LEVEL, settings.LOG_DIR)
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} ({settings.ENVIRONMENT})")

    create_db_and_tables()
    logger.info(f"Database ready ({settings.DATABASE_URL})")

    # 정적 파일 마운트가 업로드 루트를 요구한다
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)

    with Session(engine) as db:
        user_service.seed_default_admin(db)

        if settings.CLEANUP_RECIPE_IMAGES_ON_STARTUP:
            image_manager.cleanup_all_recipe_images(db)
        image_manager.cleanup_temp(db, settings.TEMP_IMAGE_MAX_AGE_HOURS)
        session_service.cleanup_expired(db)

    return build_scheduler()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # === 시작 ===
    scheduler = initialize()
    app.state.settings = settings
    app.state.scheduler = scheduler

    if settings.SCHEDULER_ENABLED:
        await scheduler.start()

    yield

    # === 종료 ===
    await scheduler.stop()
    logger.info("Shutting down")
