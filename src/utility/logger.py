import os
import sys

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)


def setup_logger(level: str = "INFO", log_dir: str = ""):
    """Loguru 설정. initialize()에서 한 번 호출.

    log_dir가 주어지면 일별 회전 파일(전체 / 에러 전용)도 남긴다.
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level.upper())

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        logger.add(
            os.path.join(log_dir, "menu_order_{time:YYYY-MM-DD}.log"),
            rotation="00:00",
            retention="30 days",
            level=level.upper(),
        )
        logger.add(
            os.path.join(log_dir, "errors_{time:YYYY-MM-DD}.log"),
            rotation="00:00",
            retention="90 days",
            level="ERROR",
        )
    return logger
