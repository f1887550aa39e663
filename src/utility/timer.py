"""처리 시간 측정 유틸리티."""

import time
from contextlib import contextmanager

from loguru import logger


@contextmanager
def timer(label: str = ""):
    """컨텍스트 매니저: 블록 실행 시간을 측정해 DEBUG 로그로 남긴다.

    사용법:
        with timer("session sweep") as t:
            ...
        t.elapsed_ms
    """
    t = _TimerResult()
    start = time.perf_counter()
    try:
        yield t
    finally:
        t.elapsed_ms = (time.perf_counter() - start) * 1000
        if label:
            logger.debug(f"[{label}] {t.elapsed_ms:.1f}ms")


class _TimerResult:
    elapsed_ms: float = 0.0
