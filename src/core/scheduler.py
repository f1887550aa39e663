"""주기 작업 스케줄러 (세션 sweep, temp 이미지 sweep).

모듈 import 시점에 타이머를 띄우지 않는다. lifespan에서 만들고
start() / stop()을 명시적으로 호출한다.

APScheduler AsyncIOScheduler 위에서 돌고, 작업 본문(DB / 파일 I/O)은
동기 함수라 기본 스레드풀에서 실행된다. 작업이 실패해도 로그만 남기고
다음 주기에 다시 실행된다.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from utility.timer import timer


@dataclass
class Job:
    name: str
    func: Callable[[], Any]
    interval_seconds: float


class Scheduler:
    def __init__(self):
        self._jobs: dict[str, Job] = {}
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def job_names(self) -> list[str]:
        return list(self._jobs)

    def add_job(self, name: str, func: Callable[[], Any], interval_seconds: float) -> None:
        if name in self._jobs:
            raise ValueError(f"Job already registered: {name}")
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._jobs[name] = Job(name, func, interval_seconds)

    def run_job(self, name: str) -> Any:
        """작업을 즉시 한 번 실행한다 (동기). 테스트나 수동 정리용."""
        job = self._jobs[name]
        with timer(f"job {name}"):
            return job.func()

    def _run_scheduled(self, name: str) -> None:
        try:
            result = self.run_job(name)
            logger.debug(f"Job {name} finished: {result}")
        except Exception:
            logger.exception(f"Job {name} failed")

    async def start(self) -> None:
        """프로세스당 한 번만. 이미 실행 중이면 아무것도 하지 않는다.

        이벤트 루프 안에서 호출해야 한다 (lifespan).
        """
        if self.running:
            return
        self._scheduler = AsyncIOScheduler(timezone="UTC")
        for job in self._jobs.values():
            self._scheduler.add_job(
                self._run_scheduled,
                trigger=IntervalTrigger(seconds=job.interval_seconds),
                args=[job.name],
                id=job.name,
                name=job.name,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
        self._scheduler.start()
        logger.info(f"Scheduler started: {', '.join(self._jobs) or '(no jobs)'}")

    async def stop(self) -> None:
        if not self.running:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Scheduler stopped")

    def scheduled_jobs(self) -> list[dict]:
        """등록된 작업과 다음 실행 시각. 시작 전이면 next_run은 None."""
        jobs = []
        for name, job in self._jobs.items():
            scheduled = self._scheduler.get_job(name) if self._scheduler else None
            next_run = scheduled.next_run_time if scheduled else None
            jobs.append(
                {
                    "id": name,
                    "interval_seconds": job.interval_seconds,
                    "next_run": next_run.isoformat() if next_run else None,
                }
            )
        return jobs
