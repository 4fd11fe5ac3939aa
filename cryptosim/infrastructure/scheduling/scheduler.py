"""
Background scheduler for periodic maintenance jobs.

Uses APScheduler's BackgroundScheduler so jobs run in worker threads
next to the ASGI event loop. Today the only job is auto-settlement of
expired orders; it is registered by the application factory when
``auto_settle_interval_seconds`` is positive.

Usage:
    scheduler = MaintenanceScheduler()
    scheduler.add_interval_job("auto_settle", run_auto_settle, seconds=30)
    scheduler.start()
    scheduler.stop()
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


@dataclass
class JobRun:
    """Outcome of the last execution of a job."""

    job_name: str
    started_at: str
    finished_at: str | None = None
    succeeded: bool = False
    details: dict = field(default_factory=dict)
    error: str | None = None


class MaintenanceScheduler:
    """Thin wrapper over BackgroundScheduler that records the last run of each job."""

    def __init__(self) -> None:
        self._scheduler = BackgroundScheduler(timezone="UTC")
        self._last_runs: dict[str, JobRun] = {}

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def _wrap(self, name: str, func: Callable[[], Any]) -> Callable[[], None]:
        def run() -> None:
            record = JobRun(job_name=name, started_at=datetime.now(timezone.utc).isoformat())
            try:
                result = func()
                record.succeeded = True
                if result is not None:
                    record.details = {"result": repr(result)}
            except Exception as exc:
                # the scheduler thread must survive a failing run
                record.error = str(exc)
                logger.exception("Scheduled job %s failed", name)
            finally:
                record.finished_at = datetime.now(timezone.utc).isoformat()
                self._last_runs[name] = record

        return run

    def add_interval_job(self, name: str, func: Callable[[], Any], seconds: int) -> None:
        self._scheduler.add_job(
            self._wrap(name, func),
            trigger=IntervalTrigger(seconds=seconds),
            id=name,
            name=name,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        logger.info("Scheduled job %s every %ds", name, seconds)

    def last_run(self, name: str) -> JobRun | None:
        return self._last_runs.get(name)

    def start(self) -> None:
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("Maintenance scheduler started")

    def stop(self) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Maintenance scheduler stopped")
