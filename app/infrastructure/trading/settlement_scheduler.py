"""
Recurring settlement sweep.

Uses APScheduler to run the settlement sweep on a fixed interval
(default every 5 minutes). Overlap is prevented twice: APScheduler
never starts a second instance of the job, and the sweep itself
holds the SweepGuard, which also covers sweeps triggered by admins.

Usage:
    scheduler = SettlementScheduler(sweep, interval_seconds=300)
    scheduler.start()      # begin periodic sweeps
    scheduler.run_now()    # trigger a sweep immediately (blocking)
    scheduler.stop()       # graceful shutdown
"""

import logging
import threading
from typing import Any, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.application.trading.dtos import SweepReport
from app.application.trading.run_settlement_sweep import RunSettlementSweepUseCase

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "settlement_sweep"


class SettlementScheduler:
    """Owns the periodic sweep job and the history of its reports."""

    def __init__(
        self,
        sweep: RunSettlementSweepUseCase,
        interval_seconds: int = 300,
        max_history: int = 50,
    ) -> None:
        self._sweep = sweep
        self._interval = interval_seconds
        self._max_history = max_history
        self._history: list[SweepReport] = []
        self._lock = threading.Lock()
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    @property
    def history(self) -> list[SweepReport]:
        with self._lock:
            return list(self._history)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the periodic sweep."""
        if self._scheduler is not None:
            logger.warning("Settlement scheduler already running.")
            return

        self._scheduler = BackgroundScheduler(
            timezone="UTC",
            job_defaults={"coalesce": True, "max_instances": 1},
        )
        self._scheduler.add_job(
            self._scheduled_sweep,
            IntervalTrigger(seconds=self._interval),
            id=SWEEP_JOB_ID,
            name="Settlement sweep",
        )
        self._scheduler.start()
        logger.info("Settlement scheduler started (every %ds).", self._interval)

    def stop(self) -> None:
        """Stop the periodic sweep. An in-flight sweep finishes on its own."""
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Settlement scheduler stopped.")

    def run_now(self, owner: str = "admin") -> SweepReport:
        """Run one sweep synchronously and record its report."""
        report = self._sweep.execute(owner=owner)
        self._record(report)
        return report

    def get_status(self) -> dict[str, Any]:
        """Return scheduler state and the most recent reports, newest first."""
        next_run = None
        if self._scheduler is not None:
            job = self._scheduler.get_job(SWEEP_JOB_ID)
            if job is not None and job.next_run_time is not None:
                next_run = job.next_run_time.isoformat()
        return {
            "running": self.is_running,
            "interval_seconds": self._interval,
            "next_run_at": next_run,
            "recent": list(reversed(self.history)),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _scheduled_sweep(self) -> None:
        try:
            self.run_now(owner="scheduler")
        except Exception:
            logger.exception("Scheduled settlement sweep failed.")

    def _record(self, report: SweepReport) -> None:
        with self._lock:
            self._history.append(report)
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history:]
