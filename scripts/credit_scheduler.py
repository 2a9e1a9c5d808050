#!/usr/bin/env python3
"""
Monthly Subscription Credit Scheduler

Runs the monthly credit reconciliation on a cron schedule using APScheduler.
Integrates with FastAPI application lifecycle.

Features:
- Scheduled run on a fixed day/hour of every month (UTC), configurable via
  CREDIT_SCHEDULE_DAY / CREDIT_SCHEDULE_HOUR
- Never overlaps itself (max_instances=1, missed runs coalesced)
- Manual trigger via API endpoint
- HTTP-triggered runs share the same lock as scheduled ones (run_locked)
- Last run status and summary for monitoring

Usage:
    from scripts.credit_scheduler import CreditScheduler

    # Start on app startup
    scheduler = CreditScheduler(store, ledger, day=1, hour=0)
    scheduler.start()

    # Manual trigger
    result = scheduler.trigger_now()

    # Stop on app shutdown
    scheduler.stop()
"""

import logging
import threading
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from app.exceptions import CreditJobError
from app.models.schemas import CreditReport
from app.services.credit_service import run_monthly_credit
from app.utils.timestamp_utils import utc_now

logger = logging.getLogger(__name__)

JOB_ID = "monthly_subscription_credit"


class CreditScheduler:
    """Background scheduler owning the monthly credit job."""

    def __init__(self, store, ledger, day: int = 1, hour: int = 0):
        self._store = store
        self._ledger = ledger
        self.day = day
        self.hour = hour
        self._scheduler: Optional[BackgroundScheduler] = None
        self._lock = threading.Lock()
        self._last_run_time: Optional[datetime] = None
        self._last_run_status: str = "never_run"
        self._last_run_summary: Optional[dict] = None
        self._last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def run_locked(self, store=None, ledger=None, now: Optional[datetime] = None) -> CreditReport:
        """
        Run the credit job while holding the scheduler lock.

        Scheduled runs, the manual trigger and the HTTP endpoint all go
        through here, so two runs in this process never interleave and a
        subscriber cannot be credited twice by overlapping triggers.

        Args:
            store: Billing store for this run; defaults to the scheduler's own
            ledger: Coin ledger for this run; defaults to the scheduler's own
            now: Run time; defaults to current UTC time

        Returns:
            CreditReport of the run

        Raises:
            CreditJobError: If the run aborted (recorded as a failed run)
        """
        with self._lock:
            self._last_run_time = now or utc_now()
            logger.info("Starting monthly subscription credit run")
            try:
                report = run_monthly_credit(
                    store if store is not None else self._store,
                    ledger if ledger is not None else self._ledger,
                    now=self._last_run_time
                )
            except CreditJobError as e:
                self._last_run_status = "failed"
                self._last_error = e.message
                logger.error(f"✗ Monthly credit run aborted: {e.message}")
                raise
            except Exception as e:
                self._last_run_status = "error"
                self._last_error = str(e)
                logger.exception(f"✗ Unexpected error during monthly credit run: {e}")
                raise

            self._last_run_status = "completed"
            self._last_run_summary = report.summary
            self._last_error = None
            logger.info(f"✓ Monthly credit run {report.run_id} completed: {report.summary}")
            return report

    def _run(self) -> dict:
        """
        Execute one credit run and record its outcome.

        Returns a dict with success flag, run id/summary or error, and
        timestamp. Never raises.
        """
        started = utc_now()
        try:
            report = self.run_locked(now=started)
        except CreditJobError as e:
            return {
                "success": False,
                "error": e.message,
                "timestamp": started.isoformat()
            }
        except Exception as e:
            return {
                "success": False,
                "error": str(e),
                "timestamp": started.isoformat()
            }

        return {
            "success": True,
            "run_id": report.run_id,
            "summary": report.summary,
            "timestamp": started.isoformat()
        }

    def trigger_now(self) -> dict:
        """Run the credit job immediately in the calling thread."""
        logger.info("Manual monthly credit run triggered")
        return self._run()

    def start(self) -> None:
        """
        Initialize and start the background scheduler.
        Called on FastAPI app startup.
        """
        if self._scheduler is not None:
            logger.warning("Scheduler already running, skipping start")
            return

        logger.info("=" * 60)
        logger.info("Monthly Subscription Credit Scheduler Starting")
        logger.info("=" * 60)
        logger.info(f"Schedule: day {self.day} of each month at {self.hour:02d}:00 UTC")

        self._scheduler = BackgroundScheduler(
            timezone="UTC",
            job_defaults={
                'coalesce': True,  # Combine multiple missed runs into one
                'max_instances': 1,  # Only one credit run at a time
            }
        )

        self._scheduler.add_job(
            func=self._run,
            trigger=CronTrigger(day=self.day, hour=self.hour, minute=0, timezone="UTC"),
            id=JOB_ID,
            name='Monthly Subscription Credit',
            replace_existing=True,
        )

        self._scheduler.start()

        next_run = self._scheduler.get_job(JOB_ID).next_run_time
        logger.info("✓ Scheduler started successfully")
        logger.info(f"Next scheduled credit run: {next_run.strftime('%Y-%m-%d %H:%M:%S %Z')}")
        logger.info("=" * 60)

    def stop(self) -> None:
        """
        Gracefully stop the scheduler.
        Called on FastAPI app shutdown.
        """
        if self._scheduler is None:
            logger.warning("Scheduler not running, skipping stop")
            return

        logger.info("Stopping monthly subscription credit scheduler...")
        self._scheduler.shutdown(wait=True)
        self._scheduler = None
        logger.info("✓ Scheduler stopped successfully")

    def status(self) -> dict:
        """
        Get current scheduler status for monitoring/debugging.
        Returns dict with scheduler state, next run time, last run info.
        """
        job = self._scheduler.get_job(JOB_ID) if self._scheduler is not None else None

        return {
            "running": self.running,
            "schedule": {"day": self.day, "hour_utc": self.hour},
            "next_run_time": job.next_run_time.isoformat() if job and job.next_run_time else None,
            "last_run_time": self._last_run_time.isoformat() if self._last_run_time else None,
            "last_run_status": self._last_run_status,
            "last_run_summary": self._last_run_summary,
            "last_error": self._last_error,
        }


__all__ = [
    'CreditScheduler',
    'JOB_ID',
]
