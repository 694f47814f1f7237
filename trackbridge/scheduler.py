"""Background scheduler for periodic sync"""

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from trackbridge.errors import MissingMappings

logger = logging.getLogger(__name__)

JOB_ID = "sync_pass"


class SyncScheduler:
    """Runs the incremental sync pass on a fixed interval.

    A single job with max_instances=1, so a pass never overlaps the previous one.
    """

    def __init__(self, engine, interval_minutes: int):
        self.engine = engine
        self.interval_minutes = interval_minutes
        self.scheduler = BackgroundScheduler()

    def start(self, *, run_immediately: bool = False):
        """Start the scheduler"""
        job_options = {}
        if run_immediately:
            # next_run_time=None would add the job paused.
            job_options["next_run_time"] = datetime.now(timezone.utc)
        self.scheduler.add_job(
            func=self._sync_job,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_options,
        )
        self.scheduler.start()
        logger.info(f"Sync scheduler started, running every {self.interval_minutes} minutes")

    def stop(self):
        """Stop the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown()
        logger.info("Sync scheduler stopped")

    def _sync_job(self):
        """Job function running one sync pass"""
        try:
            logger.info("Running scheduled sync")
            summary = self.engine.run_sync()
            logger.info(f"Scheduled sync completed: {summary.as_dict()}")
        except MissingMappings as e:
            logger.warning(f"Scheduled sync skipped: {e}")
        except Exception as e:
            logger.error(f"Scheduled sync failed: {e}")
