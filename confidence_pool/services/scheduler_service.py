"""
Background results sweep

Re-resolves every regular-season week of the current season on a fixed
APScheduler trigger. Weeks are refreshed independently: a provider failure on
one week is logged and the sweep moves on to the next.
"""

import atexit
import logging
from datetime import datetime, timezone

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from flask import current_app

from confidence_pool import db
from confidence_pool.utils.cache_utils import invalidate_scoreboards
from confidence_pool.utils.data_sync import ProviderError
from confidence_pool.utils.timezone_utils import get_current_season

logger = logging.getLogger(__name__)

SWEEP_TRIGGERS = {
    "daily": lambda: CronTrigger(hour=0, minute=0),
    "hourly": lambda: CronTrigger(minute=0),
}


class SchedulerService:
    """Manages the background results sweep"""

    def __init__(self, app=None):
        self.scheduler = None
        self.app = app
        self.is_running = False
        self.sync_stats = {
            "last_sync": None,
            "total_syncs": 0,
            "successful_weeks": 0,
            "failed_weeks": 0,
            "last_error": None,
        }

        if app:
            self.init_app(app)

    def init_app(self, app):
        """Initialize scheduler with Flask app"""
        self.app = app
        self.scheduler = BackgroundScheduler(daemon=True, timezone="UTC")

        # Register shutdown
        atexit.register(self.shutdown)

        if app.config.get("SCHEDULER_ENABLED", True):
            self.start()

    def start(self):
        """Start the background scheduler"""
        if self.is_running:
            return

        try:
            self.scheduler.remove_all_jobs()
            self._add_core_jobs()
            self.scheduler.start()
            self.is_running = True
            logger.info("Scheduler started successfully")

        except Exception as e:
            logger.error(f"Failed to start scheduler: {e}")
            raise

    def stop(self):
        """Stop the background scheduler"""
        if not self.is_running:
            return

        try:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("Scheduler stopped")

        except Exception as e:
            logger.error(f"Error stopping scheduler: {e}")

    def shutdown(self):
        """Graceful shutdown"""
        self.stop()

    def _add_core_jobs(self):
        sweep = self.app.config.get("SCHEDULER_SWEEP", "daily")
        if sweep not in SWEEP_TRIGGERS:
            raise ValueError(f"Unknown SCHEDULER_SWEEP: {sweep}")

        self.scheduler.add_job(
            func=self._results_sweep,
            trigger=SWEEP_TRIGGERS[sweep](),
            id="results_sweep",
            name=f"Results Sweep ({sweep})",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=3600,
        )
        logger.info(f"Results sweep scheduled {sweep}")

    def _results_sweep(self):
        with self.app.app_context():
            self.run_sweep()

    def run_sweep(self, season=None):
        """
        Refresh results for every week of a season.

        Must run inside an app context.

        Returns:
            dict: week -> True when refreshed, False when skipped on error
        """
        data_sync = current_app.extensions["data_sync"]
        season = season or get_current_season()
        weeks = current_app.config.get("REGULAR_SEASON_WEEKS", 18)

        logger.info(f"Running results sweep for {season}")
        results = {}
        for week in range(1, weeks + 1):
            try:
                data_sync.update_results(season, week)
                results[week] = True
                self._update_stats(True)
            except ProviderError as e:
                # Week left as it was; tomorrow's sweep is the retry
                db.session.rollback()
                results[week] = False
                self._update_stats(False, f"week {week}: {e}")
                logger.warning(f"Skipping {season} week {week}: {e}")
            except Exception as e:
                db.session.rollback()
                results[week] = False
                self._update_stats(False, f"week {week}: {e}")
                logger.error(f"Error refreshing {season} week {week}: {e}", exc_info=True)

        self.sync_stats["last_sync"] = datetime.now(timezone.utc)
        self.sync_stats["total_syncs"] += 1
        invalidate_scoreboards()

        refreshed = sum(1 for ok in results.values() if ok)
        logger.info(f"Results sweep finished: {refreshed}/{len(results)} weeks refreshed")
        return results

    def _update_stats(self, success, error=None):
        if success:
            self.sync_stats["successful_weeks"] += 1
        else:
            self.sync_stats["failed_weeks"] += 1
            self.sync_stats["last_error"] = error

    def get_status(self):
        """Get scheduler status information"""
        jobs = []
        if self.scheduler:
            for job in self.scheduler.get_jobs():
                next_run = getattr(job, "next_run_time", None)
                jobs.append(
                    {
                        "id": job.id,
                        "name": job.name,
                        "next_run": next_run.isoformat() if next_run else None,
                        "trigger": str(job.trigger),
                    }
                )

        return {"is_running": self.is_running, "jobs": jobs, "stats": self.sync_stats}


# Global scheduler instance
scheduler_service = SchedulerService()
