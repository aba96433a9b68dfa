import logging
from datetime import datetime
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from tzlocal import get_localzone

from nutribot.config import MEAL_CHECK_MINUTES
from nutribot.services.reminders import ReminderService

logger = logging.getLogger(__name__)


def scheduled_tick(now: datetime, every_minutes: int) -> datetime:
    """The ``*/every_minutes`` cron slot that ``now`` belongs to."""
    return now.replace(minute=now.minute - now.minute % every_minutes, second=0, microsecond=0)


class ReminderScheduler:
    """Runs the reminder jobs on fixed cron ticks in a background thread pool."""

    def __init__(self, service: ReminderService, scheduler: Optional[BackgroundScheduler] = None,
                 meal_check_minutes: int = MEAL_CHECK_MINUTES):
        self.service = service
        self.scheduler = scheduler or BackgroundScheduler(timezone=get_localzone())
        self.meal_check_minutes = meal_check_minutes

    def meal_tick(self, now: Optional[datetime] = None) -> int:
        # a late run still matches meal times against the slot it was scheduled for
        now = now or datetime.now(self.scheduler.timezone)
        return self.service.run_meal_reminders(scheduled_tick(now, self.meal_check_minutes))

    def register_jobs(self) -> None:
        jobs = (
            ("meal_reminders", self.meal_tick, CronTrigger(minute=f"*/{self.meal_check_minutes}")),
            ("water_reminders", self.service.run_water_reminders, CronTrigger(minute=0)),
            ("daily_summaries", self.service.run_daily_summaries, CronTrigger(minute=0)),
            ("window_warnings", self.service.run_window_warnings, CronTrigger(minute=0)),
        )
        for job_id, func, trigger in jobs:
            self.scheduler.add_job(
                func,
                trigger,
                id=job_id,
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            logger.info("Scheduled %s (%s)", job_id, trigger)

    def start(self) -> None:
        if self.scheduler.running:
            return
        self.register_jobs()
        self.scheduler.start()
        logger.info("APScheduler started")

    def shutdown(self) -> None:
        """Stop new ticks and wait for a running tick to finish."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=True)
            logger.info("Scheduler stopped")
