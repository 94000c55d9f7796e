"""Recurring schedule engine backed by APScheduler cron jobs."""
import logging
import threading
from datetime import datetime
from typing import Callable, Dict, Optional
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.util import astimezone
from sprinksync.config.config import SCHEDULE_MISFIRE_GRACE_SEC, SCHEDULE_TIMEZONE
from sprinksync.controllers.group_sequencer import GroupSequencer
from sprinksync.controllers.zone_coordinator import ZoneCoordinator
from sprinksync.models.history import TriggerType
from sprinksync.safety.errors import (
    AlreadyRunning, EmptyGroup, MemberAlreadyQueued, MemberAlreadyRunning, ZoneControlError
)
from sprinksync.services.config_store import ConfigStore, ScheduleInfo
from sprinksync.utils.helpers import cron_day_of_week, next_scheduled_run, parse_time_of_day

logger = logging.getLogger(__name__)

STARTED = 'started'
SKIPPED = 'skipped'
FAILED = 'failed'


def job_id_for(schedule_id: int) -> str:
    return f'schedule-{schedule_id}'


class ScheduleEngine:
    """Keeps exactly one cron job per enabled schedule and fires its target."""

    def __init__(self, coordinator: ZoneCoordinator, sequencer: GroupSequencer,
                 store: ConfigStore, scheduler: Optional[BackgroundScheduler] = None,
                 timezone: Optional[str] = SCHEDULE_TIMEZONE,
                 misfire_grace_time: int = SCHEDULE_MISFIRE_GRACE_SEC,
                 skip_oracle: Optional[Callable[[ScheduleInfo], Optional[str]]] = None):
        """
        Initialize the schedule engine.

        Args:
            coordinator: Zone coordinator used for zone targets
            sequencer: Group sequencer used for group targets
            store: Configuration store holding the schedules
            scheduler: APScheduler instance, a daemon BackgroundScheduler by default
            timezone: Zone the HH:MM start times are interpreted in; None for local time
            misfire_grace_time: Seconds a late firing is still honoured
            skip_oracle: Optional callable returning a reason to skip a firing, or None
        """
        self.coordinator = coordinator
        self.sequencer = sequencer
        self.store = store
        self.timezone = timezone or None
        self.misfire_grace_time = misfire_grace_time
        self.skip_oracle = skip_oracle
        self.scheduler = scheduler or BackgroundScheduler(daemon=True, timezone=self.timezone)
        self._armed: Dict[int, str] = {}  # schedule id -> job id
        self._lock = threading.RLock()

    def start(self):
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Schedule engine started")

    def shutdown(self):
        with self._lock:
            for schedule_id in list(self._armed):
                self._disarm(schedule_id)
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Schedule engine stopped")

    def load(self) -> int:
        """Arm every enabled schedule from the store, replacing whatever is armed."""
        with self._lock:
            for schedule_id in list(self._armed):
                self._disarm(schedule_id)
            for schedule in self.store.list_enabled_schedules():
                self._arm(schedule)
            count = len(self._armed)
        logger.info(f"Loaded {count} active schedules")
        return count

    def arm(self, schedule: ScheduleInfo) -> bool:
        with self._lock:
            return self._arm(schedule)

    def _arm(self, schedule: ScheduleInfo) -> bool:
        if schedule.id in self._armed:
            self._disarm(schedule.id)

        if not schedule.days:
            logger.warning(f"Schedule {schedule.id} has no days selected, not scheduling")
            return False

        try:
            hour, minute = parse_time_of_day(schedule.start_time)
            trigger = CronTrigger(
                day_of_week=cron_day_of_week(schedule.days),
                hour=hour,
                minute=minute,
                timezone=self.timezone
            )
        except (ValueError, IndexError) as e:
            logger.error(f"Schedule {schedule.id} has an invalid time or day set: {e}")
            return False

        job_id = job_id_for(schedule.id)
        self.scheduler.add_job(
            self.execute,
            trigger=trigger,
            args=[schedule],
            id=job_id,
            replace_existing=True,
            misfire_grace_time=self.misfire_grace_time,
            coalesce=True,
            max_instances=1
        )
        self._armed[schedule.id] = job_id
        logger.info(f"Scheduled {schedule.describe_target()} at {schedule.start_time} on days {schedule.days}")
        return True

    def disarm(self, schedule_id: int) -> bool:
        with self._lock:
            return self._disarm(schedule_id)

    def _disarm(self, schedule_id: int) -> bool:
        job_id = self._armed.pop(schedule_id, None)
        if job_id is None:
            return False
        try:
            self.scheduler.remove_job(job_id)
        except JobLookupError:
            logger.debug(f"Job {job_id} already gone")
        logger.info(f"Unscheduled schedule {schedule_id}")
        return True

    def rearm(self, schedule_id: int) -> bool:
        """Re-read a schedule after an edit and arm it again if still enabled."""
        with self._lock:
            self._disarm(schedule_id)
            schedule = self.store.get_schedule(schedule_id)
            if schedule is None or not schedule.enabled:
                return False
            return self._arm(schedule)

    def active_count(self) -> int:
        with self._lock:
            return len(self._armed)

    def is_armed(self, schedule_id: int) -> bool:
        with self._lock:
            return schedule_id in self._armed

    def next_fire_time(self, schedule_id: int) -> Optional[datetime]:
        with self._lock:
            job_id = self._armed.get(schedule_id)
        if job_id is None:
            return None
        job = self.scheduler.get_job(job_id)
        return getattr(job, 'next_run_time', None) if job else None

    def next_run(self, schedule: ScheduleInfo) -> Optional[datetime]:
        """
        When the schedule will fire next, in the schedule timezone.

        Armed schedules report their cron job's fire time. An enabled schedule
        that is not armed yet (engine not loaded) gets a preview computed in
        the same timezone; disabled schedules never run.
        """
        if not schedule.enabled:
            return None
        fire_time = self.next_fire_time(schedule.id)
        if fire_time is not None:
            return fire_time
        now = datetime.now(astimezone(self.timezone)) if self.timezone else datetime.now().astimezone()
        return next_scheduled_run(schedule.start_time, schedule.days, now=now)

    def execute(self, schedule: ScheduleInfo) -> str:
        """
        Fire a schedule. Runs on the scheduler's worker thread and never raises.

        Returns:
            'started', 'skipped' or 'failed'
        """
        logger.info(f"Executing schedule {schedule.id}: {schedule.describe_target()} for {schedule.duration} minutes")
        try:
            if self.skip_oracle is not None:
                reason = self.skip_oracle(schedule)
                if reason:
                    logger.info(f"Skipping schedule {schedule.id}: {reason}")
                    return SKIPPED

            if schedule.targets_group:
                self.sequencer.run_group(
                    schedule.group_id, duration=schedule.duration,
                    trigger=TriggerType.SCHEDULED, schedule_id=schedule.id
                )
            else:
                if self.coordinator.is_running(schedule.zone_id):
                    logger.warning(f"Zone {schedule.zone_id} already running, skipping scheduled start")
                    return SKIPPED
                self.coordinator.start(
                    schedule.zone_id, schedule.duration,
                    trigger=TriggerType.SCHEDULED, schedule_id=schedule.id
                )
            return STARTED
        except (AlreadyRunning, MemberAlreadyRunning, MemberAlreadyQueued, EmptyGroup) as e:
            logger.warning(f"Schedule {schedule.id} skipped: {e}")
            return SKIPPED
        except ZoneControlError as e:
            logger.error(f"Schedule {schedule.id} failed: {e}")
            return FAILED
        except Exception as e:
            logger.error(f"Unexpected error executing schedule {schedule.id}: {e}")
            return FAILED
