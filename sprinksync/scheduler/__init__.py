"""Recurring schedule package."""
from sprinksync.scheduler.schedule_engine import ScheduleEngine, job_id_for

__all__ = [
    'ScheduleEngine',
    'job_id_for',
]
