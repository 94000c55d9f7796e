"""Persistence-facing services package."""
from sprinksync.services.config_store import ConfigStore, GroupInfo, ScheduleInfo, ZoneInfo
from sprinksync.services.history_recorder import HistoryRecorder

__all__ = [
    'ConfigStore',
    'GroupInfo',
    'ScheduleInfo',
    'ZoneInfo',
    'HistoryRecorder',
]
