"""Database models package."""
from sprinksync.models.zone import Zone
from sprinksync.models.group import ZoneGroup, ZoneGroupMember
from sprinksync.models.schedule import Schedule
from sprinksync.models.history import HistoryRecord, HistoryStatus, TriggerType
from sprinksync.models.system_config import SystemConfig

__all__ = [
    'Zone',
    'ZoneGroup',
    'ZoneGroupMember',
    'Schedule',
    'HistoryRecord',
    'HistoryStatus',
    'TriggerType',
    'SystemConfig',
]
