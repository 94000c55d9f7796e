"""In-memory registry of running and queued zones.

The registry is not locked on its own; it is only mutated from inside the
zone coordinator's critical sections.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from sprinksync.models.history import TriggerType
from sprinksync.safety.errors import AlreadyRunning
from sprinksync.utils.helpers import minutes_between


@dataclass
class RunningZoneEntry:
    """An active activation. Exists iff the zone output is physically ON."""
    zone_id: int
    zone_name: str
    start_time: datetime
    duration: int  # Requested minutes
    trigger: TriggerType
    history_id: int
    timer: Any = None  # Auto-stop handle with cancel()
    schedule_id: Optional[int] = None
    group_id: Optional[int] = None
    group_position: Optional[int] = None

    @property
    def stop_at(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration)

    def elapsed_minutes(self, now: datetime) -> float:
        return max(0.0, minutes_between(self.start_time, now))

    def remaining_minutes(self, now: datetime) -> float:
        return max(0.0, round(self.duration - self.elapsed_minutes(now), 2))

    def to_dict(self, now: datetime) -> dict:
        return {
            'zone_id': self.zone_id,
            'zone_name': self.zone_name,
            'start_time': self.start_time.isoformat(),
            'duration': self.duration,
            'elapsed_minutes': self.elapsed_minutes(now),
            'remaining_minutes': self.remaining_minutes(now),
            'will_stop_at': self.stop_at.isoformat(),
            'trigger': self.trigger.value,
            'schedule_id': self.schedule_id,
            'group_id': self.group_id,
            'group_position': self.group_position
        }


@dataclass
class QueuedZoneEntry:
    """A group member reserved for a later start."""
    zone_id: int
    group_id: Optional[int]
    group_name: str
    position: int  # 1-based
    total_in_group: int
    scheduled_start: datetime
    timer: Any = None  # Delayed-start handle with cancel()

    def to_dict(self) -> dict:
        return {
            'zone_id': self.zone_id,
            'group_id': self.group_id,
            'group_name': self.group_name,
            'position': self.position,
            'total_in_group': self.total_in_group,
            'scheduled_start': self.scheduled_start.isoformat()
        }


class ZoneRegistry:
    """Source of truth for which zones are running right now."""

    def __init__(self):
        self._running: Dict[int, RunningZoneEntry] = {}
        self._queued: Dict[int, QueuedZoneEntry] = {}

    def is_running(self, zone_id: int) -> bool:
        return zone_id in self._running

    def running_count(self) -> int:
        return len(self._running)

    def get(self, zone_id: int) -> Optional[RunningZoneEntry]:
        return self._running.get(zone_id)

    def insert(self, entry: RunningZoneEntry):
        if entry.zone_id in self._running:
            raise AlreadyRunning(entry.zone_id)
        self._running[entry.zone_id] = entry

    def remove(self, zone_id: int) -> Optional[RunningZoneEntry]:
        return self._running.pop(zone_id, None)

    def running_zone_ids(self) -> List[int]:
        return list(self._running)

    def snapshot(self, now: datetime) -> List[dict]:
        """Running entries with elapsed/remaining minutes derived at `now`."""
        return [entry.to_dict(now) for entry in self._running.values()]

    def clear(self):
        self._running.clear()
        self._queued.clear()

    # Queued group members

    def queue(self, entry: QueuedZoneEntry):
        self._queued[entry.zone_id] = entry

    def dequeue(self, zone_id: int) -> Optional[QueuedZoneEntry]:
        return self._queued.pop(zone_id, None)

    def is_queued(self, zone_id: int) -> bool:
        return zone_id in self._queued

    def get_queued(self, zone_id: int) -> Optional[QueuedZoneEntry]:
        return self._queued.get(zone_id)

    def queued_entries(self) -> List[QueuedZoneEntry]:
        return list(self._queued.values())
