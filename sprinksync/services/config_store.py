"""Configuration store for zones, groups, schedules and runtime settings."""
import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional
from sprinksync.config.config import DEFAULT_MAX_CONCURRENT_ZONES, DEFAULT_GROUP_DURATION
from sprinksync.config.database import MAX_CONCURRENT_ZONES_KEY, seed_defaults
from sprinksync.models import (
    Zone, ZoneGroup, ZoneGroupMember, Schedule, HistoryRecord, SystemConfig
)
from sprinksync.safety.errors import (
    GroupNotFound, ScheduleNotFound, ValidationError, ZoneNotFound
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZoneInfo:
    """Detached snapshot of a zone row."""
    id: int
    name: str
    gpio_pin: int
    default_duration: int
    total_runtime: float
    last_run: Optional[datetime]

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'gpio_pin': self.gpio_pin,
            'default_duration': self.default_duration,
            'total_runtime': self.total_runtime,
            'last_run': self.last_run.isoformat() if self.last_run else None
        }


@dataclass(frozen=True)
class GroupInfo:
    """Detached snapshot of a group and its members in sequence order."""
    id: int
    name: str
    default_duration: int
    description: Optional[str] = None
    members: List[ZoneInfo] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'default_duration': self.default_duration,
            'zones': [{'id': m.id, 'name': m.name, 'sequence_order': i} for i, m in enumerate(self.members)],
            'zone_count': len(self.members)
        }


@dataclass(frozen=True)
class ScheduleInfo:
    """Detached snapshot of a schedule with its resolved target name."""
    id: int
    start_time: str
    duration: int
    days: List[int]
    enabled: bool
    zone_id: Optional[int] = None
    group_id: Optional[int] = None
    target_name: Optional[str] = None

    @property
    def targets_group(self) -> bool:
        return self.group_id is not None

    def describe_target(self) -> str:
        if self.targets_group:
            return f"Group {self.group_id} ({self.target_name})"
        return f"Zone {self.zone_id} ({self.target_name})"

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'zone_id': self.zone_id,
            'group_id': self.group_id,
            'target_name': self.target_name,
            'start_time': self.start_time,
            'duration': self.duration,
            'days': list(self.days),
            'enabled': self.enabled
        }


def _zone_info(zone: Zone) -> ZoneInfo:
    return ZoneInfo(
        id=zone.id,
        name=zone.name,
        gpio_pin=zone.gpio_pin,
        default_duration=zone.default_duration,
        total_runtime=zone.total_runtime or 0.0,
        last_run=zone.last_run
    )


def _group_info(group: ZoneGroup) -> GroupInfo:
    return GroupInfo(
        id=group.id,
        name=group.name,
        description=group.description,
        default_duration=group.default_duration,
        members=[_zone_info(m.zone) for m in group.members]
    )


def _schedule_info(schedule: Schedule) -> ScheduleInfo:
    if schedule.zone_id is not None:
        target_name = schedule.zone.name if schedule.zone else None
    else:
        target_name = schedule.group.name if schedule.group else None
    return ScheduleInfo(
        id=schedule.id,
        zone_id=schedule.zone_id,
        group_id=schedule.group_id,
        target_name=target_name,
        start_time=schedule.start_time,
        duration=schedule.duration,
        days=schedule.day_list,
        enabled=bool(schedule.enabled)
    )


class ConfigStore:
    """Reads and writes the persistent configuration the core depends on."""

    def __init__(self, db_session_factory: Callable):
        """
        Initialize the configuration store.

        Args:
            db_session_factory: Generator function yielding a database session
        """
        self.db_session_factory = db_session_factory

    @contextmanager
    def _session(self):
        gen = self.db_session_factory()
        db = next(gen)
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            gen.close()

    # Zones

    def get_zone(self, zone_id: int) -> Optional[ZoneInfo]:
        with self._session() as db:
            zone = db.get(Zone, zone_id)
            return _zone_info(zone) if zone else None

    def list_zones(self) -> List[ZoneInfo]:
        with self._session() as db:
            return [_zone_info(z) for z in db.query(Zone).order_by(Zone.id).all()]

    def update_zone(self, zone_id: int, name: Optional[str] = None,
                    default_duration: Optional[int] = None) -> ZoneInfo:
        with self._session() as db:
            zone = db.get(Zone, zone_id)
            if not zone:
                raise ZoneNotFound(zone_id)
            if name is not None:
                zone.name = name
            if default_duration is not None:
                zone.default_duration = default_duration
            db.flush()
            return _zone_info(zone)

    def add_zone_runtime(self, zone_id: int, minutes: float, at: datetime):
        """Accumulate runtime minutes and stamp last_run."""
        with self._session() as db:
            zone = db.get(Zone, zone_id)
            if not zone:
                logger.warning(f"Cannot record runtime for missing zone {zone_id}")
                return
            zone.total_runtime = round((zone.total_runtime or 0.0) + minutes, 2)
            zone.last_run = at

    def reset_zones(self, zone_pins: Dict[int, int]):
        """Delete every zone (cascading to schedules, memberships and history) and re-seed."""
        with self._session() as db:
            db.query(HistoryRecord).delete()
            db.query(Schedule).delete()
            db.query(ZoneGroupMember).delete()
            db.query(ZoneGroup).delete()
            db.query(Zone).delete()
            db.flush()
            seed_defaults(db, zone_pins)
        logger.warning(f"Zone configuration reset ({len(zone_pins)} zones)")

    # Groups

    def get_group(self, group_id: int) -> Optional[GroupInfo]:
        with self._session() as db:
            group = db.get(ZoneGroup, group_id)
            return _group_info(group) if group else None

    def list_groups(self) -> List[GroupInfo]:
        with self._session() as db:
            return [_group_info(g) for g in db.query(ZoneGroup).order_by(ZoneGroup.name).all()]

    def _check_members(self, db, zone_ids: List[int]):
        if not zone_ids:
            raise ValidationError('At least one zone must be selected')
        if len(set(zone_ids)) != len(zone_ids):
            raise ValidationError('A zone can appear only once in a group')
        for zone_id in zone_ids:
            if db.get(Zone, zone_id) is None:
                raise ZoneNotFound(zone_id)

    def create_group(self, name: str, zone_ids: List[int], description: Optional[str] = None,
                     default_duration: int = DEFAULT_GROUP_DURATION) -> GroupInfo:
        with self._session() as db:
            self._check_members(db, zone_ids)
            group = ZoneGroup(name=name, description=description, default_duration=default_duration)
            for order, zone_id in enumerate(zone_ids):
                group.members.append(ZoneGroupMember(zone_id=zone_id, sequence_order=order))
            db.add(group)
            db.flush()
            db.refresh(group)
            logger.info(f"Zone group created: {name} (ID: {group.id}) with {len(zone_ids)} zones")
            return _group_info(group)

    def update_group(self, group_id: int, name: Optional[str] = None,
                     description: Optional[str] = None,
                     default_duration: Optional[int] = None,
                     zone_ids: Optional[List[int]] = None) -> GroupInfo:
        """Apply the given changes; zone_ids replaces the whole ordered membership."""
        with self._session() as db:
            group = db.get(ZoneGroup, group_id)
            if not group:
                raise GroupNotFound(group_id)
            if name is not None:
                group.name = name
            if description is not None:
                group.description = description
            if default_duration is not None:
                group.default_duration = default_duration
            if zone_ids is not None:
                self._check_members(db, zone_ids)
                group.members.clear()
                db.flush()
                for order, zone_id in enumerate(zone_ids):
                    group.members.append(ZoneGroupMember(zone_id=zone_id, sequence_order=order))
            db.flush()
            db.refresh(group)
            logger.info(f"Zone group updated: {group.name} (ID: {group.id})")
            return _group_info(group)

    def delete_group(self, group_id: int):
        with self._session() as db:
            group = db.get(ZoneGroup, group_id)
            if not group:
                raise GroupNotFound(group_id)
            db.delete(group)
        logger.info(f"Zone group deleted: {group_id}")

    # Schedules

    def get_schedule(self, schedule_id: int) -> Optional[ScheduleInfo]:
        with self._session() as db:
            schedule = db.get(Schedule, schedule_id)
            return _schedule_info(schedule) if schedule else None

    def list_schedules(self) -> List[ScheduleInfo]:
        with self._session() as db:
            return [_schedule_info(s) for s in db.query(Schedule).order_by(Schedule.id).all()]

    def list_enabled_schedules(self) -> List[ScheduleInfo]:
        with self._session() as db:
            schedules = db.query(Schedule).filter_by(enabled=True).order_by(Schedule.id).all()
            return [_schedule_info(s) for s in schedules]

    def create_schedule(self, start_time: str, duration: int, days: List[int],
                        zone_id: Optional[int] = None, group_id: Optional[int] = None,
                        enabled: bool = True) -> ScheduleInfo:
        if (zone_id is None) == (group_id is None):
            raise ValidationError('A schedule must target exactly one zone or one group')
        with self._session() as db:
            if zone_id is not None and db.get(Zone, zone_id) is None:
                raise ZoneNotFound(zone_id)
            if group_id is not None and db.get(ZoneGroup, group_id) is None:
                raise GroupNotFound(group_id)
            schedule = Schedule(
                zone_id=zone_id,
                group_id=group_id,
                start_time=start_time,
                duration=duration,
                days=json.dumps(days),
                enabled=enabled
            )
            db.add(schedule)
            db.flush()
            db.refresh(schedule)
            return _schedule_info(schedule)

    def update_schedule(self, schedule_id: int, **changes) -> ScheduleInfo:
        """Apply start_time, duration, days and/or enabled changes."""
        with self._session() as db:
            schedule = db.get(Schedule, schedule_id)
            if not schedule:
                raise ScheduleNotFound(schedule_id)
            if changes.get('start_time') is not None:
                schedule.start_time = changes['start_time']
            if changes.get('duration') is not None:
                schedule.duration = changes['duration']
            if changes.get('days') is not None:
                schedule.days = json.dumps(changes['days'])
            if changes.get('enabled') is not None:
                schedule.enabled = bool(changes['enabled'])
            db.flush()
            return _schedule_info(schedule)

    def delete_schedule(self, schedule_id: int):
        with self._session() as db:
            schedule = db.get(Schedule, schedule_id)
            if not schedule:
                raise ScheduleNotFound(schedule_id)
            db.delete(schedule)

    # Settings

    def get_max_concurrent_zones(self) -> int:
        """Current concurrency ceiling, falling back to the configured default."""
        with self._session() as db:
            row = db.query(SystemConfig).filter_by(key=MAX_CONCURRENT_ZONES_KEY).first()
            value = row.get_int() if row else None
            return value if value is not None else DEFAULT_MAX_CONCURRENT_ZONES

    def set_max_concurrent_zones(self, value: int):
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValidationError('max_concurrent_zones must be a positive integer')
        with self._session() as db:
            row = db.query(SystemConfig).filter_by(key=MAX_CONCURRENT_ZONES_KEY).first()
            if row:
                row.value = str(value)
            else:
                db.add(SystemConfig(key=MAX_CONCURRENT_ZONES_KEY, value=str(value)))
        logger.info(f"Max concurrent zones set to {value}")
