"""Sequential group runs.

A group run starts its first member immediately and reserves the rest in
the queue with staggered start times. Each reserved member is started by its
own timer, which re-checks the concurrency ceiling at fire time; a member that
cannot start then is abandoned, not retried.
"""
import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from sprinksync.config.config import INTER_ZONE_BUFFER_SEC
from sprinksync.controllers.zone_coordinator import ZoneCoordinator
from sprinksync.controllers.zone_registry import QueuedZoneEntry
from sprinksync.models.history import TriggerType
from sprinksync.safety.errors import (
    AlreadyRunning, EmptyGroup, GroupNotFound, MemberAlreadyQueued, MemberAlreadyRunning, ZoneControlError
)
from sprinksync.services.config_store import ConfigStore, GroupInfo

logger = logging.getLogger(__name__)


class GroupSequencer:
    """Runs the zones of a group one after another."""

    def __init__(self, coordinator: ZoneCoordinator, store: ConfigStore,
                 buffer_seconds: float = INTER_ZONE_BUFFER_SEC,
                 timer_factory: Optional[Callable] = None):
        """
        Initialize the sequencer.

        Args:
            coordinator: Zone coordinator that owns starts and the queue
            store: Configuration store for group lookups
            buffer_seconds: Gap between one member's end and the next member's start
            timer_factory: Delayed-start factory, defaults to the coordinator's
        """
        self.coordinator = coordinator
        self.store = store
        self.buffer_seconds = buffer_seconds
        self.timer_factory = timer_factory or coordinator.timer_factory

    def start_offset(self, index: int, duration: int) -> float:
        """Seconds from the group start until member `index` (0-based) starts."""
        return index * (duration * 60 + self.buffer_seconds)

    def run_group(self, group_id: int, duration: Optional[int] = None,
                  trigger: TriggerType = TriggerType.GROUP,
                  schedule_id: Optional[int] = None) -> dict:
        """
        Start a group run.

        Args:
            group_id: Group to run
            duration: Per-member minutes, defaults to the group's default duration
            trigger: GROUP for manual runs, SCHEDULED when fired by a schedule
            schedule_id: Originating schedule, if any

        Returns:
            Roster with the running first member and the queued rest
        """
        group = self.store.get_group(group_id)
        if group is None:
            raise GroupNotFound(group_id)
        if not group.members:
            raise EmptyGroup(group_id)

        run_duration = duration if duration is not None else group.default_duration

        with self.coordinator.critical_section() as registry:
            for member in group.members:
                if registry.is_running(member.id):
                    raise MemberAlreadyRunning(member.id, member.name)
                queued = registry.get_queued(member.id)
                if queued is not None:
                    raise MemberAlreadyQueued(member.id, member.name, queued.group_name)
            self.coordinator.limits.check_duration(run_duration)

            now = self.coordinator.clock()
            entries = self._queue_members(group, run_duration, now)

            first = group.members[0]
            try:
                self.coordinator.start(
                    first.id, run_duration, trigger,
                    schedule_id=schedule_id, group_id=group.id, group_position=1
                )
            except Exception:
                for entry in entries:
                    self.coordinator.dequeue(entry.zone_id)
                raise

            for entry in entries[1:]:
                delay = (entry.scheduled_start - now).total_seconds()
                entry.timer = self.timer_factory(
                    delay, self._start_member, entry, run_duration, trigger, schedule_id
                )

        logger.info(f"Group {group.id} ({group.name}) started - {len(group.members)} zones, "
                    f"{run_duration}min each")
        return self._roster(group, run_duration, entries, now)

    def _queue_members(self, group: GroupInfo, duration: int, now: datetime) -> List[QueuedZoneEntry]:
        entries = []
        total = len(group.members)
        for index, member in enumerate(group.members):
            entry = QueuedZoneEntry(
                zone_id=member.id,
                group_id=group.id,
                group_name=group.name,
                position=index + 1,
                total_in_group=total,
                scheduled_start=now + timedelta(seconds=self.start_offset(index, duration))
            )
            self.coordinator.queue(entry)
            entries.append(entry)
        return entries

    def _start_member(self, entry: QueuedZoneEntry, duration: int,
                      trigger: TriggerType, schedule_id: Optional[int]):
        """Timer callback for a reserved member. Never raises."""
        with self.coordinator.critical_section() as registry:
            if registry.get_queued(entry.zone_id) is not entry:
                logger.info(f"Zone {entry.zone_id} no longer queued for group {entry.group_id}, skipping")
                return

            if not self.coordinator.has_capacity():
                logger.warning(f"Cannot start zone {entry.zone_id} from group {entry.group_name}: "
                               f"max concurrent zones reached")
                self.coordinator.dequeue(entry.zone_id)
                return

            try:
                self.coordinator.start(
                    entry.zone_id, duration, trigger,
                    schedule_id=schedule_id, group_id=entry.group_id, group_position=entry.position
                )
            except AlreadyRunning:
                logger.warning(f"Zone {entry.zone_id} from group {entry.group_name} is already running, skipping")
                self.coordinator.dequeue(entry.zone_id)
            except ZoneControlError as e:
                logger.error(f"Failed to start zone {entry.zone_id} from group {entry.group_name}: {e}")
                self.coordinator.dequeue(entry.zone_id)
            except Exception as e:
                logger.error(f"Unexpected error starting zone {entry.zone_id} from group {entry.group_name}: {e}")
                self.coordinator.dequeue(entry.zone_id)

    def _roster(self, group: GroupInfo, duration: int,
                entries: List[QueuedZoneEntry], now: datetime) -> dict:
        zones = []
        for member, entry in zip(group.members, entries):
            offset = (entry.scheduled_start - now).total_seconds()
            zones.append({
                'zone_id': member.id,
                'zone_name': member.name,
                'position': entry.position,
                'status': 'running' if entry.position == 1 else 'queued',
                'scheduled_start': entry.scheduled_start.isoformat(),
                'start_in_minutes': round(offset / 60.0, 2)
            })
        return {
            'success': True,
            'group_id': group.id,
            'group_name': group.name,
            'duration': duration,
            'total_zones': len(group.members),
            'zones': zones
        }

    def cancel_group(self, group_id: int) -> List[int]:
        """Abandon the pending member starts of a group (running members keep running)."""
        return self.coordinator.cancel_group(group_id)
