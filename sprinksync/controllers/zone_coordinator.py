"""Zone safety coordinator.

Single serialization point for zone state changes. Every start, stop and
stop-all runs under one re-entrant lock spanning the precondition checks and
the registry/hardware mutation, so two concurrent starts cannot both claim
the last free concurrency slot.
"""
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional
from sprinksync.controllers.zone_registry import QueuedZoneEntry, RunningZoneEntry, ZoneRegistry
from sprinksync.hardware.valve_interface import ValveInterface
from sprinksync.models.history import TriggerType
from sprinksync.safety.errors import (
    AlreadyRunning, ConcurrencyLimitExceeded, HardwareFault, NotRunning, ZoneNotFound
)
from sprinksync.safety.limits import SafetyLimits
from sprinksync.services.config_store import ConfigStore
from sprinksync.services.history_recorder import HistoryRecorder
from sprinksync.utils.helpers import minutes_between

logger = logging.getLogger(__name__)


def start_timer(delay_seconds: float, callback: Callable, *args) -> threading.Timer:
    """Run callback(*args) once after delay_seconds on a daemon thread."""
    timer = threading.Timer(delay_seconds, callback, args=args)
    timer.daemon = True
    timer.start()
    return timer


@dataclass
class StartResult:
    zone_id: int
    zone_name: str
    duration: int
    start_time: datetime
    will_stop_at: datetime

    def to_dict(self) -> dict:
        return {
            'success': True,
            'zone_id': self.zone_id,
            'zone_name': self.zone_name,
            'duration': self.duration,
            'start_time': self.start_time.isoformat(),
            'will_stop_at': self.will_stop_at.isoformat()
        }


@dataclass
class StopResult:
    zone_id: int
    zone_name: str
    runtime: float

    def to_dict(self) -> dict:
        return {
            'success': True,
            'zone_id': self.zone_id,
            'zone_name': self.zone_name,
            'runtime': self.runtime
        }


@dataclass
class StopAllResult:
    stopped_zones: List[int] = field(default_factory=list)
    failed_zones: List[int] = field(default_factory=list)
    cancelled_queued: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'success': True,
            'stopped_zones': self.stopped_zones,
            'failed_zones': self.failed_zones,
            'cancelled_queued': self.cancelled_queued,
            'count': len(self.stopped_zones)
        }


class ZoneCoordinator:
    """Enforces the safety invariants and drives valves and auto-stop timers."""

    def __init__(self, store: ConfigStore, history: HistoryRecorder,
                 valves: ValveInterface, limits: SafetyLimits,
                 clock: Callable[[], datetime] = datetime.now,
                 timer_factory: Callable = start_timer):
        """
        Initialize the coordinator.

        Args:
            store: Configuration store (zones, runtime accumulation)
            history: History sink
            valves: Hardware actuation interface
            limits: Safety limits with a live concurrency reader
            clock: Returns the current time
            timer_factory: Called as timer_factory(seconds, callback, *args);
                must return a handle with cancel()
        """
        self.store = store
        self.history = history
        self.valves = valves
        self.limits = limits
        self.clock = clock
        self.timer_factory = timer_factory
        self.registry = ZoneRegistry()
        self._lock = threading.RLock()
        self._hardware_ready = False

    @contextmanager
    def critical_section(self):
        """Hold the coordinator lock for a multi-step check-and-act."""
        with self._lock:
            yield self.registry

    def initialize(self, zone_pins: Dict[int, int]):
        """Start from an empty registry with every output forced OFF."""
        with self._lock:
            self.registry.clear()
            self.valves.initialize(zone_pins)
            self._hardware_ready = True
        logger.info("Zone coordinator initialized (all zones cleared)")

    # Queries

    def is_running(self, zone_id: int) -> bool:
        with self._lock:
            return self.registry.is_running(zone_id)

    def running_count(self) -> int:
        with self._lock:
            return self.registry.running_count()

    def has_capacity(self) -> bool:
        """True when another zone may start under the live concurrency ceiling."""
        with self._lock:
            return self.registry.running_count() < self.limits.max_concurrent_zones()

    def running_zones(self) -> List[dict]:
        with self._lock:
            return self.registry.snapshot(self.clock())

    def zone_state(self, zone_id: int) -> dict:
        with self._lock:
            entry = self.registry.get(zone_id)
            if entry is None:
                return {'is_running': False, 'remaining_time': 0}
            now = self.clock()
            return {
                'is_running': True,
                'remaining_time': entry.remaining_minutes(now),
                'start_time': entry.start_time.isoformat(),
                'duration': entry.duration,
                'trigger': entry.trigger.value
            }

    # Zone control

    def start(self, zone_id: int, duration: int, trigger: TriggerType = TriggerType.MANUAL,
              schedule_id: Optional[int] = None, group_id: Optional[int] = None,
              group_position: Optional[int] = None) -> StartResult:
        """
        Start a zone.

        Preconditions are checked in order, first failure wins: zone exists,
        zone not running, running count below the current ceiling, duration
        within bounds.

        Args:
            zone_id: Zone ID
            duration: Run duration in minutes
            trigger: Why the zone is starting
            schedule_id: Originating schedule, if any
            group_id: Originating group, if any
            group_position: 1-based position inside the group run

        Returns:
            StartResult with the effective duration and stop-at time
        """
        with self._lock:
            if not self._hardware_ready:
                raise HardwareFault('Hardware not initialized')

            zone = self.store.get_zone(zone_id)
            if zone is None:
                raise ZoneNotFound(zone_id)

            if self.registry.is_running(zone_id):
                raise AlreadyRunning(zone_id)

            limit = self.limits.max_concurrent_zones()
            if self.registry.running_count() >= limit:
                raise ConcurrencyLimitExceeded(limit)

            self.limits.check_duration(duration)

            start_time = self.clock()
            history_id = self.history.begin_record(
                zone_id, start_time, trigger, schedule_id=schedule_id, group_id=group_id
            )

            try:
                self.valves.open_valve(zone_id)
            except HardwareFault as e:
                self._abort_start(zone_id, history_id, e)
                raise
            except Exception as e:
                fault = HardwareFault(f'Failed to open zone {zone_id}: {e}')
                self._abort_start(zone_id, history_id, fault)
                raise fault from e

            timer = self.timer_factory(duration * 60, self._auto_stop, zone_id, history_id)
            entry = RunningZoneEntry(
                zone_id=zone_id,
                zone_name=zone.name,
                start_time=start_time,
                duration=duration,
                trigger=trigger,
                history_id=history_id,
                timer=timer,
                schedule_id=schedule_id,
                group_id=group_id,
                group_position=group_position
            )
            self.registry.insert(entry)
            self._cancel_queued(zone_id)

        logger.info(f"Zone {zone_id} ({zone.name}) started - Duration: {duration}min, Trigger: {trigger.value}")
        return StartResult(
            zone_id=zone_id,
            zone_name=zone.name,
            duration=duration,
            start_time=start_time,
            will_stop_at=entry.stop_at
        )

    def _abort_start(self, zone_id: int, history_id: int, fault: HardwareFault):
        """Leave the output OFF and close the history record of a failed start."""
        logger.error(f"Failed to start zone {zone_id}: {fault}")
        try:
            self.valves.close_valve(zone_id)
        except Exception as e:
            logger.error(f"Zone {zone_id}: close after failed start also failed: {e}")
        try:
            self.history.abort_record(history_id, self.clock(), str(fault))
        except Exception as e:
            logger.error(f"Zone {zone_id}: could not abort history record {history_id}: {e}")

    def stop(self, zone_id: int) -> StopResult:
        """
        Stop a running zone.

        Cancels the auto-stop timer, closes the valve, removes the registry
        and queue entries, then persists history and zone runtime. A valve
        that fails to close still leaves the registry; the fault is raised
        after persistence.

        Returns:
            StopResult with the actual runtime in minutes
        """
        with self._lock:
            entry = self.registry.get(zone_id)
            if entry is None:
                raise NotRunning(zone_id)

            if entry.timer is not None:
                entry.timer.cancel()

            fault = None
            try:
                self.valves.close_valve(zone_id)
            except Exception as e:
                fault = e if isinstance(e, HardwareFault) else HardwareFault(f'Failed to close zone {zone_id}: {e}')
                logger.error(f"Failed to stop zone {zone_id}: {fault}")

            end_time = self.clock()
            runtime = minutes_between(entry.start_time, end_time)

            self.registry.remove(zone_id)
            self._cancel_queued(zone_id)

            try:
                self.history.finalize_record(entry.history_id, end_time, runtime)
                self.store.add_zone_runtime(zone_id, runtime, end_time)
            except Exception as e:
                logger.error(f"Zone {zone_id}: failed to persist stop: {e}")

        if fault is not None:
            raise fault

        logger.info(f"Zone {zone_id} ({entry.zone_name}) stopped - Runtime: {runtime}min")
        return StopResult(zone_id=zone_id, zone_name=entry.zone_name, runtime=runtime)

    def _auto_stop(self, zone_id: int, history_id: int):
        """Timer callback. Ignores timers belonging to an earlier activation."""
        with self._lock:
            entry = self.registry.get(zone_id)
            if entry is None or entry.history_id != history_id:
                logger.debug(f"Stale auto-stop for zone {zone_id} ignored")
                return
            logger.warning(f"Zone {zone_id} auto-stop triggered (max runtime reached)")
            try:
                self.stop(zone_id)
            except Exception as e:
                logger.error(f"Auto-stop of zone {zone_id} failed: {e}")

    def stop_all(self) -> StopAllResult:
        """
        Emergency stop: stop every running zone and abandon queued group members.

        Never raises; a zone that fails to stop is logged and the rest are
        still attempted.
        """
        result = StopAllResult()
        try:
            with self._lock:
                for entry in self.registry.queued_entries():
                    self._cancel_queued(entry.zone_id)
                    result.cancelled_queued.append(entry.zone_id)

                for zone_id in self.registry.running_zone_ids():
                    try:
                        self.stop(zone_id)
                        result.stopped_zones.append(zone_id)
                    except Exception as e:
                        logger.error(f"Error stopping zone {zone_id} during stop_all: {e}")
                        result.failed_zones.append(zone_id)
                        self.registry.remove(zone_id)
        except Exception as e:
            logger.error(f"stop_all failed: {e}")

        logger.warning(f"Emergency stop: all zones stopped ({len(result.stopped_zones)} zones)")
        return result

    # Queued group members

    def queue(self, entry: QueuedZoneEntry):
        with self._lock:
            self.registry.queue(entry)

    def _cancel_queued(self, zone_id: int) -> Optional[QueuedZoneEntry]:
        entry = self.registry.dequeue(zone_id)
        if entry is not None and entry.timer is not None:
            entry.timer.cancel()
        return entry

    def dequeue(self, zone_id: int) -> Optional[QueuedZoneEntry]:
        """Remove a queued member and cancel its pending start."""
        with self._lock:
            return self._cancel_queued(zone_id)

    def cancel_group(self, group_id: int) -> List[int]:
        """Abandon every pending member start belonging to a group."""
        with self._lock:
            zone_ids = [e.zone_id for e in self.registry.queued_entries() if e.group_id == group_id]
            for zone_id in zone_ids:
                self._cancel_queued(zone_id)
        if zone_ids:
            logger.info(f"Cancelled pending starts for group {group_id}: {zone_ids}")
        return zone_ids

    def queued_zones(self) -> List[dict]:
        with self._lock:
            return [e.to_dict() for e in self.registry.queued_entries()]

    def status(self) -> dict:
        with self._lock:
            now = self.clock()
            return {
                'hardware_ready': self._hardware_ready,
                'active_zones': self.registry.running_count(),
                'max_concurrent_zones': self.limits.max_concurrent_zones(),
                'running_zones': self.registry.snapshot(now),
                'queued_zones': [e.to_dict() for e in self.registry.queued_entries()]
            }
