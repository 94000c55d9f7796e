"""Zone control package."""
from sprinksync.controllers.zone_registry import ZoneRegistry, RunningZoneEntry, QueuedZoneEntry
from sprinksync.controllers.zone_coordinator import (
    ZoneCoordinator,
    StartResult,
    StopResult,
    StopAllResult,
    start_timer
)
from sprinksync.controllers.group_sequencer import GroupSequencer

__all__ = [
    'ZoneRegistry',
    'RunningZoneEntry',
    'QueuedZoneEntry',
    'ZoneCoordinator',
    'StartResult',
    'StopResult',
    'StopAllResult',
    'start_timer',
    'GroupSequencer',
]
