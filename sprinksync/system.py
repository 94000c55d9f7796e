"""Process-level wiring of the zone control core."""
import logging
from datetime import datetime
from typing import Callable, Dict, Optional
from sprinksync.config.config import ZONE_GPIO_PINS
from sprinksync.config.database import get_db, init_db
from sprinksync.controllers.group_sequencer import GroupSequencer
from sprinksync.controllers.zone_coordinator import StopAllResult, ZoneCoordinator, start_timer
from sprinksync.hardware import RelayValveController, create_gpio
from sprinksync.hardware.gpio_interface import GPIOInterface
from sprinksync.hardware.valve_interface import ValveInterface
from sprinksync.safety.limits import SafetyLimits
from sprinksync.scheduler.schedule_engine import ScheduleEngine
from sprinksync.services.config_store import ConfigStore
from sprinksync.services.history_recorder import HistoryRecorder

logger = logging.getLogger(__name__)


class IrrigationSystem:
    """Owns one instance of every core component for the life of the process."""

    def __init__(self, db_session_factory: Callable = get_db,
                 zone_pins: Optional[Dict[int, int]] = None,
                 gpio: Optional[GPIOInterface] = None,
                 valves: Optional[ValveInterface] = None,
                 clock: Callable[[], datetime] = datetime.now,
                 timer_factory: Callable = start_timer,
                 scheduler=None,
                 skip_oracle: Optional[Callable] = None):
        self.zone_pins = dict(ZONE_GPIO_PINS if zone_pins is None else zone_pins)
        self.store = ConfigStore(db_session_factory)
        self.history = HistoryRecorder(db_session_factory)
        self.limits = SafetyLimits(self.store.get_max_concurrent_zones)
        self.valves = valves or RelayValveController(gpio or create_gpio())
        self.coordinator = ZoneCoordinator(
            self.store, self.history, self.valves, self.limits,
            clock=clock, timer_factory=timer_factory
        )
        self.sequencer = GroupSequencer(self.coordinator, self.store)
        self.engine = ScheduleEngine(
            self.coordinator, self.sequencer, self.store,
            scheduler=scheduler, skip_oracle=skip_oracle
        )
        self.started = False

    def start(self, init_database: bool = True):
        """
        Bring the system up.

        Hardware is initialized (every zone OFF) before the schedule engine
        can fire, so no start is accepted against unconfigured outputs.
        """
        if self.started:
            return
        if init_database:
            init_db(self.zone_pins)
        self.coordinator.initialize(self.zone_pins)
        self.engine.start()
        self.engine.load()
        self.started = True
        logger.info(f"SprinkSync started with {len(self.zone_pins)} zones")

    def shutdown(self) -> Optional[StopAllResult]:
        """Stop scheduling, stop every zone and release the hardware."""
        if not self.started:
            return None
        logger.info("Shutting down SprinkSync...")
        try:
            self.engine.shutdown()
        except Exception as e:
            logger.error(f"Error stopping schedule engine: {e}")

        result = self.coordinator.stop_all()

        try:
            self.valves.cleanup()
        except Exception as e:
            logger.error(f"Error during GPIO cleanup: {e}")

        self.started = False
        logger.info("Shutdown complete")
        return result

    def reset_zones(self):
        """Stop everything, wipe zone configuration and re-seed from the pin map."""
        self.coordinator.stop_all()
        self.store.reset_zones(self.zone_pins)
        self.engine.load()

    def status(self) -> dict:
        status = self.coordinator.status()
        status['active_schedules'] = self.engine.active_count()
        status['limits'] = self.limits.to_dict()
        status['started'] = self.started
        return status
