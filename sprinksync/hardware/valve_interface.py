"""Zone valve actuation interface."""
import enum
import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List
from sprinksync.config.config import GPIO_STABILIZATION_SEC, RELAY_ACTIVE_LOW
from sprinksync.hardware.gpio_interface import GPIOInterface
from sprinksync.safety.errors import HardwareFault, ValveNotInitialized

logger = logging.getLogger(__name__)


class ValveState(enum.Enum):
    """Observed state of a zone output."""
    ON = "on"
    OFF = "off"


class ValveInterface(ABC):
    """Abstract interface for opening and closing zone valves."""

    @abstractmethod
    def initialize(self, zone_pins: Dict[int, int]):
        """Configure every zone output, force it OFF and wait for relays to settle."""
        pass

    @abstractmethod
    def open_valve(self, zone_id: int):
        """Open valve for a specific zone."""
        pass

    @abstractmethod
    def close_valve(self, zone_id: int):
        """Close valve for a specific zone. Closing a closed valve is a no-op."""
        pass

    @abstractmethod
    def read_valve(self, zone_id: int) -> ValveState:
        """Read the current output state for a zone."""
        pass

    @abstractmethod
    def close_all_valves(self):
        """Close all valves."""
        pass

    @abstractmethod
    def cleanup(self):
        """Close all valves and release the underlying pins."""
        pass


class RelayValveController(ValveInterface):
    """Valve controller driving one relay channel per zone through GPIO."""

    def __init__(self, gpio: GPIOInterface, active_low: bool = RELAY_ACTIVE_LOW,
                 stabilization_delay: float = GPIO_STABILIZATION_SEC,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize valve controller.

        Args:
            gpio: GPIO interface instance
            active_low: True when the relay switches on with a LOW pin level
            stabilization_delay: Seconds to wait after initialization
            sleep: Sleep function, replaceable in tests
        """
        self.gpio = gpio
        self.active_low = active_low
        self.stabilization_delay = stabilization_delay
        self._sleep = sleep
        self.zone_pins: Dict[int, int] = {}
        self._lock = threading.Lock()

    def _level(self, on: bool) -> bool:
        return (not on) if self.active_low else on

    def _pin_for(self, zone_id: int) -> int:
        if zone_id not in self.zone_pins:
            raise ValveNotInitialized(zone_id)
        return self.zone_pins[zone_id]

    def _write(self, zone_id: int, pin: int, on: bool):
        try:
            self.gpio.write_pin(pin, self._level(on))
        except Exception as e:
            raise HardwareFault(f"Failed to switch zone {zone_id} (GPIO {pin}) {'on' if on else 'off'}: {e}") from e

    def initialize(self, zone_pins: Dict[int, int]):
        """
        Configure every zone pin as an output and switch it off.

        Blocks for the stabilization delay before returning so relays are
        never cycled immediately after power-up.

        Args:
            zone_pins: Dictionary mapping zone_id to GPIO pin number
        """
        if len(set(zone_pins.values())) != len(zone_pins):
            raise ValueError("Each zone must use a distinct GPIO pin")

        with self._lock:
            for zone_id, pin in zone_pins.items():
                try:
                    self.gpio.setup_output(pin, initial=self._level(False))
                except Exception as e:
                    raise HardwareFault(f"Failed to set up GPIO {pin} for zone {zone_id}: {e}") from e
                self._write(zone_id, pin, False)
            self.zone_pins = dict(zone_pins)

        self._sleep(self.stabilization_delay)
        logger.info(f"GPIO initialized for {len(zone_pins)} zone(s), all zones OFF")

    def open_valve(self, zone_id: int):
        """Open valve for a specific zone."""
        with self._lock:
            pin = self._pin_for(zone_id)
            self._write(zone_id, pin, True)
        logger.info(f"Zone {zone_id} valve opened (GPIO {pin})")

    def close_valve(self, zone_id: int):
        """Close valve for a specific zone."""
        with self._lock:
            pin = self._pin_for(zone_id)
            self._write(zone_id, pin, False)
        logger.info(f"Zone {zone_id} valve closed (GPIO {pin})")

    def read_valve(self, zone_id: int) -> ValveState:
        """Read the current output state for a zone."""
        with self._lock:
            pin = self._pin_for(zone_id)
            try:
                level = self.gpio.read_pin(pin)
            except Exception as e:
                raise HardwareFault(f"Failed to read zone {zone_id} (GPIO {pin}): {e}") from e
        return ValveState.ON if level == self._level(True) else ValveState.OFF

    def close_all_valves(self):
        """Close all valves, attempting every zone even if one fails."""
        failures = []
        with self._lock:
            for zone_id, pin in self.zone_pins.items():
                try:
                    self._write(zone_id, pin, False)
                except HardwareFault as e:
                    logger.error(str(e))
                    failures.append(zone_id)
        if failures:
            raise HardwareFault(f"Failed to close zone(s) {failures}")
        logger.info("All zone valves closed")

    def get_open_valves(self) -> List[int]:
        """Get list of zone IDs whose output currently reads ON."""
        return [zone_id for zone_id in list(self.zone_pins) if self.read_valve(zone_id) == ValveState.ON]

    def cleanup(self):
        """Close all valves and release the pins."""
        try:
            self.close_all_valves()
        finally:
            with self._lock:
                for pin in self.zone_pins.values():
                    self.gpio.cleanup_pin(pin)
                self.zone_pins = {}
        logger.info("GPIO cleanup complete")
