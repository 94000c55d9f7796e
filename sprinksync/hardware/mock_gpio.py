"""In-memory GPIO backend for development machines and tests."""
import logging
from typing import Dict, Iterable, List, Tuple
from sprinksync.hardware.gpio_interface import GPIOInterface

logger = logging.getLogger(__name__)


class MockGPIO(GPIOInterface):
    """Keeps pin levels in memory and records every write."""

    def __init__(self):
        self.pin_states: Dict[int, bool] = {}  # pin -> level (True = HIGH)
        self.writes: List[Tuple[int, bool]] = []  # (pin, value) in write order

    def setup_output(self, pin: int, initial: bool = True):
        self.pin_states[pin] = initial
        logger.debug(f"[MOCK GPIO] GPIO {pin} claimed as output ({'HIGH' if initial else 'LOW'})")

    def _require(self, pin: int):
        if pin not in self.pin_states:
            raise ValueError(f"GPIO {pin} is not configured as an output")

    def read_pin(self, pin: int) -> bool:
        self._require(pin)
        return self.pin_states[pin]

    def write_pin(self, pin: int, value: bool):
        self._require(pin)
        self.pin_states[pin] = value
        self.writes.append((pin, value))
        logger.debug(f"[MOCK GPIO] GPIO {pin} -> {'HIGH' if value else 'LOW'}")

    def configured_pins(self) -> Iterable[int]:
        return sorted(self.pin_states)

    def cleanup_pin(self, pin: int):
        self.pin_states.pop(pin, None)
