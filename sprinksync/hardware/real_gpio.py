"""Raspberry Pi GPIO backend."""
import logging
from typing import Iterable, Set
from sprinksync.hardware.gpio_interface import GPIOInterface

try:
    import RPi.GPIO as GPIO
    RPI_GPIO_AVAILABLE = True
except ImportError:
    RPI_GPIO_AVAILABLE = False
    GPIO = None

logger = logging.getLogger(__name__)


class RealGPIO(GPIOInterface):
    """Relay outputs through RPi.GPIO in BCM mode."""

    def __init__(self):
        if not RPI_GPIO_AVAILABLE:
            raise ImportError("RPi.GPIO is not available. Install it with: pip install 'sprinksync[pi]'")

        GPIO.setmode(GPIO.BCM)
        GPIO.setwarnings(False)
        self._outputs: Set[int] = set()
        logger.info("RPi.GPIO initialized (BCM numbering)")

    def setup_output(self, pin: int, initial: bool = True):
        # Claim the pin already at its idle level so the relay never blips on
        GPIO.setup(pin, GPIO.OUT, initial=GPIO.HIGH if initial else GPIO.LOW)
        self._outputs.add(pin)

    def _require(self, pin: int):
        if pin not in self._outputs:
            raise ValueError(f"GPIO {pin} is not configured as an output")

    def read_pin(self, pin: int) -> bool:
        self._require(pin)
        return GPIO.input(pin) == GPIO.HIGH

    def write_pin(self, pin: int, value: bool):
        self._require(pin)
        GPIO.output(pin, GPIO.HIGH if value else GPIO.LOW)

    def configured_pins(self) -> Iterable[int]:
        return sorted(self._outputs)

    def cleanup_pin(self, pin: int):
        if pin in self._outputs:
            GPIO.cleanup(pin)
            self._outputs.discard(pin)

    def cleanup(self):
        GPIO.cleanup()
        self._outputs.clear()
