"""Abstract GPIO interface for relay outputs."""
from abc import ABC, abstractmethod
from typing import Iterable


class GPIOInterface(ABC):
    """Digital output pins driving relay channels (BCM numbering)."""

    @abstractmethod
    def setup_output(self, pin: int, initial: bool = True):
        """
        Claim a pin as a digital output.

        Args:
            pin: GPIO pin number (BCM)
            initial: Level the pin is driven to when claimed (True = HIGH)
        """
        pass

    @abstractmethod
    def read_pin(self, pin: int) -> bool:
        """Current level of a claimed pin, True for HIGH."""
        pass

    @abstractmethod
    def write_pin(self, pin: int, value: bool):
        """Drive a claimed output HIGH (True) or LOW (False)."""
        pass

    @abstractmethod
    def configured_pins(self) -> Iterable[int]:
        pass

    @abstractmethod
    def cleanup_pin(self, pin: int):
        """Release a specific GPIO pin."""
        pass

    def cleanup(self):
        """Release every claimed pin."""
        for pin in list(self.configured_pins()):
            self.cleanup_pin(pin)
