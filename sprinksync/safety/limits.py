"""Process-wide safety limits."""
from typing import Callable
from sprinksync.config.config import (
    MIN_DURATION_MINUTES, MAX_RUNTIME_MINUTES, GPIO_STABILIZATION_SEC
)
from sprinksync.safety.errors import InvalidDuration


class SafetyLimits:
    """Duration bounds plus a live reader for the concurrency ceiling."""

    def __init__(self, max_concurrent_reader: Callable[[], int],
                 min_duration: int = MIN_DURATION_MINUTES,
                 max_duration: int = MAX_RUNTIME_MINUTES,
                 stabilization_delay: float = GPIO_STABILIZATION_SEC):
        """
        Initialize safety limits.

        Args:
            max_concurrent_reader: Callable returning the current max-concurrent-zones value.
                Called on every decision, never cached.
            min_duration: Minimum run duration in minutes
            max_duration: Maximum run duration in minutes
            stabilization_delay: Relay settle time after hardware init, in seconds
        """
        self._max_concurrent_reader = max_concurrent_reader
        self.min_duration = min_duration
        self.max_duration = max_duration
        self.stabilization_delay = stabilization_delay

    def max_concurrent_zones(self) -> int:
        """Read the concurrency ceiling currently in effect."""
        return int(self._max_concurrent_reader())

    def is_valid_duration(self, duration) -> bool:
        return self.min_duration <= duration <= self.max_duration

    def check_duration(self, duration):
        """Raise InvalidDuration unless duration lies within [min, max]."""
        if (not isinstance(duration, (int, float)) or isinstance(duration, bool)
                or not self.is_valid_duration(duration)):
            raise InvalidDuration(duration, self.min_duration, self.max_duration)

    def to_dict(self) -> dict:
        return {
            'max_concurrent_zones': self.max_concurrent_zones(),
            'min_duration': self.min_duration,
            'max_duration': self.max_duration,
            'stabilization_delay': self.stabilization_delay
        }
