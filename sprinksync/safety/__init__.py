"""Safety limits and error taxonomy package."""
from sprinksync.safety.errors import (
    ZoneControlError,
    ZoneNotFound,
    GroupNotFound,
    ScheduleNotFound,
    AlreadyRunning,
    NotRunning,
    ConcurrencyLimitExceeded,
    InvalidDuration,
    EmptyGroup,
    MemberAlreadyRunning,
    MemberAlreadyQueued,
    ValidationError,
    HardwareFault,
    ValveNotInitialized
)
from sprinksync.safety.limits import SafetyLimits

__all__ = [
    'ZoneControlError',
    'ZoneNotFound',
    'GroupNotFound',
    'ScheduleNotFound',
    'AlreadyRunning',
    'NotRunning',
    'ConcurrencyLimitExceeded',
    'InvalidDuration',
    'EmptyGroup',
    'MemberAlreadyRunning',
    'MemberAlreadyQueued',
    'ValidationError',
    'HardwareFault',
    'ValveNotInitialized',
    'SafetyLimits',
]
