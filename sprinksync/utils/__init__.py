"""Utility functions package."""
from sprinksync.utils.helpers import (
    format_days, format_duration, minutes_between, next_scheduled_run, parse_days
)
from sprinksync.utils.validator import (
    validate_days, validate_name, validate_positive_int, validate_time_format
)

__all__ = [
    'format_days',
    'format_duration',
    'minutes_between',
    'next_scheduled_run',
    'parse_days',
    'validate_days',
    'validate_name',
    'validate_positive_int',
    'validate_time_format',
]
