"""Input validation for zone, group and schedule payloads."""
import re
from typing import List
from sprinksync.safety.errors import ValidationError
from sprinksync.utils.helpers import parse_days

TIME_PATTERN = re.compile(r'^([0-1][0-9]|2[0-3]):([0-5][0-9])$')
MAX_NAME_LENGTH = 50


def validate_time_format(value) -> str:
    """Validate a 24-hour HH:MM string."""
    if not value or not isinstance(value, str):
        raise ValidationError('Time is required and must be a string')
    if not TIME_PATTERN.match(value):
        raise ValidationError('Invalid time format. Use HH:MM (24-hour format)')
    return value


def validate_days(days) -> List[int]:
    """
    Validate a weekday set.

    Args:
        days: List or JSON string of day numbers (0=Sunday .. 6=Saturday)

    Returns:
        Sorted list of unique days
    """
    if not isinstance(days, (list, tuple, str)):
        raise ValidationError('Days must be an array')
    parsed = parse_days(days)
    if isinstance(days, str) and not parsed and days.strip() not in ('[]', ''):
        raise ValidationError('Days must be a valid JSON array')
    if len(parsed) == 0:
        raise ValidationError('At least one day must be selected')

    result = set()
    for day in parsed:
        try:
            day_num = int(day)
        except (TypeError, ValueError):
            raise ValidationError('Days must be numbers between 0 (Sunday) and 6 (Saturday)')
        if isinstance(day, bool) or day_num < 0 or day_num > 6:
            raise ValidationError('Days must be numbers between 0 (Sunday) and 6 (Saturday)')
        result.add(day_num)

    return sorted(result)


def validate_name(name, label: str = 'Zone') -> str:
    """Validate a display name (1..50 chars after trimming)."""
    if not name or not isinstance(name, str):
        raise ValidationError(f'{label} name is required and must be a string')
    trimmed = name.strip()
    if not trimmed:
        raise ValidationError(f'{label} name cannot be empty')
    if len(trimmed) > MAX_NAME_LENGTH:
        raise ValidationError(f'{label} name cannot exceed {MAX_NAME_LENGTH} characters')
    return trimmed


def validate_positive_int(value, field: str) -> int:
    """Validate a strictly positive integer field."""
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be a number')
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be a number')
    if number < 1:
        raise ValidationError(f'{field} must be a positive integer')
    return number
