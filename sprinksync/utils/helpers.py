"""General helpers for times, durations and weekday sets."""
import json
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

# 0 = Sunday .. 6 = Saturday, the order days are stored in
DAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']
CRON_DAY_NAMES = ['sun', 'mon', 'tue', 'wed', 'thu', 'fri', 'sat']


def parse_days(days) -> List[int]:
    """Parse days from a JSON string or a list; anything else gives []."""
    if isinstance(days, str):
        try:
            days = json.loads(days)
        except ValueError:
            return []
    if isinstance(days, (list, tuple, set)):
        return list(days)
    return []


def sunday_index(moment: datetime) -> int:
    """Weekday of a datetime with Sunday as 0."""
    return (moment.weekday() + 1) % 7


def cron_day_of_week(days: Iterable[int]) -> str:
    """Render stored day numbers as a cron day_of_week field ('mon,wed,fri')."""
    return ','.join(CRON_DAY_NAMES[day] for day in sorted(set(days)))


def parse_time_of_day(value: str):
    """Split 'HH:MM' into (hour, minute)."""
    hours, minutes = value.split(':')
    return int(hours), int(minutes)


def minutes_between(start: datetime, end: datetime) -> float:
    """Minutes elapsed between two datetimes, rounded to two decimals."""
    return round((end - start).total_seconds() / 60.0, 2)


def format_duration(minutes) -> str:
    """Format minutes as '45m', '2h' or '1h 30m'."""
    minutes = int(round(minutes))
    if minutes < 60:
        return f'{minutes}m'
    hours, mins = divmod(minutes, 60)
    return f'{hours}h' if mins == 0 else f'{hours}h {mins}m'


def format_days(days: List[int]) -> str:
    """Human readable day set ('Every day', 'Weekdays', 'Mon, Wed, Fri')."""
    if not days:
        return 'No days selected'
    unique = set(days)
    if len(unique) == 7:
        return 'Every day'
    if unique == {1, 2, 3, 4, 5}:
        return 'Weekdays'
    if unique == {0, 6}:
        return 'Weekends'
    return ', '.join(DAY_NAMES[day][:3] for day in sorted(unique))


def next_scheduled_run(start_time: str, days: List[int], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Get the next occurrence of a schedule.

    Args:
        start_time: Time of day in HH:MM format
        days: Days of week (0=Sunday .. 6=Saturday)
        now: Reference time, defaults to the current local time

    Returns:
        Next run datetime, or None when no days are selected
    """
    if not days:
        return None

    now = now or datetime.now()
    hours, minutes = parse_time_of_day(start_time)
    today = sunday_index(now)
    candidate_today = now.replace(hour=hours, minute=minutes, second=0, microsecond=0)

    for offset in range(0, 8):
        if (today + offset) % 7 not in days:
            continue
        candidate = candidate_today + timedelta(days=offset)
        if candidate > now:
            return candidate
    return None
