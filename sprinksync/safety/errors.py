"""Error taxonomy for zone control operations.

Every error carries a stable ``code`` and the HTTP status the API layer
answers with. Only hardware faults map to a server error; everything else is
a client-side problem.
"""
from typing import Optional


class ZoneControlError(Exception):
    """Base class for errors raised by the zone control core."""

    code = 'VALIDATION_ERROR'
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {
            'success': False,
            'error': self.message,
            'code': self.code
        }


class ZoneNotFound(ZoneControlError):
    code = 'ZONE_NOT_FOUND'
    status_code = 404

    def __init__(self, zone_id: int):
        super().__init__(f'Zone {zone_id} not found')
        self.zone_id = zone_id


class GroupNotFound(ZoneControlError):
    code = 'GROUP_NOT_FOUND'
    status_code = 404

    def __init__(self, group_id: int):
        super().__init__(f'Zone group {group_id} not found')
        self.group_id = group_id


class ScheduleNotFound(ZoneControlError):
    code = 'SCHEDULE_NOT_FOUND'
    status_code = 404

    def __init__(self, schedule_id: int):
        super().__init__(f'Schedule {schedule_id} not found')
        self.schedule_id = schedule_id


class AlreadyRunning(ZoneControlError):
    code = 'ZONE_ALREADY_RUNNING'

    def __init__(self, zone_id: int):
        super().__init__(f'Zone {zone_id} is already running')
        self.zone_id = zone_id


class NotRunning(ZoneControlError):
    code = 'ZONE_NOT_RUNNING'

    def __init__(self, zone_id: int):
        super().__init__(f'Zone {zone_id} is not running')
        self.zone_id = zone_id


class ConcurrencyLimitExceeded(ZoneControlError):
    code = 'MAX_ZONES_RUNNING'

    def __init__(self, limit: int):
        super().__init__(f'Maximum {limit} zones can run concurrently')
        self.limit = limit

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['limit'] = self.limit
        return data


class InvalidDuration(ZoneControlError):
    code = 'INVALID_DURATION'

    def __init__(self, duration, min_duration: int, max_duration: int):
        super().__init__(f'Duration must be between {min_duration} and {max_duration} minutes (got {duration})')
        self.duration = duration
        self.min_duration = min_duration
        self.max_duration = max_duration


class EmptyGroup(ZoneControlError):
    code = 'EMPTY_GROUP'

    def __init__(self, group_id: int):
        super().__init__(f'No zones in group {group_id}')
        self.group_id = group_id


class MemberAlreadyRunning(ZoneControlError):
    code = 'ZONE_ALREADY_RUNNING'

    def __init__(self, zone_id: int, zone_name: Optional[str] = None):
        super().__init__(f'Zone {zone_name or zone_id} is already running')
        self.zone_id = zone_id
        self.zone_name = zone_name


class MemberAlreadyQueued(ZoneControlError):
    code = 'ZONE_ALREADY_QUEUED'

    def __init__(self, zone_id: int, zone_name: Optional[str] = None, group_name: Optional[str] = None):
        super().__init__(f'Zone {zone_name or zone_id} is already queued'
                         + (f' by group {group_name}' if group_name else ''))
        self.zone_id = zone_id
        self.zone_name = zone_name
        self.group_name = group_name


class ValidationError(ZoneControlError):
    code = 'VALIDATION_ERROR'


class HardwareFault(ZoneControlError):
    code = 'GPIO_ERROR'
    status_code = 500


class ValveNotInitialized(HardwareFault):

    def __init__(self, zone_id: int):
        super().__init__(f'GPIO pin for zone {zone_id} not initialized')
        self.zone_id = zone_id
