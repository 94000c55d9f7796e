"""Schedule management API endpoints."""
from flask import Blueprint, jsonify, request
from sprinksync.api import api_bp, error_response, get_system
from sprinksync.safety.errors import ScheduleNotFound
from sprinksync.utils.helpers import format_days
from sprinksync.utils.validator import validate_days, validate_positive_int, validate_time_format

schedules_bp = Blueprint('schedules', __name__)
api_bp.register_blueprint(schedules_bp, url_prefix='/schedules')


def _optional_id(data: dict, key: str):
    value = data.get(key)
    return None if value is None else validate_positive_int(value, key)


def _schedule_view(system, schedule) -> dict:
    data = schedule.to_dict()
    data['days_label'] = format_days(schedule.days)
    data['armed'] = system.engine.is_armed(schedule.id)
    next_run = system.engine.next_run(schedule)
    data['next_run'] = next_run.isoformat() if next_run else None
    return data


@schedules_bp.route('', methods=['GET'])
def list_schedules():
    """List all schedules."""
    try:
        system = get_system()
        return jsonify({
            'success': True,
            'schedules': [_schedule_view(system, s) for s in system.store.list_schedules()],
            'active_schedules': system.engine.active_count()
        }), 200
    except Exception as e:
        return error_response(e)


@schedules_bp.route('/<int:schedule_id>', methods=['GET'])
def get_schedule(schedule_id):
    try:
        system = get_system()
        schedule = system.store.get_schedule(schedule_id)
        if schedule is None:
            raise ScheduleNotFound(schedule_id)
        return jsonify({
            'success': True,
            'schedule': _schedule_view(system, schedule)
        }), 200
    except Exception as e:
        return error_response(e)


@schedules_bp.route('', methods=['POST'])
def create_schedule():
    """Create a schedule for exactly one zone or one group."""
    try:
        system = get_system()
        data = request.get_json(silent=True) or {}

        start_time = validate_time_format(data.get('start_time'))
        days = validate_days(data.get('days'))
        duration = data.get('duration')
        system.limits.check_duration(duration)

        schedule = system.store.create_schedule(
            start_time, duration, days,
            zone_id=_optional_id(data, 'zone_id'),
            group_id=_optional_id(data, 'group_id'),
            enabled=bool(data.get('enabled', True))
        )
        if schedule.enabled:
            system.engine.arm(schedule)

        return jsonify({
            'success': True,
            'schedule': _schedule_view(system, schedule)
        }), 201
    except Exception as e:
        return error_response(e)


@schedules_bp.route('/<int:schedule_id>', methods=['PUT'])
def update_schedule(schedule_id):
    """Update time, days, duration or enabled flag and re-arm."""
    try:
        system = get_system()
        data = request.get_json(silent=True) or {}

        changes = {}
        if 'start_time' in data:
            changes['start_time'] = validate_time_format(data['start_time'])
        if 'days' in data:
            changes['days'] = validate_days(data['days'])
        if 'duration' in data:
            system.limits.check_duration(data['duration'])
            changes['duration'] = data['duration']
        if 'enabled' in data:
            changes['enabled'] = bool(data['enabled'])

        schedule = system.store.update_schedule(schedule_id, **changes)
        system.engine.rearm(schedule_id)

        return jsonify({
            'success': True,
            'schedule': _schedule_view(system, schedule)
        }), 200
    except Exception as e:
        return error_response(e)


@schedules_bp.route('/<int:schedule_id>/toggle', methods=['PATCH', 'POST'])
def toggle_schedule(schedule_id):
    """Flip the enabled flag."""
    try:
        system = get_system()
        schedule = system.store.get_schedule(schedule_id)
        if schedule is None:
            raise ScheduleNotFound(schedule_id)

        schedule = system.store.update_schedule(schedule_id, enabled=not schedule.enabled)
        system.engine.rearm(schedule_id)

        return jsonify({
            'success': True,
            'schedule': _schedule_view(system, schedule)
        }), 200
    except Exception as e:
        return error_response(e)


@schedules_bp.route('/<int:schedule_id>', methods=['DELETE'])
def delete_schedule(schedule_id):
    try:
        system = get_system()
        system.store.delete_schedule(schedule_id)
        system.engine.disarm(schedule_id)
        return jsonify({
            'success': True,
            'message': 'Schedule deleted'
        }), 200
    except Exception as e:
        return error_response(e)
