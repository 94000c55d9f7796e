"""Zone group API endpoints."""
from flask import Blueprint, jsonify, request
from sprinksync.api import api_bp, error_response, get_system
from sprinksync.config.config import DEFAULT_GROUP_DURATION
from sprinksync.models.history import TriggerType
from sprinksync.safety.errors import GroupNotFound, ValidationError
from sprinksync.utils.validator import validate_name, validate_positive_int

groups_bp = Blueprint('groups', __name__)
api_bp.register_blueprint(groups_bp, url_prefix='/groups')


@groups_bp.route('', methods=['GET'])
def list_groups():
    """List all zone groups."""
    try:
        groups = [g.to_dict() for g in get_system().store.list_groups()]
        return jsonify({
            'success': True,
            'groups': groups
        }), 200
    except Exception as e:
        return error_response(e)


@groups_bp.route('/<int:group_id>', methods=['GET'])
def get_group(group_id):
    try:
        group = get_system().store.get_group(group_id)
        if group is None:
            raise GroupNotFound(group_id)
        return jsonify({
            'success': True,
            'group': group.to_dict()
        }), 200
    except Exception as e:
        return error_response(e)


@groups_bp.route('', methods=['POST'])
def create_group():
    """Create a group from an ordered list of zone IDs."""
    try:
        system = get_system()
        data = request.get_json(silent=True) or {}

        name = validate_name(data.get('name'), label='Group')
        zone_ids = data.get('zone_ids')
        if not isinstance(zone_ids, list):
            raise ValidationError('zone_ids must be an array')
        zone_ids = [validate_positive_int(z, 'zone_id') for z in zone_ids]

        default_duration = data.get('default_duration', DEFAULT_GROUP_DURATION)
        system.limits.check_duration(default_duration)

        group = system.store.create_group(
            name, zone_ids,
            description=data.get('description'),
            default_duration=default_duration
        )
        return jsonify({
            'success': True,
            'group': group.to_dict()
        }), 201
    except Exception as e:
        return error_response(e)


@groups_bp.route('/<int:group_id>', methods=['PUT'])
def update_group(group_id):
    """Rename a group, change its default duration or replace its ordered zones."""
    try:
        system = get_system()
        data = request.get_json(silent=True) or {}
        group = system.store.get_group(group_id)
        if group is None:
            raise GroupNotFound(group_id)

        name = data.get('name')
        if name is not None:
            name = validate_name(name, label='Group')

        default_duration = data.get('default_duration')
        if default_duration is not None:
            system.limits.check_duration(default_duration)

        zone_ids = data.get('zone_ids')
        if zone_ids is not None:
            if not isinstance(zone_ids, list):
                raise ValidationError('zone_ids must be an array')
            zone_ids = [validate_positive_int(z, 'zone_id') for z in zone_ids]

        updated = system.store.update_group(
            group_id,
            name=name,
            description=data.get('description'),
            default_duration=default_duration,
            zone_ids=zone_ids
        )

        # Pending starts were laid out for the old membership
        cancelled = []
        if zone_ids is not None and zone_ids != [m.id for m in group.members]:
            cancelled = system.sequencer.cancel_group(group_id)
        for schedule in system.store.list_schedules():
            if schedule.group_id == group_id:
                system.engine.rearm(schedule.id)

        return jsonify({
            'success': True,
            'group': updated.to_dict(),
            'cancelled_zones': cancelled
        }), 200
    except Exception as e:
        return error_response(e)


@groups_bp.route('/<int:group_id>', methods=['DELETE'])
def delete_group(group_id):
    """Delete a group, its schedules and any pending member starts."""
    try:
        system = get_system()
        if system.store.get_group(group_id) is None:
            raise GroupNotFound(group_id)

        cancelled = system.sequencer.cancel_group(group_id)
        for schedule in system.store.list_schedules():
            if schedule.group_id == group_id:
                system.engine.disarm(schedule.id)
        system.store.delete_group(group_id)

        return jsonify({
            'success': True,
            'message': 'Group deleted',
            'cancelled_zones': cancelled
        }), 200
    except Exception as e:
        return error_response(e)


@groups_bp.route('/<int:group_id>/run', methods=['POST'])
def run_group(group_id):
    """Run every zone in the group in sequence."""
    try:
        data = request.get_json(silent=True) or {}
        result = get_system().sequencer.run_group(
            group_id, duration=data.get('duration'), trigger=TriggerType.GROUP
        )
        return jsonify(result), 200
    except Exception as e:
        return error_response(e)
