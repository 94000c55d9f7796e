"""Zone control API endpoints."""
from flask import Blueprint, jsonify, request
from sprinksync.api import api_bp, error_response, get_system
from sprinksync.models.history import TriggerType
from sprinksync.safety.errors import ZoneNotFound
from sprinksync.utils.validator import validate_name

zones_bp = Blueprint('zones', __name__)
api_bp.register_blueprint(zones_bp, url_prefix='/zones')


def _zone_with_state(system, zone) -> dict:
    data = zone.to_dict()
    data.update(system.coordinator.zone_state(zone.id))
    return data


@zones_bp.route('', methods=['GET'])
def list_zones():
    """List all zones with their live running state."""
    try:
        system = get_system()
        zones = [_zone_with_state(system, z) for z in system.store.list_zones()]
        return jsonify({
            'success': True,
            'zones': zones
        }), 200
    except Exception as e:
        return error_response(e)


@zones_bp.route('/<int:zone_id>', methods=['GET'])
def get_zone(zone_id):
    """Get a single zone."""
    try:
        system = get_system()
        zone = system.store.get_zone(zone_id)
        if zone is None:
            raise ZoneNotFound(zone_id)
        return jsonify({
            'success': True,
            'zone': _zone_with_state(system, zone)
        }), 200
    except Exception as e:
        return error_response(e)


@zones_bp.route('/<int:zone_id>', methods=['PUT'])
def update_zone(zone_id):
    """Rename a zone or change its default duration."""
    try:
        system = get_system()
        data = request.get_json(silent=True) or {}

        name = validate_name(data['name']) if 'name' in data else None
        default_duration = data.get('default_duration')
        if default_duration is not None:
            system.limits.check_duration(default_duration)

        zone = system.store.update_zone(zone_id, name=name, default_duration=default_duration)
        return jsonify({
            'success': True,
            'zone': _zone_with_state(system, zone)
        }), 200
    except Exception as e:
        return error_response(e)


@zones_bp.route('/<int:zone_id>/start', methods=['POST'])
def start_zone(zone_id):
    """Start a zone manually; duration defaults to the zone's default."""
    try:
        system = get_system()
        data = request.get_json(silent=True) or {}

        duration = data.get('duration')
        if duration is None:
            zone = system.store.get_zone(zone_id)
            if zone is None:
                raise ZoneNotFound(zone_id)
            duration = zone.default_duration

        result = system.coordinator.start(zone_id, duration, trigger=TriggerType.MANUAL)
        return jsonify(result.to_dict()), 200
    except Exception as e:
        return error_response(e)


@zones_bp.route('/<int:zone_id>/stop', methods=['POST'])
def stop_zone(zone_id):
    """Stop a running zone."""
    try:
        result = get_system().coordinator.stop(zone_id)
        return jsonify(result.to_dict()), 200
    except Exception as e:
        return error_response(e)


@zones_bp.route('/stop-all', methods=['POST'])
def stop_all_zones():
    """Emergency stop."""
    try:
        result = get_system().coordinator.stop_all()
        return jsonify(result.to_dict()), 200
    except Exception as e:
        return error_response(e)


@zones_bp.route('/running', methods=['GET'])
def running_zones():
    try:
        return jsonify({
            'success': True,
            'zones': get_system().coordinator.running_zones()
        }), 200
    except Exception as e:
        return error_response(e)


@zones_bp.route('/queued', methods=['GET'])
def queued_zones():
    """Group members waiting for their delayed start."""
    try:
        return jsonify({
            'success': True,
            'zones': get_system().coordinator.queued_zones()
        }), 200
    except Exception as e:
        return error_response(e)
