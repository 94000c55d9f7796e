"""System status and settings API endpoints."""
from flask import Blueprint, jsonify, request
from sprinksync.api import api_bp, error_response, get_system
from sprinksync.safety.errors import ValidationError

system_bp = Blueprint('system', __name__)
api_bp.register_blueprint(system_bp, url_prefix='/system')


@system_bp.route('/status', methods=['GET'])
def get_system_status():
    """Get system status."""
    try:
        return jsonify({
            'success': True,
            'status': get_system().status()
        }), 200
    except Exception as e:
        return error_response(e)


@system_bp.route('/settings', methods=['GET'])
def get_settings():
    try:
        return jsonify({
            'success': True,
            'settings': get_system().limits.to_dict()
        }), 200
    except Exception as e:
        return error_response(e)


@system_bp.route('/settings', methods=['PUT'])
def update_settings():
    """Change the concurrency ceiling. Running zones are not stopped."""
    try:
        system = get_system()
        data = request.get_json(silent=True) or {}
        if 'max_concurrent_zones' not in data:
            raise ValidationError('max_concurrent_zones is required')

        system.store.set_max_concurrent_zones(data['max_concurrent_zones'])
        return jsonify({
            'success': True,
            'settings': system.limits.to_dict()
        }), 200
    except Exception as e:
        return error_response(e)


@system_bp.route('/reset-zones', methods=['POST'])
def reset_zones():
    """Stop everything and re-seed zones from the configured pin map."""
    try:
        system = get_system()
        system.reset_zones()
        return jsonify({
            'success': True,
            'zones': [z.to_dict() for z in system.store.list_zones()]
        }), 200
    except Exception as e:
        return error_response(e)


@system_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    system = get_system()
    return jsonify({
        'status': 'healthy' if system.started else 'starting',
        'service': 'sprinksync',
        'active_zones': system.coordinator.running_count()
    }), 200
