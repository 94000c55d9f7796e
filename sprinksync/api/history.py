"""Watering history API endpoints."""
from flask import Blueprint, jsonify, request
from sprinksync.api import api_bp, error_response, get_system

history_bp = Blueprint('history', __name__)
api_bp.register_blueprint(history_bp, url_prefix='/history')


@history_bp.route('', methods=['GET'])
def list_history():
    """Most recent activations, optionally for one zone."""
    try:
        zone_id = request.args.get('zone_id', type=int)
        limit = request.args.get('limit', default=100, type=int)
        records = get_system().history.list_records(zone_id=zone_id, limit=max(1, min(limit, 1000)))
        return jsonify({
            'success': True,
            'history': records
        }), 200
    except Exception as e:
        return error_response(e)
