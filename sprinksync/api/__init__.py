"""API endpoints package."""
import logging
from flask import Blueprint, current_app, jsonify
from sprinksync.safety.errors import ZoneControlError

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__, url_prefix='/api')

EXTENSION_KEY = 'sprinksync'


def get_system():
    """IrrigationSystem attached to the running Flask app."""
    return current_app.extensions[EXTENSION_KEY]


def error_response(error: Exception):
    """Map an exception to the JSON error body and status code."""
    if isinstance(error, ZoneControlError):
        return jsonify(error.to_dict()), error.status_code
    logger.error(f"Unhandled API error: {error}")
    return jsonify({
        'success': False,
        'error': str(error)
    }), 500


# Import all endpoints to register routes
from sprinksync.api import system, zones, groups, schedules, history  # noqa: E402,F401
