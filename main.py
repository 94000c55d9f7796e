import atexit
import logging
import signal
import sys
from flask import Flask, jsonify
from flask_cors import CORS
from sprinksync.api import EXTENSION_KEY, api_bp
from sprinksync.config.config import API_HOST, API_PORT, LOG_LEVEL
from sprinksync.system import IrrigationSystem

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def create_app(system: IrrigationSystem = None) -> Flask:
    """Build the Flask app around an irrigation system instance."""
    app = Flask(__name__)

    # Enable CORS for all routes
    CORS(app)

    app.extensions[EXTENSION_KEY] = system or IrrigationSystem()
    app.register_blueprint(api_bp)

    @app.route('/')
    def home():
        return jsonify("SprinkSync backend running")

    return app


def main():
    system = IrrigationSystem()
    app = create_app(system)
    system.start()

    atexit.register(system.shutdown)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, shutting down")
        system.shutdown()
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    logger.info(f"API listening on {API_HOST}:{API_PORT}")
    app.run(host=API_HOST, port=API_PORT, debug=False, use_reloader=False)


if __name__ == '__main__':
    main()
