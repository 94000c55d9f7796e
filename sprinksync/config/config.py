"""System configuration settings."""
import os


def _parse_zone_pins(raw: str) -> dict:
    """Parse a "zone:pin,zone:pin" string into a zone -> pin mapping."""
    pins = {}
    for item in raw.split(','):
        item = item.strip()
        if not item:
            continue
        zone_id, pin = item.split(':')
        pins[int(zone_id)] = int(pin)
    return pins


# Environment detection
IS_RASPBERRY_PI = os.path.exists('/proc/device-tree/model')
GPIO_MODE = os.getenv('GPIO_MODE', 'real' if IS_RASPBERRY_PI else 'mock').lower()

# Zone relay pins (BCM numbering), zone_id -> GPIO pin
ZONE_GPIO_PINS = _parse_zone_pins(os.getenv('ZONE_GPIO_PINS', '1:17,2:27,3:22,4:23,5:24,6:25,7:5,8:6'))

# Active-low relay boards: pin LOW = relay ON = valve open
RELAY_ACTIVE_LOW = os.getenv('RELAY_ACTIVE_LOW', 'true').lower() == 'true'

# Safety settings
MAX_RUNTIME_MINUTES = int(os.getenv('MAX_RUNTIME_MINUTES', '60'))  # Max runtime per activation
MIN_DURATION_MINUTES = int(os.getenv('MIN_DURATION_MINUTES', '1'))
DEFAULT_MAX_CONCURRENT_ZONES = int(os.getenv('DEFAULT_MAX_CONCURRENT_ZONES', '2'))
GPIO_STABILIZATION_SEC = float(os.getenv('GPIO_STABILIZATION_SEC', '0.1'))  # Relay settle time after init

# Defaults
DEFAULT_ZONE_DURATION = int(os.getenv('DEFAULT_ZONE_DURATION', '15'))
DEFAULT_GROUP_DURATION = int(os.getenv('DEFAULT_GROUP_DURATION', '15'))
ZONE_NAME_PREFIX = os.getenv('ZONE_NAME_PREFIX', 'Zone')

# Group sequencing
INTER_ZONE_BUFFER_SEC = float(os.getenv('INTER_ZONE_BUFFER_SEC', '5'))

# Scheduling
SCHEDULE_TIMEZONE = os.getenv('SCHEDULE_TIMEZONE', 'America/New_York')
SCHEDULE_MISFIRE_GRACE_SEC = int(os.getenv('SCHEDULE_MISFIRE_GRACE_SEC', '300'))

# Database
DATABASE_PATH = os.getenv(
    'DATABASE_PATH',
    os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), 'database', 'sprinksync.db')
)

# API server
API_HOST = os.getenv('API_HOST', '0.0.0.0')
API_PORT = int(os.getenv('API_PORT', '5000'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
