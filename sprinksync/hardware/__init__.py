"""Hardware abstraction package."""
import logging
from sprinksync.config.config import GPIO_MODE
from sprinksync.hardware.gpio_interface import GPIOInterface
from sprinksync.hardware.mock_gpio import MockGPIO
from sprinksync.hardware.real_gpio import RealGPIO
from sprinksync.hardware.valve_interface import ValveInterface, ValveState, RelayValveController

logger = logging.getLogger(__name__)


def create_gpio(mode: str = GPIO_MODE) -> GPIOInterface:
    """Create the GPIO backend for the configured mode ('real' or 'mock')."""
    if mode == 'real':
        logger.info("Using REAL GPIO (Raspberry Pi mode)")
        return RealGPIO()
    if mode != 'mock':
        raise ValueError(f"Unknown GPIO mode: {mode}")
    logger.info("Using MOCK GPIO (development mode)")
    return MockGPIO()


__all__ = [
    'GPIOInterface',
    'MockGPIO',
    'RealGPIO',
    'ValveInterface',
    'ValveState',
    'RelayValveController',
    'create_gpio',
]
