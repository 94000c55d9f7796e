"""SprinkSync zone control core."""

__version__ = '1.0.0'
