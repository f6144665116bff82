"""Stop sequencing and route optimization for delivery drivers."""

__version__ = "0.1.0"
