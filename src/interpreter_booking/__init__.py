"""
Interpreter booking engine.

Coordinates interpreter bookings between customers and translators: booking
creation, translator matching, the booking lifecycle and multi-channel
notifications.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
