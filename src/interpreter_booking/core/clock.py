"""
Clock abstraction.

All 24-hour and night-time rules read the time through a ``Clock`` so they
can be tested with a fixed instant.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from zoneinfo import ZoneInfo


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current naive local time."""
        ...


class SystemClock(Clock):
    """
    Wall clock in the booking timezone.

    Returns naive datetimes: every stored timestamp is local to the
    configured timezone.
    """

    def __init__(self, timezone: str = "Europe/Stockholm") -> None:
        self._zone = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self._zone).replace(tzinfo=None, microsecond=0)
