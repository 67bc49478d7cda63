"""
Daylight Classifier - Decides whether an instant is inside the daylight window.

The default strategy uses a fixed 06:00-18:00 window on the timestamp's own
wall clock as a stand-in for sunrise/sunset. Swap in another
DaylightStrategy for location-aware behaviour.
"""

from abc import ABC, abstractmethod
from datetime import datetime, time


class DaylightStrategy(ABC):

    @abstractmethod
    def is_daytime(self, timestamp: datetime) -> bool:
        ...


class FixedWindowDaylight(DaylightStrategy):
    """Daylight between two wall-clock hours, both ends inclusive."""

    def __init__(self, start_hour: int = 6, end_hour: int = 18):
        if not 0 <= start_hour < end_hour <= 23:
            raise ValueError(f"Invalid daylight window {start_hour}:00-{end_hour}:00")
        self.sunrise = time(start_hour)
        self.sunset = time(end_hour)

    def is_daytime(self, timestamp: datetime) -> bool:
        return self.sunrise <= timestamp.time() <= self.sunset


DEFAULT_DAYLIGHT = FixedWindowDaylight()


def is_daytime(timestamp: datetime) -> bool:
    return DEFAULT_DAYLIGHT.is_daytime(timestamp)
