"""
WeatherProvider Port - Interface for current-conditions weather lookups.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from solaranomaly.core.domain.weather import WeatherConditions


class WeatherProvider(ABC):

    @abstractmethod
    async def current_conditions(self, latitude: float, longitude: float) -> "WeatherConditions":
        """
        Fetch current conditions for a location.

        Raises:
            httpx.HTTPError: if the upstream service is unavailable
        """
        ...
