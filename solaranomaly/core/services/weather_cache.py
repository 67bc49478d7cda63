"""
Weather Cache - TTL cache in front of a WeatherProvider.

Entries are keyed by coordinates rounded to two decimals (about 1 km).
When a refresh fails and a stale entry exists, the stale entry is served.
At most max_entries locations are kept; the least recently used goes first.
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from solaranomaly.core.domain.weather import WeatherConditions
from solaranomaly.core.ports.weather_provider import WeatherProvider

logger = logging.getLogger(__name__)


@dataclass
class _CacheEntry:
    conditions: WeatherConditions
    fetched_at: float


class CachedWeatherProvider(WeatherProvider):
    """
    WeatherProvider decorator with a per-location TTL and stale fallback.
    """

    def __init__(
        self,
        provider: WeatherProvider,
        ttl_seconds: float = 600.0,
        precision: int = 2,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self.ttl_seconds = ttl_seconds
        self.precision = precision
        self.max_entries = max_entries
        self.clock = clock
        self._entries: OrderedDict[tuple[float, float], _CacheEntry] = OrderedDict()

    def cache_key(self, latitude: float, longitude: float) -> tuple[float, float]:
        return (round(latitude, self.precision), round(longitude, self.precision))

    async def current_conditions(self, latitude: float, longitude: float) -> WeatherConditions:
        key = self.cache_key(latitude, longitude)
        entry = self._entries.get(key)
        now = self.clock()

        if entry is not None:
            self._entries.move_to_end(key)
            if now - entry.fetched_at < self.ttl_seconds:
                return entry.conditions

        try:
            conditions = await self.provider.current_conditions(latitude, longitude)
        except Exception as e:
            if entry is None:
                raise
            logger.warning(f"Weather refresh failed for {key}, serving stale data: {e}")
            return entry.conditions

        self._entries[key] = _CacheEntry(conditions=conditions, fetched_at=now)
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted weather cache entry {evicted}")
        return conditions

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
