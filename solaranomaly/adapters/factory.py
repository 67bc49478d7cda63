"""
Adapter Factory - Builds port implementations from SystemSettings.
"""

from dataclasses import dataclass
from typing import Any

from solaranomaly.core.domain.settings import SystemSettings
from solaranomaly.core.ports.anomaly_store import AnomalyStore
from solaranomaly.core.ports.reading_source import ReadingSource
from solaranomaly.core.ports.unit_source import UnitSource
from solaranomaly.core.ports.weather_provider import WeatherProvider


@dataclass
class Components:
    units: UnitSource
    readings: ReadingSource
    store: AnomalyStore
    client: Any = None  # shared database client, if any

    async def ensure_indexes(self) -> None:
        await self.readings.ensure_indexes()
        await self.store.ensure_indexes()

    def close(self) -> None:
        if self.client is not None:
            self.client.close()


def build_components(settings: SystemSettings) -> Components:
    """Instantiate the storage adapters selected by settings."""
    if settings.store_type == "mongo":
        from motor.motor_asyncio import AsyncIOMotorClient
        from solaranomaly.adapters.store.mongo import MongoAnomalyStore, MongoReadingSource, MongoUnitSource

        client = AsyncIOMotorClient(settings.mongo_url, tz_aware=True)
        readings = MongoReadingSource(settings, client)
        store = MongoAnomalyStore(settings, client)
        units = MongoUnitSource(settings, client)
    else:
        from solaranomaly.adapters.store.memory import (
            InMemoryAnomalyStore,
            InMemoryReadingSource,
            InMemoryUnitSource,
        )

        readings = InMemoryReadingSource()
        store = InMemoryAnomalyStore()
        units = InMemoryUnitSource()
        client = None

    if settings.unit_source_type == "yaml":
        from solaranomaly.adapters.config.yaml_store import YamlUnitSource
        units = YamlUnitSource(config_path=settings.units_file)

    return Components(units=units, readings=readings, store=store, client=client)


def build_weather_provider(settings: SystemSettings) -> WeatherProvider:
    from solaranomaly.adapters.weather.open_meteo import OpenMeteoWeatherProvider
    from solaranomaly.core.services.weather_cache import CachedWeatherProvider

    return CachedWeatherProvider(
        OpenMeteoWeatherProvider(base_url=settings.weather_api_url),
        ttl_seconds=settings.weather_cache_ttl,
        max_entries=settings.weather_cache_max_entries,
    )
