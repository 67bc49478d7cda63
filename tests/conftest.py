"""
Shared fixtures for SolarAnomaly tests.
"""
from datetime import UTC, date, datetime, timedelta

import pytest

from solaranomaly.adapters.store.memory import (
    InMemoryAnomalyStore,
    InMemoryReadingSource,
    InMemoryUnitSource,
)
from solaranomaly.core.domain.records import GenerationReading, SolarUnitProfile

# Fixed "now" used by detection tests: recent window starts 2024-06-08 03:00 UTC.
NOW = datetime(2024, 6, 15, 3, 0, tzinfo=UTC)


def day_readings(
    unit_id: str,
    day: date,
    values: list[float],
    cloud: float = 20.0,
    precipitation: float = 0.0,
) -> list[GenerationReading]:
    """One reading every two hours from 06:00 UTC with the given energies."""
    start = datetime(day.year, day.month, day.day, 6, tzinfo=UTC)
    return [
        GenerationReading(
            solar_unit_id=unit_id,
            energy_generated=value,
            timestamp=start + timedelta(hours=2 * i),
            cloud_coverage=cloud,
            precipitation=precipitation,
        )
        for i, value in enumerate(values)
    ]


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_day():
    return day_readings


@pytest.fixture
def make_unit():
    def _make(unit_id: str = "unit-1", capacity: float = 5.0, **kwargs) -> SolarUnitProfile:
        return SolarUnitProfile(id=unit_id, serial_number=f"SN-{unit_id}", panel_capacity=capacity, **kwargs)
    return _make


@pytest.fixture
def reading_source():
    return InMemoryReadingSource()


@pytest.fixture
def anomaly_store():
    return InMemoryAnomalyStore()


@pytest.fixture
def unit_source_factory():
    def _make(*units: SolarUnitProfile) -> InMemoryUnitSource:
        return InMemoryUnitSource(units)
    return _make
