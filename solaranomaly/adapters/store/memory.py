"""
In-Memory Adapters - Process-local implementations of every storage port.

Used for tests and local runs without a database.
"""

from collections import Counter
from datetime import UTC, datetime
from typing import Iterable

from solaranomaly.core.domain.records import (
    AnomalyRecord,
    AnomalyStatus,
    AnomalyType,
    GenerationReading,
    Severity,
    SolarUnitProfile,
    UnitStatus,
)
from solaranomaly.core.ports.anomaly_store import AnomalyStore
from solaranomaly.core.ports.reading_source import ReadingSource
from solaranomaly.core.ports.unit_source import UnitSource


def _utc(ts: datetime) -> datetime:
    return ts.replace(tzinfo=UTC) if ts.tzinfo is None else ts


class InMemoryReadingSource(ReadingSource):

    def __init__(self, readings: Iterable[GenerationReading] = ()):
        self._readings: list[GenerationReading] = list(readings)

    def add(self, *readings: GenerationReading) -> None:
        self._readings.extend(readings)

    async def fetch_readings(
        self,
        solar_unit_id: str,
        since: datetime,
        until: datetime | None = None,
    ) -> list[GenerationReading]:
        since = _utc(since)
        until = _utc(until) if until else None
        selected = [
            r for r in self._readings
            if r.solar_unit_id == solar_unit_id
            and _utc(r.timestamp) >= since
            and (until is None or _utc(r.timestamp) < until)
        ]
        return sorted(selected, key=lambda r: _utc(r.timestamp))


class InMemoryUnitSource(UnitSource):

    def __init__(self, units: Iterable[SolarUnitProfile] = ()):
        self._units: dict[str, SolarUnitProfile] = {u.id: u for u in units}

    async def fetch_active_units(self) -> list[SolarUnitProfile]:
        return [u for u in self._units.values() if u.operational_status == UnitStatus.ACTIVE]

    async def get_unit(self, unit_id: str) -> SolarUnitProfile | None:
        return self._units.get(unit_id)


class InMemoryAnomalyStore(AnomalyStore):

    def __init__(self):
        self._records: dict[str, AnomalyRecord] = {}

    @property
    def records(self) -> list[AnomalyRecord]:
        return list(self._records.values())

    async def find_existing(
        self,
        solar_unit_id: str,
        anomaly_type: AnomalyType,
        day_start: datetime,
        day_end: datetime,
    ) -> AnomalyRecord | None:
        for record in self._records.values():
            if (
                record.solar_unit_id == solar_unit_id
                and record.anomaly_type == anomaly_type
                and _utc(day_start) <= _utc(record.affected_period.start) <= _utc(day_end)
            ):
                return record
        return None

    async def create(self, record: AnomalyRecord) -> AnomalyRecord:
        self._records[record.id] = record
        return record

    async def get(self, anomaly_id: str) -> AnomalyRecord | None:
        return self._records.get(anomaly_id)

    async def update(self, record: AnomalyRecord) -> AnomalyRecord:
        if record.id not in self._records:
            raise KeyError(record.id)
        self._records[record.id] = record
        return record

    async def list_anomalies(
        self,
        *,
        solar_unit_ids: list[str] | None = None,
        anomaly_type: AnomalyType | None = None,
        severity: Severity | None = None,
        status: AnomalyStatus | None = None,
        limit: int = 100,
    ) -> list[AnomalyRecord]:
        selected = [
            r for r in self._records.values()
            if (solar_unit_ids is None or r.solar_unit_id in solar_unit_ids)
            and (anomaly_type is None or r.anomaly_type == anomaly_type)
            and (severity is None or r.severity == severity)
            and (status is None or r.status == status)
        ]
        selected.sort(key=lambda r: _utc(r.detected_at), reverse=True)
        return selected[:limit]

    async def count_by(
        self,
        field: str,
        *,
        solar_unit_ids: list[str] | None = None,
        statuses: list[AnomalyStatus] | None = None,
    ) -> dict[str, int]:
        counts = Counter(
            getattr(r, field).value for r in self._records.values()
            if (solar_unit_ids is None or r.solar_unit_id in solar_unit_ids)
            and (statuses is None or r.status in statuses)
        )
        return dict(counts)
