"""
Record Domain Models - Readings, solar units and persisted anomalies.

Uses Pydantic for validation and serialization.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Iterable
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class AnomalyType(str, Enum):
    COMPLETE_FAILURE = "COMPLETE_FAILURE"
    DEGRADATION = "DEGRADATION"
    WEATHER_RELATED = "WEATHER_RELATED"
    SENSOR_MALFUNCTION = "SENSOR_MALFUNCTION"


class Severity(str, Enum):
    """Severity levels, totally ordered LOW < MEDIUM < HIGH < CRITICAL."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


def highest_severity(severities: Iterable[Severity]) -> Severity:
    """
    Return the highest severity. On ties the first one encountered wins.

    Raises:
        ValueError: if no severities are given
    """
    return max(severities, key=lambda s: s.rank)


class AnomalyStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    RESOLVED = "RESOLVED"


class UnitStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    MAINTENANCE = "MAINTENANCE"


class GenerationReading(BaseModel):
    """A single energy generation reading with its weather context."""

    model_config = ConfigDict(frozen=True)

    solar_unit_id: str
    energy_generated: float  # kWh
    timestamp: datetime
    cloud_coverage: float = Field(default=50.0, ge=0, le=100)  # %
    temperature: float = 25.0  # °C
    precipitation: float = Field(default=0.0, ge=0)  # mm


class SolarUnitProfile(BaseModel):
    """Static description of an installation."""

    id: str
    serial_number: str = ""
    panel_capacity: float = Field(gt=0)  # kW
    installation_date: datetime | None = None
    operational_status: UnitStatus = UnitStatus.ACTIVE
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)


class AffectedPeriod(BaseModel):
    start: datetime
    end: datetime


class AnomalyRecord(BaseModel):
    """
    Persisted anomaly.

    One record exists at most per (solar_unit_id, anomaly_type, day).
    """

    id: str = Field(default_factory=lambda: uuid4().hex)
    solar_unit_id: str
    anomaly_type: AnomalyType
    severity: Severity
    status: AnomalyStatus = AnomalyStatus.ACTIVE
    detected_at: datetime
    affected_period: AffectedPeriod
    description: str
    recommendation: str
    confidence: float = Field(ge=0.0, le=1.0)
    details: dict[str, Any] = Field(default_factory=dict)

    # --- Lifecycle ---
    acknowledged_at: datetime | None = None
    acknowledged_by: str | None = None
    resolved_at: datetime | None = None
    resolved_by: str | None = None

    @property
    def dedup_key(self) -> tuple[str, AnomalyType, datetime]:
        return (self.solar_unit_id, self.anomaly_type, self.affected_period.start)
