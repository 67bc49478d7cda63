"""
Result Domain Models - Data structures for detector outputs and runs.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal

from solaranomaly.core.domain.records import AnomalyType, GenerationReading, Severity


@dataclass(frozen=True)
class NoDetection:
    """A detector ran and found nothing."""

    anomaly_detected: Literal[False] = False


@dataclass(frozen=True)
class Detection:
    """A detector fired."""

    anomaly_type: AnomalyType
    severity: Severity
    confidence: float  # 0.0 - 1.0
    description: str
    recommendation: str
    details: dict[str, Any] = field(default_factory=dict)
    anomaly_detected: Literal[True] = True


DetectionResult = Detection | NoDetection

NO_DETECTION = NoDetection()


@dataclass
class DailyBucket:
    """One calendar day of aggregated readings for one solar unit."""

    date: date
    total_energy_generated: float
    average_cloud_coverage: float
    average_precipitation: float
    source_readings: list[GenerationReading] = field(default_factory=list)


@dataclass
class DetectionRunSummary:
    """Outcome of a detection run across the fleet."""

    started_at: datetime
    units_processed: int = 0
    units_failed: int = 0
    anomalies_created: int = 0
    anomalies_skipped: int = 0
    failed_units: list[str] = field(default_factory=list)
