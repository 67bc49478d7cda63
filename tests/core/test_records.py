"""
Tests for Core Domain Models.
"""
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from solaranomaly.core.domain.records import (
    AffectedPeriod,
    AnomalyRecord,
    AnomalyStatus,
    AnomalyType,
    GenerationReading,
    Severity,
    SolarUnitProfile,
    UnitStatus,
    highest_severity,
)
from solaranomaly.core.domain.result import NO_DETECTION, Detection


def test_severity_total_order():
    ranks = [s.rank for s in (Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL)]
    assert ranks == sorted(ranks)
    assert len(set(ranks)) == 4


def test_highest_severity():
    assert highest_severity([Severity.LOW, Severity.HIGH, Severity.MEDIUM]) is Severity.HIGH
    assert highest_severity([Severity.CRITICAL]) is Severity.CRITICAL
    with pytest.raises(ValueError):
        highest_severity([])


def test_reading_defaults():
    reading = GenerationReading(
        solar_unit_id="u1",
        energy_generated=1.5,
        timestamp=datetime(2024, 6, 1, 12, tzinfo=UTC),
    )
    assert reading.cloud_coverage == 50.0
    assert reading.temperature == 25.0
    assert reading.precipitation == 0.0


def test_reading_is_immutable():
    reading = GenerationReading(solar_unit_id="u1", energy_generated=1.0, timestamp=datetime(2024, 6, 1))
    with pytest.raises(ValidationError):
        reading.energy_generated = 2.0


def test_reading_validation():
    with pytest.raises(ValidationError):
        GenerationReading(solar_unit_id="u1", energy_generated=1.0, timestamp=datetime(2024, 6, 1), cloud_coverage=120)
    with pytest.raises(ValidationError):
        GenerationReading(solar_unit_id="u1", energy_generated=1.0, timestamp=datetime(2024, 6, 1), precipitation=-1)


def test_unit_requires_positive_capacity():
    with pytest.raises(ValidationError):
        SolarUnitProfile(id="u1", panel_capacity=0)
    assert SolarUnitProfile(id="u1", panel_capacity=5).operational_status == UnitStatus.ACTIVE


def test_anomaly_record_defaults():
    start = datetime(2024, 6, 1, tzinfo=UTC)
    record = AnomalyRecord(
        solar_unit_id="u1",
        anomaly_type=AnomalyType.DEGRADATION,
        severity=Severity.MEDIUM,
        detected_at=start,
        affected_period=AffectedPeriod(start=start, end=start),
        description="d",
        recommendation="r",
        confidence=0.7,
    )
    assert record.status == AnomalyStatus.ACTIVE
    assert record.id
    assert record.acknowledged_at is None and record.resolved_by is None
    assert record.dedup_key == ("u1", AnomalyType.DEGRADATION, start)


def test_detection_variants():
    assert NO_DETECTION.anomaly_detected is False
    assert not hasattr(NO_DETECTION, "severity")

    detection = Detection(
        anomaly_type=AnomalyType.COMPLETE_FAILURE,
        severity=Severity.CRITICAL,
        confidence=0.95,
        description="d",
        recommendation="r",
    )
    assert detection.anomaly_detected is True
    assert detection.details == {}
