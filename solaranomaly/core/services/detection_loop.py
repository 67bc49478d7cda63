"""
Detection Loop Service - The core engine of SolarAnomaly.

This service orchestrates the fetch-bucket-detect-persist cycle:
1. Enumerate active solar units
2. Fetch the recent window and the historical baseline window
3. Bucket readings per calendar day
4. Run the detectors in fixed precedence order
5. Persist new anomalies, skipping ones already recorded for that day
"""

import asyncio
import logging
from datetime import UTC, date, datetime, time, timedelta
from typing import Sequence

import pandas as pd

from solaranomaly.core.domain.records import (
    AffectedPeriod,
    AnomalyRecord,
    GenerationReading,
    Severity,
    SolarUnitProfile,
)
from solaranomaly.core.domain.result import DailyBucket, Detection, DetectionRunSummary
from solaranomaly.core.domain.settings import DetectionConfig
from solaranomaly.core.ports.anomaly_store import AnomalyStore
from solaranomaly.core.ports.reading_source import ReadingSource
from solaranomaly.core.ports.unit_source import UnitSource
from solaranomaly.core.services import detectors
from solaranomaly.core.services.daylight import DaylightStrategy, FixedWindowDaylight

logger = logging.getLogger(__name__)

# Daily totals are judged as daytime production.
BUCKET_EVALUATION_TIME = time(12)


def as_utc(ts: datetime) -> datetime:
    """Treat naive timestamps as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    return (
        datetime.combine(day, time.min, tzinfo=UTC),
        datetime.combine(day, time.max, tzinfo=UTC),
    )


def bucket_readings(readings: Sequence[GenerationReading]) -> list[DailyBucket]:
    """
    Aggregate readings into one bucket per UTC calendar day.

    Returns:
        Buckets ordered by date, each with its readings in time order
    """
    if not readings:
        return []

    ordered = sorted(readings, key=lambda r: as_utc(r.timestamp))
    df = pd.DataFrame({
        "date": [as_utc(r.timestamp).date() for r in ordered],
        "energy": [r.energy_generated for r in ordered],
        "cloud": [r.cloud_coverage for r in ordered],
        "precipitation": [r.precipitation for r in ordered],
    })

    buckets = []
    for day, group in df.groupby("date", sort=True):
        buckets.append(DailyBucket(
            date=day,
            total_energy_generated=float(group["energy"].sum()),
            average_cloud_coverage=float(group["cloud"].mean()),
            average_precipitation=float(group["precipitation"].mean()),
            source_readings=[ordered[i] for i in group.index],
        ))
    return buckets


def historical_daily_average(readings: Sequence[GenerationReading]) -> float:
    """Mean daily total over the baseline window (0 when there is no history)."""
    buckets = bucket_readings(readings)
    if not buckets:
        return 0.0
    return float(pd.Series([b.total_energy_generated for b in buckets]).mean())


class DetectionLoop:
    """
    Core service that executes a detection run across the fleet.
    """

    def __init__(
        self,
        units: UnitSource,
        readings: ReadingSource,
        store: AnomalyStore,
        config: DetectionConfig | None = None,
        daylight: DaylightStrategy | None = None,
    ):
        """
        Initialize the detection loop.

        Args:
            units: Port to enumerate solar units
            readings: Port to load generation readings
            store: Port to persist anomalies
            config: Detection thresholds and windows
            daylight: Daylight strategy (default: window from config)
        """
        self.units = units
        self.readings = readings
        self.store = store
        self.config = config or DetectionConfig()
        self.daylight = daylight or FixedWindowDaylight(
            self.config.daylight_start_hour,
            self.config.daylight_end_hour,
        )

    async def run_detection(self, now: datetime | None = None) -> DetectionRunSummary:
        """
        Run every detector for every active unit.

        Per-unit failures are logged and counted; failing to enumerate the
        fleet propagates to the caller.

        Args:
            now: Current timestamp (default: now in UTC)
        """
        now = as_utc(now) if now else datetime.now(UTC)
        summary = DetectionRunSummary(started_at=now)
        logger.info(f"Starting anomaly detection at {now.isoformat()}")

        try:
            units = await self.units.fetch_active_units()
        except Exception as e:
            logger.error(f"Anomaly detection failed: could not load solar units: {e}")
            raise

        semaphore = asyncio.Semaphore(self.config.unit_concurrency)

        async def _guarded(unit: SolarUnitProfile) -> None:
            async with semaphore:
                try:
                    created, skipped = await self.process_unit(unit, now)
                except Exception as e:
                    logger.exception(f"Anomaly detection failed for unit '{unit.id}': {e}")
                    summary.units_failed += 1
                    summary.failed_units.append(unit.id)
                    return
                summary.units_processed += 1
                summary.anomalies_created += created
                summary.anomalies_skipped += skipped

        await asyncio.gather(*(_guarded(unit) for unit in units))

        logger.info(
            f"Anomaly detection completed: {summary.units_processed} units processed, "
            f"{summary.units_failed} failed, {summary.anomalies_created} anomalies created"
        )
        return summary

    async def process_unit(self, unit: SolarUnitProfile, now: datetime) -> tuple[int, int]:
        """
        Detect and persist anomalies for one unit.

        Returns:
            (anomalies created, detections skipped as duplicates)
        """
        logger.info(f"Processing solar unit '{unit.id}'")
        # Only complete days are evaluated; today is still accumulating.
        window_end, _ = day_bounds(now.date())
        recent_since = window_end - timedelta(days=self.config.recent_window_days)
        historical_since = window_end - timedelta(days=self.config.historical_window_days)

        recent = await self.readings.fetch_readings(unit.id, since=recent_since, until=window_end)
        if not recent:
            logger.info(f"No records found for unit '{unit.id}'")
            return 0, 0

        history = await self.readings.fetch_readings(unit.id, since=historical_since, until=recent_since)
        historical_average = historical_daily_average(history)

        created = skipped = 0
        for bucket in bucket_readings(recent):
            for detection in self.evaluate_bucket(bucket, unit.panel_capacity, historical_average):
                if await self._persist(unit.id, bucket.date, detection, now):
                    created += 1
                else:
                    skipped += 1
        return created, skipped

    def evaluate_bucket(
        self,
        bucket: DailyBucket,
        panel_capacity: float,
        historical_average: float,
    ) -> list[Detection]:
        """
        Run the detectors for one day in precedence order.

        The stuck and erratic checks only see daylight readings, so night
        zeros never read as a sensor fault.

        A sensor malfunction suppresses every other detector. Degradation is
        only checked when nothing CRITICAL fired and a baseline exists.
        """
        energy = bucket.total_energy_generated
        cloud = bucket.average_cloud_coverage
        precipitation = bucket.average_precipitation
        timestamp = datetime.combine(bucket.date, BUCKET_EVALUATION_TIME, tzinfo=UTC)
        recent_values = [
            r.energy_generated for r in bucket.source_readings
            if self.daylight.is_daytime(as_utc(r.timestamp))
        ]

        logger.debug(
            f"{bucket.date}: energy={energy:.3f}kWh cloud={cloud:.1f}% precipitation={precipitation:.2f}mm"
        )

        sensor = detectors.detect_sensor_malfunction(
            energy, panel_capacity, timestamp, recent_values, daylight=self.daylight
        )
        if sensor.anomaly_detected:
            return [sensor]

        detections: list[Detection] = []

        failure = detectors.detect_complete_failure(
            energy, panel_capacity, timestamp, cloud, daylight=self.daylight
        )
        if failure.anomaly_detected:
            detections.append(failure)

        expected = panel_capacity * self.config.expected_generation_factor
        weather = detectors.classify_weather_impact(energy, expected, cloud, precipitation)
        if weather.anomaly_detected:
            detections.append(weather)

        has_critical = any(d.severity == Severity.CRITICAL for d in detections)
        if not has_critical and historical_average > 0:
            degradation = detectors.detect_panel_degradation(
                energy, historical_average, self.config.degradation_threshold
            )
            if degradation.anomaly_detected:
                detections.append(degradation)

        return detections

    async def _persist(self, unit_id: str, day: date, detection: Detection, now: datetime) -> bool:
        start, end = day_bounds(day)
        record = AnomalyRecord(
            solar_unit_id=unit_id,
            anomaly_type=detection.anomaly_type,
            severity=detection.severity,
            detected_at=now,
            affected_period=AffectedPeriod(start=start, end=end),
            description=detection.description,
            recommendation=detection.recommendation,
            confidence=detection.confidence,
            details=detection.details,
        )
        _, created = await self.store.insert_if_absent(record)
        if created:
            logger.info(f"Created new {detection.anomaly_type.value} anomaly for unit '{unit_id}' on {day}")
        return created
