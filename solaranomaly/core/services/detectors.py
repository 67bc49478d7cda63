"""
Detectors - Rule-based classifiers for a single day of generation.

Every detector is a pure function returning a Detection or NO_DETECTION.
Anomalous readings never raise; only malformed arithmetic (division by a
non-positive reference) is guarded.
"""

from datetime import datetime
from typing import Sequence

import numpy as np

from solaranomaly.core.domain.records import AnomalyType, Severity, highest_severity
from solaranomaly.core.domain.result import NO_DETECTION, Detection, DetectionResult
from solaranomaly.core.services.daylight import DEFAULT_DAYLIGHT, DaylightStrategy

NIGHT_GENERATION_KWH = 0.01
CAPACITY_TOLERANCE = 1.05
STUCK_WINDOW = 6
ERRATIC_WINDOW = 4
ERRATIC_CV_THRESHOLD = 1.5

FAILURE_GENERATION_PERCENT = 0.5
FAILURE_MAX_CLOUD = 90

WEATHER_SEVERITY_GATE = 0.4
WEATHER_TOLERANCE = 20
WEATHER_SEVERITY_CAP = 0.9


def detect_sensor_malfunction(
    energy_generated: float,
    panel_capacity: float,
    timestamp: datetime,
    recent_readings: Sequence[float] = (),
    daylight: DaylightStrategy | None = None,
) -> DetectionResult:
    """
    Detect physically impossible or implausible readings.

    Five independent checks each contribute at most one issue. The result
    carries the highest severity and the highest confidence among them.

    Args:
        energy_generated: Reading under test (kWh)
        panel_capacity: Installed capacity (kW)
        timestamp: Instant the reading represents
        recent_readings: Chronological readings used for stuck/erratic checks
        daylight: Daylight strategy (default: fixed 06:00-18:00 window)
    """
    daylight = daylight or DEFAULT_DAYLIGHT
    is_day = daylight.is_daytime(timestamp)
    issues = []

    if not is_day and energy_generated > NIGHT_GENERATION_KWH:
        issues.append({
            "issue": "Night-time generation detected",
            "severity": Severity.CRITICAL,
            "confidence": 0.98,
        })

    if energy_generated > panel_capacity * CAPACITY_TOLERANCE:
        issues.append({
            "issue": "Generation exceeds panel capacity",
            "severity": Severity.CRITICAL,
            "confidence": 0.99,
        })

    if len(recent_readings) >= STUCK_WINDOW:
        window = list(recent_readings)[-STUCK_WINDOW:]
        if len(set(window)) == 1 and window[0] != 0:
            issues.append({
                "issue": "Sensor reading stuck at same value",
                "severity": Severity.HIGH,
                "confidence": 0.90,
            })

    if len(recent_readings) >= ERRATIC_WINDOW:
        window = np.asarray(list(recent_readings)[-ERRATIC_WINDOW:], dtype=float)
        mean = float(window.mean())
        if mean > 0:
            # population standard deviation
            cv = float(window.std()) / mean
            if cv > ERRATIC_CV_THRESHOLD:
                issues.append({
                    "issue": "Erratic sensor readings detected",
                    "severity": Severity.MEDIUM,
                    "confidence": 0.75,
                })

    if energy_generated < 0:
        issues.append({
            "issue": "Negative generation reading",
            "severity": Severity.CRITICAL,
            "confidence": 1.0,
        })

    if not issues:
        return NO_DETECTION

    return Detection(
        anomaly_type=AnomalyType.SENSOR_MALFUNCTION,
        severity=highest_severity(i["severity"] for i in issues),
        confidence=max(i["confidence"] for i in issues),
        description=f"Sensor malfunction detected: {', '.join(i['issue'] for i in issues)}.",
        recommendation="Sensor malfunction detected. Calibration or replacement required.",
        details={
            "issues": [{**i, "severity": i["severity"].value} for i in issues],
            "current_reading": energy_generated,
            "panel_capacity": panel_capacity,
            "is_night": not is_day,
        },
    )


def detect_complete_failure(
    energy_generated: float,
    panel_capacity: float,
    timestamp: datetime,
    cloud_coverage: float = 50,
    daylight: DaylightStrategy | None = None,
) -> DetectionResult:
    """Detect near-zero output during daylight that clouds cannot explain."""
    daylight = daylight or DEFAULT_DAYLIGHT
    is_day = daylight.is_daytime(timestamp)
    generation_percent = energy_generated / panel_capacity * 100

    if is_day and generation_percent < FAILURE_GENERATION_PERCENT and cloud_coverage < FAILURE_MAX_CLOUD:
        return Detection(
            anomaly_type=AnomalyType.COMPLETE_FAILURE,
            severity=Severity.CRITICAL,
            confidence=0.95,
            description=(
                f"Complete panel failure detected. Generation at {generation_percent:.2f}% "
                "of capacity during daylight hours."
            ),
            recommendation="Immediate inspection required. Complete system failure suspected.",
            details={
                "generation_percent": generation_percent,
                "cloud_coverage": cloud_coverage,
                "is_daytime": is_day,
            },
        )
    return NO_DETECTION


def weather_severity(cloud_coverage: float, precipitation: float = 0) -> float:
    """
    Combine cloud cover and precipitation into a 0-0.9 impact score.

    Cloud contributes up to 0.7, rain up to 0.8; the sum is capped at 0.9.
    """
    cloud_impact = cloud_coverage / 100 * 0.7
    rain_impact = min(0.8, precipitation * 0.2)
    return min(WEATHER_SEVERITY_CAP, cloud_impact + rain_impact)


def classify_weather_impact(
    energy_generated: float,
    expected_generation: float,
    cloud_coverage: float,
    precipitation: float = 0,
) -> DetectionResult:
    """
    Separate weather-caused shortfalls from panel-caused ones.

    A shortfall within 20 points of the weather model is attributed to the
    weather (LOW). A shortfall more than 20 points beyond it under bad
    weather is flagged as a panel issue on top of the weather (MEDIUM).
    Output above the model is never a fault.
    """
    severity_score = weather_severity(cloud_coverage, precipitation)
    expected_reduction = severity_score * 100
    if expected_generation > 0:
        actual_reduction = (expected_generation - energy_generated) / expected_generation * 100
    else:
        actual_reduction = 0.0

    details = {
        "weather_severity": severity_score,
        "expected_reduction": expected_reduction,
        "actual_reduction": actual_reduction,
        "cloud_coverage": cloud_coverage,
        "precipitation": precipitation,
    }

    if severity_score <= WEATHER_SEVERITY_GATE:
        return NO_DETECTION

    if abs(actual_reduction - expected_reduction) < WEATHER_TOLERANCE:
        return Detection(
            anomaly_type=AnomalyType.WEATHER_RELATED,
            severity=Severity.LOW,
            confidence=0.8,
            description=(
                f"Low generation due to weather conditions. Cloud coverage: {cloud_coverage}%, "
                f"Precipitation: {precipitation}mm."
            ),
            recommendation="Low generation due to weather conditions. No action required.",
            details={**details, "is_panel_issue": False},
        )

    if actual_reduction > expected_reduction + WEATHER_TOLERANCE:
        return Detection(
            anomaly_type=AnomalyType.WEATHER_RELATED,
            severity=Severity.MEDIUM,
            confidence=0.7,
            description=(
                "Generation lower than expected even accounting for weather. "
                "Possible panel issue combined with adverse weather."
            ),
            recommendation="Generation lower than expected even with adverse weather. Panel issue suspected.",
            details={**details, "is_panel_issue": True},
        )

    return NO_DETECTION


def detect_panel_degradation(
    current_generation: float,
    historical_average: float,
    degradation_threshold: float = 15,
) -> DetectionResult:
    """Detect gradual efficiency loss against a historical baseline."""
    if historical_average <= 0:
        return NO_DETECTION

    performance_ratio = current_generation / historical_average * 100
    degradation = 100 - performance_ratio

    if degradation <= degradation_threshold:
        return NO_DETECTION

    return Detection(
        anomaly_type=AnomalyType.DEGRADATION,
        severity=Severity.HIGH if degradation > 25 else Severity.MEDIUM,
        confidence=min(0.85, 0.6 + degradation * 0.01),
        description=(
            f"Panel efficiency reduced by {degradation:.1f}%. Current generation is "
            f"{performance_ratio:.1f}% of historical average."
        ),
        recommendation=f"Panel efficiency reduced by {degradation:.1f}%. Schedule maintenance inspection.",
        details={
            "current_generation": current_generation,
            "historical_average": historical_average,
            "performance_ratio": performance_ratio,
            "degradation_percent": degradation,
        },
    )
