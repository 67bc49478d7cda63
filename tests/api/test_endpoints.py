"""
Tests for the FastAPI surface (storage and weather replaced via dependency overrides).
"""
import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from solaranomaly.adapters.factory import Components
from solaranomaly.adapters.store.memory import InMemoryAnomalyStore, InMemoryReadingSource, InMemoryUnitSource
from solaranomaly.core.domain.records import (
    AffectedPeriod,
    AnomalyRecord,
    AnomalyStatus,
    AnomalyType,
    Severity,
)
from solaranomaly.core.domain.weather import (
    CurrentWeather,
    WeatherConditions,
    WeatherLocation,
)
from solaranomaly.main import app, get_components, get_weather_provider, parse_cron, run_detection_task


@pytest.fixture
def components(make_unit):
    units = InMemoryUnitSource([
        make_unit("unit-1", latitude=6.93, longitude=79.85),
        make_unit("unit-nowhere"),
    ])
    return Components(units=units, readings=InMemoryReadingSource(), store=InMemoryAnomalyStore())


@pytest.fixture
def weather_provider():
    provider = MagicMock()
    provider.current_conditions = AsyncMock(return_value=WeatherConditions(
        location=WeatherLocation(latitude=6.93, longitude=79.85, timezone="UTC"),
        current=CurrentWeather(temperature=30.0, cloud_cover=85, weather_code=3),
        timestamp=datetime(2024, 6, 1, 12, tzinfo=UTC),
    ))
    return provider


@pytest.fixture
def client(components, weather_provider):
    app.dependency_overrides[get_components] = lambda: components
    app.dependency_overrides[get_weather_provider] = lambda: weather_provider
    yield TestClient(app)
    app.dependency_overrides.clear()


def stored(components, **overrides) -> AnomalyRecord:
    start = datetime(2024, 6, 14, tzinfo=UTC)
    record = AnomalyRecord(**{
        "solar_unit_id": "unit-1",
        "anomaly_type": AnomalyType.COMPLETE_FAILURE,
        "severity": Severity.CRITICAL,
        "detected_at": datetime(2024, 6, 15, 1, tzinfo=UTC),
        "affected_period": AffectedPeriod(start=start, end=start + timedelta(hours=23)),
        "description": "Complete system failure detected",
        "recommendation": "Check inverter",
        "confidence": 0.95,
        **overrides,
    })
    return asyncio.run(components.store.create(record))


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_trigger_detection_queues_task(client):
    with patch("solaranomaly.main.run_detection_task") as task:
        task.delay.return_value = MagicMock(id="task-123")
        response = client.post("/detection/trigger")

    assert response.status_code == 200
    assert response.json()["task_id"] == "task-123"
    task.delay.assert_called_once()


def test_run_detection_in_process(client, components, make_day):
    yesterday = datetime.now(UTC).date() - timedelta(days=1)
    components.readings.add(*make_day("unit-1", yesterday, [0.0] * 6))

    response = client.post("/detection/run")

    assert response.status_code == 200
    summary = response.json()["summary"]
    assert summary["units_processed"] == 2
    assert summary["anomalies_created"] >= 1
    types = {r.anomaly_type for r in components.store.records}
    assert AnomalyType.COMPLETE_FAILURE in types


def test_list_and_filter(client, components):
    stored(components)
    stored(components, anomaly_type=AnomalyType.WEATHER_RELATED, severity=Severity.LOW)

    all_records = client.get("/anomalies").json()
    weather = client.get("/anomalies", params={"type": "WEATHER_RELATED"}).json()

    assert len(all_records) == 2
    assert [r["severity"] for r in weather] == ["LOW"]


def test_get_unknown_anomaly(client):
    response = client.get("/anomalies/does-not-exist")
    assert response.status_code == 404


def test_acknowledge_then_resolve(client, components):
    record = stored(components)

    ack = client.put(f"/anomalies/{record.id}/acknowledge", json={"user_id": "op-1"})
    resolved = client.put(f"/anomalies/{record.id}/resolve", json={"user_id": "op-1", "notes": "Replaced fuse"})

    assert ack.json()["status"] == "ACKNOWLEDGED"
    assert ack.json()["acknowledged_by"] == "op-1"
    assert resolved.json()["status"] == "RESOLVED"
    assert resolved.json()["details"]["resolution_notes"] == "Replaced fuse"


def test_acknowledge_resolved_is_rejected(client, components):
    record = stored(components, status=AnomalyStatus.RESOLVED)

    response = client.put(f"/anomalies/{record.id}/acknowledge")

    assert response.status_code == 400


def test_stats(client, components):
    stored(components)
    stored(components, status=AnomalyStatus.RESOLVED)

    stats = client.get("/anomalies/stats").json()

    assert stats["total"] == 1
    assert stats["by_status"]["resolved"] == 1
    assert stats["by_severity"]["critical"] == 1


def test_weather_by_coordinates(client, weather_provider):
    response = client.get("/weather", params={"latitude": 6.93, "longitude": 79.85})

    assert response.status_code == 200
    body = response.json()
    assert body["current"]["cloud_cover"] == 85
    assert body["solar_impact"]["impact"] == "fair"
    weather_provider.current_conditions.assert_awaited_with(6.93, 79.85)


def test_weather_for_unit(client):
    response = client.get("/weather/units/unit-1")

    assert response.status_code == 200
    assert response.json()["solar_unit"]["id"] == "unit-1"


def test_weather_for_unit_errors(client):
    assert client.get("/weather/units/missing").status_code == 404
    assert client.get("/weather/units/unit-nowhere").status_code == 400


def test_parse_cron():
    schedule = parse_cron("0 1 * * *")
    assert schedule.hour == {1}
    assert schedule.minute == {0}

    with pytest.raises(ValueError):
        parse_cron("0 1 * *")


def test_detection_task_prepares_and_releases_storage(components):
    components.client = MagicMock()
    components.store.ensure_indexes = AsyncMock()

    with patch("solaranomaly.main.build_components", return_value=components):
        result = run_detection_task()

    assert result["units_processed"] == 2
    components.store.ensure_indexes.assert_awaited_once()
    components.client.close.assert_called_once()
