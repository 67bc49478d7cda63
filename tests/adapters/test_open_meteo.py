"""
Tests for OpenMeteoWeatherProvider.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from solaranomaly.adapters.weather.open_meteo import OpenMeteoWeatherProvider

PAYLOAD = {
    "timezone": "Asia/Colombo",
    "current": {
        "time": "2024-06-01T12:00",
        "temperature_2m": 29.4,
        "relative_humidity_2m": 78,
        "apparent_temperature": 34.1,
        "precipitation": 0.4,
        "rain": 0.4,
        "weather_code": 61,
        "cloud_cover": 88,
        "wind_speed_10m": 12.3,
        "wind_direction_10m": 240,
    },
}


@pytest.fixture
def provider():
    return OpenMeteoWeatherProvider(base_url="http://weather.test/v1/forecast")


@pytest.mark.asyncio
async def test_current_conditions(provider):
    with patch("solaranomaly.adapters.weather.open_meteo.httpx.AsyncClient") as MockClient:
        client_instance = MockClient.return_value

        mock_response = MagicMock()
        mock_response.json.return_value = PAYLOAD
        mock_response.raise_for_status = MagicMock()
        client_instance.get = AsyncMock(return_value=mock_response)

        conditions = await provider.current_conditions(6.93, 79.85)

        args, kwargs = client_instance.get.call_args
        assert args[0] == "http://weather.test/v1/forecast"
        assert kwargs["params"]["latitude"] == 6.93
        assert "cloud_cover" in kwargs["params"]["current"]

    assert conditions.current.cloud_cover == 88
    assert conditions.current.weather_code == 61
    assert conditions.current.temperature == 29.4
    assert conditions.location.timezone == "Asia/Colombo"
    assert conditions.timestamp.hour == 12


@pytest.mark.asyncio
async def test_http_error_propagates(provider):
    with patch("solaranomaly.adapters.weather.open_meteo.httpx.AsyncClient") as MockClient:
        client_instance = MockClient.return_value
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "503", request=MagicMock(), response=MagicMock()
        )
        client_instance.get = AsyncMock(return_value=mock_response)

        with pytest.raises(httpx.HTTPStatusError):
            await provider.current_conditions(6.93, 79.85)


def test_parse_response_requires_current_block():
    with pytest.raises(RuntimeError):
        OpenMeteoWeatherProvider.parse_response({"timezone": "UTC"}, 0.0, 0.0)
