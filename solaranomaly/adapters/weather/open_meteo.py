"""
Open-Meteo Adapter - Current-conditions weather over HTTP.
"""

from datetime import datetime

import httpx
from pydantic import BaseModel, PrivateAttr

from solaranomaly.core.domain.weather import CurrentWeather, WeatherConditions, WeatherLocation
from solaranomaly.core.ports.weather_provider import WeatherProvider

CURRENT_FIELDS = [
    "temperature_2m",
    "relative_humidity_2m",
    "apparent_temperature",
    "precipitation",
    "rain",
    "weather_code",
    "cloud_cover",
    "wind_speed_10m",
    "wind_direction_10m",
]


class OpenMeteoWeatherProvider(BaseModel, WeatherProvider):
    """
    Weather provider backed by the Open-Meteo forecast API.
    Configured via Pydantic model fields.
    """
    base_url: str = "https://api.open-meteo.com/v1/forecast"
    timeout: float = 10.0

    _client: httpx.AsyncClient | None = PrivateAttr(default=None)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def current_conditions(self, latitude: float, longitude: float) -> WeatherConditions:
        client = await self._get_client()

        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current": ",".join(CURRENT_FIELDS),
            "timezone": "auto",
        }
        response = await client.get(self.base_url, params=params)
        response.raise_for_status()

        return self.parse_response(response.json(), latitude, longitude)

    @staticmethod
    def parse_response(data: dict, latitude: float, longitude: float) -> WeatherConditions:
        """Map the raw Open-Meteo payload onto WeatherConditions."""
        current = data.get("current")
        if not current:
            raise RuntimeError("Weather API response has no current conditions")

        return WeatherConditions(
            current=CurrentWeather(
                temperature=current["temperature_2m"],
                humidity=current.get("relative_humidity_2m"),
                apparent_temperature=current.get("apparent_temperature"),
                precipitation=current.get("precipitation", 0.0),
                rain=current.get("rain", 0.0),
                cloud_cover=current["cloud_cover"],
                weather_code=current.get("weather_code", 0),
                wind_speed=current.get("wind_speed_10m"),
                wind_direction=current.get("wind_direction_10m"),
            ),
            location=WeatherLocation(
                latitude=latitude,
                longitude=longitude,
                timezone=data.get("timezone"),
            ),
            timestamp=datetime.fromisoformat(current["time"]),
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
