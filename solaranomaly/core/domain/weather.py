"""
Weather Domain Models - Current conditions returned by a weather provider.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class CurrentWeather(BaseModel):
    temperature: float
    humidity: float | None = None
    apparent_temperature: float | None = None
    precipitation: float = 0.0
    rain: float = 0.0
    cloud_cover: float
    weather_code: int = 0
    wind_speed: float | None = None
    wind_direction: float | None = None


class WeatherLocation(BaseModel):
    latitude: float
    longitude: float
    timezone: str | None = None


class WeatherConditions(BaseModel):
    """Current conditions at a location."""

    current: CurrentWeather
    location: WeatherLocation
    timestamp: datetime


class SolarImpact(BaseModel):
    impact: Literal["excellent", "good", "fair", "poor"]
    description: str
    efficiency: int  # expected % of clear-sky generation


def get_solar_impact(cloud_cover: float, weather_code: int) -> SolarImpact:
    """
    Classify how current weather affects generation.

    WMO weather codes: >= 80 showers/thunderstorms, >= 50 drizzle/rain,
    >= 45 fog.
    """
    if weather_code >= 80:
        return SolarImpact(impact="poor", description="Heavy rain/thunderstorm - minimal solar generation", efficiency=10)
    if weather_code >= 50:
        return SolarImpact(impact="fair", description="Rainy conditions - reduced solar generation", efficiency=30)
    if weather_code >= 45:
        return SolarImpact(impact="fair", description="Foggy conditions - reduced solar generation", efficiency=25)
    if cloud_cover >= 80:
        return SolarImpact(impact="fair", description="Heavily cloudy - reduced solar generation", efficiency=35)
    if cloud_cover >= 50:
        return SolarImpact(impact="good", description="Partly cloudy - good solar generation", efficiency=65)
    if cloud_cover >= 20:
        return SolarImpact(impact="good", description="Mostly clear - good solar generation", efficiency=85)
    return SolarImpact(impact="excellent", description="Clear skies - excellent solar generation", efficiency=95)
