from typing import Literal
from pydantic import BaseModel, Field


class DetectionConfig(BaseModel):
    """
    Thresholds and windows used by the detection engine.
    """
    recent_window_days: int = Field(default=7, gt=0, description="Days bucketed and evaluated per run")
    historical_window_days: int = Field(default=30, gt=0, description="Baseline lookback (days 8-30 back by default)")
    degradation_threshold: float = Field(default=15.0, description="Percent drop vs. baseline that counts as degradation")
    expected_generation_factor: float = Field(default=0.5, gt=0, description="Expected daily kWh as a fraction of panel capacity")
    daylight_start_hour: int = Field(default=6, ge=0, le=23)
    daylight_end_hour: int = Field(default=18, ge=0, le=23)
    unit_concurrency: int = Field(default=1, ge=1, description="Solar units processed in parallel")


class SystemSettings(BaseModel):
    """
    Global system configuration settings.
    """
    store_type: Literal["memory", "mongo"] = Field(default="mongo", description="Record store backend")
    unit_source_type: Literal["yaml", "mongo"] = Field(default="mongo", description="Where the fleet is defined")

    # Celery
    redis_url: str = Field(default="redis://localhost:6379/0", description="Celery broker and backend URL")
    anomaly_schedule: str = Field(default="0 1 * * *", description="Cron schedule for recurring detection runs")

    # Mongo Store
    mongo_url: str = Field(default="mongodb://localhost:27017", description="MongoDB Connection URL")
    mongo_db_name: str = Field(default="solaranomaly", description="MongoDB Database Name")

    # YAML Fleet
    units_file: str = Field(default="units.yaml", description="Path to solar unit definitions")

    # Weather
    weather_api_url: str = Field(default="https://api.open-meteo.com/v1/forecast", description="Open-Meteo forecast endpoint")
    weather_cache_ttl: float = Field(default=600.0, ge=0, description="Seconds a cached weather lookup stays fresh")
    weather_cache_max_entries: int = Field(default=1024, ge=1, description="Locations kept in the weather cache")

    detection: DetectionConfig = Field(default_factory=DetectionConfig)
