import os
import yaml
from solaranomaly.core.domain.settings import SystemSettings

# Environment variable -> settings field
ENV_OVERRIDES = {
    "REDIS_URL": "redis_url",
    "MONGO_URL": "mongo_url",
    "MONGO_DB_NAME": "mongo_db_name",
    "WEATHER_API_URL": "weather_api_url",
    "SA_UNITS_FILE": "units_file",
    "SA_STORE_TYPE": "store_type",
    "SA_UNIT_SOURCE_TYPE": "unit_source_type",
    "ANOMALY_CRON_SCHEDULE": "anomaly_schedule",
}


def load_settings(path: str | None = None) -> SystemSettings:
    """
    Load system settings from a YAML file.
    Environment variables take precedence over file values, which take
    precedence over defaults.

    Args:
        path: Path to config.yaml. Defaults to SA_CONFIG_FILE env var or "config.yaml".
    """
    if path is None:
        path = os.getenv("SA_CONFIG_FILE", "config.yaml")

    config_data = {}

    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        except Exception as e:
            raise RuntimeError(f"Failed to load configuration from {path}: {e}")

    for env_var, field in ENV_OVERRIDES.items():
        if os.getenv(env_var):
            config_data[field] = os.getenv(env_var)

    return SystemSettings(**config_data)
