"""
YAML Unit Source Adapter - File-based fleet definition.

Loads solar unit profiles from a YAML file of the form:

    units:
      - id: unit-001
        serial_number: SU-0001
        panel_capacity: 5.0
        latitude: 6.93
        longitude: 79.85
"""

import logging
from pathlib import Path

import yaml

from solaranomaly.core.domain.records import SolarUnitProfile, UnitStatus
from solaranomaly.core.ports.unit_source import UnitSource

logger = logging.getLogger(__name__)


class YamlUnitSource(UnitSource):
    """
    Unit source that reads the fleet from a YAML file.
    """

    def __init__(self, config_path: str | Path):
        self.config_path = Path(config_path)
        self._units: dict[str, SolarUnitProfile] = {}
        self._loaded = False

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self._load_units()
            self._loaded = True

    def _load_units(self) -> None:
        if not self.config_path.exists():
            logger.warning(f"Unit file {self.config_path} not found")
            return

        with open(self.config_path) as f:
            data = yaml.safe_load(f) or {}

        for unit_data in data.get("units", []):
            try:
                unit = SolarUnitProfile(**unit_data)
                self._units[unit.id] = unit
            except Exception as e:
                logger.error(f"Error loading solar unit: {e}")

    async def fetch_active_units(self) -> list[SolarUnitProfile]:
        self._ensure_loaded()
        return [u for u in self._units.values() if u.operational_status == UnitStatus.ACTIVE]

    async def get_unit(self, unit_id: str) -> SolarUnitProfile | None:
        self._ensure_loaded()
        return self._units.get(unit_id)
