"""
UnitSource Port - Interface for enumerating solar units.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from solaranomaly.core.domain.records import SolarUnitProfile


class UnitSource(ABC):
    """
    Abstract interface for the fleet of solar units.

    Implementations:
    - InMemoryUnitSource
    - YamlUnitSource: file-based fleet definition
    - MongoUnitSource: database-backed fleet
    """

    @abstractmethod
    async def fetch_active_units(self) -> list["SolarUnitProfile"]:
        """Return every unit whose operational status is ACTIVE."""
        ...

    @abstractmethod
    async def get_unit(self, unit_id: str) -> "SolarUnitProfile | None":
        """
        Get a specific unit.

        Returns:
            SolarUnitProfile if found, None otherwise
        """
        ...
