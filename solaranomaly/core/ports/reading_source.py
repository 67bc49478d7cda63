"""
ReadingSource Port - Interface for loading energy generation readings.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from solaranomaly.core.domain.records import GenerationReading


class ReadingSource(ABC):
    """
    Abstract interface for generation reading storage.

    Implementations:
    - InMemoryReadingSource: process-local list
    - MongoReadingSource: MongoDB collection
    """

    @abstractmethod
    async def fetch_readings(
        self,
        solar_unit_id: str,
        since: datetime,
        until: datetime | None = None,
    ) -> list["GenerationReading"]:
        """
        Load readings for a unit.

        Args:
            solar_unit_id: Unit identifier
            since: Inclusive lower bound on timestamp
            until: Exclusive upper bound on timestamp (None = no bound)

        Returns:
            Readings ordered by timestamp ascending
        """
        ...

    async def ensure_indexes(self) -> None:
        """Create backend indexes. No-op for sources without any."""
        return None
