"""
AnomalyStore Port - Interface for persisting anomaly records.

This port defines the contract for reading and writing anomalies.
Implementations can be in-memory or database-backed (MongoDB).
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from solaranomaly.core.domain.records import (
        AnomalyRecord,
        AnomalyStatus,
        AnomalyType,
        Severity,
    )


class AnomalyStore(ABC):
    """
    Abstract interface for anomaly storage.
    """

    @abstractmethod
    async def find_existing(
        self,
        solar_unit_id: str,
        anomaly_type: "AnomalyType",
        day_start: datetime,
        day_end: datetime,
    ) -> "AnomalyRecord | None":
        """
        Find a record of this type for this unit whose affected period
        starts within [day_start, day_end].
        """
        ...

    @abstractmethod
    async def create(self, record: "AnomalyRecord") -> "AnomalyRecord":
        """Insert a new record and return it."""
        ...

    async def insert_if_absent(self, record: "AnomalyRecord") -> tuple["AnomalyRecord", bool]:
        """
        Insert the record unless one already exists for its dedup key.

        The default implementation is a non-atomic check-then-insert.
        Backends that support it should override this with an upsert.

        Returns:
            (stored record, True if it was created)
        """
        existing = await self.find_existing(
            record.solar_unit_id,
            record.anomaly_type,
            record.affected_period.start,
            record.affected_period.end,
        )
        if existing is not None:
            return existing, False
        return await self.create(record), True

    @abstractmethod
    async def get(self, anomaly_id: str) -> "AnomalyRecord | None":
        """Get a record by id."""
        ...

    @abstractmethod
    async def update(self, record: "AnomalyRecord") -> "AnomalyRecord":
        """Replace a stored record (matched by id)."""
        ...

    @abstractmethod
    async def list_anomalies(
        self,
        *,
        solar_unit_ids: list[str] | None = None,
        anomaly_type: "AnomalyType | None" = None,
        severity: "Severity | None" = None,
        status: "AnomalyStatus | None" = None,
        limit: int = 100,
    ) -> list["AnomalyRecord"]:
        """
        List records matching every given filter, newest detection first.
        """
        ...

    @abstractmethod
    async def count_by(
        self,
        field: str,
        *,
        solar_unit_ids: list[str] | None = None,
        statuses: "list[AnomalyStatus] | None" = None,
    ) -> dict[str, int]:
        """
        Count records grouped by one field.

        Args:
            field: "status", "severity" or "anomaly_type"
            solar_unit_ids: Restrict to these units
            statuses: Restrict to these statuses

        Returns:
            Mapping of field value (enum value string) to exact count
        """
        ...

    async def ensure_indexes(self) -> None:
        """Create backend indexes. No-op for stores without any."""
        return None
