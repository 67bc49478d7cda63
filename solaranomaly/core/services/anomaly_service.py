"""
Anomaly Service - Lifecycle and reporting over stored anomalies.

Status only moves forward: ACTIVE -> ACKNOWLEDGED -> RESOLVED, or
ACTIVE -> RESOLVED directly.
"""

import logging
from datetime import UTC, datetime

from solaranomaly.core.domain.errors import AnomalyNotFoundError, InvalidTransitionError
from solaranomaly.core.domain.records import AnomalyRecord, AnomalyStatus, AnomalyType, Severity
from solaranomaly.core.ports.anomaly_store import AnomalyStore

logger = logging.getLogger(__name__)


class AnomalyService:

    def __init__(self, store: AnomalyStore):
        self.store = store

    async def list_anomalies(
        self,
        *,
        solar_unit_ids: list[str] | None = None,
        anomaly_type: AnomalyType | None = None,
        severity: Severity | None = None,
        status: AnomalyStatus | None = None,
        limit: int = 100,
    ) -> list[AnomalyRecord]:
        return await self.store.list_anomalies(
            solar_unit_ids=solar_unit_ids,
            anomaly_type=anomaly_type,
            severity=severity,
            status=status,
            limit=limit,
        )

    async def get(self, anomaly_id: str) -> AnomalyRecord:
        record = await self.store.get(anomaly_id)
        if record is None:
            raise AnomalyNotFoundError(f"Anomaly '{anomaly_id}' not found")
        return record

    async def acknowledge(self, anomaly_id: str, user_id: str | None = None) -> AnomalyRecord:
        """
        Mark an anomaly as acknowledged.

        Raises:
            AnomalyNotFoundError: unknown id
            InvalidTransitionError: the anomaly is already resolved
        """
        record = await self.get(anomaly_id)
        if record.status == AnomalyStatus.RESOLVED:
            raise InvalidTransitionError("Cannot acknowledge a resolved anomaly")

        updated = record.model_copy(update={
            "status": AnomalyStatus.ACKNOWLEDGED,
            "acknowledged_at": datetime.now(UTC),
            "acknowledged_by": user_id,
        })
        logger.info(f"Anomaly '{anomaly_id}' acknowledged by {user_id}")
        return await self.store.update(updated)

    async def resolve(
        self,
        anomaly_id: str,
        user_id: str | None = None,
        notes: str | None = None,
    ) -> AnomalyRecord:
        """
        Mark an anomaly as resolved, optionally recording resolution notes.

        Raises:
            AnomalyNotFoundError: unknown id
        """
        record = await self.get(anomaly_id)
        details = dict(record.details)
        if notes:
            details["resolution_notes"] = notes

        updated = record.model_copy(update={
            "status": AnomalyStatus.RESOLVED,
            "resolved_at": datetime.now(UTC),
            "resolved_by": user_id,
            "details": details,
        })
        logger.info(f"Anomaly '{anomaly_id}' resolved by {user_id}")
        return await self.store.update(updated)

    async def stats(self, solar_unit_ids: list[str] | None = None) -> dict:
        """
        Dashboard counts.

        Severity and type breakdowns only include unresolved anomalies.
        """
        open_statuses = [AnomalyStatus.ACTIVE, AnomalyStatus.ACKNOWLEDGED]
        by_status = await self.store.count_by("status", solar_unit_ids=solar_unit_ids)
        by_severity = await self.store.count_by("severity", solar_unit_ids=solar_unit_ids, statuses=open_statuses)
        by_type = await self.store.count_by("anomaly_type", solar_unit_ids=solar_unit_ids, statuses=open_statuses)
        active = by_status.get(AnomalyStatus.ACTIVE.value, 0)
        acknowledged = by_status.get(AnomalyStatus.ACKNOWLEDGED.value, 0)

        return {
            "by_status": {
                "active": active,
                "acknowledged": acknowledged,
                "resolved": by_status.get(AnomalyStatus.RESOLVED.value, 0),
            },
            "by_severity": {s.value.lower(): by_severity.get(s.value, 0) for s in reversed(Severity)},
            "by_type": by_type,
            "total": active + acknowledged,
        }
