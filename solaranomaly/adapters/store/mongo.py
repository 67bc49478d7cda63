"""
MongoDB Adapters - motor-backed implementations of the storage ports.

Collections:
- energy_generation_records: GenerationReading documents
- solar_units: SolarUnitProfile documents
- anomalies: AnomalyRecord documents, _id = record id
"""

import logging
from datetime import datetime

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING

from solaranomaly.core.domain.records import (
    AnomalyRecord,
    AnomalyStatus,
    AnomalyType,
    GenerationReading,
    Severity,
    SolarUnitProfile,
    UnitStatus,
)
from solaranomaly.core.domain.settings import SystemSettings
from solaranomaly.core.ports.anomaly_store import AnomalyStore
from solaranomaly.core.ports.reading_source import ReadingSource
from solaranomaly.core.ports.unit_source import UnitSource

logger = logging.getLogger(__name__)


def get_database(settings: SystemSettings, client: AsyncIOMotorClient | None = None):
    client = client or AsyncIOMotorClient(settings.mongo_url, tz_aware=True)
    return client[settings.mongo_db_name]


class MongoReadingSource(ReadingSource):
    """
    Reads generation records from MongoDB.
    """

    def __init__(self, settings: SystemSettings, client: AsyncIOMotorClient | None = None):
        self.collection = get_database(settings, client)["energy_generation_records"]

    async def fetch_readings(
        self,
        solar_unit_id: str,
        since: datetime,
        until: datetime | None = None,
    ) -> list[GenerationReading]:
        time_filter = {"$gte": since}
        if until is not None:
            time_filter["$lt"] = until

        cursor = self.collection.find(
            {"solar_unit_id": solar_unit_id, "timestamp": time_filter}
        ).sort("timestamp", ASCENDING)

        readings = []
        async for doc in cursor:
            doc.pop("_id", None)
            readings.append(GenerationReading(**doc))
        return readings

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("solar_unit_id", ASCENDING), ("timestamp", ASCENDING)])


class MongoUnitSource(UnitSource):
    """
    Reads the solar unit fleet from MongoDB.
    """

    def __init__(self, settings: SystemSettings, client: AsyncIOMotorClient | None = None):
        self.collection = get_database(settings, client)["solar_units"]

    async def fetch_active_units(self) -> list[SolarUnitProfile]:
        units = []
        async for doc in self.collection.find({"operational_status": UnitStatus.ACTIVE.value}):
            doc.pop("_id", None)
            try:
                units.append(SolarUnitProfile(**doc))
            except Exception as e:
                logger.error(f"Failed to parse solar unit document: {e}")
        return units

    async def get_unit(self, unit_id: str) -> SolarUnitProfile | None:
        doc = await self.collection.find_one({"id": unit_id})
        if not doc:
            return None
        doc.pop("_id", None)
        return SolarUnitProfile(**doc)


class MongoAnomalyStore(AnomalyStore):
    """
    MongoDB-backed anomaly store.

    insert_if_absent is an atomic upsert keyed on
    (solar_unit_id, anomaly_type, affected_period.start), backed by a
    unique index, so overlapping detection runs cannot duplicate records.
    """

    def __init__(self, settings: SystemSettings, client: AsyncIOMotorClient | None = None):
        self.collection = get_database(settings, client)["anomalies"]

    @staticmethod
    def _to_document(record: AnomalyRecord) -> dict:
        doc = record.model_dump(exclude={"id"})
        doc["_id"] = record.id
        doc["anomaly_type"] = record.anomaly_type.value
        doc["severity"] = record.severity.value
        doc["status"] = record.status.value
        return doc

    @staticmethod
    def _from_document(doc: dict) -> AnomalyRecord:
        doc = dict(doc)
        doc["id"] = str(doc.pop("_id"))
        return AnomalyRecord(**doc)

    async def ensure_indexes(self) -> None:
        await self.collection.create_index(
            [("solar_unit_id", ASCENDING), ("anomaly_type", ASCENDING), ("affected_period.start", ASCENDING)],
            unique=True,
            name="dedup_key",
        )
        await self.collection.create_index([("solar_unit_id", ASCENDING), ("detected_at", DESCENDING)])
        await self.collection.create_index([("status", ASCENDING)])

    async def find_existing(
        self,
        solar_unit_id: str,
        anomaly_type: AnomalyType,
        day_start: datetime,
        day_end: datetime,
    ) -> AnomalyRecord | None:
        doc = await self.collection.find_one({
            "solar_unit_id": solar_unit_id,
            "anomaly_type": anomaly_type.value,
            "affected_period.start": {"$gte": day_start, "$lte": day_end},
        })
        return self._from_document(doc) if doc else None

    async def create(self, record: AnomalyRecord) -> AnomalyRecord:
        await self.collection.insert_one(self._to_document(record))
        return record

    async def insert_if_absent(self, record: AnomalyRecord) -> tuple[AnomalyRecord, bool]:
        key = {
            "solar_unit_id": record.solar_unit_id,
            "anomaly_type": record.anomaly_type.value,
            "affected_period.start": record.affected_period.start,
        }
        result = await self.collection.update_one(
            key,
            {"$setOnInsert": self._to_document(record)},
            upsert=True,
        )
        if result.upserted_id is not None:
            return record, True

        doc = await self.collection.find_one(key)
        return self._from_document(doc), False

    async def get(self, anomaly_id: str) -> AnomalyRecord | None:
        doc = await self.collection.find_one({"_id": anomaly_id})
        return self._from_document(doc) if doc else None

    async def update(self, record: AnomalyRecord) -> AnomalyRecord:
        result = await self.collection.replace_one({"_id": record.id}, self._to_document(record))
        if result.matched_count == 0:
            raise KeyError(record.id)
        return record

    async def list_anomalies(
        self,
        *,
        solar_unit_ids: list[str] | None = None,
        anomaly_type: AnomalyType | None = None,
        severity: Severity | None = None,
        status: AnomalyStatus | None = None,
        limit: int = 100,
    ) -> list[AnomalyRecord]:
        query: dict = {}
        if solar_unit_ids is not None:
            query["solar_unit_id"] = {"$in": solar_unit_ids}
        if anomaly_type is not None:
            query["anomaly_type"] = anomaly_type.value
        if severity is not None:
            query["severity"] = severity.value
        if status is not None:
            query["status"] = status.value

        cursor = self.collection.find(query).sort("detected_at", DESCENDING).limit(limit)
        return [self._from_document(doc) async for doc in cursor]

    async def count_by(
        self,
        field: str,
        *,
        solar_unit_ids: list[str] | None = None,
        statuses: list[AnomalyStatus] | None = None,
    ) -> dict[str, int]:
        match: dict = {}
        if solar_unit_ids is not None:
            match["solar_unit_id"] = {"$in": solar_unit_ids}
        if statuses is not None:
            match["status"] = {"$in": [s.value for s in statuses]}

        pipeline = [
            {"$match": match},
            {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
        ]
        return {doc["_id"]: doc["count"] async for doc in self.collection.aggregate(pipeline)}
