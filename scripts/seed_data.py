"""
Seed Data Script for SolarAnomaly Integration Testing.
Generates synthetic generation readings for a small fleet and pushes them to MongoDB.
"""
import asyncio
import math
import random
from datetime import UTC, datetime, timedelta

from motor.motor_asyncio import AsyncIOMotorClient

MONGO_URL = "mongodb://localhost:27017"
DB_NAME = "solaranomaly"
READING_INTERVAL_HOURS = 2

UNITS = [
    {"id": "unit-healthy", "serial_number": "SU-0001", "panel_capacity": 5.0, "latitude": 6.93, "longitude": 79.85},
    {"id": "unit-failed", "serial_number": "SU-0002", "panel_capacity": 5.0, "latitude": 7.29, "longitude": 80.63},
    {"id": "unit-stuck", "serial_number": "SU-0003", "panel_capacity": 3.0, "latitude": 6.05, "longitude": 80.22},
]


def synthetic_energy(unit_id: str, ts: datetime, days_ago: int) -> float:
    """Bell-shaped daily curve per interval with per-unit faults injected."""
    hour = ts.hour
    if hour < 6 or hour > 18:
        return 0.0
    if unit_id == "unit-failed" and days_ago <= 2:
        return 0.0  # dead for the last two days
    if unit_id == "unit-stuck" and days_ago <= 1:
        return 0.42  # frozen sensor
    peak = 1.2 if unit_id != "unit-stuck" else 0.8
    value = peak * math.sin(math.pi * (hour - 6) / 12)
    return round(max(0.0, value + random.uniform(-0.05, 0.05)), 3)


async def seed_readings(history_days: int = 30):
    """
    Seed units and readings covering the detection and baseline windows.
    """
    client = AsyncIOMotorClient(MONGO_URL, tz_aware=True)
    db = client[DB_NAME]

    print(f"Seeding {len(UNITS)} units with {history_days} days of history...")
    for unit in UNITS:
        await db["solar_units"].replace_one(
            {"id": unit["id"]},
            {**unit, "operational_status": "ACTIVE"},
            upsert=True,
        )

    now = datetime.now(UTC).replace(minute=0, second=0, microsecond=0)
    documents = []
    for unit in UNITS:
        for days_ago in range(history_days, -1, -1):
            day = now - timedelta(days=days_ago)
            for hour in range(0, 24, READING_INTERVAL_HOURS):
                ts = day.replace(hour=hour)
                if ts > now:
                    continue
                documents.append({
                    "solar_unit_id": unit["id"],
                    "energy_generated": synthetic_energy(unit["id"], ts, days_ago),
                    "timestamp": ts,
                    "cloud_coverage": random.uniform(5, 40),
                    "temperature": random.uniform(24, 32),
                    "precipitation": 0.0,
                })

    await db["energy_generation_records"].delete_many({"solar_unit_id": {"$in": [u["id"] for u in UNITS]}})
    result = await db["energy_generation_records"].insert_many(documents)
    print(f"Successfully seeded {len(result.inserted_ids)} readings.")

if __name__ == "__main__":
    asyncio.run(seed_readings())
