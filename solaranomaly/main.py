import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from functools import lru_cache

from celery import Celery
from celery.schedules import crontab
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from solaranomaly.adapters.config.settings_loader import load_settings
from solaranomaly.adapters.factory import Components, build_components, build_weather_provider
from solaranomaly.core.domain.errors import AnomalyNotFoundError, InvalidTransitionError
from solaranomaly.core.domain.records import AnomalyRecord, AnomalyStatus, AnomalyType, Severity
from solaranomaly.core.domain.weather import get_solar_impact
from solaranomaly.core.ports.weather_provider import WeatherProvider
from solaranomaly.core.services.anomaly_service import AnomalyService
from solaranomaly.core.services.detection_loop import DetectionLoop

# Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Configuration (Load from YAML with Env Overrides)
settings = load_settings()


def parse_cron(expression: str) -> crontab:
    """Turn a five-field cron expression into a Celery crontab."""
    fields = expression.split()
    if len(fields) != 5:
        raise ValueError(f"Invalid cron expression: '{expression}'")
    minute, hour, day_of_month, month_of_year, day_of_week = fields
    return crontab(
        minute=minute,
        hour=hour,
        day_of_month=day_of_month,
        month_of_year=month_of_year,
        day_of_week=day_of_week,
    )


# Celery Application
celery_app = Celery("solaranomaly", broker=settings.redis_url, backend=settings.redis_url)
celery_app.conf.beat_schedule = {
    "daily-anomaly-detection": {
        "task": "solaranomaly.tasks.run_detection",
        "schedule": parse_cron(settings.anomaly_schedule),
    },
}

# FastAPI Application
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create storage indexes on startup and release the database client on shutdown."""
    components = get_components()
    await components.ensure_indexes()
    logger.info("Storage indexes ensured")

    yield

    components.close()


app = FastAPI(title="SolarAnomaly", lifespan=lifespan)


@lru_cache
def get_components() -> Components:
    return build_components(settings)


@lru_cache
def get_weather_provider() -> WeatherProvider:
    return build_weather_provider(settings)


def get_anomaly_service(components: Components = Depends(get_components)) -> AnomalyService:
    return AnomalyService(components.store)


@app.exception_handler(AnomalyNotFoundError)
async def anomaly_not_found_handler(request: Request, exc: AnomalyNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


class AcknowledgeRequest(BaseModel):
    user_id: str | None = None


class ResolveRequest(BaseModel):
    user_id: str | None = None
    notes: str | None = None


@app.get("/health")
def health_check():
    return {"status": "ok", "version": "0.1.0"}


@app.post("/detection/trigger")
def trigger_detection():
    """
    Queue an anomaly detection run on a worker.
    """
    task = run_detection_task.delay()
    return {"message": "Anomaly detection triggered", "task_id": str(task.id)}


@app.post("/detection/run")
async def execute_detection(components: Components = Depends(get_components)):
    """
    Run anomaly detection in-process and return the run summary.
    """
    service = DetectionLoop(components.units, components.readings, components.store, settings.detection)
    summary = await service.run_detection()
    return {"status": "success", "summary": asdict(summary)}


@app.get("/anomalies", response_model=list[AnomalyRecord])
async def list_anomalies(
    anomaly_type: AnomalyType | None = Query(default=None, alias="type"),
    severity: Severity | None = None,
    status: AnomalyStatus | None = None,
    solar_unit_id: str | None = None,
    limit: int = Query(default=200, ge=1, le=1000),
    service: AnomalyService = Depends(get_anomaly_service),
):
    return await service.list_anomalies(
        solar_unit_ids=[solar_unit_id] if solar_unit_id else None,
        anomaly_type=anomaly_type,
        severity=severity,
        status=status,
        limit=limit,
    )


@app.get("/anomalies/stats")
async def anomaly_stats(
    solar_unit_id: list[str] | None = Query(default=None),
    service: AnomalyService = Depends(get_anomaly_service),
):
    return await service.stats(solar_unit_ids=solar_unit_id)


@app.get("/anomalies/{anomaly_id}", response_model=AnomalyRecord)
async def get_anomaly(anomaly_id: str, service: AnomalyService = Depends(get_anomaly_service)):
    return await service.get(anomaly_id)


@app.put("/anomalies/{anomaly_id}/acknowledge", response_model=AnomalyRecord)
async def acknowledge_anomaly(
    anomaly_id: str,
    body: AcknowledgeRequest | None = None,
    service: AnomalyService = Depends(get_anomaly_service),
):
    body = body or AcknowledgeRequest()
    return await service.acknowledge(anomaly_id, user_id=body.user_id)


@app.put("/anomalies/{anomaly_id}/resolve", response_model=AnomalyRecord)
async def resolve_anomaly(
    anomaly_id: str,
    body: ResolveRequest | None = None,
    service: AnomalyService = Depends(get_anomaly_service),
):
    body = body or ResolveRequest()
    return await service.resolve(anomaly_id, user_id=body.user_id, notes=body.notes)


@app.get("/weather")
async def weather_by_coordinates(
    latitude: float = Query(ge=-90, le=90),
    longitude: float = Query(ge=-180, le=180),
    provider: WeatherProvider = Depends(get_weather_provider),
):
    conditions = await provider.current_conditions(latitude, longitude)
    impact = get_solar_impact(conditions.current.cloud_cover, conditions.current.weather_code)
    return {**conditions.model_dump(mode="json"), "solar_impact": impact.model_dump()}


@app.get("/weather/units/{unit_id}")
async def weather_for_unit(
    unit_id: str,
    components: Components = Depends(get_components),
    provider: WeatherProvider = Depends(get_weather_provider),
):
    unit = await components.units.get_unit(unit_id)
    if unit is None:
        raise HTTPException(status_code=404, detail=f"Solar unit '{unit_id}' not found")
    if unit.latitude is None or unit.longitude is None:
        raise HTTPException(
            status_code=400,
            detail="Solar unit location (latitude/longitude) not configured",
        )

    conditions = await provider.current_conditions(unit.latitude, unit.longitude)
    impact = get_solar_impact(conditions.current.cloud_cover, conditions.current.weather_code)
    return {
        **conditions.model_dump(mode="json"),
        "solar_impact": impact.model_dump(),
        "solar_unit": {
            "id": unit.id,
            "serial_number": unit.serial_number,
            "capacity": unit.panel_capacity,
        },
    }


# Celery Tasks
@celery_app.task(name="solaranomaly.tasks.run_detection")
def run_detection_task():
    """
    Background task to run anomaly detection across the fleet.
    """
    logger.info("Starting anomaly detection task")

    async def _execute():
        components = build_components(settings)
        try:
            await components.ensure_indexes()
            service = DetectionLoop(components.units, components.readings, components.store, settings.detection)
            return await service.run_detection()
        finally:
            components.close()

    try:
        summary = asyncio.run(_execute())
        return asdict(summary) | {"started_at": summary.started_at.isoformat()}
    except Exception as e:
        logger.error(f"Anomaly detection task failed: {e}")
        raise e
