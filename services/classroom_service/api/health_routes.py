from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Any

from classroom_service_libs.logging_utils import create_service_logger
from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse
from prometheus_client import CollectorRegistry, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from services.classroom_service.config import Settings
from services.classroom_service.protocols import ConnectionRegistryProtocol

router = APIRouter()
logger = create_service_logger("classroom_service.health_routes")

SERVICE_START_TIME = time.time()


@router.get("/healthz")
@inject
async def health_check(
    settings: FromDishka[Settings],
    engine: FromDishka[AsyncEngine],
    registry: FromDishka[ConnectionRegistryProtocol],
) -> Response:
    """Reports 503 when the database cannot be reached."""
    database = "healthy"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        database = "unhealthy"

    body: dict[str, Any] = {
        "service": settings.SERVICE_NAME,
        "status": "healthy" if database == "healthy" else "unhealthy",
        "environment": settings.ENVIRONMENT.value,
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime_seconds": int(time.time() - SERVICE_START_TIME),
        "dependencies": {"database": database},
        "live_connections": registry.get_total_connections(),
    }
    return JSONResponse(body, status_code=200 if database == "healthy" else 503)


@router.get("/metrics")
@inject
async def get_metrics(
    registry: FromDishka[CollectorRegistry],
) -> Response:
    """Prometheus metrics endpoint."""
    return Response(
        generate_latest(registry),
        media_type="text/plain",
    )
