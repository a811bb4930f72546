"""Classroom Service - courses, enrollment workflow and notifications over HTTP."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from classroom_service_libs.error_handling.fastapi import (
    register_error_handlers as register_fastapi_error_handlers,
)
from classroom_service_libs.logging_utils import (
    configure_service_logging,
    create_service_logger,
)
from classroom_service_libs.middleware import CorrelationIDMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from services.classroom_service.api import (
    announcement_routes,
    auth_routes,
    course_routes,
    coursework_routes,
    enrollment_request_routes,
    health_routes,
    material_routes,
    notification_routes,
    websocket_routes,
)
from services.classroom_service.config import settings
from services.classroom_service.metrics import MetricsMiddleware
from services.classroom_service.startup_setup import (
    create_di_container,
    initialize_database,
    setup_dependency_injection,
    start_live_push_relay,
    stop_live_push_relay,
)

configure_service_logging(
    settings.SERVICE_NAME,
    environment=settings.ENVIRONMENT.value,
    log_level=settings.LOG_LEVEL,
)
logger = create_service_logger("classroom_service.app")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifecycle."""
    logger.info(f"Starting Classroom Service with {settings}")
    container = app.state.di_container
    await initialize_database(container)
    await start_live_push_relay(container)

    yield

    logger.info("Shutting down Classroom Service...")
    await stop_live_push_relay()
    await container.close()


def include_routers(app: FastAPI) -> None:
    app.include_router(health_routes.router, tags=["Health"])
    app.include_router(auth_routes.router)
    app.include_router(auth_routes.users_router)
    app.include_router(course_routes.router)
    app.include_router(coursework_routes.router)
    app.include_router(announcement_routes.router)
    app.include_router(material_routes.router)
    app.include_router(enrollment_request_routes.router)
    app.include_router(notification_routes.router)
    app.include_router(websocket_routes.router, tags=["WebSocket"])


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        description="Classroom Service: courses, enrollment requests and notifications",
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development() else None,
    )

    register_fastapi_error_handlers(app)

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(CorrelationIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    include_routers(app)

    container = create_di_container()
    setup_dependency_injection(app, container)
    app.state.di_container = container

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.classroom_service.app:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development(),
        log_level=settings.LOG_LEVEL.lower(),
    )
