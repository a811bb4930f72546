from __future__ import annotations

from typing import Any

from classroom_common.config_enums import LivePushBackend
from classroom_service_libs.logging_utils import create_service_logger
from dishka import AsyncContainer, make_async_container
from dishka.integrations.fastapi import FastapiProvider, setup_dishka
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from services.classroom_service.api.auth_provider import AuthProvider
from services.classroom_service.config import Settings, settings
from services.classroom_service.di import (
    CoreProvider,
    DomainHandlerProvider,
    RepositoryProvider,
    live_push_provider,
)
from services.classroom_service.implementations.topic_publisher_impl import RedisTopicRelay
from services.classroom_service.models_db import Base

logger = create_service_logger("classroom_service.startup")

relay_instance: RedisTopicRelay | None = None


def create_di_container(config: Settings = settings) -> AsyncContainer:
    """Create the dependency injection container."""
    logger.info(
        "Creating DI container",
        extra={"live_push_backend": config.LIVE_PUSH_BACKEND.value},
    )
    return make_async_container(
        CoreProvider(),
        live_push_provider(config),
        RepositoryProvider(),
        DomainHandlerProvider(),
        AuthProvider(),
        FastapiProvider(),
    )


def setup_dependency_injection(app: FastAPI, container: Any) -> None:
    """Setup Dishka dependency injection for FastAPI."""
    logger.info("Setting up dependency injection")
    setup_dishka(container, app)


async def initialize_database(container: AsyncContainer) -> None:
    """Create any missing tables."""
    engine = await container.get(AsyncEngine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")


async def start_live_push_relay(container: AsyncContainer, config: Settings = settings) -> None:
    """Forward Redis topic messages into this instance's connections."""
    global relay_instance
    if config.LIVE_PUSH_BACKEND is not LivePushBackend.REDIS:
        return
    relay_instance = await container.get(RedisTopicRelay)
    await relay_instance.start()
    logger.info("Redis topic relay started")


async def stop_live_push_relay() -> None:
    global relay_instance
    if relay_instance is not None:
        await relay_instance.stop()
        relay_instance = None
        logger.info("Redis topic relay stopped")
