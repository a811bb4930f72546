"""Live push publishers and the Redis relay that feeds the local registry."""

from __future__ import annotations

import asyncio

from classroom_common.models.notification_models import LiveNotification
from classroom_service_libs.logging_utils import create_service_logger
from classroom_service_libs.redis_client import RedisClient

from services.classroom_service.protocols import (
    ConnectionRegistryProtocol,
    TopicPublisherProtocol,
)

logger = create_service_logger("classroom_service.topic_publisher")


class LocalTopicPublisher(TopicPublisherProtocol):
    """Delivers straight into this process's connection registry."""

    def __init__(self, registry: ConnectionRegistryProtocol) -> None:
        self._registry = registry

    async def publish(self, topic: str, notification: LiveNotification) -> int:
        return await self._registry.send_to_topic(topic, notification.model_dump_json())


class RedisTopicPublisher(TopicPublisherProtocol):
    """Publishes to ``{prefix}:{topic}`` so every service instance can deliver."""

    def __init__(self, redis_client: RedisClient) -> None:
        self._redis_client = redis_client

    async def publish(self, topic: str, notification: LiveNotification) -> int:
        return await self._redis_client.publish_to_topic(topic, notification.model_dump_json())


class RedisTopicRelay:
    """Forwards every topic message seen on Redis into the local registry."""

    def __init__(self, redis_client: RedisClient, registry: ConnectionRegistryProtocol) -> None:
        self._redis_client = redis_client
        self._registry = registry
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())
            logger.info("Redis topic relay started")

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                logger.info("Redis topic relay stopped")
        self._task = None

    async def _run(self) -> None:
        async with self._redis_client.subscribe_all_topics() as pubsub:
            async for message in pubsub.listen():
                if message.get("type") != "pmessage":
                    continue
                topic = self._redis_client.topic_from_channel(message["channel"])
                try:
                    await self._registry.send_to_topic(topic, message["data"])
                except Exception as e:
                    logger.error(
                        f"Relay failed to forward message on {topic}: {e}",
                        exc_info=True,
                        extra={"topic": topic},
                    )
