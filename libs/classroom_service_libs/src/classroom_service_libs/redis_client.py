"""
Redis client wrapper for classroom services.

Provides the pub/sub operations used by the live notification backplane,
with explicit start/stop lifecycle management.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError

from classroom_service_libs.logging_utils import create_service_logger
from classroom_service_libs.redis_pubsub import RedisPubSub

logger = create_service_logger("redis-client")


class RedisClient:
    """Redis client with lifecycle management for pub/sub operations."""

    def __init__(
        self,
        *,
        client_id: str,
        redis_url: str,
        channel_prefix: str = "classroom",
        connect_timeout: float = 5,
    ) -> None:
        self.redis_url = redis_url
        self.client_id = client_id
        self.channel_prefix = channel_prefix
        self.client = aioredis.from_url(
            self.redis_url,
            decode_responses=True,
            socket_connect_timeout=connect_timeout,
            socket_timeout=None,  # pub/sub reads block until a message arrives
        )
        self._started = False
        self._pubsub: RedisPubSub | None = None

    async def start(self) -> None:
        """Initialize Redis connection with health verification."""
        if self._started:
            return
        try:
            await self.client.ping()
            self._started = True
            self._pubsub = RedisPubSub(self.client, self.client_id, self.channel_prefix)
            logger.info(f"Redis client '{self.client_id}' connected to {self.redis_url}")
        except RedisConnectionError as e:
            logger.error(f"Redis client '{self.client_id}' failed to connect: {e}")
            raise

    async def stop(self) -> None:
        """Clean shutdown of Redis connection."""
        if self._started:
            try:
                await self.client.aclose()
                self._started = False
                logger.info(f"Redis client '{self.client_id}' disconnected")
            except Exception as e:
                logger.error(
                    f"Error stopping Redis client '{self.client_id}': {e}",
                    exc_info=True,
                )

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    def _require_pubsub(self) -> RedisPubSub:
        if not self._pubsub:
            raise RuntimeError(
                f"Redis client '{self.client_id}' PubSub not initialized. "
                f"Ensure start() was called."
            )
        return self._pubsub

    def get_topic_channel(self, topic: str) -> str:
        return self._require_pubsub().get_topic_channel(topic)

    def topic_from_channel(self, channel: str) -> str:
        return self._require_pubsub().topic_from_channel(channel)

    async def publish(self, channel: str, message: str) -> int:
        """Publish a message to a Redis channel; returns the receiver count."""
        return await self._require_pubsub().publish(channel, message)

    async def publish_to_topic(self, topic: str, message: str) -> int:
        return await self.publish(self.get_topic_channel(topic), message)

    @asynccontextmanager
    async def subscribe_all_topics(self) -> AsyncGenerator[Any, None]:
        """Pattern-subscribe to every topic channel under this client's prefix."""
        pubsub = self._require_pubsub()
        async with pubsub.psubscribe(f"{self.channel_prefix}:*") as subscription:
            yield subscription
