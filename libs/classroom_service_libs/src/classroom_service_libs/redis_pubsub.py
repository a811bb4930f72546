"""
Redis Pub/Sub functionality for classroom services.

Carries live notifications between service instances so that every instance
can forward a topic message to the websockets it holds.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import redis.asyncio as aioredis

from classroom_service_libs.logging_utils import create_service_logger

logger = create_service_logger("redis-pubsub")


class RedisPubSub:
    """Redis Pub/Sub operations for real-time notifications."""

    def __init__(self, client: aioredis.Redis, client_id: str, channel_prefix: str) -> None:
        self.client = client
        self.client_id = client_id
        self.channel_prefix = channel_prefix

    def get_topic_channel(self, topic: str) -> str:
        """Channel name for a live push topic (e.g. ``"classroom:user:42"``)."""
        return f"{self.channel_prefix}:{topic}"

    def topic_from_channel(self, channel: str) -> str:
        return channel.removeprefix(f"{self.channel_prefix}:")

    async def publish(self, channel: str, message: str) -> int:
        """
        Publish a message to a Redis channel.

        Returns:
            Number of subscribers that received the message
        """
        try:
            receiver_count = int(await self.client.publish(channel, message))
            logger.debug(
                f"Redis PUBLISH by '{self.client_id}': channel='{channel}', "
                f"receivers={receiver_count}",
            )
            return receiver_count
        except Exception as e:
            logger.error(
                f"Error in Redis PUBLISH operation by '{self.client_id}' "
                f"for channel '{channel}': {e}",
                exc_info=True,
            )
            raise

    @asynccontextmanager
    async def psubscribe(self, pattern: str) -> AsyncGenerator[Any, None]:
        """
        Pattern-subscribe with lifecycle management.

        Yields:
            PubSub instance for receiving messages
        """
        pubsub = self.client.pubsub()
        try:
            await pubsub.psubscribe(pattern)
            logger.debug(f"Redis PSUBSCRIBE by '{self.client_id}' to pattern '{pattern}'")
            yield pubsub
        finally:
            try:
                await pubsub.punsubscribe(pattern)
                await pubsub.aclose()
                logger.debug(f"Redis PUNSUBSCRIBE cleanup by '{self.client_id}' from '{pattern}'")
            except Exception as e:
                # Cleanup errors must not mask the original failure
                logger.error(
                    f"Error during Redis PUNSUBSCRIBE cleanup by '{self.client_id}': {e}",
                    exc_info=True,
                )
