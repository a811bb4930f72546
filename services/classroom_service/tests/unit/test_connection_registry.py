"""Unit tests for the in-process topic registry."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from services.classroom_service.implementations.connection_registry import ConnectionRegistry


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry(max_connections_per_user=2)


async def test_connect_subscribes_user_and_extra_topics(registry: ConnectionRegistry) -> None:
    websocket = AsyncMock()

    assert await registry.connect(websocket, 1, ["role:Student"]) is True

    assert await registry.send_to_topic("user:1", "hello") == 1
    assert await registry.send_to_topic("role:Student", "hi all") == 1
    assert websocket.send_text.await_count == 2


async def test_connection_limit_per_user(registry: ConnectionRegistry) -> None:
    assert await registry.connect(AsyncMock(), 1, []) is True
    assert await registry.connect(AsyncMock(), 1, []) is True

    assert await registry.connect(AsyncMock(), 1, []) is False
    assert await registry.connect(AsyncMock(), 2, []) is True
    assert registry.get_connection_count(1) == 2
    assert registry.get_total_connections() == 3


async def test_disconnect_removes_every_subscription(registry: ConnectionRegistry) -> None:
    websocket = AsyncMock()
    await registry.connect(websocket, 1, ["role:Teacher"])
    await registry.subscribe(websocket, "course:9")

    await registry.disconnect(websocket, 1)

    assert await registry.send_to_topic("course:9", "x") == 0
    assert await registry.send_to_topic("role:Teacher", "x") == 0
    assert registry.get_total_connections() == 0


async def test_unsubscribe_leaves_other_topics(registry: ConnectionRegistry) -> None:
    websocket = AsyncMock()
    await registry.connect(websocket, 1, [])
    await registry.subscribe(websocket, "course:9")

    await registry.unsubscribe(websocket, "course:9")

    assert await registry.send_to_topic("course:9", "x") == 0
    assert await registry.send_to_topic("user:1", "x") == 1


async def test_subscribe_requires_a_registered_connection(registry: ConnectionRegistry) -> None:
    await registry.subscribe(AsyncMock(), "course:9")

    assert await registry.send_to_topic("course:9", "x") == 0


async def test_failed_send_drops_the_connection(registry: ConnectionRegistry) -> None:
    healthy = AsyncMock()
    broken = AsyncMock()
    broken.send_text.side_effect = RuntimeError("socket closed")
    await registry.connect(healthy, 1, ["role:Student"])
    await registry.connect(broken, 2, ["role:Student"])

    assert await registry.send_to_topic("role:Student", "x") == 1

    assert registry.get_connection_count(2) == 0
    assert await registry.send_to_topic("role:Student", "y") == 1


async def test_slow_send_does_not_block_connects_or_disconnects(
    registry: ConnectionRegistry,
) -> None:
    started, release = asyncio.Event(), asyncio.Event()

    async def stalled_send(message: str) -> None:
        started.set()
        await release.wait()

    slow = AsyncMock()
    slow.send_text.side_effect = stalled_send
    await registry.connect(slow, 1, ["course:9"])

    fanout = asyncio.create_task(registry.send_to_topic("course:9", "x"))
    await asyncio.wait_for(started.wait(), timeout=1)
    assert not fanout.done()

    newcomer = AsyncMock()
    assert await asyncio.wait_for(registry.connect(newcomer, 2, []), timeout=1) is True
    await asyncio.wait_for(registry.disconnect(newcomer, 2), timeout=1)

    release.set()
    assert await fanout == 1


async def test_remove_user_from_topic_only_touches_that_user(
    registry: ConnectionRegistry,
) -> None:
    phone, laptop, classmate = AsyncMock(), AsyncMock(), AsyncMock()
    await registry.connect(phone, 1, ["course:9"])
    await registry.connect(laptop, 1, ["course:9", "course:4"])
    await registry.connect(classmate, 2, ["course:9"])

    assert await registry.remove_user_from_topic(1, "course:9") == 2

    assert await registry.send_to_topic("course:9", "x") == 1
    classmate.send_text.assert_awaited_once_with("x")
    assert await registry.send_to_topic("course:4", "y") == 1
    assert await registry.send_to_topic("user:1", "z") == 2
