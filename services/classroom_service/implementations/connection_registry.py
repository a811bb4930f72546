from __future__ import annotations

import asyncio
from collections import defaultdict

from classroom_common.websocket_enums import TopicScope
from classroom_service_libs.logging_utils import create_service_logger
from fastapi import WebSocket

logger = create_service_logger("classroom_service.connection_registry")


class ConnectionRegistry:
    """
    In-process map of topics to live WebSocket connections.
    Tracks per-user connection counts and fans messages out by topic.
    """

    def __init__(self, max_connections_per_user: int = 5) -> None:
        self._topics: dict[str, list[WebSocket]] = defaultdict(list)
        self._subscriptions: dict[WebSocket, set[str]] = {}
        self._owners: dict[WebSocket, int] = {}
        self._max_connections_per_user = max_connections_per_user
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: int, topics: list[str]) -> bool:
        """
        Register a connection under its user topic plus any extra topics.
        Returns False if the user already has the maximum number of connections.
        """
        user_topic = TopicScope.USER.topic(user_id)
        async with self._lock:
            if len(self._topics.get(user_topic, [])) >= self._max_connections_per_user:
                logger.warning(
                    f"User {user_id} exceeded max connections ({self._max_connections_per_user})",
                    extra={"user_id": user_id},
                )
                return False

            self._subscriptions[websocket] = set()
            self._owners[websocket] = user_id
            for topic in [user_topic, *topics]:
                self._add(websocket, topic)
            logger.info(
                f"WebSocket connected for user {user_id}",
                extra={
                    "user_id": user_id,
                    "total_connections": len(self._topics[user_topic]),
                },
            )
            return True

    async def disconnect(self, websocket: WebSocket, user_id: int) -> None:
        async with self._lock:
            self._forget(websocket)
            logger.info(
                f"WebSocket disconnected for user {user_id}",
                extra={
                    "user_id": user_id,
                    "remaining_connections": len(
                        self._topics.get(TopicScope.USER.topic(user_id), [])
                    ),
                },
            )

    async def subscribe(self, websocket: WebSocket, topic: str) -> None:
        async with self._lock:
            if websocket in self._subscriptions:
                self._add(websocket, topic)

    async def unsubscribe(self, websocket: WebSocket, topic: str) -> None:
        async with self._lock:
            subscriptions = self._subscriptions.get(websocket)
            if subscriptions is not None and topic in subscriptions:
                subscriptions.discard(topic)
                self._discard(websocket, topic)

    async def remove_user_from_topic(self, user_id: int, topic: str) -> int:
        """Unsubscribe every connection of one user from a topic; returns how many."""
        async with self._lock:
            sockets = [ws for ws, owner in self._owners.items() if owner == user_id]
            removed = 0
            for websocket in sockets:
                subscriptions = self._subscriptions.get(websocket)
                if subscriptions is not None and topic in subscriptions:
                    subscriptions.discard(topic)
                    self._discard(websocket, topic)
                    removed += 1
            return removed

    async def send_to_topic(self, topic: str, message: str) -> int:
        """
        Send a message to every connection subscribed to a topic.
        Sends happen outside the lock; connections whose send fails are dropped.
        Returns the delivered count.
        """
        async with self._lock:
            connections = list(self._topics.get(topic, []))
        if not connections:
            logger.debug(f"No live connections for topic {topic}", extra={"topic": topic})
            return 0

        sent_count = 0
        failed: list[WebSocket] = []
        for websocket in connections:
            try:
                await websocket.send_text(message)
                sent_count += 1
            except Exception as e:
                logger.warning(
                    f"Failed to send to a connection on {topic}: {e}",
                    extra={"topic": topic},
                )
                failed.append(websocket)

        if failed:
            async with self._lock:
                for websocket in failed:
                    self._forget(websocket)
        return sent_count

    def get_connection_count(self, user_id: int) -> int:
        return len(self._topics.get(TopicScope.USER.topic(user_id), []))

    def get_total_connections(self) -> int:
        return len(self._subscriptions)

    def _add(self, websocket: WebSocket, topic: str) -> None:
        if websocket not in self._topics[topic]:
            self._topics[topic].append(websocket)
        self._subscriptions[websocket].add(topic)

    def _discard(self, websocket: WebSocket, topic: str) -> None:
        connections = self._topics.get(topic)
        if connections is None:
            return
        try:
            connections.remove(websocket)
        except ValueError:
            pass
        if not connections:
            del self._topics[topic]

    def _forget(self, websocket: WebSocket) -> None:
        self._owners.pop(websocket, None)
        for topic in self._subscriptions.pop(websocket, set()):
            self._discard(websocket, topic)
