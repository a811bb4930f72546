"""Enums for live notification topics and client control frames."""

from __future__ import annotations

from enum import Enum


class TopicScope(str, Enum):
    """Scopes of live push topics. A topic name is ``"{scope}:{key}"``."""

    USER = "user"
    ROLE = "role"
    COURSE = "course"

    def topic(self, key: object) -> str:
        return f"{self.value}:{key}"


class WebSocketAction(str, Enum):
    """Control frames a connected client may send."""

    JOIN_COURSE = "join_course"
    LEAVE_COURSE = "leave_course"
    PING = "ping"
