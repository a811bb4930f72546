"""Wire model for notifications pushed to live connections."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from classroom_common.domain_enums import NotificationKind


class LiveNotification(BaseModel):
    """A notification as a tagged variant.

    ``kind`` selects how consumers read ``payload``; the broadcaster never
    inspects the payload. ``notification_id`` is set only for notifications
    that were persisted for a single recipient.
    """

    kind: NotificationKind
    title: str
    message: str
    created_at: datetime
    notification_id: int | None = None
    course_id: int | None = None
    payload: dict[str, Any] = Field(default_factory=dict)
