"""Notification fan-out.

Per-user notifications are persisted first and then pushed live on the
user's topic. Role and course broadcasts are push-only and never stored.
A failed or slow push is logged and dropped; it never undoes or fails the
persisted write.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from classroom_common.domain_enums import NotificationKind, UserRole
from classroom_common.models.notification_models import LiveNotification
from classroom_common.websocket_enums import TopicScope
from classroom_service_libs.logging_utils import create_service_logger

from services.classroom_service.metrics import ClassroomMetrics
from services.classroom_service.models_db import Notification
from services.classroom_service.protocols import (
    NotificationRepositoryProtocol,
    TopicPublisherProtocol,
)
from services.classroom_service.time_utils import utc_now

logger = create_service_logger("classroom_service.notification_broadcaster")


@dataclass(frozen=True)
class NotificationDraft:
    """A notification before it is addressed to anyone.

    ``payload`` is opaque here; its shape is determined by ``kind``.
    """

    kind: NotificationKind
    title: str
    message: str
    course_id: int | None = None
    assignment_id: int | None = None
    submission_id: int | None = None
    payload: dict[str, Any] = field(default_factory=dict)


class NotificationBroadcaster:
    def __init__(
        self,
        repository: NotificationRepositoryProtocol,
        publisher: TopicPublisherProtocol,
        metrics: ClassroomMetrics,
        push_timeout_seconds: float = 2.0,
    ) -> None:
        self._repository = repository
        self._publisher = publisher
        self._metrics = metrics
        self._push_timeout = push_timeout_seconds

    async def notify(self, user_id: int, draft: NotificationDraft) -> Notification:
        """Persist a notification for one user, then push it to their live connections.

        Storage errors propagate; push errors do not.
        """
        row = await self._repository.create_notification(
            user_id=user_id,
            kind=draft.kind.value,
            title=draft.title,
            message=draft.message,
            course_id=draft.course_id,
            assignment_id=draft.assignment_id,
            submission_id=draft.submission_id,
            data=draft.payload,
        )
        self._metrics.notifications_persisted_total.labels(kind=draft.kind.value).inc()

        live = LiveNotification(
            kind=draft.kind,
            title=draft.title,
            message=draft.message,
            created_at=row.created_at,
            notification_id=row.id,
            course_id=draft.course_id,
            payload=draft.payload,
        )
        await self._push(TopicScope.USER, TopicScope.USER.topic(user_id), live)
        return row

    async def notify_many(self, user_ids: list[int], draft: NotificationDraft) -> int:
        """Notify each user independently; returns how many were persisted."""
        persisted = 0
        for user_id in user_ids:
            try:
                await self.notify(user_id, draft)
                persisted += 1
            except Exception as e:
                logger.error(
                    f"Failed to persist {draft.kind.value} notification for user {user_id}: {e}",
                    exc_info=True,
                    extra={"user_id": user_id, "kind": draft.kind.value},
                )
        return persisted

    async def broadcast_to_course(self, course_id: int, draft: NotificationDraft) -> None:
        topic = TopicScope.COURSE.topic(course_id)
        await self._push(TopicScope.COURSE, topic, self._ephemeral(draft))

    async def broadcast_to_role(self, role: UserRole, draft: NotificationDraft) -> None:
        topic = TopicScope.ROLE.topic(role.value)
        await self._push(TopicScope.ROLE, topic, self._ephemeral(draft))

    def _ephemeral(self, draft: NotificationDraft) -> LiveNotification:
        return LiveNotification(
            kind=draft.kind,
            title=draft.title,
            message=draft.message,
            created_at=utc_now(),
            course_id=draft.course_id,
            payload=draft.payload,
        )

    async def _push(self, scope: TopicScope, topic: str, live: LiveNotification) -> None:
        try:
            delivered = await asyncio.wait_for(
                self._publisher.publish(topic, live), timeout=self._push_timeout
            )
        except asyncio.TimeoutError:
            self._metrics.live_push_total.labels(scope=scope.value, outcome="failed").inc()
            logger.warning(
                f"Live push to {topic} timed out",
                extra={"topic": topic, "timeout_seconds": self._push_timeout},
            )
            return
        except Exception as e:
            self._metrics.live_push_total.labels(scope=scope.value, outcome="failed").inc()
            logger.warning(f"Live push to {topic} failed: {e}", extra={"topic": topic})
            return

        outcome = "delivered" if delivered else "no_listeners"
        self._metrics.live_push_total.labels(scope=scope.value, outcome=outcome).inc()
        logger.debug(
            f"Live push to {topic}: {delivered} receivers",
            extra={"topic": topic, "receivers": delivered},
        )
