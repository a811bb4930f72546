"""Unit tests for notification persistence and best-effort live push."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from classroom_common.domain_enums import NotificationKind, UserRole
from classroom_common.models.notification_models import LiveNotification
from prometheus_client import CollectorRegistry

from services.classroom_service.domain_handlers.notification_broadcaster import (
    NotificationBroadcaster,
    NotificationDraft,
)
from services.classroom_service.metrics import ClassroomMetrics

CREATED_AT = datetime(2026, 1, 5, 9, 30, tzinfo=UTC)


class RecordingNotificationRepo:
    def __init__(self, failing_user_ids: set[int] | None = None) -> None:
        self.rows: list[dict[str, Any]] = []
        self.failing_user_ids = failing_user_ids or set()

    async def create_notification(self, user_id: int, **fields: Any) -> SimpleNamespace:
        if user_id in self.failing_user_ids:
            raise RuntimeError("database unavailable")
        self.rows.append({"user_id": user_id, **fields})
        return SimpleNamespace(id=len(self.rows), created_at=CREATED_AT, user_id=user_id, **fields)


@pytest.fixture
def metrics() -> ClassroomMetrics:
    return ClassroomMetrics(registry=CollectorRegistry())


@pytest.fixture
def draft() -> NotificationDraft:
    return NotificationDraft(
        kind=NotificationKind.SUBMISSION_GRADED,
        title="Submission Graded",
        message="Your submission for 'Essay' has been graded",
        course_id=3,
        assignment_id=4,
        submission_id=5,
        payload={"grade": "9.5", "points": 10},
    )


def _broadcaster(
    repo: RecordingNotificationRepo,
    publisher: AsyncMock,
    metrics: ClassroomMetrics,
    timeout: float = 0.5,
) -> NotificationBroadcaster:
    return NotificationBroadcaster(
        repo, publisher, metrics, push_timeout_seconds=timeout  # type: ignore[arg-type]
    )


async def test_notify_persists_then_pushes_on_user_topic(
    metrics: ClassroomMetrics, draft: NotificationDraft
) -> None:
    repo = RecordingNotificationRepo()
    publisher = AsyncMock()
    publisher.publish.return_value = 1

    row = await _broadcaster(repo, publisher, metrics).notify(42, draft)

    assert row.id == 1
    assert repo.rows[0]["kind"] == "SubmissionGraded"
    assert repo.rows[0]["data"] == {"grade": "9.5", "points": 10}
    publisher.publish.assert_awaited_once()
    topic, live = publisher.publish.await_args.args
    assert topic == "user:42"
    assert isinstance(live, LiveNotification)
    assert live.notification_id == 1
    assert live.kind is NotificationKind.SUBMISSION_GRADED


async def test_push_failure_does_not_undo_persisted_notification(
    metrics: ClassroomMetrics, draft: NotificationDraft
) -> None:
    repo = RecordingNotificationRepo()
    publisher = AsyncMock()
    publisher.publish.side_effect = ConnectionError("redis down")

    row = await _broadcaster(repo, publisher, metrics).notify(42, draft)

    assert row.id == 1
    assert len(repo.rows) == 1
    assert (
        metrics.live_push_total.labels(scope="user", outcome="failed")._value.get() == 1
    )


async def test_slow_push_is_abandoned_after_timeout(
    metrics: ClassroomMetrics, draft: NotificationDraft
) -> None:
    async def never_returns(*_: Any) -> int:
        await asyncio.sleep(10)
        return 1

    repo = RecordingNotificationRepo()
    publisher = AsyncMock()
    publisher.publish.side_effect = never_returns

    row = await _broadcaster(repo, publisher, metrics, timeout=0.05).notify(42, draft)

    assert row.id == 1
    assert (
        metrics.live_push_total.labels(scope="user", outcome="failed")._value.get() == 1
    )


async def test_storage_failure_propagates_from_notify(
    metrics: ClassroomMetrics, draft: NotificationDraft
) -> None:
    repo = RecordingNotificationRepo(failing_user_ids={42})
    publisher = AsyncMock()

    with pytest.raises(RuntimeError):
        await _broadcaster(repo, publisher, metrics).notify(42, draft)
    publisher.publish.assert_not_awaited()


async def test_notify_many_continues_past_a_failed_recipient(
    metrics: ClassroomMetrics, draft: NotificationDraft
) -> None:
    repo = RecordingNotificationRepo(failing_user_ids={2})
    publisher = AsyncMock()
    publisher.publish.return_value = 0

    persisted = await _broadcaster(repo, publisher, metrics).notify_many([1, 2, 3], draft)

    assert persisted == 2
    assert [row["user_id"] for row in repo.rows] == [1, 3]


async def test_course_broadcast_is_push_only(
    metrics: ClassroomMetrics, draft: NotificationDraft
) -> None:
    repo = RecordingNotificationRepo()
    publisher = AsyncMock()
    publisher.publish.return_value = 3

    await _broadcaster(repo, publisher, metrics).broadcast_to_course(3, draft)

    assert repo.rows == []
    topic, live = publisher.publish.await_args.args
    assert topic == "course:3"
    assert live.notification_id is None


async def test_role_broadcast_uses_role_topic(
    metrics: ClassroomMetrics, draft: NotificationDraft
) -> None:
    repo = RecordingNotificationRepo()
    publisher = AsyncMock()
    publisher.publish.return_value = 0

    await _broadcaster(repo, publisher, metrics).broadcast_to_role(UserRole.TEACHER, draft)

    assert repo.rows == []
    assert publisher.publish.await_args.args[0] == "role:Teacher"
    assert (
        metrics.live_push_total.labels(scope="role", outcome="no_listeners")._value.get() == 1
    )
