"""Tests for the wire-level enums shared across the classroom service."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from classroom_common import (
    EnrollmentStatus,
    LiveNotification,
    NotificationKind,
    TopicScope,
    UserRole,
)


@pytest.mark.parametrize(
    "scope, key, expected",
    [
        (TopicScope.USER, 42, "user:42"),
        (TopicScope.ROLE, UserRole.TEACHER.value, "role:Teacher"),
        (TopicScope.COURSE, 7, "course:7"),
    ],
)
def test_topic_names(scope: TopicScope, key: object, expected: str) -> None:
    assert scope.topic(key) == expected


def test_only_pending_is_non_terminal() -> None:
    assert not EnrollmentStatus.PENDING.is_terminal
    assert EnrollmentStatus.APPROVED.is_terminal
    assert EnrollmentStatus.REJECTED.is_terminal


def test_live_notification_serialises_kind_tag() -> None:
    live = LiveNotification(
        kind=NotificationKind.ENROLLMENT_APPROVED,
        title="Enrollment Request Approved",
        message="You're in",
        created_at=datetime(2026, 3, 1, tzinfo=UTC),
        course_id=3,
        payload={"courseName": "Chemistry"},
    )

    data = live.model_dump(mode="json")

    assert data["kind"] == "EnrollmentApproved"
    assert data["notification_id"] is None
    assert data["payload"] == {"courseName": "Chemistry"}
