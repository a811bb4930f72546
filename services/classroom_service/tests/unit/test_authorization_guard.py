"""Unit tests for the course authorization predicates."""

from __future__ import annotations

from typing import Optional

import pytest
from classroom_common.domain_enums import MembershipRole

from services.classroom_service.domain_handlers.authorization_guard import AuthorizationGuard

COURSE_ID = 1
TEACHER_ID = 10
STUDENT_ID = 20
OUTSIDER_ID = 30


class InMemoryLedger:
    def __init__(self, members: dict[tuple[int, int], MembershipRole]) -> None:
        self.members = members

    async def get_role(self, course_id: int, user_id: int) -> Optional[MembershipRole]:
        return self.members.get((course_id, user_id))


@pytest.fixture
def guard() -> AuthorizationGuard:
    ledger = InMemoryLedger(
        {
            (COURSE_ID, TEACHER_ID): MembershipRole.TEACHER,
            (COURSE_ID, STUDENT_ID): MembershipRole.STUDENT,
        }
    )
    return AuthorizationGuard(ledger)  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "principal_id, expected",
    [(TEACHER_ID, True), (STUDENT_ID, True), (OUTSIDER_ID, False)],
)
async def test_is_enrolled(guard: AuthorizationGuard, principal_id: int, expected: bool) -> None:
    assert await guard.is_enrolled(COURSE_ID, principal_id) is expected


@pytest.mark.parametrize(
    "principal_id, expected",
    [(TEACHER_ID, True), (STUDENT_ID, False), (OUTSIDER_ID, False)],
)
async def test_is_teacher_of(guard: AuthorizationGuard, principal_id: int, expected: bool) -> None:
    assert await guard.is_teacher_of(COURSE_ID, principal_id) is expected


async def test_membership_is_per_course(guard: AuthorizationGuard) -> None:
    assert await guard.is_enrolled(COURSE_ID + 1, TEACHER_ID) is False
    assert await guard.is_teacher_of(COURSE_ID + 1, TEACHER_ID) is False


async def test_owner_passes_without_membership(guard: AuthorizationGuard) -> None:
    assert await guard.is_owner_or_teacher(OUTSIDER_ID, COURSE_ID, OUTSIDER_ID) is True


async def test_teacher_passes_for_someone_elses_resource(guard: AuthorizationGuard) -> None:
    assert await guard.is_owner_or_teacher(STUDENT_ID, COURSE_ID, TEACHER_ID) is True


async def test_other_student_is_refused(guard: AuthorizationGuard) -> None:
    assert await guard.is_owner_or_teacher(OUTSIDER_ID, COURSE_ID, STUDENT_ID) is False
