"""
Integration tests for the two authorization policies.

Collection reads by non-members degrade to an empty result, while mutations
by non-teachers fail with an authorization error. Notifications are owner
scoped: another user's notification is reported as not found.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

import pytest
from httpx import AsyncClient

from services.classroom_service.tests.http_helpers import auth_headers, error_code

Factory = Callable[..., Awaitable[dict[str, Any]]]


@pytest.fixture
async def course_setup(register_user: Factory, create_course: Factory) -> dict[str, Any]:
    teacher = await register_user("teacher@example.com", role="Teacher")
    outsider = await register_user("outsider@example.com")
    course = await create_course(teacher)
    return {"teacher": teacher, "outsider": outsider, "course": course}


@pytest.mark.parametrize(
    "path",
    [
        "/api/courses/{id}/members",
        "/api/courses/{id}/assignments",
        "/api/courses/{id}/announcements",
        "/api/courses/{id}/materials",
    ],
)
async def test_reads_by_non_members_are_empty(
    client: AsyncClient, course_setup: dict[str, Any], path: str
) -> None:
    response = await client.get(
        path.format(id=course_setup["course"]["id"]),
        headers=auth_headers(course_setup["outsider"]),
    )

    assert response.status_code == 200
    assert response.json() == []


async def test_single_course_read_by_non_member_is_not_found(
    client: AsyncClient, course_setup: dict[str, Any]
) -> None:
    response = await client.get(
        f"/api/courses/{course_setup['course']['id']}",
        headers=auth_headers(course_setup["outsider"]),
    )

    assert response.status_code == 404


async def test_mutations_by_non_teachers_are_forbidden(
    client: AsyncClient, course_setup: dict[str, Any]
) -> None:
    course_id = course_setup["course"]["id"]
    headers = auth_headers(course_setup["outsider"])

    responses = [
        await client.put(f"/api/courses/{course_id}", json={"name": "Mine now"}, headers=headers),
        await client.delete(f"/api/courses/{course_id}", headers=headers),
        await client.post(
            f"/api/courses/{course_id}/assignments", json={"title": "Quiz"}, headers=headers
        ),
        await client.post(
            f"/api/courses/{course_id}/announcements", json={"content": "Hi"}, headers=headers
        ),
        await client.post(
            f"/api/courses/{course_id}/regenerate-enrollment-code", headers=headers
        ),
        await client.get(f"/api/courses/{course_id}/gradebook", headers=headers),
        await client.post(
            f"/api/courses/{course_id}/materials", json={"title": "Notes"}, headers=headers
        ),
    ]

    for response in responses:
        assert response.status_code == 403, response.text
        assert error_code(response.json()) == "AUTHORIZATION_ERROR"


async def test_mutation_on_missing_course_is_not_found(
    client: AsyncClient, course_setup: dict[str, Any]
) -> None:
    response = await client.put(
        "/api/courses/9999", json={"name": "x"}, headers=auth_headers(course_setup["teacher"])
    )

    assert response.status_code == 404


async def test_students_cannot_create_courses(
    client: AsyncClient, course_setup: dict[str, Any]
) -> None:
    response = await client.post(
        "/api/courses", json={"name": "My course"}, headers=auth_headers(course_setup["outsider"])
    )

    assert response.status_code == 403


async def test_enrolled_student_still_cannot_mutate(
    client: AsyncClient, course_setup: dict[str, Any]
) -> None:
    code = course_setup["course"]["enrollment_code"]
    headers = auth_headers(course_setup["outsider"])
    enrolled = await client.post(
        "/api/courses/enroll", json={"enrollment_code": code}, headers=headers
    )

    members = await client.get(
        f"/api/courses/{course_setup['course']['id']}/members", headers=headers
    )
    update = await client.put(
        f"/api/courses/{course_setup['course']['id']}", json={"name": "x"}, headers=headers
    )

    assert enrolled.status_code == 200
    assert len(members.json()) == 2
    assert update.status_code == 403


async def test_notifications_are_owner_scoped(
    client: AsyncClient, course_setup: dict[str, Any]
) -> None:
    course_id = course_setup["course"]["id"]
    await client.post(
        "/api/enrollment-requests",
        json={"course_id": course_id},
        headers=auth_headers(course_setup["outsider"]),
    )
    teacher_headers = auth_headers(course_setup["teacher"])
    outsider_headers = auth_headers(course_setup["outsider"])
    inbox = await client.get("/api/notifications", headers=teacher_headers)
    notification_id = inbox.json()[0]["id"]

    for response in (
        await client.get(f"/api/notifications/{notification_id}", headers=outsider_headers),
        await client.put(f"/api/notifications/{notification_id}/read", headers=outsider_headers),
        await client.delete(f"/api/notifications/{notification_id}", headers=outsider_headers),
    ):
        assert response.status_code == 404
        assert error_code(response.json()) == "RESOURCE_NOT_FOUND"

    still_there = await client.get(
        f"/api/notifications/{notification_id}", headers=teacher_headers
    )
    assert still_there.status_code == 200
    assert still_there.json()["read"] is False
