"""
Integration tests for the enrollment request state machine.

Pending is the only non-terminal state. Approval creates the membership,
at most one Pending request exists per (course, student), and a student may
ask again after a rejection.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

import pytest
from httpx import AsyncClient

from services.classroom_service.tests.http_helpers import auth_headers, error_code

Factory = Callable[..., Awaitable[dict[str, Any]]]


@pytest.fixture
async def classroom(register_user: Factory, create_course: Factory) -> dict[str, Any]:
    teacher = await register_user("teacher@example.com", role="Teacher", name="Ms Teacher")
    student = await register_user("student@example.com", name="Sam Student")
    other_student = await register_user("other@example.com", name="Olly Other")
    course = await create_course(teacher, name="Chemistry")
    return {
        "teacher": teacher,
        "student": student,
        "other_student": other_student,
        "course": course,
    }


async def _request(client: AsyncClient, student: dict[str, Any], course_id: int) -> Any:
    return await client.post(
        "/api/enrollment-requests",
        json={"course_id": course_id, "message": "Please let me in"},
        headers=auth_headers(student),
    )


async def _process(
    client: AsyncClient, teacher: dict[str, Any], request_id: int, action: str, **extra: Any
) -> Any:
    return await client.put(
        f"/api/enrollment-requests/{request_id}/process",
        json={"action": action, **extra},
        headers=auth_headers(teacher),
    )


async def test_request_starts_pending_and_notifies_teacher(
    client: AsyncClient, classroom: dict[str, Any]
) -> None:
    response = await _request(client, classroom["student"], classroom["course"]["id"])

    assert response.status_code == 200
    assert response.json()["status"] == "Pending"
    inbox = await client.get("/api/notifications", headers=auth_headers(classroom["teacher"]))
    notifications = inbox.json()
    assert len(notifications) == 1
    assert notifications[0]["kind"] == "EnrollmentRequest"
    assert notifications[0]["data"]["studentName"] == "Sam Student"


async def test_only_one_pending_request_per_course(
    client: AsyncClient, classroom: dict[str, Any]
) -> None:
    first = await _request(client, classroom["student"], classroom["course"]["id"])
    second = await _request(client, classroom["student"], classroom["course"]["id"])

    assert first.status_code == 200
    assert second.status_code == 400
    assert error_code(second.json()) == "CONFLICT"


async def test_teachers_cannot_request_enrollment(
    client: AsyncClient, classroom: dict[str, Any]
) -> None:
    response = await _request(client, classroom["teacher"], classroom["course"]["id"])

    assert response.status_code == 403


async def test_request_for_unknown_course(client: AsyncClient, classroom: dict[str, Any]) -> None:
    response = await _request(client, classroom["student"], 9999)

    assert response.status_code == 404


async def test_approval_creates_membership_and_is_final(
    client: AsyncClient, classroom: dict[str, Any]
) -> None:
    course_id = classroom["course"]["id"]
    created = (await _request(client, classroom["student"], course_id)).json()

    approved = await _process(client, classroom["teacher"], created["id"], "approve")
    again = await _process(client, classroom["teacher"], created["id"], "reject")

    assert approved.status_code == 200
    assert approved.json()["status"] == "Approved"
    assert approved.json()["processed_by_id"] == classroom["teacher"]["user"]["id"]
    assert again.status_code == 400
    assert error_code(again.json()) == "INVALID_OPERATION"

    course = await client.get(
        f"/api/courses/{course_id}", headers=auth_headers(classroom["student"])
    )
    assert course.status_code == 200
    assert course.json()["role"] == "Student"
    assert course.json()["enrollment_code"] is None

    inbox = await client.get("/api/notifications", headers=auth_headers(classroom["student"]))
    assert [n["kind"] for n in inbox.json()] == ["EnrollmentApproved"]

    duplicate = await _request(client, classroom["student"], course_id)
    assert duplicate.status_code == 400
    assert error_code(duplicate.json()) == "CONFLICT"


async def test_approved_student_gains_access_to_coursework(
    client: AsyncClient, classroom: dict[str, Any]
) -> None:
    course_id = classroom["course"]["id"]
    student_headers = auth_headers(classroom["student"])
    assignment = await client.post(
        f"/api/courses/{course_id}/assignments",
        json={"title": "Titration lab"},
        headers=auth_headers(classroom["teacher"]),
    )
    assert assignment.status_code == 201
    listing_url = f"/api/courses/{course_id}/assignments"

    before = await client.get(listing_url, headers=student_headers)
    assert before.status_code == 200
    assert before.json() == []

    created = await client.post(
        "/api/enrollment-requests", json={"course_id": course_id}, headers=student_headers
    )
    assert created.status_code == 200
    approved = await _process(client, classroom["teacher"], created.json()["id"], "approve")
    assert approved.status_code == 200
    approved_twice = await _process(client, classroom["teacher"], created.json()["id"], "approve")
    assert approved_twice.status_code == 400
    assert error_code(approved_twice.json()) == "INVALID_OPERATION"

    after = await client.get(listing_url, headers=student_headers)
    assert [a["id"] for a in after.json()] == [assignment.json()["id"]]


async def test_student_may_ask_again_after_rejection(
    client: AsyncClient, classroom: dict[str, Any]
) -> None:
    course_id = classroom["course"]["id"]
    created = (await _request(client, classroom["student"], course_id)).json()

    rejected = await _process(
        client, classroom["teacher"], created["id"], "reject", rejection_reason="Wrong section"
    )
    retry = await _request(client, classroom["student"], course_id)

    assert rejected.json()["status"] == "Rejected"
    assert rejected.json()["rejection_reason"] == "Wrong section"
    assert retry.status_code == 200
    assert retry.json()["id"] != created["id"]

    mine = await client.get(
        "/api/enrollment-requests/my-requests", headers=auth_headers(classroom["student"])
    )
    assert sorted(r["status"] for r in mine.json()) == ["Pending", "Rejected"]

    inbox = await client.get("/api/notifications", headers=auth_headers(classroom["student"]))
    rejection = inbox.json()[0]
    assert rejection["kind"] == "EnrollmentRejected"
    assert rejection["data"]["rejectionReason"] == "Wrong section"


async def test_unknown_action_is_a_validation_error(
    client: AsyncClient, classroom: dict[str, Any]
) -> None:
    created = (await _request(client, classroom["student"], classroom["course"]["id"])).json()

    response = await _process(client, classroom["teacher"], created["id"], "maybe")

    assert response.status_code == 400
    assert error_code(response.json()) == "VALIDATION_ERROR"


async def test_only_course_teacher_may_process(
    client: AsyncClient, classroom: dict[str, Any], register_user: Factory
) -> None:
    other_teacher = await register_user("else@example.com", role="Teacher")
    created = (await _request(client, classroom["student"], classroom["course"]["id"])).json()

    by_student = await _process(client, classroom["student"], created["id"], "approve")
    by_stranger = await _process(client, other_teacher, created["id"], "approve")

    assert by_student.status_code == 403
    assert by_stranger.status_code == 403


async def test_cancel_only_while_pending(client: AsyncClient, classroom: dict[str, Any]) -> None:
    course_id = classroom["course"]["id"]
    pending = (await _request(client, classroom["student"], course_id)).json()

    cancelled = await client.delete(
        f"/api/enrollment-requests/{pending['id']}", headers=auth_headers(classroom["student"])
    )
    gone = await client.get(
        f"/api/enrollment-requests/{pending['id']}", headers=auth_headers(classroom["student"])
    )
    assert cancelled.status_code == 200
    assert gone.status_code == 404

    processed = (await _request(client, classroom["student"], course_id)).json()
    await _process(client, classroom["teacher"], processed["id"], "reject")
    too_late = await client.delete(
        f"/api/enrollment-requests/{processed['id']}", headers=auth_headers(classroom["student"])
    )
    assert too_late.status_code == 400
    assert error_code(too_late.json()) == "INVALID_OPERATION"


async def test_only_requester_may_cancel(client: AsyncClient, classroom: dict[str, Any]) -> None:
    pending = (await _request(client, classroom["student"], classroom["course"]["id"])).json()

    response = await client.delete(
        f"/api/enrollment-requests/{pending['id']}",
        headers=auth_headers(classroom["other_student"]),
    )

    assert response.status_code == 403


async def test_course_request_listing_is_teacher_only(
    client: AsyncClient, classroom: dict[str, Any]
) -> None:
    course_id = classroom["course"]["id"]
    first = (await _request(client, classroom["student"], course_id)).json()
    await _request(client, classroom["other_student"], course_id)
    await _process(client, classroom["teacher"], first["id"], "approve")

    teacher_headers = auth_headers(classroom["teacher"])
    everything = await client.get(
        f"/api/enrollment-requests/course/{course_id}", headers=teacher_headers
    )
    pending = await client.get(
        f"/api/enrollment-requests/course/{course_id}/pending", headers=teacher_headers
    )
    by_student = await client.get(
        f"/api/enrollment-requests/course/{course_id}", headers=auth_headers(classroom["student"])
    )

    assert len(everything.json()) == 2
    assert [r["status"] for r in pending.json()] == ["Pending"]
    assert by_student.status_code == 403


async def test_request_visible_to_owner_and_teacher_only(
    client: AsyncClient, classroom: dict[str, Any]
) -> None:
    pending = (await _request(client, classroom["student"], classroom["course"]["id"])).json()
    url = f"/api/enrollment-requests/{pending['id']}"

    owner = await client.get(url, headers=auth_headers(classroom["student"]))
    teacher = await client.get(url, headers=auth_headers(classroom["teacher"]))
    stranger = await client.get(url, headers=auth_headers(classroom["other_student"]))

    assert owner.status_code == 200
    assert teacher.status_code == 200
    assert stranger.status_code == 403
