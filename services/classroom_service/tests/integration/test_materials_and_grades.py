"""
Integration tests for course materials and per-student grade reports.

Materials are readable by course members and managed by the course's
teachers. A student may read their own grade report; a teacher of the
course may read anyone's.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

import pytest
from httpx import AsyncClient

from services.classroom_service.tests.http_helpers import auth_headers, error_code

Factory = Callable[..., Awaitable[dict[str, Any]]]


@pytest.fixture
async def course_with_members(
    client: AsyncClient, register_user: Factory, create_course: Factory
) -> dict[str, Any]:
    teacher = await register_user("teacher@example.com", role="Teacher", name="Ms Teacher")
    student = await register_user("student@example.com", name="Sam Student")
    classmate = await register_user("classmate@example.com", name="Cam Classmate")
    outsider = await register_user("outsider@example.com", name="Otto Outsider")
    course = await create_course(teacher, name="Biology")
    for member in (student, classmate):
        joined = await client.post(
            "/api/courses/enroll",
            json={"enrollment_code": course["enrollment_code"]},
            headers=auth_headers(member),
        )
        assert joined.status_code == 200
    return {
        "teacher": teacher,
        "student": student,
        "classmate": classmate,
        "outsider": outsider,
        "course": course,
    }


async def test_teacher_manages_materials(
    client: AsyncClient, course_with_members: dict[str, Any]
) -> None:
    course_id = course_with_members["course"]["id"]
    teacher_headers = auth_headers(course_with_members["teacher"])

    created = await client.post(
        f"/api/courses/{course_id}/materials",
        json={"title": "Cell diagrams", "topic": "Unit 1"},
        headers=teacher_headers,
    )
    assert created.status_code == 201
    material = created.json()
    assert material["course_id"] == course_id
    assert material["author_id"] == course_with_members["teacher"]["user"]["id"]
    assert material["color"]
    assert material["updated_at"] is None

    updated = await client.put(
        f"/api/materials/{material['id']}",
        json={"description": "Label every organelle"},
        headers=teacher_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["title"] == "Cell diagrams"
    assert updated.json()["description"] == "Label every organelle"
    assert updated.json()["updated_at"] is not None

    as_student = await client.get(
        f"/api/courses/{course_id}/materials",
        headers=auth_headers(course_with_members["student"]),
    )
    assert [m["title"] for m in as_student.json()] == ["Cell diagrams"]

    deleted = await client.delete(f"/api/materials/{material['id']}", headers=teacher_headers)
    assert deleted.status_code == 200
    gone = await client.get(f"/api/materials/{material['id']}", headers=teacher_headers)
    assert gone.status_code == 404
    assert error_code(gone.json()) == "RESOURCE_NOT_FOUND"


async def test_newest_material_is_listed_first(
    client: AsyncClient, course_with_members: dict[str, Any]
) -> None:
    course_id = course_with_members["course"]["id"]
    teacher_headers = auth_headers(course_with_members["teacher"])
    for title in ("Week 1 slides", "Week 2 slides"):
        await client.post(
            f"/api/courses/{course_id}/materials", json={"title": title}, headers=teacher_headers
        )

    listing = await client.get(f"/api/courses/{course_id}/materials", headers=teacher_headers)

    assert [m["title"] for m in listing.json()] == ["Week 2 slides", "Week 1 slides"]


async def test_material_access_for_students_and_outsiders(
    client: AsyncClient, course_with_members: dict[str, Any]
) -> None:
    course_id = course_with_members["course"]["id"]
    student_headers = auth_headers(course_with_members["student"])
    outsider_headers = auth_headers(course_with_members["outsider"])
    material = await client.post(
        f"/api/courses/{course_id}/materials",
        json={"title": "Reading list", "color": "#123456"},
        headers=auth_headers(course_with_members["teacher"]),
    )
    material_url = f"/api/materials/{material.json()['id']}"

    by_student = await client.post(
        f"/api/courses/{course_id}/materials", json={"title": "Mine"}, headers=student_headers
    )
    student_edit = await client.put(material_url, json={"title": "x"}, headers=student_headers)
    student_delete = await client.delete(material_url, headers=student_headers)
    assert by_student.status_code == 403
    assert error_code(by_student.json()) == "AUTHORIZATION_ERROR"
    assert student_edit.status_code == 403
    assert student_delete.status_code == 403

    student_read = await client.get(material_url, headers=student_headers)
    assert student_read.status_code == 200
    assert student_read.json()["color"] == "#123456"

    outsider_list = await client.get(
        f"/api/courses/{course_id}/materials", headers=outsider_headers
    )
    outsider_read = await client.get(material_url, headers=outsider_headers)
    assert outsider_list.status_code == 200
    assert outsider_list.json() == []
    assert outsider_read.status_code == 404

    unknown_course = await client.post(
        "/api/courses/9999/materials",
        json={"title": "Nowhere"},
        headers=auth_headers(course_with_members["teacher"]),
    )
    assert unknown_course.status_code == 404


async def test_grade_report_access_and_average(
    client: AsyncClient, course_with_members: dict[str, Any]
) -> None:
    course_id = course_with_members["course"]["id"]
    teacher_headers = auth_headers(course_with_members["teacher"])
    student_headers = auth_headers(course_with_members["student"])
    student_id = course_with_members["student"]["user"]["id"]

    assignment_ids = []
    for title, status in (("Quiz 1", "Published"), ("Quiz 2", "Published"), ("Quiz 3", "Draft")):
        assignment = await client.post(
            f"/api/courses/{course_id}/assignments",
            json={"title": title, "points": 10, "status": status},
            headers=teacher_headers,
        )
        assignment_ids.append(assignment.json()["id"])
    for assignment_id, grade in zip(assignment_ids[:2], (8, 7)):
        submission = await client.post(
            f"/api/assignments/{assignment_id}/submissions",
            json={"content": "answers"},
            headers=student_headers,
        )
        await client.put(
            f"/api/submissions/{submission.json()['id']}/grade",
            json={"grade": grade},
            headers=teacher_headers,
        )

    grades_url = f"/api/courses/{course_id}/students/{student_id}/grades"
    own = await client.get(grades_url, headers=student_headers)
    as_teacher = await client.get(grades_url, headers=teacher_headers)
    as_classmate = await client.get(
        grades_url, headers=auth_headers(course_with_members["classmate"])
    )

    assert own.status_code == 200
    report = own.json()
    assert report["student_id"] == student_id
    assert report["name"] == "Sam Student"
    assert report["graded_count"] == 2
    assert float(report["assignment_average"]) == 7.5
    assert sorted(g["title"] for g in report["assignment_grades"]) == ["Quiz 1", "Quiz 2"]
    assert all(g["graded"] for g in report["assignment_grades"])
    assert as_teacher.status_code == 200
    assert as_teacher.json()["graded_count"] == 2
    assert as_classmate.status_code == 403
    assert error_code(as_classmate.json()) == "AUTHORIZATION_ERROR"


async def test_grade_report_lists_unsubmitted_work(
    client: AsyncClient, course_with_members: dict[str, Any]
) -> None:
    course_id = course_with_members["course"]["id"]
    classmate_id = course_with_members["classmate"]["user"]["id"]
    await client.post(
        f"/api/courses/{course_id}/assignments",
        json={"title": "Essay"},
        headers=auth_headers(course_with_members["teacher"]),
    )

    report = await client.get(
        f"/api/courses/{course_id}/students/{classmate_id}/grades",
        headers=auth_headers(course_with_members["teacher"]),
    )

    assert report.status_code == 200
    assert report.json()["graded_count"] == 0
    assert float(report.json()["assignment_average"]) == 0
    [essay] = report.json()["assignment_grades"]
    assert essay["submitted"] is False
    assert essay["grade"] is None


async def test_grade_report_requires_a_student_of_the_course(
    client: AsyncClient, course_with_members: dict[str, Any]
) -> None:
    course_id = course_with_members["course"]["id"]
    teacher = course_with_members["teacher"]
    teacher_headers = auth_headers(teacher)

    for user_id in (teacher["user"]["id"], course_with_members["outsider"]["user"]["id"]):
        response = await client.get(
            f"/api/courses/{course_id}/students/{user_id}/grades", headers=teacher_headers
        )
        assert response.status_code == 404
        assert error_code(response.json()) == "RESOURCE_NOT_FOUND"

    missing_course = await client.get(
        f"/api/courses/9999/students/{teacher['user']['id']}/grades", headers=teacher_headers
    )
    assert missing_course.status_code == 404
