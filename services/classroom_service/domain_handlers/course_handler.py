"""Course domain handler.

Reads scoped by membership degrade to an empty result for non-members.
Mutations on a course the caller does not teach fail with an authorization
error. A single course that the caller cannot see is reported as not found.
"""

from __future__ import annotations

import secrets
from typing import Any

from classroom_common.domain_enums import MembershipRole
from classroom_common.error_enums import ClassroomErrorCode
from classroom_common.websocket_enums import TopicScope
from classroom_service_libs.error_handling import Outcome
from classroom_service_libs.logging_utils import create_service_logger

from services.classroom_service.api.schemas import (
    CourseCreateRequest,
    CourseDetailResponse,
    CourseResponse,
    CourseUpdateRequest,
    MemberResponse,
    MessageResponse,
)
from services.classroom_service.domain_handlers.authorization_guard import AuthorizationGuard
from services.classroom_service.models_db import Course, CourseMember, User
from services.classroom_service.principal import CurrentPrincipal
from services.classroom_service.protocols import (
    ConnectionRegistryProtocol,
    CourseRepositoryProtocol,
    MembershipLedgerProtocol,
)

logger = create_service_logger("classroom_service.domain_handlers.course")

ENROLLMENT_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
ENROLLMENT_CODE_LENGTH = 6
MAX_CODE_ATTEMPTS = 20


def generate_enrollment_code(length: int = ENROLLMENT_CODE_LENGTH) -> str:
    return "".join(secrets.choice(ENROLLMENT_CODE_ALPHABET) for _ in range(length))


def to_course_response(course: Course, role: MembershipRole | str | None) -> CourseResponse:
    """Only teachers of the course see its enrollment code."""
    role = MembershipRole(role) if role is not None else None
    response = CourseResponse.model_validate(course)
    return response.model_copy(
        update={
            "role": role,
            "enrollment_code": course.enrollment_code if role is MembershipRole.TEACHER else None,
        }
    )


def to_member_response(member: CourseMember, user: User) -> MemberResponse:
    return MemberResponse(
        user_id=user.id,
        name=user.name,
        email=user.email,
        avatar=user.avatar,
        role=MembershipRole(member.role),
        joined_at=member.joined_at,
    )


class CourseHandler:
    def __init__(
        self,
        course_repo: CourseRepositoryProtocol,
        ledger: MembershipLedgerProtocol,
        guard: AuthorizationGuard,
        connections: ConnectionRegistryProtocol,
    ) -> None:
        self._course_repo = course_repo
        self._ledger = ledger
        self._guard = guard
        self._connections = connections

    async def create_course(
        self, principal: CurrentPrincipal, request: CourseCreateRequest
    ) -> Outcome[CourseResponse]:
        if not principal.is_teacher:
            return Outcome.unauthorized("Only teachers can create courses")

        code = await self._unique_enrollment_code()
        fields: dict[str, Any] = request.model_dump()
        fields["teacher_name"] = principal.name
        course = await self._course_repo.create_course(principal.id, code, fields)
        logger.info(
            "Course created",
            extra={"course_id": course.id, "teacher_id": principal.id},
        )
        return Outcome.success(to_course_response(course, MembershipRole.TEACHER))

    async def list_my_courses(self, principal: CurrentPrincipal) -> Outcome[list[CourseResponse]]:
        rows = await self._course_repo.list_for_user(principal.id)
        return Outcome.success([to_course_response(course, role) for course, role in rows])

    async def get_course(
        self, principal: CurrentPrincipal, course_id: int
    ) -> Outcome[CourseResponse]:
        course = await self._course_repo.get_by_id(course_id)
        role = await self._ledger.get_role(course_id, principal.id) if course else None
        if course is None or role is None:
            return Outcome.not_found("Course", course_id)
        return Outcome.success(to_course_response(course, role))

    async def get_course_detail(
        self, principal: CurrentPrincipal, course_id: int
    ) -> Outcome[CourseDetailResponse]:
        course_outcome = await self.get_course(principal, course_id)
        if not course_outcome.ok:
            return course_outcome.propagate()

        stats = await self._course_repo.get_course_stats(course_id)
        return Outcome.success(
            CourseDetailResponse(
                course=course_outcome.value,
                member_count=stats["member_count"],
                student_count=stats["student_count"],
                teacher_count=stats["teacher_count"],
                assignment_count=stats["assignment_count"],
                announcement_count=stats["announcement_count"],
                recent_members=[to_member_response(m, u) for m, u in stats["recent_members"]],
            )
        )

    async def update_course(
        self, principal: CurrentPrincipal, course_id: int, request: CourseUpdateRequest
    ) -> Outcome[CourseResponse]:
        denied = await self._require_teacher(principal, course_id, "update this course")
        if denied is not None:
            return denied

        fields = request.model_dump(exclude_unset=True)
        course = await self._course_repo.update_course(course_id, fields)
        if course is None:
            return Outcome.not_found("Course", course_id)
        return Outcome.success(to_course_response(course, MembershipRole.TEACHER))

    async def delete_course(
        self, principal: CurrentPrincipal, course_id: int
    ) -> Outcome[MessageResponse]:
        denied = await self._require_teacher(principal, course_id, "delete this course")
        if denied is not None:
            return denied

        if not await self._course_repo.delete_course(course_id):
            return Outcome.not_found("Course", course_id)
        logger.info("Course deleted", extra={"course_id": course_id, "teacher_id": principal.id})
        return Outcome.success(MessageResponse(message="Course deleted"))

    async def regenerate_enrollment_code(
        self, principal: CurrentPrincipal, course_id: int
    ) -> Outcome[CourseResponse]:
        denied = await self._require_teacher(
            principal, course_id, "regenerate the enrollment code"
        )
        if denied is not None:
            return denied

        course = await self._course_repo.set_enrollment_code(
            course_id, await self._unique_enrollment_code()
        )
        if course is None:
            return Outcome.not_found("Course", course_id)
        return Outcome.success(to_course_response(course, MembershipRole.TEACHER))

    async def enroll_by_code(
        self, principal: CurrentPrincipal, enrollment_code: str
    ) -> Outcome[CourseResponse]:
        course = await self._course_repo.get_by_enrollment_code(enrollment_code.strip())
        if course is None:
            return Outcome.not_found("Course", enrollment_code)
        if await self._guard.is_enrolled(course.id, principal.id):
            return Outcome.fail(
                ClassroomErrorCode.CONFLICT, "You are already enrolled in this course"
            )

        if not await self._ledger.add_member(course.id, principal.id, MembershipRole.STUDENT):
            return Outcome.fail(
                ClassroomErrorCode.CONFLICT, "You are already enrolled in this course"
            )
        logger.info(
            "Student enrolled by code",
            extra={"course_id": course.id, "user_id": principal.id},
        )
        return Outcome.success(to_course_response(course, MembershipRole.STUDENT))

    async def unenroll(
        self, principal: CurrentPrincipal, course_id: int
    ) -> Outcome[MessageResponse]:
        role = await self._ledger.get_role(course_id, principal.id)
        if role is not MembershipRole.STUDENT:
            return Outcome.fail(
                ClassroomErrorCode.INVALID_OPERATION,
                "Only enrolled students can unenroll from a course",
            )
        await self._ledger.remove_member(course_id, principal.id)
        await self._drop_course_topic(course_id, principal.id)
        return Outcome.success(MessageResponse(message="Unenrolled from course"))

    async def list_members(
        self, principal: CurrentPrincipal, course_id: int
    ) -> Outcome[list[MemberResponse]]:
        if not await self._guard.is_enrolled(course_id, principal.id):
            return Outcome.success([])
        rows = await self._ledger.list_members(course_id)
        return Outcome.success([to_member_response(m, u) for m, u in rows])

    async def remove_member(
        self, principal: CurrentPrincipal, course_id: int, user_id: int
    ) -> Outcome[MessageResponse]:
        denied = await self._require_teacher(principal, course_id, "remove course members")
        if denied is not None:
            return denied
        if user_id == principal.id:
            return Outcome.fail(
                ClassroomErrorCode.INVALID_OPERATION,
                "Teachers cannot remove themselves from their course",
            )
        if not await self._ledger.remove_member(course_id, user_id):
            return Outcome.not_found("CourseMember", user_id)
        await self._drop_course_topic(course_id, user_id)
        return Outcome.success(MessageResponse(message="Member removed"))

    async def _drop_course_topic(self, course_id: int, user_id: int) -> None:
        """A former member stops receiving this course's live broadcasts."""
        removed = await self._connections.remove_user_from_topic(
            user_id, TopicScope.COURSE.topic(course_id)
        )
        if removed:
            logger.info(
                "Dropped live course subscriptions of former member",
                extra={"course_id": course_id, "user_id": user_id, "connections": removed},
            )

    async def _require_teacher(
        self, principal: CurrentPrincipal, course_id: int, action: str
    ) -> Outcome[Any] | None:
        if await self._course_repo.get_by_id(course_id) is None:
            return Outcome.not_found("Course", course_id)
        if not await self._guard.is_teacher_of(course_id, principal.id):
            logger.warning(
                f"User is not allowed to {action}",
                extra={"course_id": course_id, "user_id": principal.id},
            )
            return Outcome.unauthorized(f"You are not allowed to {action}")
        return None

    async def _unique_enrollment_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_enrollment_code()
            if not await self._course_repo.enrollment_code_exists(code):
                return code
        raise RuntimeError("Could not generate a unique enrollment code")
