"""Enrollment request workflow.

A request starts Pending and ends Approved or Rejected; both are final.
Approval also creates the Student membership. Only the requesting student
may cancel, and only while the request is still Pending.
"""

from __future__ import annotations

from classroom_common.domain_enums import (
    EnrollmentStatus,
    MembershipRole,
    NotificationKind,
    ProcessAction,
    UserRole,
)
from classroom_common.error_enums import ClassroomErrorCode
from classroom_service_libs.error_handling import Outcome
from classroom_service_libs.logging_utils import create_service_logger

from services.classroom_service.api.schemas import (
    EnrollmentRequestCreate,
    EnrollmentRequestResponse,
    MessageResponse,
    ProcessEnrollmentRequest,
)
from services.classroom_service.domain_handlers.authorization_guard import AuthorizationGuard
from services.classroom_service.domain_handlers.notification_broadcaster import (
    NotificationBroadcaster,
    NotificationDraft,
)
from services.classroom_service.models_db import Course, EnrollmentRequest
from services.classroom_service.principal import CurrentPrincipal
from services.classroom_service.protocols import (
    CourseRepositoryProtocol,
    EnrollmentRequestRepositoryProtocol,
    MembershipLedgerProtocol,
)
from services.classroom_service.time_utils import utc_now

logger = create_service_logger("classroom_service.domain_handlers.enrollment_request")


class EnrollmentRequestHandler:
    def __init__(
        self,
        request_repo: EnrollmentRequestRepositoryProtocol,
        course_repo: CourseRepositoryProtocol,
        ledger: MembershipLedgerProtocol,
        guard: AuthorizationGuard,
        broadcaster: NotificationBroadcaster,
    ) -> None:
        self._request_repo = request_repo
        self._course_repo = course_repo
        self._ledger = ledger
        self._guard = guard
        self._broadcaster = broadcaster

    async def create_request(
        self, principal: CurrentPrincipal, request: EnrollmentRequestCreate
    ) -> Outcome[EnrollmentRequestResponse]:
        if principal.role is not UserRole.STUDENT:
            return Outcome.unauthorized("Only students can request enrollment")

        course = await self._course_repo.get_by_id(request.course_id)
        if course is None:
            return Outcome.not_found("Course", request.course_id)
        if await self._guard.is_enrolled(course.id, principal.id):
            return Outcome.fail(
                ClassroomErrorCode.CONFLICT, "You are already enrolled in this course"
            )

        created = await self._request_repo.create_request(course.id, principal.id, utc_now())
        if created is None:
            return Outcome.fail(
                ClassroomErrorCode.CONFLICT,
                "You already have a pending enrollment request for this course",
            )

        logger.info(
            "Enrollment request created",
            extra={"request_id": created.id, "course_id": course.id, "student_id": principal.id},
        )
        teacher_ids = await self._ledger.list_user_ids(course.id, MembershipRole.TEACHER)
        await self._broadcaster.notify_many(
            teacher_ids,
            NotificationDraft(
                kind=NotificationKind.ENROLLMENT_REQUEST,
                title="New Enrollment Request",
                message=f"{principal.name} has requested to join your course '{course.name}'",
                course_id=course.id,
                payload={
                    "enrollmentRequestId": created.id,
                    "courseId": course.id,
                    "courseName": course.name,
                    "studentId": principal.id,
                    "studentName": principal.name,
                    "studentEmail": principal.email,
                    "requestedAt": created.requested_at.isoformat(),
                    "message": request.message,
                },
            ),
        )
        return Outcome.success(EnrollmentRequestResponse.model_validate(created))

    async def get_request(
        self, principal: CurrentPrincipal, request_id: int
    ) -> Outcome[EnrollmentRequestResponse]:
        found = await self._request_repo.get_by_id(request_id)
        if found is None:
            return Outcome.not_found("EnrollmentRequest", request_id)
        if not await self._guard.is_owner_or_teacher(
            found.student_id, found.course_id, principal.id
        ):
            return Outcome.unauthorized(
                "You don't have permission to access this enrollment request"
            )
        return Outcome.success(EnrollmentRequestResponse.model_validate(found))

    async def list_my_requests(
        self, principal: CurrentPrincipal
    ) -> Outcome[list[EnrollmentRequestResponse]]:
        rows = await self._request_repo.list_for_student(principal.id)
        return Outcome.success([EnrollmentRequestResponse.model_validate(r) for r in rows])

    async def list_course_requests(
        self, principal: CurrentPrincipal, course_id: int, pending_only: bool = False
    ) -> Outcome[list[EnrollmentRequestResponse]]:
        if not await self._guard.is_teacher_of(course_id, principal.id):
            return Outcome.unauthorized(
                "You don't have permission to access enrollment requests for this course"
            )
        rows = await self._request_repo.list_for_course(course_id, pending_only=pending_only)
        return Outcome.success([EnrollmentRequestResponse.model_validate(r) for r in rows])

    async def process_request(
        self, principal: CurrentPrincipal, request_id: int, request: ProcessEnrollmentRequest
    ) -> Outcome[EnrollmentRequestResponse]:
        try:
            action = ProcessAction(request.action.strip().lower())
        except ValueError:
            return Outcome.fail(
                ClassroomErrorCode.VALIDATION_ERROR,
                "Invalid action. Action must be 'approve' or 'reject'.",
                field="action",
            )

        found = await self._request_repo.get_by_id(request_id)
        if found is None:
            return Outcome.not_found("EnrollmentRequest", request_id)
        if not await self._guard.is_teacher_of(found.course_id, principal.id):
            return Outcome.unauthorized(
                "You don't have permission to process enrollment requests for this course"
            )

        if action is ProcessAction.APPROVE:
            processed = await self._request_repo.approve(request_id, principal.id, utc_now())
        else:
            processed = await self._request_repo.reject(
                request_id, principal.id, utc_now(), request.rejection_reason
            )
        if processed is None:
            return Outcome.fail(
                ClassroomErrorCode.INVALID_OPERATION,
                "Enrollment request has already been processed",
                status=found.status,
            )

        logger.info(
            f"Enrollment request {processed.status.lower()}",
            extra={
                "request_id": processed.id,
                "course_id": processed.course_id,
                "teacher_id": principal.id,
            },
        )
        course = await self._course_repo.get_by_id(processed.course_id)
        if course is not None:
            await self._notify_student(principal, processed, course)
        return Outcome.success(EnrollmentRequestResponse.model_validate(processed))

    async def cancel_request(
        self, principal: CurrentPrincipal, request_id: int
    ) -> Outcome[MessageResponse]:
        found = await self._request_repo.get_by_id(request_id)
        if found is None:
            return Outcome.not_found("EnrollmentRequest", request_id)
        if found.student_id != principal.id:
            return Outcome.unauthorized(
                "You don't have permission to cancel this enrollment request"
            )
        # Re-checked by the conditional delete if a teacher processes it meanwhile
        if EnrollmentStatus(found.status).is_terminal or not (
            await self._request_repo.delete_pending(request_id)
        ):
            return Outcome.fail(
                ClassroomErrorCode.INVALID_OPERATION,
                "Cannot cancel an enrollment request that has already been processed",
            )
        return Outcome.success(MessageResponse(message="Enrollment request cancelled"))

    async def _notify_student(
        self, teacher: CurrentPrincipal, processed: EnrollmentRequest, course: Course
    ) -> None:
        approved = processed.status == EnrollmentStatus.APPROVED.value
        payload = {
            "enrollmentRequestId": processed.id,
            "courseId": course.id,
            "courseName": course.name,
            "processedBy": teacher.name,
            "processedAt": processed.processed_at.isoformat() if processed.processed_at else None,
        }
        if approved:
            draft = NotificationDraft(
                kind=NotificationKind.ENROLLMENT_APPROVED,
                title="Enrollment Request Approved",
                message=f"Your request to join the course '{course.name}' has been approved",
                course_id=course.id,
                payload=payload,
            )
        else:
            payload["rejectionReason"] = processed.rejection_reason
            draft = NotificationDraft(
                kind=NotificationKind.ENROLLMENT_REJECTED,
                title="Enrollment Request Rejected",
                message=f"Your request to join the course '{course.name}' has been rejected",
                course_id=course.id,
                payload=payload,
            )
        await self._broadcaster.notify_many([processed.student_id], draft)
