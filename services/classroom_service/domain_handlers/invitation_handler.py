"""Course invitations sent by email.

Bulk sends never abort on a bad address: every recipient is attempted and
the result lists what went out and what failed. Only when nothing could be
sent does the whole call fail with a delivery failure.
"""

from __future__ import annotations

from classroom_common.error_enums import ClassroomErrorCode
from classroom_service_libs.error_handling import Outcome
from classroom_service_libs.logging_utils import create_service_logger
from email_validator import EmailNotValidError, validate_email

from services.classroom_service.api.schemas import InviteFailure, InviteResponse
from services.classroom_service.domain_handlers.authorization_guard import AuthorizationGuard
from services.classroom_service.metrics import ClassroomMetrics
from services.classroom_service.models_db import Course
from services.classroom_service.principal import CurrentPrincipal
from services.classroom_service.protocols import (
    CourseRepositoryProtocol,
    EmailProvider,
    TemplateRenderer,
)

logger = create_service_logger("classroom_service.domain_handlers.invitation")

INVITATION_TEMPLATE = "course_invitation"


class InvitationHandler:
    def __init__(
        self,
        course_repo: CourseRepositoryProtocol,
        guard: AuthorizationGuard,
        email_provider: EmailProvider,
        renderer: TemplateRenderer,
        metrics: ClassroomMetrics,
    ) -> None:
        self._course_repo = course_repo
        self._guard = guard
        self._email_provider = email_provider
        self._renderer = renderer
        self._metrics = metrics

    async def invite(
        self, principal: CurrentPrincipal, course_id: int, email: str, message: str | None
    ) -> Outcome[InviteResponse]:
        course_outcome = await self._load_course(principal, course_id)
        if not course_outcome.ok:
            return course_outcome.propagate()

        try:
            address = validate_email(email, check_deliverability=False).normalized
        except EmailNotValidError as e:
            return Outcome.fail(
                ClassroomErrorCode.VALIDATION_ERROR, f"Invalid email address: {e}", field="email"
            )

        error = await self._send(principal, course_outcome.value, address, message)
        if error is not None:
            return Outcome.fail(
                ClassroomErrorCode.DELIVERY_FAILURE,
                f"Failed to send invitation to {address}",
                email=address,
                reason=error,
            )
        return Outcome.success(InviteResponse(sent=[address]))

    async def invite_many(
        self,
        principal: CurrentPrincipal,
        course_id: int,
        emails: list[str],
        message: str | None,
    ) -> Outcome[InviteResponse]:
        course_outcome = await self._load_course(principal, course_id)
        if not course_outcome.ok:
            return course_outcome.propagate()
        course = course_outcome.value

        report = InviteResponse()
        seen: set[str] = set()
        for raw in emails:
            try:
                address = validate_email(raw, check_deliverability=False).normalized
            except EmailNotValidError as e:
                report.failed.append(InviteFailure(email=raw, reason=str(e)))
                continue
            if address.lower() in seen:
                continue
            seen.add(address.lower())

            error = await self._send(principal, course, address, message)
            if error is None:
                report.sent.append(address)
            else:
                report.failed.append(InviteFailure(email=address, reason=error))

        logger.info(
            "Bulk invitations processed",
            extra={
                "course_id": course_id,
                "sent": len(report.sent),
                "failed": len(report.failed),
            },
        )
        if not report.sent:
            return Outcome.fail(
                ClassroomErrorCode.DELIVERY_FAILURE,
                "No invitations could be sent",
                failed=[f.model_dump() for f in report.failed],
            )
        return Outcome.success(report)

    async def _load_course(
        self, principal: CurrentPrincipal, course_id: int
    ) -> Outcome[Course]:
        course = await self._course_repo.get_by_id(course_id)
        if course is None:
            return Outcome.not_found("Course", course_id)
        if not await self._guard.is_teacher_of(course_id, principal.id):
            return Outcome.unauthorized("Only teachers of this course can send invitations")
        return Outcome.success(course)

    async def _send(
        self, principal: CurrentPrincipal, course: Course, address: str, message: str | None
    ) -> str | None:
        """Returns None on success, otherwise the failure reason."""
        rendered = await self._renderer.render(
            INVITATION_TEMPLATE,
            {
                "inviter_name": principal.name,
                "course_name": course.name,
                "section": course.section,
                "enrollment_code": course.enrollment_code,
                "message": message,
            },
        )
        result = await self._email_provider.send_email(
            to=address,
            subject=rendered.subject,
            html_content=rendered.html_content,
            text_content=rendered.text_content,
        )
        if result.success:
            self._metrics.emails_sent_total.labels(outcome="sent").inc()
            return None

        self._metrics.emails_sent_total.labels(outcome="failed").inc()
        logger.warning(
            f"Invitation to {address} failed: {result.error_message}",
            extra={
                "course_id": course.id,
                "to": address,
                "provider": self._email_provider.get_provider_name(),
            },
        )
        return result.error_message or "Delivery failed"
