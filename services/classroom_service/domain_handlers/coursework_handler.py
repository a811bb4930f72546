"""Assignments, submissions and grading."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from classroom_common.domain_enums import AssignmentStatus, MembershipRole, NotificationKind
from classroom_common.error_enums import ClassroomErrorCode
from classroom_service_libs.error_handling import Outcome
from classroom_service_libs.logging_utils import create_service_logger

from services.classroom_service.api.schemas import (
    AssignmentCreateRequest,
    AssignmentResponse,
    AssignmentUpdateRequest,
    FeedbackRequest,
    GradebookEntry,
    GradeRequest,
    AssignmentGrade,
    MessageResponse,
    StudentGradeReport,
    SubmissionCreateRequest,
    SubmissionResponse,
)
from services.classroom_service.domain_handlers.authorization_guard import AuthorizationGuard
from services.classroom_service.domain_handlers.notification_broadcaster import (
    NotificationBroadcaster,
    NotificationDraft,
)
from services.classroom_service.models_db import Assignment, Submission
from services.classroom_service.principal import CurrentPrincipal
from services.classroom_service.protocols import (
    AssignmentRepositoryProtocol,
    CourseRepositoryProtocol,
    MembershipLedgerProtocol,
    SubmissionRepositoryProtocol,
)
from services.classroom_service.time_utils import ensure_utc, utc_now

logger = create_service_logger("classroom_service.domain_handlers.coursework")


def visible_to(assignment: Assignment, role: MembershipRole | None) -> bool:
    """Members see published work; drafts are for the course's teachers only."""
    if role is None:
        return False
    return role is MembershipRole.TEACHER or assignment.status == AssignmentStatus.PUBLISHED.value


class AssignmentHandler:
    def __init__(
        self,
        assignment_repo: AssignmentRepositoryProtocol,
        course_repo: CourseRepositoryProtocol,
        ledger: MembershipLedgerProtocol,
        guard: AuthorizationGuard,
    ) -> None:
        self._assignment_repo = assignment_repo
        self._course_repo = course_repo
        self._ledger = ledger
        self._guard = guard

    async def list_course_assignments(
        self, principal: CurrentPrincipal, course_id: int
    ) -> Outcome[list[AssignmentResponse]]:
        """Non-members get an empty list. Students only see published work."""
        role = await self._ledger.get_role(course_id, principal.id)
        if role is None:
            return Outcome.success([])
        assignments = await self._assignment_repo.list_for_course(course_id)
        assignments = [a for a in assignments if visible_to(a, role)]
        return Outcome.success([AssignmentResponse.model_validate(a) for a in assignments])

    async def get_assignment(
        self, principal: CurrentPrincipal, assignment_id: int
    ) -> Outcome[AssignmentResponse]:
        assignment = await self._assignment_repo.get_by_id(assignment_id)
        if assignment is None or not visible_to(
            assignment, await self._ledger.get_role(assignment.course_id, principal.id)
        ):
            return Outcome.not_found("Assignment", assignment_id)
        return Outcome.success(AssignmentResponse.model_validate(assignment))

    async def create_assignment(
        self, principal: CurrentPrincipal, course_id: int, request: AssignmentCreateRequest
    ) -> Outcome[AssignmentResponse]:
        if await self._course_repo.get_by_id(course_id) is None:
            return Outcome.not_found("Course", course_id)
        if not await self._guard.is_teacher_of(course_id, principal.id):
            return Outcome.unauthorized("Only teachers of this course can create assignments")

        fields = request.model_dump()
        fields["status"] = request.status.value
        assignment = await self._assignment_repo.create_assignment(course_id, fields)
        logger.info(
            "Assignment created",
            extra={"assignment_id": assignment.id, "course_id": course_id},
        )
        return Outcome.success(AssignmentResponse.model_validate(assignment))

    async def update_assignment(
        self, principal: CurrentPrincipal, assignment_id: int, request: AssignmentUpdateRequest
    ) -> Outcome[AssignmentResponse]:
        assignment = await self._assignment_repo.get_by_id(assignment_id)
        if assignment is None:
            return Outcome.not_found("Assignment", assignment_id)
        if not await self._guard.is_teacher_of(assignment.course_id, principal.id):
            return Outcome.unauthorized("Only teachers of this course can update assignments")

        fields: dict[str, Any] = request.model_dump(exclude_unset=True)
        if request.status is not None:
            fields["status"] = request.status.value
        updated = await self._assignment_repo.update_assignment(assignment_id, fields)
        if updated is None:
            return Outcome.not_found("Assignment", assignment_id)
        return Outcome.success(AssignmentResponse.model_validate(updated))

    async def delete_assignment(
        self, principal: CurrentPrincipal, assignment_id: int
    ) -> Outcome[MessageResponse]:
        assignment = await self._assignment_repo.get_by_id(assignment_id)
        if assignment is None:
            return Outcome.not_found("Assignment", assignment_id)
        if not await self._guard.is_teacher_of(assignment.course_id, principal.id):
            return Outcome.unauthorized("Only teachers of this course can delete assignments")

        await self._assignment_repo.delete_assignment(assignment_id)
        return Outcome.success(MessageResponse(message="Assignment deleted"))


class SubmissionHandler:
    def __init__(
        self,
        submission_repo: SubmissionRepositoryProtocol,
        assignment_repo: AssignmentRepositoryProtocol,
        course_repo: CourseRepositoryProtocol,
        ledger: MembershipLedgerProtocol,
        guard: AuthorizationGuard,
        broadcaster: NotificationBroadcaster,
    ) -> None:
        self._submission_repo = submission_repo
        self._assignment_repo = assignment_repo
        self._course_repo = course_repo
        self._ledger = ledger
        self._guard = guard
        self._broadcaster = broadcaster

    async def create_submission(
        self, principal: CurrentPrincipal, assignment_id: int, request: SubmissionCreateRequest
    ) -> Outcome[SubmissionResponse]:
        """Store a submission, notify the course's teachers, then ping the course topic."""
        assignment = await self._assignment_repo.get_by_id(assignment_id)
        if assignment is None:
            return Outcome.not_found("Assignment", assignment_id)
        role = await self._ledger.get_role(assignment.course_id, principal.id)
        if role is None:
            return Outcome.unauthorized("You are not enrolled in this course")
        if not visible_to(assignment, role):
            return Outcome.not_found("Assignment", assignment_id)

        if (
            assignment.due_at is not None
            and not assignment.allow_late_submissions
            and ensure_utc(assignment.due_at) < utc_now()
        ):
            return Outcome.fail(
                ClassroomErrorCode.INVALID_OPERATION,
                "The due date has passed and late submissions are not allowed",
            )

        submission = await self._submission_repo.create_submission(
            assignment_id, principal.id, request.content
        )
        if submission is None:
            return Outcome.fail(
                ClassroomErrorCode.CONFLICT, "You have already submitted this assignment"
            )
        course = await self._course_repo.get_by_id(assignment.course_id)
        course_name = course.name if course else ""
        draft = NotificationDraft(
            kind=NotificationKind.SUBMISSION_CREATED,
            title="New Submission",
            message=f"{principal.name} submitted '{assignment.title}'",
            course_id=assignment.course_id,
            assignment_id=assignment.id,
            submission_id=submission.id,
            payload={
                "submissionId": submission.id,
                "assignmentId": assignment.id,
                "assignmentTitle": assignment.title,
                "courseId": assignment.course_id,
                "courseName": course_name,
                "studentId": principal.id,
                "studentName": principal.name,
                "submittedAt": submission.submitted_at.isoformat(),
            },
        )
        teacher_ids = await self._ledger.list_user_ids(
            assignment.course_id, MembershipRole.TEACHER
        )
        await self._broadcaster.notify_many(teacher_ids, draft)
        await self._broadcaster.broadcast_to_course(assignment.course_id, draft)
        return Outcome.success(SubmissionResponse.model_validate(submission))

    async def list_assignment_submissions(
        self, principal: CurrentPrincipal, assignment_id: int
    ) -> Outcome[list[SubmissionResponse]]:
        assignment = await self._assignment_repo.get_by_id(assignment_id)
        if assignment is None:
            return Outcome.not_found("Assignment", assignment_id)
        if not await self._guard.is_teacher_of(assignment.course_id, principal.id):
            return Outcome.unauthorized("Only teachers of this course can view all submissions")
        rows = await self._submission_repo.list_for_assignment(assignment_id)
        return Outcome.success([SubmissionResponse.model_validate(s) for s in rows])

    async def get_submission(
        self, principal: CurrentPrincipal, submission_id: int
    ) -> Outcome[SubmissionResponse]:
        loaded = await self._load(submission_id)
        if loaded is None:
            return Outcome.not_found("Submission", submission_id)
        submission, assignment = loaded
        if not await self._guard.is_owner_or_teacher(
            submission.user_id, assignment.course_id, principal.id
        ):
            return Outcome.unauthorized("You don't have permission to view this submission")
        return Outcome.success(SubmissionResponse.model_validate(submission))

    async def grade_submission(
        self, principal: CurrentPrincipal, submission_id: int, request: GradeRequest
    ) -> Outcome[SubmissionResponse]:
        loaded = await self._load(submission_id)
        if loaded is None:
            return Outcome.not_found("Submission", submission_id)
        submission, assignment = loaded
        if not await self._guard.is_teacher_of(assignment.course_id, principal.id):
            return Outcome.unauthorized("Only teachers of this course can grade submissions")
        if assignment.points is not None and request.grade > assignment.points:
            return Outcome.fail(
                ClassroomErrorCode.VALIDATION_ERROR,
                f"Grade cannot exceed {assignment.points} points",
                field="grade",
            )

        graded = await self._submission_repo.grade_submission(
            submission_id, request.grade, request.feedback
        )
        if graded is None:
            return Outcome.not_found("Submission", submission_id)

        await self._broadcaster.notify_many(
            [graded.user_id],
            NotificationDraft(
                kind=NotificationKind.SUBMISSION_GRADED,
                title="Submission Graded",
                message=f"Your submission for '{assignment.title}' has been graded",
                course_id=assignment.course_id,
                assignment_id=assignment.id,
                submission_id=graded.id,
                payload={
                    "submissionId": graded.id,
                    "assignmentId": assignment.id,
                    "assignmentTitle": assignment.title,
                    "grade": str(graded.grade),
                    "points": assignment.points,
                },
            ),
        )
        return Outcome.success(SubmissionResponse.model_validate(graded))

    async def add_feedback(
        self, principal: CurrentPrincipal, submission_id: int, request: FeedbackRequest
    ) -> Outcome[SubmissionResponse]:
        loaded = await self._load(submission_id)
        if loaded is None:
            return Outcome.not_found("Submission", submission_id)
        _, assignment = loaded
        if not await self._guard.is_teacher_of(assignment.course_id, principal.id):
            return Outcome.unauthorized("Only teachers of this course can give feedback")

        updated = await self._submission_repo.set_feedback(submission_id, request.feedback)
        if updated is None:
            return Outcome.not_found("Submission", submission_id)
        return Outcome.success(SubmissionResponse.model_validate(updated))

    async def unsubmit(
        self, principal: CurrentPrincipal, submission_id: int
    ) -> Outcome[MessageResponse]:
        submission = await self._submission_repo.get_by_id(submission_id)
        if submission is None:
            return Outcome.not_found("Submission", submission_id)
        if submission.user_id != principal.id:
            return Outcome.unauthorized("You can only withdraw your own submission")
        if submission.graded:
            return Outcome.fail(
                ClassroomErrorCode.INVALID_OPERATION,
                "A graded submission cannot be withdrawn",
            )
        await self._submission_repo.delete_submission(submission_id)
        return Outcome.success(MessageResponse(message="Submission withdrawn"))

    async def course_gradebook(
        self, principal: CurrentPrincipal, course_id: int
    ) -> Outcome[list[GradebookEntry]]:
        if await self._course_repo.get_by_id(course_id) is None:
            return Outcome.not_found("Course", course_id)
        if not await self._guard.is_teacher_of(course_id, principal.id):
            return Outcome.unauthorized("Only teachers of this course can view the gradebook")

        rows = await self._submission_repo.list_for_course(course_id)
        return Outcome.success(
            [
                GradebookEntry(
                    assignment_id=assignment.id,
                    assignment_title=assignment.title,
                    points=assignment.points,
                    student_id=submission.user_id,
                    submission_id=submission.id,
                    grade=submission.grade,
                    graded=submission.graded,
                    submitted_at=submission.submitted_at,
                )
                for submission, assignment in rows
            ]
        )

    async def student_grades(
        self, principal: CurrentPrincipal, course_id: int, student_id: int
    ) -> Outcome[StudentGradeReport]:
        """Grades of one student in one course. Students may only read their own."""
        if await self._course_repo.get_by_id(course_id) is None:
            return Outcome.not_found("Course", course_id)
        if student_id != principal.id and not await self._guard.is_teacher_of(
            course_id, principal.id
        ):
            return Outcome.unauthorized("You are not authorized to view these grades")

        student = next(
            (
                user
                for member, user in await self._ledger.list_members(course_id)
                if user.id == student_id and member.role == MembershipRole.STUDENT.value
            ),
            None,
        )
        if student is None:
            return Outcome.not_found("CourseStudent", student_id)

        assignments = [
            a
            for a in await self._assignment_repo.list_for_course(course_id)
            if a.status == AssignmentStatus.PUBLISHED.value
        ]
        submissions = {
            s.assignment_id: s
            for s in await self._submission_repo.list_for_student_in_course(course_id, student_id)
        }

        grades: list[AssignmentGrade] = []
        graded_total = Decimal(0)
        graded_count = 0
        for assignment in assignments:
            submission = submissions.get(assignment.id)
            grades.append(
                AssignmentGrade(
                    assignment_id=assignment.id,
                    title=assignment.title,
                    due_at=assignment.due_at,
                    points=assignment.points,
                    grade=submission.grade if submission else None,
                    submitted=submission is not None,
                    graded=bool(submission and submission.graded),
                    submitted_at=submission.submitted_at if submission else None,
                )
            )
            if submission is not None and submission.graded and submission.grade is not None:
                graded_total += submission.grade
                graded_count += 1

        average = graded_total / graded_count if graded_count else Decimal(0)
        return Outcome.success(
            StudentGradeReport(
                course_id=course_id,
                student_id=student_id,
                name=student.name,
                avatar=student.avatar,
                assignment_average=average.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
                graded_count=graded_count,
                assignment_grades=grades,
            )
        )

    async def _load(self, submission_id: int) -> tuple[Submission, Assignment] | None:
        submission = await self._submission_repo.get_by_id(submission_id)
        if submission is None:
            return None
        assignment = await self._assignment_repo.get_by_id(submission.assignment_id)
        if assignment is None:
            return None
        return submission, assignment
