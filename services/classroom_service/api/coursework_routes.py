"""Assignment, submission, gradebook and upload-check routes."""

from __future__ import annotations

from uuid import UUID

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, status

from services.classroom_service.api.request_utils import unwrap, validate_upload
from services.classroom_service.api.schemas import (
    AssignmentCreateRequest,
    AssignmentResponse,
    AssignmentUpdateRequest,
    FeedbackRequest,
    GradebookEntry,
    GradeRequest,
    MessageResponse,
    StudentGradeReport,
    SubmissionCreateRequest,
    SubmissionResponse,
    UploadCheckRequest,
)
from services.classroom_service.config import Settings
from services.classroom_service.domain_handlers.coursework_handler import (
    AssignmentHandler,
    SubmissionHandler,
)
from services.classroom_service.principal import CurrentPrincipal

router = APIRouter(prefix="/api", tags=["coursework"], route_class=DishkaRoute)


@router.get("/courses/{course_id}/assignments", response_model=list[AssignmentResponse])
async def list_course_assignments(
    course_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AssignmentHandler],
    correlation_id: FromDishka[UUID],
) -> list[AssignmentResponse]:
    return unwrap(
        await handler.list_course_assignments(principal, course_id),
        "list_course_assignments",
        correlation_id,
    )


@router.post(
    "/courses/{course_id}/assignments",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_assignment(
    course_id: int,
    payload: AssignmentCreateRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AssignmentHandler],
    correlation_id: FromDishka[UUID],
) -> AssignmentResponse:
    return unwrap(
        await handler.create_assignment(principal, course_id, payload),
        "create_assignment",
        correlation_id,
    )


@router.get("/assignments/{assignment_id}", response_model=AssignmentResponse)
async def get_assignment(
    assignment_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AssignmentHandler],
    correlation_id: FromDishka[UUID],
) -> AssignmentResponse:
    return unwrap(
        await handler.get_assignment(principal, assignment_id), "get_assignment", correlation_id
    )


@router.put("/assignments/{assignment_id}", response_model=AssignmentResponse)
async def update_assignment(
    assignment_id: int,
    payload: AssignmentUpdateRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AssignmentHandler],
    correlation_id: FromDishka[UUID],
) -> AssignmentResponse:
    return unwrap(
        await handler.update_assignment(principal, assignment_id, payload),
        "update_assignment",
        correlation_id,
    )


@router.delete("/assignments/{assignment_id}", response_model=MessageResponse)
async def delete_assignment(
    assignment_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AssignmentHandler],
    correlation_id: FromDishka[UUID],
) -> MessageResponse:
    return unwrap(
        await handler.delete_assignment(principal, assignment_id),
        "delete_assignment",
        correlation_id,
    )


@router.get(
    "/assignments/{assignment_id}/submissions", response_model=list[SubmissionResponse]
)
async def list_assignment_submissions(
    assignment_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[SubmissionHandler],
    correlation_id: FromDishka[UUID],
) -> list[SubmissionResponse]:
    return unwrap(
        await handler.list_assignment_submissions(principal, assignment_id),
        "list_assignment_submissions",
        correlation_id,
    )


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_submission(
    assignment_id: int,
    payload: SubmissionCreateRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[SubmissionHandler],
    correlation_id: FromDishka[UUID],
) -> SubmissionResponse:
    return unwrap(
        await handler.create_submission(principal, assignment_id, payload),
        "create_submission",
        correlation_id,
    )


@router.get("/submissions/{submission_id}", response_model=SubmissionResponse)
async def get_submission(
    submission_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[SubmissionHandler],
    correlation_id: FromDishka[UUID],
) -> SubmissionResponse:
    return unwrap(
        await handler.get_submission(principal, submission_id), "get_submission", correlation_id
    )


@router.put("/submissions/{submission_id}/grade", response_model=SubmissionResponse)
async def grade_submission(
    submission_id: int,
    payload: GradeRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[SubmissionHandler],
    correlation_id: FromDishka[UUID],
) -> SubmissionResponse:
    return unwrap(
        await handler.grade_submission(principal, submission_id, payload),
        "grade_submission",
        correlation_id,
    )


@router.put("/submissions/{submission_id}/feedback", response_model=SubmissionResponse)
async def add_feedback(
    submission_id: int,
    payload: FeedbackRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[SubmissionHandler],
    correlation_id: FromDishka[UUID],
) -> SubmissionResponse:
    return unwrap(
        await handler.add_feedback(principal, submission_id, payload),
        "add_feedback",
        correlation_id,
    )


@router.delete("/submissions/{submission_id}", response_model=MessageResponse)
async def unsubmit(
    submission_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[SubmissionHandler],
    correlation_id: FromDishka[UUID],
) -> MessageResponse:
    return unwrap(await handler.unsubmit(principal, submission_id), "unsubmit", correlation_id)


@router.get("/courses/{course_id}/gradebook", response_model=list[GradebookEntry])
async def course_gradebook(
    course_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[SubmissionHandler],
    correlation_id: FromDishka[UUID],
) -> list[GradebookEntry]:
    return unwrap(
        await handler.course_gradebook(principal, course_id), "course_gradebook", correlation_id
    )


@router.get(
    "/courses/{course_id}/students/{student_id}/grades", response_model=StudentGradeReport
)
async def student_grades(
    course_id: int,
    student_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[SubmissionHandler],
    correlation_id: FromDishka[UUID],
) -> StudentGradeReport:
    return unwrap(
        await handler.student_grades(principal, course_id, student_id),
        "student_grades",
        correlation_id,
    )


@router.post("/uploads/validate", response_model=MessageResponse)
async def validate_upload_metadata(
    payload: UploadCheckRequest,
    principal: FromDishka[CurrentPrincipal],
    settings: FromDishka[Settings],
    correlation_id: FromDishka[UUID],
) -> MessageResponse:
    """Pre-flight check of a file against the configured size and type limits."""
    validate_upload(payload.filename, payload.size, settings, correlation_id)
    return MessageResponse(message="Upload accepted")
