"""Enrollment request routes under /api/enrollment-requests."""

from __future__ import annotations

from uuid import UUID

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter

from services.classroom_service.api.request_utils import unwrap
from services.classroom_service.api.schemas import (
    EnrollmentRequestCreate,
    EnrollmentRequestResponse,
    MessageResponse,
    ProcessEnrollmentRequest,
)
from services.classroom_service.domain_handlers.enrollment_request_handler import (
    EnrollmentRequestHandler,
)
from services.classroom_service.principal import CurrentPrincipal

router = APIRouter(
    prefix="/api/enrollment-requests", tags=["enrollment-requests"], route_class=DishkaRoute
)


@router.post("", response_model=EnrollmentRequestResponse)
async def create_request(
    payload: EnrollmentRequestCreate,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[EnrollmentRequestHandler],
    correlation_id: FromDishka[UUID],
) -> EnrollmentRequestResponse:
    return unwrap(
        await handler.create_request(principal, payload),
        "create_enrollment_request",
        correlation_id,
    )


# Static paths are declared before /{request_id} so they are matched first
@router.get("/my-requests", response_model=list[EnrollmentRequestResponse])
async def list_my_requests(
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[EnrollmentRequestHandler],
    correlation_id: FromDishka[UUID],
) -> list[EnrollmentRequestResponse]:
    return unwrap(
        await handler.list_my_requests(principal), "list_my_enrollment_requests", correlation_id
    )


@router.get("/course/{course_id}", response_model=list[EnrollmentRequestResponse])
async def list_course_requests(
    course_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[EnrollmentRequestHandler],
    correlation_id: FromDishka[UUID],
    pending_only: bool = False,
) -> list[EnrollmentRequestResponse]:
    return unwrap(
        await handler.list_course_requests(principal, course_id, pending_only=pending_only),
        "list_course_enrollment_requests",
        correlation_id,
    )


@router.get("/course/{course_id}/pending", response_model=list[EnrollmentRequestResponse])
async def list_pending_course_requests(
    course_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[EnrollmentRequestHandler],
    correlation_id: FromDishka[UUID],
) -> list[EnrollmentRequestResponse]:
    return unwrap(
        await handler.list_course_requests(principal, course_id, pending_only=True),
        "list_pending_enrollment_requests",
        correlation_id,
    )


@router.get("/{request_id}", response_model=EnrollmentRequestResponse)
async def get_request(
    request_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[EnrollmentRequestHandler],
    correlation_id: FromDishka[UUID],
) -> EnrollmentRequestResponse:
    return unwrap(
        await handler.get_request(principal, request_id), "get_enrollment_request", correlation_id
    )


@router.put("/{request_id}/process", response_model=EnrollmentRequestResponse)
async def process_request(
    request_id: int,
    payload: ProcessEnrollmentRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[EnrollmentRequestHandler],
    correlation_id: FromDishka[UUID],
) -> EnrollmentRequestResponse:
    """Approve or reject a pending request. Both outcomes are final."""
    return unwrap(
        await handler.process_request(principal, request_id, payload),
        "process_enrollment_request",
        correlation_id,
    )


@router.delete("/{request_id}", response_model=MessageResponse)
async def cancel_request(
    request_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[EnrollmentRequestHandler],
    correlation_id: FromDishka[UUID],
) -> MessageResponse:
    return unwrap(
        await handler.cancel_request(principal, request_id),
        "cancel_enrollment_request",
        correlation_id,
    )
