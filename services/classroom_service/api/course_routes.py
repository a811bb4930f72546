"""Course, membership and invitation routes."""

from __future__ import annotations

from uuid import UUID

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, status

from services.classroom_service.api.request_utils import unwrap
from services.classroom_service.api.schemas import (
    BulkInviteRequest,
    CourseCreateRequest,
    CourseDetailResponse,
    CourseResponse,
    CourseUpdateRequest,
    EnrollByCodeRequest,
    InviteRequest,
    InviteResponse,
    MemberResponse,
    MessageResponse,
)
from services.classroom_service.domain_handlers.course_handler import CourseHandler
from services.classroom_service.domain_handlers.invitation_handler import InvitationHandler
from services.classroom_service.principal import CurrentPrincipal

router = APIRouter(prefix="/api/courses", tags=["courses"], route_class=DishkaRoute)


@router.get("", response_model=list[CourseResponse])
async def list_my_courses(
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[CourseHandler],
    correlation_id: FromDishka[UUID],
) -> list[CourseResponse]:
    return unwrap(await handler.list_my_courses(principal), "list_my_courses", correlation_id)


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
async def create_course(
    payload: CourseCreateRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[CourseHandler],
    correlation_id: FromDishka[UUID],
) -> CourseResponse:
    return unwrap(await handler.create_course(principal, payload), "create_course", correlation_id)


@router.post("/enroll", response_model=CourseResponse)
async def enroll_by_code(
    payload: EnrollByCodeRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[CourseHandler],
    correlation_id: FromDishka[UUID],
) -> CourseResponse:
    return unwrap(
        await handler.enroll_by_code(principal, payload.enrollment_code),
        "enroll_by_code",
        correlation_id,
    )


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(
    course_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[CourseHandler],
    correlation_id: FromDishka[UUID],
) -> CourseResponse:
    return unwrap(await handler.get_course(principal, course_id), "get_course", correlation_id)


@router.get("/{course_id}/detail", response_model=CourseDetailResponse)
async def get_course_detail(
    course_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[CourseHandler],
    correlation_id: FromDishka[UUID],
) -> CourseDetailResponse:
    return unwrap(
        await handler.get_course_detail(principal, course_id), "get_course_detail", correlation_id
    )


@router.put("/{course_id}", response_model=CourseResponse)
async def update_course(
    course_id: int,
    payload: CourseUpdateRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[CourseHandler],
    correlation_id: FromDishka[UUID],
) -> CourseResponse:
    return unwrap(
        await handler.update_course(principal, course_id, payload), "update_course", correlation_id
    )


@router.delete("/{course_id}", response_model=MessageResponse)
async def delete_course(
    course_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[CourseHandler],
    correlation_id: FromDishka[UUID],
) -> MessageResponse:
    return unwrap(
        await handler.delete_course(principal, course_id), "delete_course", correlation_id
    )


@router.post("/{course_id}/regenerate-enrollment-code", response_model=CourseResponse)
async def regenerate_enrollment_code(
    course_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[CourseHandler],
    correlation_id: FromDishka[UUID],
) -> CourseResponse:
    return unwrap(
        await handler.regenerate_enrollment_code(principal, course_id),
        "regenerate_enrollment_code",
        correlation_id,
    )


@router.post("/{course_id}/unenroll", response_model=MessageResponse)
async def unenroll(
    course_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[CourseHandler],
    correlation_id: FromDishka[UUID],
) -> MessageResponse:
    return unwrap(await handler.unenroll(principal, course_id), "unenroll", correlation_id)


@router.get("/{course_id}/members", response_model=list[MemberResponse])
async def list_members(
    course_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[CourseHandler],
    correlation_id: FromDishka[UUID],
) -> list[MemberResponse]:
    return unwrap(await handler.list_members(principal, course_id), "list_members", correlation_id)


@router.delete("/{course_id}/members/{user_id}", response_model=MessageResponse)
async def remove_member(
    course_id: int,
    user_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[CourseHandler],
    correlation_id: FromDishka[UUID],
) -> MessageResponse:
    return unwrap(
        await handler.remove_member(principal, course_id, user_id), "remove_member", correlation_id
    )


@router.post("/{course_id}/invitations", response_model=InviteResponse)
async def invite(
    course_id: int,
    payload: InviteRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[InvitationHandler],
    correlation_id: FromDishka[UUID],
) -> InviteResponse:
    return unwrap(
        await handler.invite(principal, course_id, payload.email, payload.message),
        "invite",
        correlation_id,
    )


@router.post("/{course_id}/invitations/bulk", response_model=InviteResponse)
async def invite_many(
    course_id: int,
    payload: BulkInviteRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[InvitationHandler],
    correlation_id: FromDishka[UUID],
) -> InviteResponse:
    """Partial failures are reported in ``failed``; only an all-failed batch is an error."""
    return unwrap(
        await handler.invite_many(principal, course_id, payload.emails, payload.message),
        "invite_many",
        correlation_id,
    )
