"""Announcement and comment routes."""

from __future__ import annotations

from uuid import UUID

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, status

from services.classroom_service.api.request_utils import unwrap
from services.classroom_service.api.schemas import (
    AnnouncementRequest,
    AnnouncementResponse,
    CommentCreateRequest,
    CommentResponse,
    CommentUpdateRequest,
    MessageResponse,
)
from services.classroom_service.domain_handlers.announcement_handler import AnnouncementHandler
from services.classroom_service.principal import CurrentPrincipal

router = APIRouter(prefix="/api", tags=["announcements"], route_class=DishkaRoute)


@router.get("/courses/{course_id}/announcements", response_model=list[AnnouncementResponse])
async def list_course_announcements(
    course_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AnnouncementHandler],
    correlation_id: FromDishka[UUID],
) -> list[AnnouncementResponse]:
    return unwrap(
        await handler.list_course_announcements(principal, course_id),
        "list_course_announcements",
        correlation_id,
    )


@router.post(
    "/courses/{course_id}/announcements",
    response_model=AnnouncementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_announcement(
    course_id: int,
    payload: AnnouncementRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AnnouncementHandler],
    correlation_id: FromDishka[UUID],
) -> AnnouncementResponse:
    return unwrap(
        await handler.create_announcement(principal, course_id, payload),
        "create_announcement",
        correlation_id,
    )


@router.put("/announcements/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: int,
    payload: AnnouncementRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AnnouncementHandler],
    correlation_id: FromDishka[UUID],
) -> AnnouncementResponse:
    return unwrap(
        await handler.update_announcement(principal, announcement_id, payload),
        "update_announcement",
        correlation_id,
    )


@router.delete("/announcements/{announcement_id}", response_model=MessageResponse)
async def delete_announcement(
    announcement_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AnnouncementHandler],
    correlation_id: FromDishka[UUID],
) -> MessageResponse:
    return unwrap(
        await handler.delete_announcement(principal, announcement_id),
        "delete_announcement",
        correlation_id,
    )


@router.get("/announcements/{announcement_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    announcement_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AnnouncementHandler],
    correlation_id: FromDishka[UUID],
) -> list[CommentResponse]:
    return unwrap(
        await handler.list_comments(principal, announcement_id), "list_comments", correlation_id
    )


@router.post(
    "/announcements/{announcement_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    announcement_id: int,
    payload: CommentCreateRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AnnouncementHandler],
    correlation_id: FromDishka[UUID],
) -> CommentResponse:
    return unwrap(
        await handler.create_comment(principal, announcement_id, payload),
        "create_comment",
        correlation_id,
    )


@router.put("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int,
    payload: CommentUpdateRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AnnouncementHandler],
    correlation_id: FromDishka[UUID],
) -> CommentResponse:
    return unwrap(
        await handler.update_comment(principal, comment_id, payload),
        "update_comment",
        correlation_id,
    )


@router.delete("/comments/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AnnouncementHandler],
    correlation_id: FromDishka[UUID],
) -> MessageResponse:
    return unwrap(
        await handler.delete_comment(principal, comment_id), "delete_comment", correlation_id
    )
