"""Notification inbox routes. Every route is scoped to the caller's own notifications."""

from __future__ import annotations

from uuid import UUID

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, Query

from services.classroom_service.api.request_utils import unwrap
from services.classroom_service.api.schemas import (
    CountResponse,
    MessageResponse,
    NotificationResponse,
)
from services.classroom_service.domain_handlers.notification_handler import NotificationHandler
from services.classroom_service.principal import CurrentPrincipal

router = APIRouter(prefix="/api/notifications", tags=["notifications"], route_class=DishkaRoute)


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[NotificationHandler],
    correlation_id: FromDishka[UUID],
    limit: int | None = Query(None, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> list[NotificationResponse]:
    return unwrap(
        await handler.list_notifications(principal, limit=limit, offset=offset),
        "list_notifications",
        correlation_id,
    )


@router.get("/unread", response_model=list[NotificationResponse])
async def list_unread(
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[NotificationHandler],
    correlation_id: FromDishka[UUID],
) -> list[NotificationResponse]:
    return unwrap(await handler.list_unread(principal), "list_unread", correlation_id)


@router.get("/unread/count", response_model=CountResponse)
async def count_unread(
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[NotificationHandler],
    correlation_id: FromDishka[UUID],
) -> CountResponse:
    return unwrap(await handler.count_unread(principal), "count_unread", correlation_id)


@router.put("/read-all", response_model=CountResponse)
async def mark_all_read(
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[NotificationHandler],
    correlation_id: FromDishka[UUID],
) -> CountResponse:
    return unwrap(await handler.mark_all_read(principal), "mark_all_read", correlation_id)


@router.get("/{notification_id}", response_model=NotificationResponse)
async def get_notification(
    notification_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[NotificationHandler],
    correlation_id: FromDishka[UUID],
) -> NotificationResponse:
    return unwrap(
        await handler.get_notification(principal, notification_id),
        "get_notification",
        correlation_id,
    )


@router.put("/{notification_id}/read", response_model=MessageResponse)
async def mark_read(
    notification_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[NotificationHandler],
    correlation_id: FromDishka[UUID],
) -> MessageResponse:
    return unwrap(
        await handler.mark_read(principal, notification_id), "mark_read", correlation_id
    )


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: int,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[NotificationHandler],
    correlation_id: FromDishka[UUID],
) -> MessageResponse:
    return unwrap(
        await handler.delete_notification(principal, notification_id),
        "delete_notification",
        correlation_id,
    )
