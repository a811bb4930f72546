"""Owner-scoped reads and updates of a user's stored notifications."""

from __future__ import annotations

from classroom_service_libs.error_handling import Outcome

from services.classroom_service.api.schemas import (
    CountResponse,
    MessageResponse,
    NotificationResponse,
)
from services.classroom_service.principal import CurrentPrincipal
from services.classroom_service.protocols import NotificationRepositoryProtocol

MAX_PAGE_SIZE = 100


class NotificationHandler:
    """A notification owned by someone else is reported as not found."""

    def __init__(self, repository: NotificationRepositoryProtocol) -> None:
        self._repository = repository

    async def list_notifications(
        self, principal: CurrentPrincipal, limit: int | None = None, offset: int = 0
    ) -> Outcome[list[NotificationResponse]]:
        limit = min(limit, MAX_PAGE_SIZE) if limit is not None else None
        rows = await self._repository.list_for_user(principal.id, limit=limit, offset=offset)
        return Outcome.success([NotificationResponse.model_validate(r) for r in rows])

    async def list_unread(self, principal: CurrentPrincipal) -> Outcome[list[NotificationResponse]]:
        rows = await self._repository.list_for_user(principal.id, unread_only=True)
        return Outcome.success([NotificationResponse.model_validate(r) for r in rows])

    async def count_unread(self, principal: CurrentPrincipal) -> Outcome[CountResponse]:
        count = await self._repository.count_unread(principal.id)
        return Outcome.success(CountResponse(count=count))

    async def get_notification(
        self, principal: CurrentPrincipal, notification_id: int
    ) -> Outcome[NotificationResponse]:
        row = await self._repository.get_for_user(notification_id, principal.id)
        if row is None:
            return Outcome.not_found("Notification", notification_id)
        return Outcome.success(NotificationResponse.model_validate(row))

    async def mark_read(
        self, principal: CurrentPrincipal, notification_id: int
    ) -> Outcome[MessageResponse]:
        if not await self._repository.mark_read(notification_id, principal.id):
            return Outcome.not_found("Notification", notification_id)
        return Outcome.success(MessageResponse(message="Notification marked as read"))

    async def mark_all_read(self, principal: CurrentPrincipal) -> Outcome[CountResponse]:
        count = await self._repository.mark_all_read(principal.id)
        return Outcome.success(CountResponse(count=count))

    async def delete_notification(
        self, principal: CurrentPrincipal, notification_id: int
    ) -> Outcome[MessageResponse]:
        if not await self._repository.delete_notification(notification_id, principal.id):
            return Outcome.not_found("Notification", notification_id)
        return Outcome.success(MessageResponse(message="Notification deleted"))
