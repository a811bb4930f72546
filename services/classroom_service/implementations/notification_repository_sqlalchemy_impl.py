"""Durable notification storage.

Every query is filtered by the owning user, so another user's notification
is indistinguishable from a missing one.
"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from services.classroom_service.models_db import Notification
from services.classroom_service.protocols import NotificationRepositoryProtocol
from services.classroom_service.time_utils import utc_now


class SqlAlchemyNotificationRepo(NotificationRepositoryProtocol):
    def __init__(self, engine: AsyncEngine) -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def create_notification(
        self,
        user_id: int,
        kind: str,
        title: str,
        message: str,
        course_id: int | None = None,
        assignment_id: int | None = None,
        submission_id: int | None = None,
        data: dict[str, Any] | None = None,
    ) -> Notification:
        async with self._session_factory() as session:
            notification = Notification(
                user_id=user_id,
                kind=kind,
                title=title,
                message=message,
                read=False,
                course_id=course_id,
                assignment_id=assignment_id,
                submission_id=submission_id,
                data=data or {},
                created_at=utc_now(),
            )
            session.add(notification)
            await session.commit()
            return notification

    async def get_for_user(self, notification_id: int, user_id: int) -> Optional[Notification]:
        async with self._session_factory() as session:
            res = await session.execute(
                select(Notification).where(
                    Notification.id == notification_id, Notification.user_id == user_id
                )
            )
            return res.scalar_one_or_none()

    async def list_for_user(
        self, user_id: int, limit: int | None = None, offset: int = 0, unread_only: bool = False
    ) -> list[Notification]:
        async with self._session_factory() as session:
            stmt = select(Notification).where(Notification.user_id == user_id)
            if unread_only:
                stmt = stmt.where(Notification.read.is_(False))
            stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
            if offset:
                stmt = stmt.offset(offset)
            if limit is not None:
                stmt = stmt.limit(limit)
            res = await session.execute(stmt)
            return list(res.scalars().all())

    async def count_unread(self, user_id: int) -> int:
        async with self._session_factory() as session:
            count = await session.scalar(
                select(func.count())
                .select_from(Notification)
                .where(Notification.user_id == user_id, Notification.read.is_(False))
            )
            return count or 0

    async def mark_read(self, notification_id: int, user_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                update(Notification)
                .where(Notification.id == notification_id, Notification.user_id == user_id)
                .values(read=True)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return result.rowcount == 1

    async def mark_all_read(self, user_id: int) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                update(Notification)
                .where(Notification.user_id == user_id, Notification.read.is_(False))
                .values(read=True)
                .execution_options(synchronize_session=False)
            )
            await session.commit()
            return result.rowcount or 0

    async def delete_notification(self, notification_id: int, user_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(Notification).where(
                    Notification.id == notification_id, Notification.user_id == user_id
                )
            )
            await session.commit()
            return result.rowcount == 1
