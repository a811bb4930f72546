"""Enrollment request storage.

State transitions are conditional updates on ``status = 'Pending'`` so that a
request can leave Pending at most once, whatever the interleaving.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from classroom_common.domain_enums import EnrollmentStatus, MembershipRole
from classroom_service_libs.logging_utils import create_service_logger
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from services.classroom_service.models_db import CourseMember, EnrollmentRequest
from services.classroom_service.protocols import EnrollmentRequestRepositoryProtocol

logger = create_service_logger("classroom_service.repository.enrollment_requests")


class SqlAlchemyEnrollmentRequestRepo(EnrollmentRequestRepositoryProtocol):
    def __init__(self, engine: AsyncEngine) -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def create_request(
        self, course_id: int, student_id: int, requested_at: datetime
    ) -> Optional[EnrollmentRequest]:
        """Insert a Pending request; ``None`` if one is already pending for the pair."""
        async with self._session_factory() as session:
            request = EnrollmentRequest(
                course_id=course_id,
                student_id=student_id,
                status=EnrollmentStatus.PENDING.value,
                requested_at=requested_at,
            )
            session.add(request)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logger.info(
                    "Pending enrollment request already exists",
                    extra={"course_id": course_id, "student_id": student_id},
                )
                return None
            return request

    async def get_by_id(self, request_id: int) -> Optional[EnrollmentRequest]:
        async with self._session_factory() as session:
            return await session.get(EnrollmentRequest, request_id)

    async def list_for_student(self, student_id: int) -> list[EnrollmentRequest]:
        async with self._session_factory() as session:
            res = await session.execute(
                select(EnrollmentRequest)
                .where(EnrollmentRequest.student_id == student_id)
                .order_by(EnrollmentRequest.requested_at.desc(), EnrollmentRequest.id.desc())
            )
            return list(res.scalars().all())

    async def list_for_course(
        self, course_id: int, pending_only: bool = False
    ) -> list[EnrollmentRequest]:
        async with self._session_factory() as session:
            stmt = select(EnrollmentRequest).where(EnrollmentRequest.course_id == course_id)
            if pending_only:
                stmt = stmt.where(EnrollmentRequest.status == EnrollmentStatus.PENDING.value)
            res = await session.execute(
                stmt.order_by(EnrollmentRequest.requested_at.desc(), EnrollmentRequest.id.desc())
            )
            return list(res.scalars().all())

    async def approve(
        self, request_id: int, teacher_id: int, processed_at: datetime
    ) -> Optional[EnrollmentRequest]:
        """Approve and create the Student membership in the same transaction."""
        async with self._session_factory() as session:
            async with session.begin():
                if not await self._transition(
                    session, request_id, EnrollmentStatus.APPROVED, teacher_id, processed_at
                ):
                    return None
                request = await session.get(EnrollmentRequest, request_id)
                if request is None:
                    return None
                existing = await session.get(
                    CourseMember, (request.course_id, request.student_id)
                )
                if existing is None:
                    session.add(
                        CourseMember(
                            course_id=request.course_id,
                            user_id=request.student_id,
                            role=MembershipRole.STUDENT.value,
                        )
                    )
            return request

    async def reject(
        self,
        request_id: int,
        teacher_id: int,
        processed_at: datetime,
        reason: str | None,
    ) -> Optional[EnrollmentRequest]:
        async with self._session_factory() as session:
            async with session.begin():
                if not await self._transition(
                    session,
                    request_id,
                    EnrollmentStatus.REJECTED,
                    teacher_id,
                    processed_at,
                    rejection_reason=reason,
                ):
                    return None
                request = await session.get(EnrollmentRequest, request_id)
            return request

    async def delete_pending(self, request_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(EnrollmentRequest).where(
                    EnrollmentRequest.id == request_id,
                    EnrollmentRequest.status == EnrollmentStatus.PENDING.value,
                )
            )
            await session.commit()
            return result.rowcount == 1

    @staticmethod
    async def _transition(
        session: AsyncSession,
        request_id: int,
        target: EnrollmentStatus,
        teacher_id: int,
        processed_at: datetime,
        rejection_reason: str | None = None,
    ) -> bool:
        result = await session.execute(
            update(EnrollmentRequest)
            .where(
                EnrollmentRequest.id == request_id,
                EnrollmentRequest.status == EnrollmentStatus.PENDING.value,
            )
            .values(
                status=target.value,
                processed_at=processed_at,
                processed_by_id=teacher_id,
                rejection_reason=rejection_reason,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
