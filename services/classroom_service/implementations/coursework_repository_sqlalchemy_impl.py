from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from classroom_service_libs.logging_utils import create_service_logger
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from services.classroom_service.models_db import (
    Announcement,
    AnnouncementComment,
    Assignment,
    Material,
    Submission,
)
from services.classroom_service.protocols import (
    AnnouncementRepositoryProtocol,
    AssignmentRepositoryProtocol,
    MaterialRepositoryProtocol,
    SubmissionRepositoryProtocol,
)
from services.classroom_service.time_utils import utc_now

logger = create_service_logger("classroom_service.repository.coursework")


class SqlAlchemyAssignmentRepo(AssignmentRepositoryProtocol):
    def __init__(self, engine: AsyncEngine) -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def list_for_course(self, course_id: int) -> list[Assignment]:
        async with self._session_factory() as session:
            res = await session.execute(
                select(Assignment)
                .where(Assignment.course_id == course_id)
                .order_by(Assignment.created_at.desc(), Assignment.id.desc())
            )
            return list(res.scalars().all())

    async def get_by_id(self, assignment_id: int) -> Optional[Assignment]:
        async with self._session_factory() as session:
            return await session.get(Assignment, assignment_id)

    async def create_assignment(self, course_id: int, fields: dict[str, Any]) -> Assignment:
        async with self._session_factory() as session:
            assignment = Assignment(course_id=course_id, created_at=utc_now(), **fields)
            session.add(assignment)
            await session.commit()
            return assignment

    async def update_assignment(
        self, assignment_id: int, fields: dict[str, Any]
    ) -> Optional[Assignment]:
        async with self._session_factory() as session:
            assignment = await session.get(Assignment, assignment_id)
            if assignment is None:
                return None
            for key, value in fields.items():
                setattr(assignment, key, value)
            assignment.updated_at = utc_now()
            await session.commit()
            return assignment

    async def delete_assignment(self, assignment_id: int) -> bool:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    delete(Submission).where(Submission.assignment_id == assignment_id)
                )
                result = await session.execute(
                    delete(Assignment).where(Assignment.id == assignment_id)
                )
            return result.rowcount == 1


class SqlAlchemySubmissionRepo(SubmissionRepositoryProtocol):
    def __init__(self, engine: AsyncEngine) -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def create_submission(
        self, assignment_id: int, user_id: int, content: str | None
    ) -> Optional[Submission]:
        """Insert a submission; ``None`` if the student already submitted this assignment."""
        async with self._session_factory() as session:
            submission = Submission(
                assignment_id=assignment_id,
                user_id=user_id,
                content=content,
                submitted_at=utc_now(),
                graded=False,
            )
            session.add(submission)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logger.info(
                    "Submission already exists",
                    extra={"assignment_id": assignment_id, "user_id": user_id},
                )
                return None
            return submission

    async def get_by_id(self, submission_id: int) -> Optional[Submission]:
        async with self._session_factory() as session:
            return await session.get(Submission, submission_id)

    async def list_for_assignment(self, assignment_id: int) -> list[Submission]:
        async with self._session_factory() as session:
            res = await session.execute(
                select(Submission)
                .where(Submission.assignment_id == assignment_id)
                .order_by(Submission.submitted_at.desc(), Submission.id.desc())
            )
            return list(res.scalars().all())

    async def list_for_course(self, course_id: int) -> list[tuple[Submission, Assignment]]:
        async with self._session_factory() as session:
            res = await session.execute(
                select(Submission, Assignment)
                .join(Assignment, Assignment.id == Submission.assignment_id)
                .where(Assignment.course_id == course_id)
                .order_by(Assignment.id, Submission.user_id)
            )
            return [(submission, assignment) for submission, assignment in res.all()]

    async def list_for_student_in_course(self, course_id: int, user_id: int) -> list[Submission]:
        async with self._session_factory() as session:
            res = await session.execute(
                select(Submission)
                .join(Assignment, Assignment.id == Submission.assignment_id)
                .where(Assignment.course_id == course_id, Submission.user_id == user_id)
            )
            return list(res.scalars().all())

    async def grade_submission(
        self, submission_id: int, grade: Decimal, feedback: str | None
    ) -> Optional[Submission]:
        async with self._session_factory() as session:
            submission = await session.get(Submission, submission_id)
            if submission is None:
                return None
            submission.grade = grade
            if feedback is not None:
                submission.feedback = feedback
            submission.graded = True
            submission.graded_at = utc_now()
            await session.commit()
            return submission

    async def set_feedback(self, submission_id: int, feedback: str) -> Optional[Submission]:
        async with self._session_factory() as session:
            submission = await session.get(Submission, submission_id)
            if submission is None:
                return None
            submission.feedback = feedback
            await session.commit()
            return submission

    async def delete_submission(self, submission_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(delete(Submission).where(Submission.id == submission_id))
            await session.commit()
            return result.rowcount == 1


class SqlAlchemyAnnouncementRepo(AnnouncementRepositoryProtocol):
    """Announcements and their comment threads."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def list_for_course(self, course_id: int) -> list[Announcement]:
        async with self._session_factory() as session:
            res = await session.execute(
                select(Announcement)
                .where(Announcement.course_id == course_id)
                .order_by(Announcement.created_at.desc(), Announcement.id.desc())
            )
            return list(res.scalars().all())

    async def get_by_id(self, announcement_id: int) -> Optional[Announcement]:
        async with self._session_factory() as session:
            return await session.get(Announcement, announcement_id)

    async def create_announcement(
        self, course_id: int, author_id: int, content: str
    ) -> Announcement:
        async with self._session_factory() as session:
            announcement = Announcement(
                course_id=course_id, author_id=author_id, content=content, created_at=utc_now()
            )
            session.add(announcement)
            await session.commit()
            return announcement

    async def update_announcement(
        self, announcement_id: int, content: str
    ) -> Optional[Announcement]:
        async with self._session_factory() as session:
            announcement = await session.get(Announcement, announcement_id)
            if announcement is None:
                return None
            announcement.content = content
            announcement.updated_at = utc_now()
            await session.commit()
            return announcement

    async def delete_announcement(self, announcement_id: int) -> bool:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    delete(AnnouncementComment).where(
                        AnnouncementComment.announcement_id == announcement_id
                    )
                )
                result = await session.execute(
                    delete(Announcement).where(Announcement.id == announcement_id)
                )
            return result.rowcount == 1

    async def list_comments(self, announcement_id: int) -> list[AnnouncementComment]:
        async with self._session_factory() as session:
            res = await session.execute(
                select(AnnouncementComment)
                .where(AnnouncementComment.announcement_id == announcement_id)
                .order_by(AnnouncementComment.created_at, AnnouncementComment.id)
            )
            return list(res.scalars().all())

    async def get_comment(self, comment_id: int) -> Optional[AnnouncementComment]:
        async with self._session_factory() as session:
            return await session.get(AnnouncementComment, comment_id)

    async def create_comment(
        self, announcement_id: int, author_id: int, content: str, is_private: bool
    ) -> AnnouncementComment:
        async with self._session_factory() as session:
            comment = AnnouncementComment(
                announcement_id=announcement_id,
                author_id=author_id,
                content=content,
                is_private=is_private,
                created_at=utc_now(),
            )
            session.add(comment)
            await session.commit()
            return comment

    async def update_comment(
        self, comment_id: int, content: str
    ) -> Optional[AnnouncementComment]:
        async with self._session_factory() as session:
            comment = await session.get(AnnouncementComment, comment_id)
            if comment is None:
                return None
            comment.content = content
            comment.updated_at = utc_now()
            await session.commit()
            return comment

    async def delete_comment(self, comment_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(AnnouncementComment).where(AnnouncementComment.id == comment_id)
            )
            await session.commit()
            return result.rowcount == 1


class SqlAlchemyMaterialRepo(MaterialRepositoryProtocol):
    def __init__(self, engine: AsyncEngine) -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def list_for_course(self, course_id: int) -> list[Material]:
        async with self._session_factory() as session:
            res = await session.execute(
                select(Material)
                .where(Material.course_id == course_id)
                .order_by(Material.created_at.desc(), Material.id.desc())
            )
            return list(res.scalars().all())

    async def get_by_id(self, material_id: int) -> Optional[Material]:
        async with self._session_factory() as session:
            return await session.get(Material, material_id)

    async def create_material(
        self, course_id: int, author_id: int, fields: dict[str, Any]
    ) -> Material:
        async with self._session_factory() as session:
            material = Material(
                material_uuid=str(uuid4()),
                course_id=course_id,
                author_id=author_id,
                created_at=utc_now(),
                **fields,
            )
            session.add(material)
            await session.commit()
            return material

    async def update_material(
        self, material_id: int, fields: dict[str, Any]
    ) -> Optional[Material]:
        async with self._session_factory() as session:
            material = await session.get(Material, material_id)
            if material is None:
                return None
            for key, value in fields.items():
                setattr(material, key, value)
            material.updated_at = utc_now()
            await session.commit()
            return material

    async def delete_material(self, material_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(delete(Material).where(Material.id == material_id))
            await session.commit()
            return result.rowcount == 1
