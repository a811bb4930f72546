from __future__ import annotations

from typing import Any, Optional

from classroom_common.domain_enums import MembershipRole
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from services.classroom_service.models_db import (
    Announcement,
    AnnouncementComment,
    Assignment,
    Course,
    CourseMember,
    EnrollmentRequest,
    Material,
    Submission,
    User,
)
from services.classroom_service.protocols import (
    CourseRepositoryProtocol,
    MembershipLedgerProtocol,
)
from services.classroom_service.time_utils import utc_now

RECENT_MEMBERS_LIMIT = 5


class SqlAlchemyMembershipLedger(MembershipLedgerProtocol):
    """Course membership rows: the only input to course-level authorization."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def get_role(self, course_id: int, user_id: int) -> Optional[MembershipRole]:
        async with self._session_factory() as session:
            res = await session.execute(
                select(CourseMember.role).where(
                    CourseMember.course_id == course_id, CourseMember.user_id == user_id
                )
            )
            role = res.scalar_one_or_none()
            return MembershipRole(role) if role is not None else None

    async def add_member(self, course_id: int, user_id: int, role: MembershipRole) -> bool:
        async with self._session_factory() as session:
            session.add(CourseMember(course_id=course_id, user_id=user_id, role=role.value))
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                return False
            return True

    async def remove_member(self, course_id: int, user_id: int) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(CourseMember).where(
                    CourseMember.course_id == course_id, CourseMember.user_id == user_id
                )
            )
            await session.commit()
            return result.rowcount == 1

    async def list_members(self, course_id: int) -> list[tuple[CourseMember, User]]:
        async with self._session_factory() as session:
            res = await session.execute(
                select(CourseMember, User)
                .join(User, User.id == CourseMember.user_id)
                .where(CourseMember.course_id == course_id)
                .order_by(CourseMember.joined_at.desc(), User.id.desc())
            )
            return [(member, user) for member, user in res.all()]

    async def list_user_ids(
        self, course_id: int, role: MembershipRole | None = None
    ) -> list[int]:
        async with self._session_factory() as session:
            stmt = select(CourseMember.user_id).where(CourseMember.course_id == course_id)
            if role is not None:
                stmt = stmt.where(CourseMember.role == role.value)
            res = await session.execute(stmt.order_by(CourseMember.user_id))
            return list(res.scalars().all())


class SqlAlchemyCourseRepo(CourseRepositoryProtocol):
    def __init__(self, engine: AsyncEngine) -> None:
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def create_course(
        self, teacher_id: int, enrollment_code: str, fields: dict[str, Any]
    ) -> Course:
        """Insert the course and its creator's Teacher membership atomically."""
        async with self._session_factory() as session:
            async with session.begin():
                course = Course(enrollment_code=enrollment_code, **fields)
                session.add(course)
                await session.flush()
                session.add(
                    CourseMember(
                        course_id=course.id,
                        user_id=teacher_id,
                        role=MembershipRole.TEACHER.value,
                    )
                )
            return course

    async def get_by_id(self, course_id: int) -> Optional[Course]:
        async with self._session_factory() as session:
            return await session.get(Course, course_id)

    async def get_by_enrollment_code(self, code: str) -> Optional[Course]:
        async with self._session_factory() as session:
            res = await session.execute(
                select(Course).where(Course.enrollment_code == code.upper())
            )
            return res.scalar_one_or_none()

    async def enrollment_code_exists(self, code: str) -> bool:
        return await self.get_by_enrollment_code(code) is not None

    async def list_for_user(self, user_id: int) -> list[tuple[Course, str]]:
        async with self._session_factory() as session:
            res = await session.execute(
                select(Course, CourseMember.role)
                .join(CourseMember, CourseMember.course_id == Course.id)
                .where(CourseMember.user_id == user_id)
                .order_by(Course.created_at.desc(), Course.id.desc())
            )
            return [(course, role) for course, role in res.all()]

    async def update_course(self, course_id: int, fields: dict[str, Any]) -> Optional[Course]:
        async with self._session_factory() as session:
            course = await session.get(Course, course_id)
            if course is None:
                return None
            for key, value in fields.items():
                setattr(course, key, value)
            course.updated_at = utc_now()
            await session.commit()
            return course

    async def set_enrollment_code(self, course_id: int, code: str) -> Optional[Course]:
        return await self.update_course(course_id, {"enrollment_code": code})

    async def delete_course(self, course_id: int) -> bool:
        """Delete the course and everything scoped to it in one transaction."""
        async with self._session_factory() as session:
            async with session.begin():
                course = await session.get(Course, course_id)
                if course is None:
                    return False
                announcement_ids = select(Announcement.id).where(
                    Announcement.course_id == course_id
                )
                assignment_ids = select(Assignment.id).where(Assignment.course_id == course_id)
                await session.execute(
                    delete(AnnouncementComment).where(
                        AnnouncementComment.announcement_id.in_(announcement_ids)
                    )
                )
                await session.execute(
                    delete(Announcement).where(Announcement.course_id == course_id)
                )
                await session.execute(
                    delete(Submission).where(Submission.assignment_id.in_(assignment_ids))
                )
                await session.execute(delete(Assignment).where(Assignment.course_id == course_id))
                await session.execute(delete(Material).where(Material.course_id == course_id))
                await session.execute(
                    delete(EnrollmentRequest).where(EnrollmentRequest.course_id == course_id)
                )
                await session.execute(
                    delete(CourseMember).where(CourseMember.course_id == course_id)
                )
                await session.delete(course)
            return True

    async def get_course_stats(self, course_id: int) -> dict[str, Any]:
        async with self._session_factory() as session:
            role_counts = await session.execute(
                select(CourseMember.role, func.count())
                .where(CourseMember.course_id == course_id)
                .group_by(CourseMember.role)
            )
            by_role = {role: count for role, count in role_counts.all()}
            assignment_count = await session.scalar(
                select(func.count())
                .select_from(Assignment)
                .where(Assignment.course_id == course_id)
            )
            announcement_count = await session.scalar(
                select(func.count())
                .select_from(Announcement)
                .where(Announcement.course_id == course_id)
            )
            recent = await session.execute(
                select(CourseMember, User)
                .join(User, User.id == CourseMember.user_id)
                .where(CourseMember.course_id == course_id)
                .order_by(CourseMember.joined_at.desc(), User.id.desc())
                .limit(RECENT_MEMBERS_LIMIT)
            )
            students = by_role.get(MembershipRole.STUDENT.value, 0)
            teachers = by_role.get(MembershipRole.TEACHER.value, 0)
            return {
                "member_count": students + teachers,
                "student_count": students,
                "teacher_count": teachers,
                "assignment_count": assignment_count or 0,
                "announcement_count": announcement_count or 0,
                "recent_members": [(member, user) for member, user in recent.all()],
            }
