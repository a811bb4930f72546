"""Course stream: announcements and their comments."""

from __future__ import annotations

from classroom_common.domain_enums import MembershipRole, NotificationKind
from classroom_service_libs.error_handling import Outcome
from classroom_service_libs.logging_utils import create_service_logger

from services.classroom_service.api.schemas import (
    AnnouncementRequest,
    AnnouncementResponse,
    CommentCreateRequest,
    CommentResponse,
    CommentUpdateRequest,
    MessageResponse,
)
from services.classroom_service.domain_handlers.authorization_guard import AuthorizationGuard
from services.classroom_service.domain_handlers.notification_broadcaster import (
    NotificationBroadcaster,
    NotificationDraft,
)
from services.classroom_service.models_db import Announcement, AnnouncementComment
from services.classroom_service.principal import CurrentPrincipal
from services.classroom_service.protocols import (
    AnnouncementRepositoryProtocol,
    CourseRepositoryProtocol,
    MembershipLedgerProtocol,
)

logger = create_service_logger("classroom_service.domain_handlers.announcement")

PREVIEW_LENGTH = 100


class AnnouncementHandler:
    def __init__(
        self,
        announcement_repo: AnnouncementRepositoryProtocol,
        course_repo: CourseRepositoryProtocol,
        ledger: MembershipLedgerProtocol,
        guard: AuthorizationGuard,
        broadcaster: NotificationBroadcaster,
    ) -> None:
        self._announcement_repo = announcement_repo
        self._course_repo = course_repo
        self._ledger = ledger
        self._guard = guard
        self._broadcaster = broadcaster

    async def list_course_announcements(
        self, principal: CurrentPrincipal, course_id: int
    ) -> Outcome[list[AnnouncementResponse]]:
        if not await self._guard.is_enrolled(course_id, principal.id):
            return Outcome.success([])
        rows = await self._announcement_repo.list_for_course(course_id)
        return Outcome.success([AnnouncementResponse.model_validate(a) for a in rows])

    async def create_announcement(
        self, principal: CurrentPrincipal, course_id: int, request: AnnouncementRequest
    ) -> Outcome[AnnouncementResponse]:
        """Post to the stream and push a live, unsaved heads-up to the course topic."""
        course = await self._course_repo.get_by_id(course_id)
        if course is None:
            return Outcome.not_found("Course", course_id)
        if not await self._guard.is_teacher_of(course_id, principal.id):
            return Outcome.unauthorized("Only teachers of this course can post announcements")

        announcement = await self._announcement_repo.create_announcement(
            course_id, principal.id, request.content
        )
        logger.info(
            "Announcement posted",
            extra={"announcement_id": announcement.id, "course_id": course_id},
        )
        await self._broadcaster.broadcast_to_course(
            course_id,
            NotificationDraft(
                kind=NotificationKind.ANNOUNCEMENT_CREATED,
                title=f"New announcement in {course.name}",
                message=request.content[:PREVIEW_LENGTH],
                course_id=course_id,
                payload={
                    "announcementId": announcement.id,
                    "courseId": course_id,
                    "courseName": course.name,
                    "authorId": principal.id,
                    "authorName": principal.name,
                },
            ),
        )
        return Outcome.success(AnnouncementResponse.model_validate(announcement))

    async def update_announcement(
        self, principal: CurrentPrincipal, announcement_id: int, request: AnnouncementRequest
    ) -> Outcome[AnnouncementResponse]:
        announcement = await self._announcement_repo.get_by_id(announcement_id)
        if announcement is None:
            return Outcome.not_found("Announcement", announcement_id)
        if not await self._guard.is_teacher_of(announcement.course_id, principal.id):
            return Outcome.unauthorized("Only teachers of this course can edit announcements")

        updated = await self._announcement_repo.update_announcement(
            announcement_id, request.content
        )
        if updated is None:
            return Outcome.not_found("Announcement", announcement_id)
        return Outcome.success(AnnouncementResponse.model_validate(updated))

    async def delete_announcement(
        self, principal: CurrentPrincipal, announcement_id: int
    ) -> Outcome[MessageResponse]:
        announcement = await self._announcement_repo.get_by_id(announcement_id)
        if announcement is None:
            return Outcome.not_found("Announcement", announcement_id)
        if not await self._guard.is_teacher_of(announcement.course_id, principal.id):
            return Outcome.unauthorized("Only teachers of this course can delete announcements")

        await self._announcement_repo.delete_announcement(announcement_id)
        return Outcome.success(MessageResponse(message="Announcement deleted"))

    async def list_comments(
        self, principal: CurrentPrincipal, announcement_id: int
    ) -> Outcome[list[CommentResponse]]:
        """Private comments are visible to their author and to the course's teachers."""
        announcement = await self._announcement_repo.get_by_id(announcement_id)
        if announcement is None:
            return Outcome.not_found("Announcement", announcement_id)
        role = await self._ledger.get_role(announcement.course_id, principal.id)
        if role is None:
            return Outcome.unauthorized("You are not enrolled in this course")

        comments = await self._announcement_repo.list_comments(announcement_id)
        if role is not MembershipRole.TEACHER:
            comments = [c for c in comments if not c.is_private or c.author_id == principal.id]
        return Outcome.success([CommentResponse.model_validate(c) for c in comments])

    async def create_comment(
        self, principal: CurrentPrincipal, announcement_id: int, request: CommentCreateRequest
    ) -> Outcome[CommentResponse]:
        announcement = await self._announcement_repo.get_by_id(announcement_id)
        if announcement is None:
            return Outcome.not_found("Announcement", announcement_id)
        if not await self._guard.is_enrolled(announcement.course_id, principal.id):
            return Outcome.unauthorized("You are not enrolled in this course")

        comment = await self._announcement_repo.create_comment(
            announcement_id, principal.id, request.content, request.is_private
        )
        return Outcome.success(CommentResponse.model_validate(comment))

    async def update_comment(
        self, principal: CurrentPrincipal, comment_id: int, request: CommentUpdateRequest
    ) -> Outcome[CommentResponse]:
        loaded = await self._load_comment(comment_id)
        if loaded is None:
            return Outcome.not_found("Comment", comment_id)
        comment, announcement = loaded
        if not await self._guard.is_owner_or_teacher(
            comment.author_id, announcement.course_id, principal.id
        ):
            return Outcome.unauthorized("You can only edit your own comments")

        updated = await self._announcement_repo.update_comment(comment_id, request.content)
        if updated is None:
            return Outcome.not_found("Comment", comment_id)
        return Outcome.success(CommentResponse.model_validate(updated))

    async def delete_comment(
        self, principal: CurrentPrincipal, comment_id: int
    ) -> Outcome[MessageResponse]:
        loaded = await self._load_comment(comment_id)
        if loaded is None:
            return Outcome.not_found("Comment", comment_id)
        comment, announcement = loaded
        if not await self._guard.is_owner_or_teacher(
            comment.author_id, announcement.course_id, principal.id
        ):
            return Outcome.unauthorized("You can only delete your own comments")

        await self._announcement_repo.delete_comment(comment_id)
        return Outcome.success(MessageResponse(message="Comment deleted"))

    async def _load_comment(
        self, comment_id: int
    ) -> tuple[AnnouncementComment, Announcement] | None:
        comment = await self._announcement_repo.get_comment(comment_id)
        if comment is None:
            return None
        announcement = await self._announcement_repo.get_by_id(comment.announcement_id)
        if announcement is None:
            return None
        return comment, announcement
