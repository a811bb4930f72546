"""Protocol definitions for Classroom Service dependency injection.

Repositories return ORM rows or ``None``; they never decide whether the
caller is allowed to see them. Authorization lives in the domain handlers.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, NamedTuple, Optional, Protocol

from classroom_common.domain_enums import MembershipRole
from classroom_common.models.notification_models import LiveNotification
from fastapi import WebSocket

from services.classroom_service.models_db import (
    Announcement,
    AnnouncementComment,
    Assignment,
    Course,
    CourseMember,
    EnrollmentRequest,
    Material,
    Notification,
    RefreshToken,
    Submission,
    User,
)


class EmailSendResult(NamedTuple):
    """Result of sending an email through a provider."""

    success: bool
    provider_message_id: str | None = None
    error_message: str | None = None


class RenderedTemplate(NamedTuple):
    subject: str
    html_content: str
    text_content: str | None = None


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, hash: str, password: str) -> bool: ...


class TokenIssuer(Protocol):
    def issue_access_token(self, user: User) -> tuple[str, str, datetime]: ...  # token, jti, exp
    def generate_refresh_secret(self) -> str: ...
    def verify_access_token(self, token: str) -> Optional[dict[str, Any]]: ...
    def decode_ignoring_expiry(self, token: str) -> Optional[dict[str, Any]]: ...


class UserRepositoryProtocol(Protocol):
    async def create_user(
        self, name: str, email: str, password_hash: str, role: str
    ) -> Optional[User]: ...
    async def get_user_by_email(self, email: str) -> Optional[User]: ...
    async def get_user_by_id(self, user_id: int) -> Optional[User]: ...
    async def update_profile(
        self, user_id: int, name: str | None, avatar: str | None
    ) -> Optional[User]: ...
    async def update_password(self, user_id: int, password_hash: str) -> None: ...


class RefreshTokenRepositoryProtocol(Protocol):
    async def create_token(
        self,
        user_id: int,
        token: str,
        jwt_id: str,
        issued_at: datetime,
        expires_at: datetime,
    ) -> RefreshToken: ...
    async def get_by_token(self, token: str) -> Optional[RefreshToken]: ...
    async def mark_used_if_active(self, token_id: int) -> bool: ...
    async def revoke_all_for_user(self, user_id: int) -> int: ...


class MembershipLedgerProtocol(Protocol):
    async def get_role(self, course_id: int, user_id: int) -> Optional[MembershipRole]: ...
    async def add_member(self, course_id: int, user_id: int, role: MembershipRole) -> bool: ...
    async def remove_member(self, course_id: int, user_id: int) -> bool: ...
    async def list_members(self, course_id: int) -> list[tuple[CourseMember, User]]: ...
    async def list_user_ids(
        self, course_id: int, role: MembershipRole | None = None
    ) -> list[int]: ...


class CourseRepositoryProtocol(Protocol):
    async def create_course(
        self, teacher_id: int, enrollment_code: str, fields: dict[str, Any]
    ) -> Course: ...
    async def get_by_id(self, course_id: int) -> Optional[Course]: ...
    async def get_by_enrollment_code(self, code: str) -> Optional[Course]: ...
    async def enrollment_code_exists(self, code: str) -> bool: ...
    async def list_for_user(self, user_id: int) -> list[tuple[Course, str]]: ...
    async def update_course(self, course_id: int, fields: dict[str, Any]) -> Optional[Course]: ...
    async def set_enrollment_code(self, course_id: int, code: str) -> Optional[Course]: ...
    async def delete_course(self, course_id: int) -> bool: ...
    async def get_course_stats(self, course_id: int) -> dict[str, Any]: ...


class EnrollmentRequestRepositoryProtocol(Protocol):
    async def create_request(
        self, course_id: int, student_id: int, requested_at: datetime
    ) -> Optional[EnrollmentRequest]: ...
    async def get_by_id(self, request_id: int) -> Optional[EnrollmentRequest]: ...
    async def list_for_student(self, student_id: int) -> list[EnrollmentRequest]: ...
    async def list_for_course(
        self, course_id: int, pending_only: bool = False
    ) -> list[EnrollmentRequest]: ...
    async def approve(
        self, request_id: int, teacher_id: int, processed_at: datetime
    ) -> Optional[EnrollmentRequest]: ...
    async def reject(
        self,
        request_id: int,
        teacher_id: int,
        processed_at: datetime,
        reason: str | None,
    ) -> Optional[EnrollmentRequest]: ...
    async def delete_pending(self, request_id: int) -> bool: ...


class AssignmentRepositoryProtocol(Protocol):
    async def list_for_course(self, course_id: int) -> list[Assignment]: ...
    async def get_by_id(self, assignment_id: int) -> Optional[Assignment]: ...
    async def create_assignment(self, course_id: int, fields: dict[str, Any]) -> Assignment: ...
    async def update_assignment(
        self, assignment_id: int, fields: dict[str, Any]
    ) -> Optional[Assignment]: ...
    async def delete_assignment(self, assignment_id: int) -> bool: ...


class SubmissionRepositoryProtocol(Protocol):
    async def create_submission(
        self, assignment_id: int, user_id: int, content: str | None
    ) -> Optional[Submission]: ...
    async def get_by_id(self, submission_id: int) -> Optional[Submission]: ...
    async def list_for_assignment(self, assignment_id: int) -> list[Submission]: ...
    async def list_for_course(self, course_id: int) -> list[tuple[Submission, Assignment]]: ...
    async def list_for_student_in_course(
        self, course_id: int, user_id: int
    ) -> list[Submission]: ...
    async def grade_submission(
        self, submission_id: int, grade: Decimal, feedback: str | None
    ) -> Optional[Submission]: ...
    async def set_feedback(self, submission_id: int, feedback: str) -> Optional[Submission]: ...
    async def delete_submission(self, submission_id: int) -> bool: ...


class MaterialRepositoryProtocol(Protocol):
    async def list_for_course(self, course_id: int) -> list[Material]: ...
    async def get_by_id(self, material_id: int) -> Optional[Material]: ...
    async def create_material(
        self, course_id: int, author_id: int, fields: dict[str, Any]
    ) -> Material: ...
    async def update_material(
        self, material_id: int, fields: dict[str, Any]
    ) -> Optional[Material]: ...
    async def delete_material(self, material_id: int) -> bool: ...


class AnnouncementRepositoryProtocol(Protocol):
    async def list_for_course(self, course_id: int) -> list[Announcement]: ...
    async def get_by_id(self, announcement_id: int) -> Optional[Announcement]: ...
    async def create_announcement(
        self, course_id: int, author_id: int, content: str
    ) -> Announcement: ...
    async def update_announcement(
        self, announcement_id: int, content: str
    ) -> Optional[Announcement]: ...
    async def delete_announcement(self, announcement_id: int) -> bool: ...
    async def list_comments(self, announcement_id: int) -> list[AnnouncementComment]: ...
    async def get_comment(self, comment_id: int) -> Optional[AnnouncementComment]: ...
    async def create_comment(
        self, announcement_id: int, author_id: int, content: str, is_private: bool
    ) -> AnnouncementComment: ...
    async def update_comment(
        self, comment_id: int, content: str
    ) -> Optional[AnnouncementComment]: ...
    async def delete_comment(self, comment_id: int) -> bool: ...


class NotificationRepositoryProtocol(Protocol):
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
    ) -> Notification: ...
    async def get_for_user(self, notification_id: int, user_id: int) -> Optional[Notification]: ...
    async def list_for_user(
        self, user_id: int, limit: int | None = None, offset: int = 0, unread_only: bool = False
    ) -> list[Notification]: ...
    async def count_unread(self, user_id: int) -> int: ...
    async def mark_read(self, notification_id: int, user_id: int) -> bool: ...
    async def mark_all_read(self, user_id: int) -> int: ...
    async def delete_notification(self, notification_id: int, user_id: int) -> bool: ...


class ConnectionRegistryProtocol(Protocol):
    async def connect(self, websocket: WebSocket, user_id: int, topics: list[str]) -> bool: ...
    async def disconnect(self, websocket: WebSocket, user_id: int) -> None: ...
    async def subscribe(self, websocket: WebSocket, topic: str) -> None: ...
    async def unsubscribe(self, websocket: WebSocket, topic: str) -> None: ...
    async def remove_user_from_topic(self, user_id: int, topic: str) -> int: ...
    async def send_to_topic(self, topic: str, message: str) -> int: ...
    def get_connection_count(self, user_id: int) -> int: ...
    def get_total_connections(self) -> int: ...


class TopicPublisherProtocol(Protocol):
    """Delivers a live notification to whoever is subscribed to a topic."""

    async def publish(self, topic: str, notification: LiveNotification) -> int: ...


class EmailProvider(Protocol):
    async def send_email(
        self,
        to: str,
        subject: str,
        html_content: str,
        text_content: str | None = None,
    ) -> EmailSendResult: ...

    def get_provider_name(self) -> str: ...


class TemplateRenderer(Protocol):
    async def render(self, template_id: str, variables: dict[str, Any]) -> RenderedTemplate: ...
