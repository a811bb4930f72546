"""Request and response models for the Classroom Service HTTP API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from classroom_common.domain_enums import (
    AssignmentStatus,
    EnrollmentStatus,
    MembershipRole,
    NotificationKind,
    UserRole,
)
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class _OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Authentication


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    confirm_password: str
    role: UserRole = UserRole.STUDENT


class LoginRequest(BaseModel):
    # Plain str so malformed addresses fail like unknown ones
    email: str
    password: str


class RefreshTokenRequest(BaseModel):
    access_token: str
    refresh_token: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6, max_length=128)
    confirm_password: str


class UpdateProfileRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    avatar: str | None = Field(default=None, max_length=1024)


class UserResponse(_OrmModel):
    id: int
    name: str
    email: str
    role: UserRole
    avatar: str | None = None
    created_at: datetime | None = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    expires_at: datetime
    token_type: str = "Bearer"
    user: UserResponse


# Courses


class CourseCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    section: str | None = None
    subject: str | None = None
    room: str | None = None
    cover_image: str | None = None
    theme_color: str | None = None


class CourseUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    section: str | None = None
    subject: str | None = None
    room: str | None = None
    cover_image: str | None = None
    theme_color: str | None = None


class CourseResponse(_OrmModel):
    id: int
    name: str
    section: str | None = None
    subject: str | None = None
    room: str | None = None
    teacher_name: str | None = None
    cover_image: str | None = None
    theme_color: str | None = None
    enrollment_code: str | None = None
    created_at: datetime | None = None
    role: MembershipRole | None = None


class MemberResponse(BaseModel):
    user_id: int
    name: str
    email: str
    avatar: str | None = None
    role: MembershipRole
    joined_at: datetime | None = None


class CourseDetailResponse(BaseModel):
    course: CourseResponse
    member_count: int
    student_count: int
    teacher_count: int
    assignment_count: int
    announcement_count: int
    recent_members: list[MemberResponse]


class EnrollByCodeRequest(BaseModel):
    enrollment_code: str = Field(min_length=1, max_length=16)


class InviteRequest(BaseModel):
    email: str
    message: str | None = None


class BulkInviteRequest(BaseModel):
    emails: list[str] = Field(min_length=1)
    message: str | None = None


class InviteFailure(BaseModel):
    email: str
    reason: str


class InviteResponse(BaseModel):
    sent: list[str] = Field(default_factory=list)
    failed: list[InviteFailure] = Field(default_factory=list)


# Enrollment requests


class EnrollmentRequestCreate(BaseModel):
    course_id: int
    message: str | None = None


class ProcessEnrollmentRequest(BaseModel):
    action: str
    rejection_reason: str | None = None


class EnrollmentRequestResponse(_OrmModel):
    id: int
    course_id: int
    student_id: int
    status: EnrollmentStatus
    requested_at: datetime
    processed_at: datetime | None = None
    processed_by_id: int | None = None
    rejection_reason: str | None = None


# Assignments and submissions


class AssignmentCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    instructions: str | None = None
    points: int | None = Field(default=None, ge=0)
    due_at: datetime | None = None
    topic: str | None = None
    status: AssignmentStatus = AssignmentStatus.PUBLISHED
    allow_late_submissions: bool = True


class AssignmentUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    instructions: str | None = None
    points: int | None = Field(default=None, ge=0)
    due_at: datetime | None = None
    topic: str | None = None
    status: AssignmentStatus | None = None
    allow_late_submissions: bool | None = None


class AssignmentResponse(_OrmModel):
    id: int
    course_id: int
    title: str
    instructions: str | None = None
    points: int | None = None
    due_at: datetime | None = None
    topic: str | None = None
    status: AssignmentStatus
    allow_late_submissions: bool
    created_at: datetime


class SubmissionCreateRequest(BaseModel):
    content: str | None = None


class GradeRequest(BaseModel):
    grade: Decimal = Field(ge=0)
    feedback: str | None = None


class FeedbackRequest(BaseModel):
    feedback: str = Field(min_length=1)


class SubmissionResponse(_OrmModel):
    id: int
    assignment_id: int
    user_id: int
    content: str | None = None
    submitted_at: datetime
    grade: Decimal | None = None
    feedback: str | None = None
    graded: bool
    graded_at: datetime | None = None


class GradebookEntry(BaseModel):
    assignment_id: int
    assignment_title: str
    points: int | None = None
    student_id: int
    submission_id: int
    grade: Decimal | None = None
    graded: bool
    submitted_at: datetime


class AssignmentGrade(BaseModel):
    assignment_id: int
    title: str
    due_at: datetime | None = None
    points: int | None = None
    grade: Decimal | None = None
    submitted: bool
    graded: bool
    submitted_at: datetime | None = None


class StudentGradeReport(BaseModel):
    """A student's grades across the published assignments of one course."""

    course_id: int
    student_id: int
    name: str
    avatar: str | None = None
    assignment_average: Decimal
    graded_count: int
    assignment_grades: list[AssignmentGrade]


# Materials


class MaterialCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    topic: str | None = Field(default=None, max_length=255)
    scheduled_for: datetime | None = None
    color: str | None = Field(default=None, max_length=16)


class MaterialUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    topic: str | None = Field(default=None, max_length=255)
    scheduled_for: datetime | None = None
    color: str | None = Field(default=None, max_length=16)


class MaterialResponse(_OrmModel):
    id: int
    material_uuid: str
    course_id: int
    author_id: int
    title: str
    description: str | None = None
    topic: str | None = None
    scheduled_for: datetime | None = None
    color: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


# Announcements and comments


class AnnouncementRequest(BaseModel):
    content: str = Field(min_length=1)


class AnnouncementResponse(_OrmModel):
    id: int
    course_id: int
    author_id: int
    content: str
    created_at: datetime
    updated_at: datetime | None = None


class CommentCreateRequest(BaseModel):
    content: str = Field(min_length=1)
    is_private: bool = False


class CommentUpdateRequest(BaseModel):
    content: str = Field(min_length=1)


class CommentResponse(_OrmModel):
    id: int
    announcement_id: int
    author_id: int
    content: str
    is_private: bool
    created_at: datetime
    updated_at: datetime | None = None


# Notifications


class NotificationResponse(_OrmModel):
    id: int
    kind: NotificationKind
    title: str
    message: str
    read: bool
    created_at: datetime
    course_id: int | None = None
    assignment_id: int | None = None
    submission_id: int | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class CountResponse(BaseModel):
    count: int


class MessageResponse(BaseModel):
    message: str


# Uploads


class UploadCheckRequest(BaseModel):
    filename: str
    size: int = Field(ge=0)
