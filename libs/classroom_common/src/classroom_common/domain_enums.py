"""
classroom_common.domain_enums - Enums for the classroom domain.

String values are persisted and appear in token claims, so they are part of
the wire contract and must not change.
"""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """Account-level role carried in the access token ``role`` claim."""

    STUDENT = "Student"
    TEACHER = "Teacher"


class MembershipRole(str, Enum):
    """Role a principal holds inside one course."""

    STUDENT = "Student"
    TEACHER = "Teacher"


class EnrollmentStatus(str, Enum):
    """Enrollment request lifecycle. Approved and Rejected are terminal."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not EnrollmentStatus.PENDING


class ProcessAction(str, Enum):
    """Actions a teacher may take on a pending enrollment request."""

    APPROVE = "approve"
    REJECT = "reject"


class NotificationKind(str, Enum):
    """Tag for the notification variant; the payload shape depends on it."""

    SUBMISSION_CREATED = "SubmissionCreated"
    SUBMISSION_GRADED = "SubmissionGraded"
    ENROLLMENT_REQUEST = "EnrollmentRequest"
    ENROLLMENT_APPROVED = "EnrollmentApproved"
    ENROLLMENT_REJECTED = "EnrollmentRejected"
    ANNOUNCEMENT_CREATED = "AnnouncementCreated"
    GENERAL = "General"


class AssignmentStatus(str, Enum):
    DRAFT = "Draft"
    PUBLISHED = "Published"
    ARCHIVED = "Archived"
