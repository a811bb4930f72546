"""
Classroom Common Core Package.

Pure contracts shared between the classroom service and its libraries:
enums, error codes and wire models. No behavior lives here.
"""

from .config_enums import Environment
from .domain_enums import (
    EnrollmentStatus,
    MembershipRole,
    NotificationKind,
    ProcessAction,
    UserRole,
)
from .error_enums import ClassroomErrorCode
from .models.error_models import ErrorDetail
from .models.notification_models import LiveNotification
from .websocket_enums import TopicScope, WebSocketAction

__all__ = [
    "ClassroomErrorCode",
    "EnrollmentStatus",
    "Environment",
    "ErrorDetail",
    "LiveNotification",
    "MembershipRole",
    "NotificationKind",
    "ProcessAction",
    "TopicScope",
    "UserRole",
    "WebSocketAction",
]
