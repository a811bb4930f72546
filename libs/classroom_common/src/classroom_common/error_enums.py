"""
classroom_common.error_enums - Centralized error code definitions.

Codes name the *kind* of failure. Transport status codes are chosen by the
HTTP boundary, never by domain code.
"""

from __future__ import annotations

from enum import Enum


class ClassroomErrorCode(str, Enum):
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    PROCESSING_ERROR = "PROCESSING_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Authentication
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"  # Same message for unknown account and bad password
    INVALID_TOKEN = "INVALID_TOKEN"  # Access token signature/issuer/audience/algorithm
    INVALID_REFRESH_TOKEN = "INVALID_REFRESH_TOKEN"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"  # Missing or unusable bearer credentials

    # Authorization and resources
    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"  # Authenticated, but a guard predicate failed
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # State machine invariants
    CONFLICT = "CONFLICT"
    INVALID_OPERATION = "INVALID_OPERATION"

    # Downstream transports
    DELIVERY_FAILURE = "DELIVERY_FAILURE"
