"""Error handling utilities for classroom services.

Framework handlers live in ``classroom_service_libs.error_handling.fastapi``.
"""

from classroom_service_libs.error_handling.classroom_error import ClassroomError
from classroom_service_libs.error_handling.factories import (
    create_error_detail,
    raise_authentication_error,
    raise_authorization_error,
    raise_conflict_error,
    raise_delivery_failure,
    raise_error,
    raise_invalid_credentials_error,
    raise_invalid_operation_error,
    raise_invalid_refresh_token_error,
    raise_invalid_token_error,
    raise_processing_error,
    raise_resource_not_found,
    raise_validation_error,
)
from classroom_service_libs.error_handling.outcome import Failure, Outcome, unwrap_outcome

__all__ = [
    "ClassroomError",
    "Failure",
    "Outcome",
    "create_error_detail",
    "raise_authentication_error",
    "raise_authorization_error",
    "raise_conflict_error",
    "raise_delivery_failure",
    "raise_error",
    "raise_invalid_credentials_error",
    "raise_invalid_operation_error",
    "raise_invalid_refresh_token_error",
    "raise_invalid_token_error",
    "raise_processing_error",
    "raise_resource_not_found",
    "raise_validation_error",
    "unwrap_outcome",
]
