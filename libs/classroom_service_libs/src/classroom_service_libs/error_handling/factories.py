"""
Factories that build an ErrorDetail and raise ClassroomError.

Every factory is annotated ``NoReturn`` so type checkers treat the call as a
terminal statement.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, NoReturn
from uuid import UUID

from classroom_common.error_enums import ClassroomErrorCode
from classroom_common.models.error_models import ErrorDetail

from classroom_service_libs.error_handling.classroom_error import ClassroomError


def create_error_detail(
    error_code: ClassroomErrorCode,
    message: str,
    service: str,
    operation: str,
    correlation_id: UUID,
    details: dict[str, Any] | None = None,
) -> ErrorDetail:
    return ErrorDetail(
        error_code=error_code,
        message=message,
        correlation_id=correlation_id,
        timestamp=datetime.now(UTC),
        service=service,
        operation=operation,
        details=details or {},
    )


def raise_error(
    error_code: ClassroomErrorCode,
    message: str,
    service: str,
    operation: str,
    correlation_id: UUID,
    **details: Any,
) -> NoReturn:
    raise ClassroomError(
        create_error_detail(error_code, message, service, operation, correlation_id, details)
    )


def raise_invalid_credentials_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **details: Any,
) -> NoReturn:
    raise_error(
        ClassroomErrorCode.INVALID_CREDENTIALS, message, service, operation, correlation_id,
        **details,
    )


def raise_invalid_token_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **details: Any,
) -> NoReturn:
    raise_error(
        ClassroomErrorCode.INVALID_TOKEN, message, service, operation, correlation_id, **details
    )


def raise_invalid_refresh_token_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **details: Any,
) -> NoReturn:
    raise_error(
        ClassroomErrorCode.INVALID_REFRESH_TOKEN, message, service, operation, correlation_id,
        **details,
    )


def raise_authentication_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    reason: str | None = None,
    **details: Any,
) -> NoReturn:
    if reason:
        details["reason"] = reason
    raise_error(
        ClassroomErrorCode.AUTHENTICATION_ERROR, message, service, operation, correlation_id,
        **details,
    )


def raise_authorization_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **details: Any,
) -> NoReturn:
    raise_error(
        ClassroomErrorCode.AUTHORIZATION_ERROR, message, service, operation, correlation_id,
        **details,
    )


def raise_resource_not_found(
    service: str,
    operation: str,
    resource_type: str,
    resource_id: Any,
    correlation_id: UUID,
    **details: Any,
) -> NoReturn:
    raise_error(
        ClassroomErrorCode.RESOURCE_NOT_FOUND,
        f"{resource_type} with ID '{resource_id}' not found",
        service,
        operation,
        correlation_id,
        resource_type=resource_type,
        resource_id=str(resource_id),
        **details,
    )


def raise_conflict_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **details: Any,
) -> NoReturn:
    raise_error(
        ClassroomErrorCode.CONFLICT, message, service, operation, correlation_id, **details
    )


def raise_invalid_operation_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **details: Any,
) -> NoReturn:
    raise_error(
        ClassroomErrorCode.INVALID_OPERATION, message, service, operation, correlation_id,
        **details,
    )


def raise_validation_error(
    service: str,
    operation: str,
    field: str,
    message: str,
    correlation_id: UUID,
    **details: Any,
) -> NoReturn:
    raise_error(
        ClassroomErrorCode.VALIDATION_ERROR,
        message,
        service,
        operation,
        correlation_id,
        field=field,
        **details,
    )


def raise_delivery_failure(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **details: Any,
) -> NoReturn:
    raise_error(
        ClassroomErrorCode.DELIVERY_FAILURE, message, service, operation, correlation_id,
        **details,
    )


def raise_processing_error(
    service: str,
    operation: str,
    message: str,
    correlation_id: UUID,
    **details: Any,
) -> NoReturn:
    raise_error(
        ClassroomErrorCode.PROCESSING_ERROR, message, service, operation, correlation_id,
        **details,
    )
