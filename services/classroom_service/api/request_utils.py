"""Helpers shared by the Classroom Service route modules."""

from __future__ import annotations

from pathlib import PurePath
from typing import TypeVar
from uuid import UUID

from classroom_service_libs.error_handling import Outcome, raise_validation_error, unwrap_outcome

from services.classroom_service.config import Settings

SERVICE_NAME = "classroom_service"

T = TypeVar("T")


def unwrap(outcome: Outcome[T], operation: str, correlation_id: UUID) -> T:
    """Return the outcome's value or raise the ClassroomError the error handlers render."""
    return unwrap_outcome(
        outcome, service=SERVICE_NAME, operation=operation, correlation_id=correlation_id
    )


def validate_upload(filename: str, size: int, settings: Settings, correlation_id: UUID) -> None:
    """Reject files over the size limit or with an extension outside the allow list.

    Raises:
        ClassroomError: VALIDATION_ERROR naming the offending field
    """
    if size <= 0:
        raise_validation_error(
            service=SERVICE_NAME,
            operation="validate_upload",
            field="size",
            message="File is empty",
            correlation_id=correlation_id,
        )
    if size > settings.MAX_UPLOAD_SIZE_BYTES:
        raise_validation_error(
            service=SERVICE_NAME,
            operation="validate_upload",
            field="size",
            message=f"File exceeds the maximum size of {settings.MAX_UPLOAD_SIZE_BYTES} bytes",
            correlation_id=correlation_id,
            max_size_bytes=settings.MAX_UPLOAD_SIZE_BYTES,
        )

    extension = PurePath(filename).suffix.lower()
    allowed = {ext.lower() for ext in settings.ALLOWED_FILE_EXTENSIONS}
    if extension not in allowed:
        raise_validation_error(
            service=SERVICE_NAME,
            operation="validate_upload",
            field="filename",
            message=f"File type '{extension or filename}' is not allowed",
            correlation_id=correlation_id,
            allowed_extensions=sorted(allowed),
        )
