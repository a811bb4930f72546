"""Unit tests for HTTP boundary helpers."""

from __future__ import annotations

from uuid import uuid4

import pytest
from classroom_common.error_enums import ClassroomErrorCode
from classroom_service_libs.error_handling import ClassroomError, Outcome

from services.classroom_service.api.request_utils import unwrap, validate_upload
from services.classroom_service.config import Settings


@pytest.fixture
def upload_settings() -> Settings:
    return Settings(MAX_UPLOAD_SIZE_BYTES=1024, ALLOWED_FILE_EXTENSIONS=[".pdf", ".txt"])


def test_unwrap_returns_success_value() -> None:
    assert unwrap(Outcome.success(5), "op", uuid4()) == 5


def test_unwrap_raises_failure_with_details() -> None:
    correlation_id = uuid4()

    with pytest.raises(ClassroomError) as exc_info:
        unwrap(Outcome.not_found("Course", 3), "get_course", correlation_id)

    detail = exc_info.value.error_detail
    assert detail.error_code is ClassroomErrorCode.RESOURCE_NOT_FOUND
    assert detail.operation == "get_course"
    assert detail.service == "classroom_service"
    assert detail.correlation_id == correlation_id
    assert detail.details["resource_id"] == "3"


def test_accepts_allowed_file(upload_settings: Settings) -> None:
    validate_upload("Essay.PDF", 512, upload_settings, uuid4())


@pytest.mark.parametrize(
    "filename, size, field",
    [
        ("essay.pdf", 0, "size"),
        ("essay.pdf", 2048, "size"),
        ("script.exe", 10, "filename"),
        ("no_extension", 10, "filename"),
    ],
)
def test_rejects_invalid_upload(
    upload_settings: Settings, filename: str, size: int, field: str
) -> None:
    with pytest.raises(ClassroomError) as exc_info:
        validate_upload(filename, size, upload_settings, uuid4())

    assert exc_info.value.error_code is ClassroomErrorCode.VALIDATION_ERROR
    assert exc_info.value.error_detail.details["field"] == field
