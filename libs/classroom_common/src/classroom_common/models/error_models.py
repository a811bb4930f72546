"""
Standardized, PURE data models for errors.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from classroom_common.error_enums import ClassroomErrorCode


class ErrorDetail(BaseModel):
    """
    The canonical data model for an error raised by classroom services.
    This model contains only data fields and no behavior.
    """

    error_code: ClassroomErrorCode
    message: str
    correlation_id: UUID
    timestamp: datetime
    service: str
    operation: str
    details: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)
