"""Exception type carrying a structured ErrorDetail."""

from __future__ import annotations

from typing import Any

from classroom_common.error_enums import ClassroomErrorCode
from classroom_common.models.error_models import ErrorDetail


class ClassroomError(Exception):
    """Raised at service boundaries; the FastAPI handlers turn it into a response."""

    def __init__(self, error_detail: ErrorDetail) -> None:
        super().__init__(error_detail.message)
        self.error_detail = error_detail

    @property
    def error_code(self) -> ClassroomErrorCode:
        return self.error_detail.error_code

    @property
    def correlation_id(self) -> str:
        return str(self.error_detail.correlation_id)

    def add_detail(self, key: str, value: Any) -> ClassroomError:
        """Return a copy of this error with an extra entry in ``details``."""
        details = {**self.error_detail.details, key: value}
        return ClassroomError(self.error_detail.model_copy(update={"details": details}))

    def __str__(self) -> str:
        return (
            f"{self.error_detail.error_code.value}: {self.error_detail.message} "
            f"[{self.error_detail.service}.{self.error_detail.operation}]"
        )
