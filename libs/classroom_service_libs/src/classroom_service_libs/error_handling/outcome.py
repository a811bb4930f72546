"""
Explicit success/failure results for domain operations.

Domain handlers report expected failures (not enrolled, not the teacher,
request no longer pending) as a failed ``Outcome`` carrying an error kind.
Only the HTTP boundary converts a failure into a raised ClassroomError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, NoReturn, TypeVar
from uuid import UUID

from classroom_common.error_enums import ClassroomErrorCode

from classroom_service_libs.error_handling.factories import raise_error

T = TypeVar("T")


@dataclass(frozen=True)
class Failure:
    error_code: ClassroomErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    value: T | None = None
    failure: Failure | None = None

    @classmethod
    def success(cls, value: T) -> Outcome[T]:
        return cls(value=value)

    @classmethod
    def fail(cls, error_code: ClassroomErrorCode, message: str, **details: Any) -> Outcome[T]:
        return cls(failure=Failure(error_code=error_code, message=message, details=details))

    @classmethod
    def not_found(cls, resource_type: str, resource_id: Any) -> Outcome[T]:
        return cls.fail(
            ClassroomErrorCode.RESOURCE_NOT_FOUND,
            f"{resource_type} with ID '{resource_id}' not found",
            resource_type=resource_type,
            resource_id=str(resource_id),
        )

    @classmethod
    def unauthorized(cls, message: str, **details: Any) -> Outcome[T]:
        return cls.fail(ClassroomErrorCode.AUTHORIZATION_ERROR, message, **details)

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def error_code(self) -> ClassroomErrorCode | None:
        return self.failure.error_code if self.failure else None

    def propagate(self) -> Outcome[Any]:
        """Re-type a failure so it can be returned from a caller with another value type."""
        if self.failure is None:
            raise ValueError("Cannot propagate a successful outcome")
        return Outcome(failure=self.failure)


def unwrap_outcome(
    outcome: Outcome[T],
    *,
    service: str,
    operation: str,
    correlation_id: UUID,
) -> T:
    """Return the value of a successful outcome or raise the matching ClassroomError."""
    if outcome.failure is not None:
        _raise_failure(outcome.failure, service, operation, correlation_id)
    return outcome.value  # type: ignore[return-value]


def _raise_failure(
    failure: Failure, service: str, operation: str, correlation_id: UUID
) -> NoReturn:
    raise_error(
        failure.error_code,
        failure.message,
        service,
        operation,
        correlation_id,
        **failure.details,
    )
