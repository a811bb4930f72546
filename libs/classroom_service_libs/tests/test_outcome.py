"""Unit tests for Outcome results and their conversion at the HTTP boundary."""

from __future__ import annotations

from uuid import uuid4

import pytest
from classroom_common.error_enums import ClassroomErrorCode
from classroom_service_libs.error_handling import ClassroomError, Outcome, unwrap_outcome


class TestOutcome:
    def test_success_carries_value(self) -> None:
        outcome = Outcome.success({"id": 1})

        assert outcome.ok
        assert outcome.value == {"id": 1}
        assert outcome.error_code is None

    def test_success_may_carry_none(self) -> None:
        assert Outcome.success(None).ok

    def test_fail_keeps_code_message_and_details(self) -> None:
        outcome: Outcome[int] = Outcome.fail(
            ClassroomErrorCode.CONFLICT, "Already pending", course_id=4
        )

        assert not outcome.ok
        assert outcome.error_code is ClassroomErrorCode.CONFLICT
        assert outcome.failure.message == "Already pending"
        assert outcome.failure.details == {"course_id": 4}

    def test_not_found_names_the_resource(self) -> None:
        outcome: Outcome[int] = Outcome.not_found("Notification", 12)

        assert outcome.error_code is ClassroomErrorCode.RESOURCE_NOT_FOUND
        assert outcome.failure.details == {"resource_type": "Notification", "resource_id": "12"}

    def test_unauthorized_is_an_authorization_failure(self) -> None:
        outcome: Outcome[int] = Outcome.unauthorized("Not your course")

        assert outcome.error_code is ClassroomErrorCode.AUTHORIZATION_ERROR

    def test_propagate_keeps_the_failure(self) -> None:
        original: Outcome[int] = Outcome.unauthorized("Not your course")

        propagated = original.propagate()

        assert propagated.failure is original.failure
        assert propagated.value is None

    def test_propagate_refuses_a_success(self) -> None:
        with pytest.raises(ValueError):
            Outcome.success(1).propagate()


class TestUnwrapOutcome:
    def test_returns_value(self) -> None:
        assert (
            unwrap_outcome(
                Outcome.success("ok"), service="svc", operation="op", correlation_id=uuid4()
            )
            == "ok"
        )

    def test_raises_classroom_error(self) -> None:
        correlation_id = uuid4()
        outcome: Outcome[str] = Outcome.fail(
            ClassroomErrorCode.INVALID_OPERATION, "Request already processed", status="Approved"
        )

        with pytest.raises(ClassroomError) as exc_info:
            unwrap_outcome(
                outcome,
                service="classroom_service",
                operation="process_enrollment_request",
                correlation_id=correlation_id,
            )

        error = exc_info.value
        assert error.error_code is ClassroomErrorCode.INVALID_OPERATION
        assert error.correlation_id == str(correlation_id)
        assert error.error_detail.details == {"status": "Approved"}
        assert "process_enrollment_request" in str(error)
