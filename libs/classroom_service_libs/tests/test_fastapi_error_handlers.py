"""Tests for the FastAPI error handlers and the error-kind to status mapping."""

from __future__ import annotations

from uuid import uuid4

import pytest
from classroom_common.error_enums import ClassroomErrorCode
from classroom_service_libs.error_handling import raise_error
from classroom_service_libs.error_handling.fastapi import register_error_handlers, status_for
from classroom_service_libs.middleware import CorrelationIDMiddleware
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel


class Payload(BaseModel):
    count: int


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app, service_name="test_service")
    app.add_middleware(CorrelationIDMiddleware)

    @app.get("/fail/{code}")
    async def fail(code: str) -> None:
        raise_error(
            ClassroomErrorCode(code), "Something failed", "test_service", "fail", uuid4(), key=1
        )

    @app.post("/validate")
    async def validate(payload: Payload) -> dict[str, int]:
        return {"count": payload.count}

    return app


@pytest.mark.parametrize(
    "code, expected",
    [
        (ClassroomErrorCode.INVALID_CREDENTIALS, 400),
        (ClassroomErrorCode.INVALID_TOKEN, 400),
        (ClassroomErrorCode.INVALID_REFRESH_TOKEN, 400),
        (ClassroomErrorCode.CONFLICT, 400),
        (ClassroomErrorCode.INVALID_OPERATION, 400),
        (ClassroomErrorCode.VALIDATION_ERROR, 400),
        (ClassroomErrorCode.AUTHENTICATION_ERROR, 401),
        (ClassroomErrorCode.AUTHORIZATION_ERROR, 403),
        (ClassroomErrorCode.RESOURCE_NOT_FOUND, 404),
        (ClassroomErrorCode.DELIVERY_FAILURE, 502),
        (ClassroomErrorCode.PROCESSING_ERROR, 500),
        (ClassroomErrorCode.UNKNOWN_ERROR, 500),
    ],
)
def test_status_for(code: ClassroomErrorCode, expected: int) -> None:
    assert status_for(code) == expected


async def test_classroom_error_renders_error_envelope(app: FastAPI) -> None:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/fail/AUTHORIZATION_ERROR")

    assert response.status_code == 403
    body = response.json()
    assert body["error"]["error_code"] == "AUTHORIZATION_ERROR"
    assert body["error"]["message"] == "Something failed"
    assert body["error"]["details"] == {"key": 1}
    assert "X-Correlation-ID" in response.headers


async def test_request_validation_uses_the_same_envelope(app: FastAPI) -> None:
    correlation_id = uuid4()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.post(
            "/validate",
            json={"count": "many"},
            headers={"X-Correlation-ID": str(correlation_id)},
        )

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["error_code"] == "VALIDATION_ERROR"
    assert error["service"] == "test_service"
    assert error["correlation_id"] == str(correlation_id)
    assert error["details"]["errors"][0]["loc"] == ["body", "count"]
