"""Tests for the live notification WebSocket endpoint."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Optional

import pytest
from classroom_common.domain_enums import MembershipRole
from dishka import AsyncContainer, Provider, Scope, make_async_container, provide
from dishka.integrations.fastapi import setup_dishka
from fastapi import FastAPI
from fastapi.testclient import TestClient
from fastapi.websockets import WebSocketDisconnect
from prometheus_client import CollectorRegistry

from services.classroom_service.api import websocket_routes
from services.classroom_service.config import Settings
from services.classroom_service.domain_handlers.authorization_guard import AuthorizationGuard
from services.classroom_service.implementations.connection_registry import ConnectionRegistry
from services.classroom_service.implementations.token_issuer_impl import HS256TokenIssuer
from services.classroom_service.metrics import ClassroomMetrics
from services.classroom_service.protocols import ConnectionRegistryProtocol, TokenIssuer

ENROLLED_COURSE_ID = 11
USER = SimpleNamespace(id=3, email="sam@example.com", name="Sam", role="Student")


class SingleCourseLedger:
    async def get_role(self, course_id: int, user_id: int) -> Optional[MembershipRole]:
        if course_id == ENROLLED_COURSE_ID and user_id == USER.id:
            return MembershipRole.STUDENT
        return None


class WebSocketTestProvider(Provider):
    scope = Scope.APP

    def __init__(self, registry: ConnectionRegistry) -> None:
        super().__init__()
        self._registry = registry

    @provide
    def get_config(self) -> Settings:
        return Settings(JWT_SECRET="websocket-test-secret-long-enough")

    @provide
    def provide_token_issuer(self, config: Settings) -> TokenIssuer:
        return HS256TokenIssuer(config)

    @provide
    def provide_connection_registry(self) -> ConnectionRegistryProtocol:
        return self._registry

    @provide
    def provide_guard(self) -> AuthorizationGuard:
        return AuthorizationGuard(SingleCourseLedger())  # type: ignore[arg-type]

    @provide
    def provide_metrics(self) -> ClassroomMetrics:
        return ClassroomMetrics(registry=CollectorRegistry())


@pytest.fixture
def connection_registry() -> ConnectionRegistry:
    return ConnectionRegistry(max_connections_per_user=1)


@pytest.fixture
def ws_container(connection_registry: ConnectionRegistry) -> AsyncContainer:
    return make_async_container(WebSocketTestProvider(connection_registry))


@pytest.fixture
def ws_app(ws_container: AsyncContainer) -> FastAPI:
    app = FastAPI()
    app.include_router(websocket_routes.router)
    setup_dishka(ws_container, app)
    return app


@pytest.fixture
def valid_token() -> str:
    issuer = HS256TokenIssuer(Settings(JWT_SECRET="websocket-test-secret-long-enough"))
    token, _, _ = issuer.issue_access_token(USER)  # type: ignore[arg-type]
    return token


class TestNotificationSocket:
    def test_invalid_token_is_closed_with_policy_violation(self, ws_app: FastAPI) -> None:
        with TestClient(ws_app) as client:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                with client.websocket_connect("/ws/notifications?token=garbage") as websocket:
                    websocket.receive_text()

        assert exc_info.value.code == 1008

    def test_ping_gets_pong(self, ws_app: FastAPI, valid_token: str) -> None:
        with TestClient(ws_app) as client:
            with client.websocket_connect(f"/ws/notifications?token={valid_token}") as websocket:
                websocket.send_text('{"action": "ping"}')
                assert websocket.receive_json() == {"type": "pong"}

    def test_join_enrolled_course(self, ws_app: FastAPI, valid_token: str) -> None:
        with TestClient(ws_app) as client:
            with client.websocket_connect(f"/ws/notifications?token={valid_token}") as websocket:
                websocket.send_text(
                    f'{{"action": "join_course", "course_id": {ENROLLED_COURSE_ID}}}'
                )
                assert websocket.receive_json() == {
                    "type": "joined_course",
                    "course_id": ENROLLED_COURSE_ID,
                }

    def test_join_refused_without_membership(self, ws_app: FastAPI, valid_token: str) -> None:
        with TestClient(ws_app) as client:
            with client.websocket_connect(f"/ws/notifications?token={valid_token}") as websocket:
                websocket.send_text('{"action": "join_course", "course_id": 999}')
                reply = websocket.receive_json()

        assert reply["type"] == "error"

    def test_unrecognised_frame_gets_error_reply(
        self, ws_app: FastAPI, valid_token: str
    ) -> None:
        with TestClient(ws_app) as client:
            with client.websocket_connect(f"/ws/notifications?token={valid_token}") as websocket:
                websocket.send_text("not json")
                assert websocket.receive_json()["type"] == "error"

    def test_connection_limit_closes_extra_socket(
        self, ws_app: FastAPI, valid_token: str
    ) -> None:
        with TestClient(ws_app) as client:
            with client.websocket_connect(f"/ws/notifications?token={valid_token}"):
                with pytest.raises(WebSocketDisconnect) as exc_info:
                    with client.websocket_connect(
                        f"/ws/notifications?token={valid_token}"
                    ) as second:
                        second.receive_text()

        assert exc_info.value.code == 4000

    def test_disconnect_releases_registry_slot(
        self, ws_app: FastAPI, valid_token: str, connection_registry: ConnectionRegistry
    ) -> None:
        with TestClient(ws_app) as client:
            with client.websocket_connect(f"/ws/notifications?token={valid_token}") as websocket:
                websocket.send_text('{"action": "ping"}')
                websocket.receive_json()
                assert connection_registry.get_connection_count(USER.id) == 1

        assert connection_registry.get_connection_count(USER.id) == 0
