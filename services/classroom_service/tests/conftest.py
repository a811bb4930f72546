"""
Test configuration for Classroom Service.

Integration tests run the real providers against a throwaway SQLite file.
Only the pieces with outside effects are replaced: the email transport is the
recording mock and metrics go to an isolated registry.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path
from typing import Any

import pytest
from classroom_service_libs.error_handling.fastapi import register_error_handlers
from classroom_service_libs.middleware import CorrelationIDMiddleware
from dishka import AsyncContainer, Provider, Scope, make_async_container, provide
from dishka.integrations.fastapi import FastapiProvider, setup_dishka
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from prometheus_client import CollectorRegistry
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from services.classroom_service.api.auth_provider import AuthProvider
from services.classroom_service.app import include_routers
from services.classroom_service.config import Settings
from services.classroom_service.di import (
    CoreProvider,
    DomainHandlerProvider,
    LocalLivePushProvider,
    RepositoryProvider,
)
from services.classroom_service.implementations.email_provider_impl import MockEmailProvider
from services.classroom_service.implementations.password_hasher_impl import (
    Argon2idPasswordHasher,
)
from services.classroom_service.models_db import Base
from services.classroom_service.protocols import EmailProvider, PasswordHasher
from services.classroom_service.tests.http_helpers import FAILING_RECIPIENT, auth_headers


class ClassroomTestProvider(Provider):
    """Overrides for the production providers. Registered last so it wins."""

    scope = Scope.APP

    def __init__(self, settings: Settings, email_provider: MockEmailProvider) -> None:
        super().__init__()
        self._settings = settings
        self._email_provider = email_provider

    @provide
    def get_config(self) -> Settings:
        return self._settings

    @provide
    async def provide_engine(self, config: Settings) -> AsyncIterator[AsyncEngine]:
        engine = create_async_engine(config.DATABASE_URL)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        yield engine
        await engine.dispose()

    @provide
    def provide_registry(self) -> CollectorRegistry:
        """Fresh registry per container so metric names never collide between tests."""
        return CollectorRegistry()

    @provide
    def provide_email_provider(self) -> EmailProvider:
        return self._email_provider

    @provide
    def provide_password_hasher(self) -> PasswordHasher:
        # Cheap parameters keep the suite fast; the algorithm is unchanged
        return Argon2idPasswordHasher(time_cost=1, memory_cost=8192)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'classroom_test.db'}",
        JWT_SECRET="test-secret-that-is-long-enough-for-hs256",
        LIVE_PUSH_TIMEOUT_SECONDS=0.5,
    )


@pytest.fixture
def mock_email_provider() -> MockEmailProvider:
    return MockEmailProvider(failing_recipients={FAILING_RECIPIENT})


@pytest.fixture
async def test_container(
    test_settings: Settings, mock_email_provider: MockEmailProvider
) -> AsyncIterator[AsyncContainer]:
    container = make_async_container(
        CoreProvider(),
        LocalLivePushProvider(),
        RepositoryProvider(),
        DomainHandlerProvider(),
        AuthProvider(),
        FastapiProvider(),
        ClassroomTestProvider(test_settings, mock_email_provider),
    )
    yield container
    await container.close()


@pytest.fixture
def test_app(test_container: AsyncContainer) -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)
    app.add_middleware(CorrelationIDMiddleware)
    include_routers(app)
    setup_dishka(test_container, app)
    return app


@pytest.fixture
async def client(test_app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client


@pytest.fixture
def register_user(
    client: AsyncClient,
) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Register an account over HTTP and return its token response."""

    async def _register(
        email: str, role: str = "Student", name: str | None = None, password: str = "secret123"
    ) -> dict[str, Any]:
        response = await client.post(
            "/api/auth/register",
            json={
                "name": name or email.split("@")[0].title(),
                "email": email,
                "password": password,
                "confirm_password": password,
                "role": role,
            },
        )
        assert response.status_code == 200, response.text
        return response.json()

    return _register


@pytest.fixture
def create_course(
    client: AsyncClient,
) -> Callable[..., Awaitable[dict[str, Any]]]:
    async def _create(teacher: dict[str, Any], name: str = "Algebra I") -> dict[str, Any]:
        response = await client.post(
            "/api/courses", json={"name": name, "section": "A"}, headers=auth_headers(teacher)
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create
