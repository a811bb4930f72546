"""Authentication and profile routes.

Thin wrappers: all decisions live in AuthenticationHandler.
"""

from __future__ import annotations

from uuid import UUID

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter

from services.classroom_service.api.request_utils import unwrap
from services.classroom_service.api.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
    UpdateProfileRequest,
    UserResponse,
)
from services.classroom_service.domain_handlers.authentication_handler import (
    AuthenticationHandler,
)
from services.classroom_service.principal import CurrentPrincipal

router = APIRouter(prefix="/api/auth", tags=["auth"], route_class=DishkaRoute)
users_router = APIRouter(prefix="/api/users", tags=["users"], route_class=DishkaRoute)


@router.post("/register", response_model=TokenResponse)
async def register(
    payload: RegisterRequest,
    handler: FromDishka[AuthenticationHandler],
    correlation_id: FromDishka[UUID],
) -> TokenResponse:
    return unwrap(await handler.register(payload), "register", correlation_id)


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    handler: FromDishka[AuthenticationHandler],
    correlation_id: FromDishka[UUID],
) -> TokenResponse:
    return unwrap(await handler.login(payload), "login", correlation_id)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    payload: RefreshTokenRequest,
    handler: FromDishka[AuthenticationHandler],
    correlation_id: FromDishka[UUID],
) -> TokenResponse:
    """Exchange an access token (expired or not) and its refresh secret for a new pair."""
    return unwrap(await handler.refresh(payload), "refresh", correlation_id)


@router.get("/me", response_model=UserResponse)
async def me(
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AuthenticationHandler],
    correlation_id: FromDishka[UUID],
) -> UserResponse:
    return unwrap(await handler.me(principal), "me", correlation_id)


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AuthenticationHandler],
    correlation_id: FromDishka[UUID],
) -> MessageResponse:
    return unwrap(
        await handler.change_password(principal, payload), "change_password", correlation_id
    )


@users_router.put("/me", response_model=UserResponse)
async def update_profile(
    payload: UpdateProfileRequest,
    principal: FromDishka[CurrentPrincipal],
    handler: FromDishka[AuthenticationHandler],
    correlation_id: FromDishka[UUID],
) -> UserResponse:
    return unwrap(
        await handler.update_profile(principal, payload), "update_profile", correlation_id
    )
