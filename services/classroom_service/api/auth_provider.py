from __future__ import annotations

from typing import NewType
from uuid import UUID, uuid4

from classroom_service_libs.error_handling import raise_authentication_error
from classroom_service_libs.logging_utils import create_service_logger
from dishka import Provider, Scope, from_context, provide
from fastapi import Request

from services.classroom_service.principal import CurrentPrincipal
from services.classroom_service.protocols import TokenIssuer

BearerToken = NewType("BearerToken", str)

logger = create_service_logger("classroom_service.auth_provider")


class AuthProvider(Provider):
    """Request-scoped identity: correlation id, bearer token and the verified principal."""

    request = from_context(provides=Request, scope=Scope.REQUEST)

    @provide(scope=Scope.REQUEST)
    def provide_correlation_id(self, request: Request) -> UUID:
        return getattr(request.state, "correlation_id", uuid4())

    @provide(scope=Scope.REQUEST)
    def extract_bearer_token(self, request: Request, correlation_id: UUID) -> BearerToken:
        authorization = request.headers.get("Authorization")
        if not authorization:
            raise_authentication_error(
                service="classroom_service",
                operation="extract_bearer_token",
                message="Not authenticated",
                correlation_id=correlation_id,
                reason="missing_authorization_header",
            )

        parts = authorization.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise_authentication_error(
                service="classroom_service",
                operation="extract_bearer_token",
                message="Invalid authentication format",
                correlation_id=correlation_id,
                reason="invalid_authorization_format",
            )
        return BearerToken(parts[1])

    @provide(scope=Scope.REQUEST)
    def provide_principal(
        self, token: BearerToken, token_issuer: TokenIssuer, correlation_id: UUID
    ) -> CurrentPrincipal:
        """Verify signature, issuer, audience and expiry, then build the principal."""
        claims = token_issuer.verify_access_token(token)
        if claims is None:
            raise_authentication_error(
                service="classroom_service",
                operation="validate_jwt",
                message="Could not validate credentials",
                correlation_id=correlation_id,
                reason="jwt_invalid",
            )
        try:
            return CurrentPrincipal.from_claims(claims)
        except (KeyError, ValueError) as e:
            logger.warning(f"Access token has malformed claims: {e}")
            raise_authentication_error(
                service="classroom_service",
                operation="validate_jwt",
                message="Invalid token payload",
                correlation_id=correlation_id,
                reason="malformed_claims",
            )
