"""HS256 access-token issuer.

Access tokens are never stored. Refresh secrets are opaque random values
whose lifecycle lives in the refresh token repository.
"""

from __future__ import annotations

import base64
import secrets
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

import jwt
from classroom_service_libs.logging_utils import create_service_logger
from jwt import InvalidTokenError

from services.classroom_service.config import Settings
from services.classroom_service.models_db import User
from services.classroom_service.protocols import TokenIssuer
from services.classroom_service.time_utils import utc_now

logger = create_service_logger("classroom_service.token_issuer")

REFRESH_SECRET_BYTES = 32


class HS256TokenIssuer(TokenIssuer):
    def __init__(self, settings: Settings) -> None:
        self._secret = settings.JWT_SECRET.get_secret_value()
        self._algorithm = settings.JWT_ALGORITHM
        self._issuer = settings.JWT_ISSUER
        self._audience = settings.JWT_AUDIENCE
        self._access_lifetime = timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRES_MINUTES)

    def issue_access_token(self, user: User) -> tuple[str, str, datetime]:
        jti = uuid4().hex
        expires_at = utc_now() + self._access_lifetime
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "name": user.name,
            "role": user.role,
            "jti": jti,
            "exp": int(expires_at.timestamp()),
            "iss": self._issuer,
            "aud": self._audience,
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return token, jti, expires_at

    def generate_refresh_secret(self) -> str:
        return base64.b64encode(secrets.token_bytes(REFRESH_SECRET_BYTES)).decode("ascii")

    def verify_access_token(self, token: str) -> dict[str, Any] | None:
        return self._decode(token, verify_exp=True)

    def decode_ignoring_expiry(self, token: str) -> dict[str, Any] | None:
        """Check signature, issuer, audience and algorithm, but not lifetime."""
        return self._decode(token, verify_exp=False)

    def _decode(self, token: str, verify_exp: bool) -> dict[str, Any] | None:
        try:
            claims: dict[str, Any] = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                options={"verify_exp": verify_exp, "require": ["sub", "jti", "exp"]},
            )
        except InvalidTokenError as e:
            logger.debug(f"Token rejected: {e}")
            return None
        if not str(claims.get("sub", "")).isdigit():
            return None
        return claims
