"""Authentication domain handler for Classroom Service.

Covers registration, login, refresh token redemption, password change and
profile updates. Expected failures come back as a failed ``Outcome``; the
route layer turns them into HTTP errors.

Login failures for an unknown email and for a wrong password carry the
same message, so a caller cannot tell whether an account exists.
"""

from __future__ import annotations

from datetime import timedelta

from classroom_common.error_enums import ClassroomErrorCode
from classroom_service_libs.error_handling import Outcome
from classroom_service_libs.logging_utils import create_service_logger

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
from services.classroom_service.config import Settings
from services.classroom_service.metrics import ClassroomMetrics
from services.classroom_service.models_db import User
from services.classroom_service.principal import CurrentPrincipal
from services.classroom_service.protocols import (
    PasswordHasher,
    RefreshTokenRepositoryProtocol,
    TokenIssuer,
    UserRepositoryProtocol,
)
from services.classroom_service.time_utils import ensure_utc, utc_now

logger = create_service_logger("classroom_service.domain_handlers.authentication")

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"
INVALID_TOKEN_MESSAGE = "Invalid access token"
INVALID_REFRESH_TOKEN_MESSAGE = "Invalid refresh token"


class AuthenticationHandler:
    def __init__(
        self,
        settings: Settings,
        user_repo: UserRepositoryProtocol,
        refresh_token_repo: RefreshTokenRepositoryProtocol,
        token_issuer: TokenIssuer,
        password_hasher: PasswordHasher,
        metrics: ClassroomMetrics,
    ) -> None:
        self._refresh_lifetime = timedelta(days=settings.JWT_REFRESH_TOKEN_EXPIRES_DAYS)
        self._user_repo = user_repo
        self._refresh_token_repo = refresh_token_repo
        self._token_issuer = token_issuer
        self._password_hasher = password_hasher
        self._metrics = metrics

    async def register(self, request: RegisterRequest) -> Outcome[TokenResponse]:
        if request.password != request.confirm_password:
            self._metrics.auth_events_total.labels(event="register", outcome="rejected").inc()
            return Outcome.fail(
                ClassroomErrorCode.VALIDATION_ERROR,
                "Passwords do not match",
                field="confirm_password",
            )

        user = await self._user_repo.create_user(
            name=request.name.strip(),
            email=request.email,
            password_hash=self._password_hasher.hash(request.password),
            role=request.role.value,
        )
        if user is None:
            self._metrics.auth_events_total.labels(event="register", outcome="rejected").inc()
            return Outcome.fail(ClassroomErrorCode.CONFLICT, "Email is already registered")

        logger.info("User registered", extra={"user_id": user.id, "role": user.role})
        self._metrics.auth_events_total.labels(event="register", outcome="success").inc()
        return Outcome.success(await self.issue_tokens(user))

    async def login(self, request: LoginRequest) -> Outcome[TokenResponse]:
        user = await self._user_repo.get_user_by_email(request.email.strip())
        if user is None or not self._password_hasher.verify(user.password_hash, request.password):
            logger.warning(
                "Login failed",
                extra={"user_known": user is not None},
            )
            self._metrics.auth_events_total.labels(event="login", outcome="rejected").inc()
            return Outcome.fail(ClassroomErrorCode.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)

        self._metrics.auth_events_total.labels(event="login", outcome="success").inc()
        return Outcome.success(await self.issue_tokens(user))

    async def refresh(self, request: RefreshTokenRequest) -> Outcome[TokenResponse]:
        """Redeem an (expired) access token plus its refresh secret for a new pair.

        The refresh secret is single use: it is flipped to ``used`` with a
        conditional update, so only one concurrent redeemer can win.
        """
        claims = self._token_issuer.decode_ignoring_expiry(request.access_token)
        if claims is None:
            self._metrics.refresh_rotations_total.labels(outcome="rejected").inc()
            return Outcome.fail(ClassroomErrorCode.INVALID_TOKEN, INVALID_TOKEN_MESSAGE)
        subject_id = int(claims["sub"])

        stored = await self._refresh_token_repo.get_by_token(request.refresh_token)
        if (
            stored is None
            or stored.user_id != subject_id
            or stored.used
            or stored.revoked
            or ensure_utc(stored.expires_at) <= utc_now()
        ):
            logger.warning(
                "Refresh token rejected",
                extra={"user_id": subject_id, "token_found": stored is not None},
            )
            self._metrics.refresh_rotations_total.labels(outcome="rejected").inc()
            return Outcome.fail(
                ClassroomErrorCode.INVALID_REFRESH_TOKEN, INVALID_REFRESH_TOKEN_MESSAGE
            )

        if not await self._refresh_token_repo.mark_used_if_active(stored.id):
            logger.warning(
                "Refresh token already redeemed by a concurrent request",
                extra={"user_id": subject_id, "refresh_token_id": stored.id},
            )
            self._metrics.refresh_rotations_total.labels(outcome="lost_race").inc()
            return Outcome.fail(
                ClassroomErrorCode.INVALID_REFRESH_TOKEN, INVALID_REFRESH_TOKEN_MESSAGE
            )

        user = await self._user_repo.get_user_by_id(subject_id)
        if user is None:
            self._metrics.refresh_rotations_total.labels(outcome="rejected").inc()
            return Outcome.fail(
                ClassroomErrorCode.INVALID_REFRESH_TOKEN, INVALID_REFRESH_TOKEN_MESSAGE
            )

        self._metrics.refresh_rotations_total.labels(outcome="rotated").inc()
        return Outcome.success(await self.issue_tokens(user))

    async def issue_tokens(self, user: User) -> TokenResponse:
        """Sign an access token and persist a fresh refresh secret linked to it."""
        access_token, jti, expires_at = self._token_issuer.issue_access_token(user)
        refresh_secret = self._token_issuer.generate_refresh_secret()
        issued_at = utc_now()
        await self._refresh_token_repo.create_token(
            user_id=user.id,
            token=refresh_secret,
            jwt_id=jti,
            issued_at=issued_at,
            expires_at=issued_at + self._refresh_lifetime,
        )
        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_secret,
            expires_at=expires_at,
            user=UserResponse.model_validate(user),
        )

    async def me(self, principal: CurrentPrincipal) -> Outcome[UserResponse]:
        user = await self._user_repo.get_user_by_id(principal.id)
        if user is None:
            return Outcome.not_found("User", principal.id)
        return Outcome.success(UserResponse.model_validate(user))

    async def change_password(
        self, principal: CurrentPrincipal, request: ChangePasswordRequest
    ) -> Outcome[MessageResponse]:
        """Replace the password and revoke every outstanding refresh token."""
        if request.new_password != request.confirm_password:
            return Outcome.fail(
                ClassroomErrorCode.VALIDATION_ERROR,
                "Passwords do not match",
                field="confirm_password",
            )
        if request.new_password == request.current_password:
            return Outcome.fail(
                ClassroomErrorCode.VALIDATION_ERROR,
                "New password must differ from the current password",
                field="new_password",
            )

        user = await self._user_repo.get_user_by_id(principal.id)
        if user is None:
            return Outcome.not_found("User", principal.id)
        if not self._password_hasher.verify(user.password_hash, request.current_password):
            self._metrics.auth_events_total.labels(
                event="change_password", outcome="rejected"
            ).inc()
            return Outcome.fail(
                ClassroomErrorCode.INVALID_CREDENTIALS, "Current password is incorrect"
            )

        await self._user_repo.update_password(
            user.id, self._password_hasher.hash(request.new_password)
        )
        revoked = await self._refresh_token_repo.revoke_all_for_user(user.id)
        logger.info(
            "Password changed",
            extra={"user_id": user.id, "revoked_refresh_tokens": revoked},
        )
        self._metrics.auth_events_total.labels(event="change_password", outcome="success").inc()
        return Outcome.success(MessageResponse(message="Password changed successfully"))

    async def update_profile(
        self, principal: CurrentPrincipal, request: UpdateProfileRequest
    ) -> Outcome[UserResponse]:
        user = await self._user_repo.update_profile(principal.id, request.name, request.avatar)
        if user is None:
            return Outcome.not_found("User", principal.id)
        return Outcome.success(UserResponse.model_validate(user))
