"""Dishka providers for Classroom Service.

Infrastructure and repositories live for the whole application; domain
handlers are built per request. The authorization guard is APP-scoped so the
WebSocket endpoint, which resolves in the session scope, can use it too.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from classroom_common.config_enums import EmailProviderType, LivePushBackend
from classroom_service_libs.redis_client import RedisClient
from dishka import Provider, Scope, provide
from prometheus_client import REGISTRY, CollectorRegistry
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from services.classroom_service.config import Settings, settings
from services.classroom_service.domain_handlers.announcement_handler import AnnouncementHandler
from services.classroom_service.domain_handlers.authentication_handler import (
    AuthenticationHandler,
)
from services.classroom_service.domain_handlers.authorization_guard import AuthorizationGuard
from services.classroom_service.domain_handlers.course_handler import CourseHandler
from services.classroom_service.domain_handlers.coursework_handler import (
    AssignmentHandler,
    SubmissionHandler,
)
from services.classroom_service.domain_handlers.enrollment_request_handler import (
    EnrollmentRequestHandler,
)
from services.classroom_service.domain_handlers.invitation_handler import InvitationHandler
from services.classroom_service.domain_handlers.material_handler import MaterialHandler
from services.classroom_service.domain_handlers.notification_broadcaster import (
    NotificationBroadcaster,
)
from services.classroom_service.domain_handlers.notification_handler import NotificationHandler
from services.classroom_service.implementations.connection_registry import ConnectionRegistry
from services.classroom_service.implementations.course_repository_sqlalchemy_impl import (
    SqlAlchemyCourseRepo,
    SqlAlchemyMembershipLedger,
)
from services.classroom_service.implementations.coursework_repository_sqlalchemy_impl import (
    SqlAlchemyAnnouncementRepo,
    SqlAlchemyAssignmentRepo,
    SqlAlchemyMaterialRepo,
    SqlAlchemySubmissionRepo,
)
from services.classroom_service.implementations.email_provider_impl import (
    MockEmailProvider,
    SMTPEmailProvider,
)
from services.classroom_service.implementations.enrollment_repository_sqlalchemy_impl import (
    SqlAlchemyEnrollmentRequestRepo,
)
from services.classroom_service.implementations.notification_repository_sqlalchemy_impl import (
    SqlAlchemyNotificationRepo,
)
from services.classroom_service.implementations.password_hasher_impl import (
    Argon2idPasswordHasher,
)
from services.classroom_service.implementations.template_renderer_impl import (
    JinjaTemplateRenderer,
)
from services.classroom_service.implementations.token_issuer_impl import HS256TokenIssuer
from services.classroom_service.implementations.topic_publisher_impl import (
    LocalTopicPublisher,
    RedisTopicPublisher,
    RedisTopicRelay,
)
from services.classroom_service.implementations.user_repository_sqlalchemy_impl import (
    SqlAlchemyRefreshTokenRepo,
    SqlAlchemyUserRepo,
)
from services.classroom_service.metrics import ClassroomMetrics
from services.classroom_service.protocols import (
    AnnouncementRepositoryProtocol,
    AssignmentRepositoryProtocol,
    ConnectionRegistryProtocol,
    CourseRepositoryProtocol,
    EmailProvider,
    EnrollmentRequestRepositoryProtocol,
    MaterialRepositoryProtocol,
    MembershipLedgerProtocol,
    NotificationRepositoryProtocol,
    PasswordHasher,
    RefreshTokenRepositoryProtocol,
    SubmissionRepositoryProtocol,
    TemplateRenderer,
    TokenIssuer,
    TopicPublisherProtocol,
    UserRepositoryProtocol,
)


class CoreProvider(Provider):
    """Configuration, storage engine, security primitives and outbound transports."""

    scope = Scope.APP

    @provide
    def get_config(self) -> Settings:
        return settings

    @provide
    async def provide_engine(self, config: Settings) -> AsyncIterator[AsyncEngine]:
        engine = create_async_engine(config.DATABASE_URL, echo=config.DATABASE_ECHO)
        yield engine
        await engine.dispose()

    @provide
    def provide_registry(self) -> CollectorRegistry:
        return REGISTRY

    @provide
    def provide_metrics(self, registry: CollectorRegistry) -> ClassroomMetrics:
        return ClassroomMetrics(registry=registry)

    @provide
    def provide_password_hasher(self) -> PasswordHasher:
        return Argon2idPasswordHasher()

    @provide
    def provide_token_issuer(self, config: Settings) -> TokenIssuer:
        return HS256TokenIssuer(config)

    @provide
    def provide_connection_registry(self, config: Settings) -> ConnectionRegistryProtocol:
        return ConnectionRegistry(
            max_connections_per_user=config.WEBSOCKET_MAX_CONNECTIONS_PER_USER
        )

    @provide
    def provide_email_provider(self, config: Settings) -> EmailProvider:
        if config.EMAIL_PROVIDER is EmailProviderType.SMTP:
            return SMTPEmailProvider(config)
        return MockEmailProvider()

    @provide
    def provide_template_renderer(self) -> TemplateRenderer:
        return JinjaTemplateRenderer()

    @provide
    def provide_authorization_guard(self, ledger: MembershipLedgerProtocol) -> AuthorizationGuard:
        return AuthorizationGuard(ledger)

    @provide
    def provide_broadcaster(
        self,
        config: Settings,
        repository: NotificationRepositoryProtocol,
        publisher: TopicPublisherProtocol,
        metrics: ClassroomMetrics,
    ) -> NotificationBroadcaster:
        return NotificationBroadcaster(
            repository, publisher, metrics, push_timeout_seconds=config.LIVE_PUSH_TIMEOUT_SECONDS
        )


class LocalLivePushProvider(Provider):
    """Single-instance deployments: pushes go straight into this process's registry."""

    scope = Scope.APP

    @provide
    def provide_topic_publisher(
        self, registry: ConnectionRegistryProtocol
    ) -> TopicPublisherProtocol:
        return LocalTopicPublisher(registry)


class RedisLivePushProvider(Provider):
    """Multi-instance deployments: pushes travel over Redis and a relay fans them out locally."""

    scope = Scope.APP

    @provide
    async def provide_redis_client(self, config: Settings) -> AsyncIterator[RedisClient]:
        client = RedisClient(
            client_id=config.SERVICE_NAME,
            redis_url=config.REDIS_URL,
            channel_prefix=config.REDIS_CHANNEL_PREFIX,
        )
        await client.start()
        yield client
        await client.stop()

    @provide
    def provide_topic_publisher(self, redis_client: RedisClient) -> TopicPublisherProtocol:
        return RedisTopicPublisher(redis_client)

    @provide
    def provide_relay(
        self, redis_client: RedisClient, registry: ConnectionRegistryProtocol
    ) -> RedisTopicRelay:
        return RedisTopicRelay(redis_client, registry)


def live_push_provider(config: Settings) -> Provider:
    if config.LIVE_PUSH_BACKEND is LivePushBackend.REDIS:
        return RedisLivePushProvider()
    return LocalLivePushProvider()


class RepositoryProvider(Provider):
    """SQLAlchemy repositories. Each opens its own session per operation."""

    scope = Scope.APP

    @provide
    def provide_user_repo(self, engine: AsyncEngine) -> UserRepositoryProtocol:
        return SqlAlchemyUserRepo(engine)

    @provide
    def provide_refresh_token_repo(self, engine: AsyncEngine) -> RefreshTokenRepositoryProtocol:
        return SqlAlchemyRefreshTokenRepo(engine)

    @provide
    def provide_membership_ledger(self, engine: AsyncEngine) -> MembershipLedgerProtocol:
        return SqlAlchemyMembershipLedger(engine)

    @provide
    def provide_course_repo(self, engine: AsyncEngine) -> CourseRepositoryProtocol:
        return SqlAlchemyCourseRepo(engine)

    @provide
    def provide_enrollment_request_repo(
        self, engine: AsyncEngine
    ) -> EnrollmentRequestRepositoryProtocol:
        return SqlAlchemyEnrollmentRequestRepo(engine)

    @provide
    def provide_assignment_repo(self, engine: AsyncEngine) -> AssignmentRepositoryProtocol:
        return SqlAlchemyAssignmentRepo(engine)

    @provide
    def provide_submission_repo(self, engine: AsyncEngine) -> SubmissionRepositoryProtocol:
        return SqlAlchemySubmissionRepo(engine)

    @provide
    def provide_announcement_repo(self, engine: AsyncEngine) -> AnnouncementRepositoryProtocol:
        return SqlAlchemyAnnouncementRepo(engine)

    @provide
    def provide_material_repo(self, engine: AsyncEngine) -> MaterialRepositoryProtocol:
        return SqlAlchemyMaterialRepo(engine)

    @provide
    def provide_notification_repo(self, engine: AsyncEngine) -> NotificationRepositoryProtocol:
        return SqlAlchemyNotificationRepo(engine)


class DomainHandlerProvider(Provider):
    scope = Scope.REQUEST

    authentication_handler = provide(AuthenticationHandler)
    course_handler = provide(CourseHandler)
    enrollment_request_handler = provide(EnrollmentRequestHandler)
    assignment_handler = provide(AssignmentHandler)
    submission_handler = provide(SubmissionHandler)
    announcement_handler = provide(AnnouncementHandler)
    invitation_handler = provide(InvitationHandler)
    notification_handler = provide(NotificationHandler)
    material_handler = provide(MaterialHandler)
