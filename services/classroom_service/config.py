from __future__ import annotations

from classroom_common.config_enums import EmailProviderType, Environment, LivePushBackend
from dotenv import find_dotenv, load_dotenv
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file from repository root
load_dotenv(find_dotenv(".env"))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CLASSROOM_SERVICE_", extra="ignore")

    # Service identity
    SERVICE_NAME: str = "classroom_service"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: Environment = Field(
        default=Environment.DEVELOPMENT, validation_alias="ENVIRONMENT"
    )

    # Storage
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./classroom.db",
        description="SQLAlchemy async URL; postgresql+asyncpg://... in deployments",
    )
    DATABASE_ECHO: bool = False

    # JWT configuration
    JWT_SECRET: SecretStr = Field(
        default=SecretStr("dev-secret-change-me-to-at-least-32-bytes"),
        description="Symmetric HS256 signing secret",
    )
    JWT_ISSUER: str = "classroom-api"
    JWT_AUDIENCE: str = "classroom-clients"
    JWT_ACCESS_TOKEN_EXPIRES_MINUTES: int = 60
    JWT_REFRESH_TOKEN_EXPIRES_DAYS: int = 7
    JWT_ALGORITHM: str = "HS256"

    # Live push
    LIVE_PUSH_BACKEND: LivePushBackend = LivePushBackend.LOCAL
    LIVE_PUSH_TIMEOUT_SECONDS: float = 2.0
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_CHANNEL_PREFIX: str = "classroom"
    WEBSOCKET_MAX_CONNECTIONS_PER_USER: int = 5

    # Email
    EMAIL_PROVIDER: EmailProviderType = EmailProviderType.MOCK
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: SecretStr | None = None
    SMTP_USE_TLS: bool = True
    SMTP_TIMEOUT: float = 10.0
    DEFAULT_FROM_EMAIL: str = "noreply@classroom.local"
    DEFAULT_FROM_NAME: str = "Classroom"

    # Uploads (enforced at the HTTP boundary)
    MAX_UPLOAD_SIZE_BYTES: int = 10 * 1024 * 1024
    ALLOWED_FILE_EXTENSIONS: list[str] = Field(
        default_factory=lambda: [
            ".pdf", ".doc", ".docx", ".txt", ".ppt", ".pptx", ".xls", ".xlsx",
            ".png", ".jpg", ".jpeg", ".gif", ".zip",
        ]
    )

    # CORS
    CORS_ORIGINS: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: list[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: list[str] = Field(default_factory=lambda: ["*"])

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == Environment.PRODUCTION

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.ENVIRONMENT == Environment.TESTING

    def __str__(self) -> str:
        """Secure string representation that masks sensitive data."""
        return (
            f"{self.__class__.__name__}("
            f"service={self.SERVICE_NAME}, "
            f"version={self.SERVICE_VERSION}, "
            f"environment={self.ENVIRONMENT.value}, "
            f"live_push={self.LIVE_PUSH_BACKEND.value}, "
            f"email_provider={self.EMAIL_PROVIDER.value}, "
            f"secrets=***MASKED***)"
        )

    def __repr__(self) -> str:
        """Secure repr for debugging that masks sensitive data."""
        return self.__str__()


settings = Settings()
