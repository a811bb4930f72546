"""
classroom_common.config_enums - Enums related to service configuration.
"""

from __future__ import annotations

from enum import Enum


class Environment(str, Enum):
    """Defines application environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LivePushBackend(str, Enum):
    """Transport used to fan live notifications out to connected clients."""

    LOCAL = "local"  # In-process connection registry only
    REDIS = "redis"  # Redis pub/sub relayed into every instance's registry


class EmailProviderType(str, Enum):
    """Email delivery backends."""

    SMTP = "smtp"
    MOCK = "mock"
