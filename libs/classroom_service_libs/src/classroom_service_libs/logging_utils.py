"""
Structured logging for classroom services.

Every log line carries the service identity, an ISO timestamp, the call site
and whatever request context the correlation middleware bound for the
current task. Output is JSON in production (or with ``LOG_FORMAT=json``) and
the coloured console renderer elsewhere.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars
from structlog.typing import EventDict, Processor

# Chatty third-party loggers that only add noise at INFO
_QUIET_LOGGERS = ("aiosqlite", "asyncio", "httpx", "aiosmtplib", "multipart")


def service_context_processor(service_name: str, environment: str) -> Processor:
    """Build a processor that stamps ``service.name`` and ``deployment.environment``."""

    def add_service_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service.name", service_name)
        event_dict.setdefault("deployment.environment", environment)
        return event_dict

    return add_service_context


def _wants_json(environment: str) -> bool:
    log_format = os.getenv("LOG_FORMAT", "").lower()
    if log_format:
        return log_format == "json"
    return environment == "production"


def configure_service_logging(
    service_name: str,
    environment: str | None = None,
    log_level: str = "INFO",
) -> None:
    """
    Configure structlog and the stdlib root logger for one service process.

    Args:
        service_name: Name stamped on every event (e.g. "classroom_service")
        environment: Deployment environment; falls back to the ENVIRONMENT variable
        log_level: Root level name such as "DEBUG" or "INFO"
    """
    environment = environment or os.getenv("ENVIRONMENT", "development")

    processors: list[Processor] = [
        merge_contextvars,
        service_context_processor(service_name, environment),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.MODULE,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
    ]
    if _wants_json(environment):
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors += [structlog.dev.set_exc_info, structlog.dev.ConsoleRenderer()]

    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_service_logger(name: str | None = None) -> Any:
    """Return a structlog logger, bound to ``logger_name`` when a name is given."""
    logger = structlog.get_logger()
    return logger.bind(logger_name=name) if name else logger


def bind_request_context(**context: Any) -> None:
    """Replace the per-request logging context (correlation id, principal, route)."""
    clear_contextvars()
    bind_contextvars(**{key: str(value) for key, value in context.items() if value is not None})
