"""HTTP middleware shared by classroom FastAPI services."""

from __future__ import annotations

from uuid import UUID, uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from classroom_service_libs.logging_utils import bind_request_context, create_service_logger

logger = create_service_logger("classroom_service_libs.middleware")


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Ensure every request has a correlation ID as UUID and log context bound to it."""

    async def dispatch(self, request: Request, call_next):
        x_correlation_id = request.headers.get("X-Correlation-ID")
        if x_correlation_id:
            try:
                correlation_id = UUID(x_correlation_id)
            except ValueError:
                logger.warning(
                    f"Invalid correlation ID format: {x_correlation_id}, generating new one"
                )
                correlation_id = uuid4()
        else:
            correlation_id = uuid4()

        request.state.correlation_id = correlation_id
        bind_request_context(
            correlation_id=correlation_id, method=request.method, path=request.url.path
        )

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = str(correlation_id)
        return response
