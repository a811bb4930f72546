from __future__ import annotations

import time

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


class ClassroomMetrics:
    """Prometheus metrics for Classroom Service."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        self.http_requests_total = Counter(
            "classroom_http_requests_total",
            "Total number of HTTP requests for Classroom Service.",
            ["method", "endpoint", "http_status"],
            registry=registry,
        )
        self.http_request_duration_seconds = Histogram(
            "classroom_http_request_duration_seconds",
            "HTTP request duration in seconds for Classroom Service.",
            ["method", "endpoint"],
            registry=registry,
        )

        self.auth_events_total = Counter(
            "classroom_auth_events_total",
            "Authentication events",
            ["event", "outcome"],  # event: register, login, refresh, change_password
            registry=registry,
        )
        self.refresh_rotations_total = Counter(
            "classroom_refresh_rotations_total",
            "Refresh token redemption attempts",
            ["outcome"],  # outcome: rotated, rejected, lost_race
            registry=registry,
        )
        self.notifications_persisted_total = Counter(
            "classroom_notifications_persisted_total",
            "Durable notifications written",
            ["kind"],
            registry=registry,
        )
        self.live_push_total = Counter(
            "classroom_live_push_total",
            "Live push attempts",
            ["scope", "outcome"],  # outcome: delivered, no_listeners, failed
            registry=registry,
        )
        self.emails_sent_total = Counter(
            "classroom_emails_sent_total",
            "Invitation emails",
            ["outcome"],
            registry=registry,
        )
        self.websocket_connections_total = Counter(
            "classroom_websocket_connections_total",
            "WebSocket connection attempts",
            ["status"],  # status: accepted, rejected, closed
            registry=registry,
        )


class MetricsMiddleware(BaseHTTPMiddleware):
    """Records request counts and latencies by route template.

    Metrics are resolved from the app's DI container on each request so the
    middleware can be installed before the container exists.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        container = getattr(request.app.state, "dishka_container", None)
        if container is None:
            return response
        metrics = await container.get(ClassroomMetrics)
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        metrics.http_request_duration_seconds.labels(
            method=request.method, endpoint=endpoint
        ).observe(time.perf_counter() - start)
        metrics.http_requests_total.labels(
            method=request.method, endpoint=endpoint, http_status=str(response.status_code)
        ).inc()
        return response
