from __future__ import annotations

import json
from typing import Any

from classroom_common.websocket_enums import TopicScope, WebSocketAction
from classroom_service_libs.logging_utils import create_service_logger
from dishka.integrations.fastapi import FromDishka, inject
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from services.classroom_service.domain_handlers.authorization_guard import AuthorizationGuard
from services.classroom_service.metrics import ClassroomMetrics
from services.classroom_service.principal import CurrentPrincipal
from services.classroom_service.protocols import ConnectionRegistryProtocol, TokenIssuer

router = APIRouter()
logger = create_service_logger("classroom_service.websocket_routes")


@router.websocket("/ws/notifications")
@inject
async def notifications_socket(
    websocket: WebSocket,
    token_issuer: FromDishka[TokenIssuer],
    registry: FromDishka[ConnectionRegistryProtocol],
    guard: FromDishka[AuthorizationGuard],
    metrics: FromDishka[ClassroomMetrics],
    token: str = Query(..., description="Access token"),
) -> None:
    """Live notification stream.

    The connection is subscribed to the caller's user and role topics. Course
    topics are joined with ``{"action": "join_course", "course_id": n}`` and
    require a membership in that course.
    """
    claims = token_issuer.verify_access_token(token)
    principal = _principal_or_none(claims)
    if principal is None:
        logger.warning("WebSocket connection rejected: invalid access token")
        metrics.websocket_connections_total.labels(status="rejected").inc()
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token")
        return

    await websocket.accept()
    if not await registry.connect(
        websocket, principal.id, [TopicScope.ROLE.topic(principal.role.value)]
    ):
        metrics.websocket_connections_total.labels(status="rejected").inc()
        await websocket.close(code=4000, reason="Connection limit exceeded")
        return
    metrics.websocket_connections_total.labels(status="accepted").inc()

    try:
        while True:
            raw = await websocket.receive_text()
            reply = await _handle_frame(raw, websocket, principal, registry, guard)
            await websocket.send_json(reply)
    except WebSocketDisconnect:
        logger.info(
            f"WebSocket disconnected by client for user {principal.id}",
            extra={"user_id": principal.id},
        )
    except Exception as e:
        logger.error(
            f"Unexpected error in WebSocket endpoint for user {principal.id}: {e}",
            exc_info=True,
            extra={"user_id": principal.id},
        )
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
    finally:
        await registry.disconnect(websocket, principal.id)
        metrics.websocket_connections_total.labels(status="closed").inc()


def _principal_or_none(claims: dict[str, Any] | None) -> CurrentPrincipal | None:
    if claims is None:
        return None
    try:
        return CurrentPrincipal.from_claims(claims)
    except (KeyError, ValueError):
        return None


async def _handle_frame(
    raw: str,
    websocket: WebSocket,
    principal: CurrentPrincipal,
    registry: ConnectionRegistryProtocol,
    guard: AuthorizationGuard,
) -> dict[str, Any]:
    try:
        frame = json.loads(raw)
        action = WebSocketAction(frame.get("action"))
    except (json.JSONDecodeError, ValueError, AttributeError):
        return {"type": "error", "message": "Unrecognised frame"}

    if action is WebSocketAction.PING:
        return {"type": "pong"}

    course_id = frame.get("course_id")
    if not isinstance(course_id, int):
        return {"type": "error", "message": "course_id must be an integer"}
    topic = TopicScope.COURSE.topic(course_id)

    if action is WebSocketAction.LEAVE_COURSE:
        await registry.unsubscribe(websocket, topic)
        return {"type": "left_course", "course_id": course_id}

    if not await guard.is_enrolled(course_id, principal.id):
        logger.warning(
            "Course topic join refused",
            extra={"user_id": principal.id, "course_id": course_id},
        )
        return {"type": "error", "message": "You are not enrolled in this course"}
    await registry.subscribe(websocket, topic)
    return {"type": "joined_course", "course_id": course_id}
