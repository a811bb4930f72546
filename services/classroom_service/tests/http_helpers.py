"""Small helpers shared by the HTTP-level tests."""

from __future__ import annotations

from typing import Any

FAILING_RECIPIENT = "bounce@example.com"


def auth_headers(tokens: dict[str, Any]) -> dict[str, str]:
    return {"Authorization": f"Bearer {tokens['access_token']}"}


def error_code(body: dict[str, Any]) -> str:
    return body["error"]["error_code"]
