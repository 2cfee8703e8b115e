"""Utilities for reading Google Ads REST error payloads."""

from __future__ import annotations

import json
from typing import Any


def decode_json(raw_body: str) -> dict[str, Any]:
    """Decode a response body, returning an empty mapping for non-objects."""

    try:
        decoded = json.loads(raw_body or "")
    except ValueError:
        return {}
    return decoded if isinstance(decoded, dict) else {}


def api_error_message(body: dict[str, Any], status_code: int, raw_body: str) -> str:
    """Prefer the provider's ``error.message``; fall back to status and body."""

    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"HTTP {status_code}: {raw_body}"


def partial_failure_message(body: dict[str, Any]) -> str | None:
    """Return the message of a non-empty ``partialFailureError``, else ``None``."""

    failure = body.get("partialFailureError")
    if not failure:
        return None
    if isinstance(failure, dict) and failure.get("message"):
        return str(failure["message"])
    return "Partial failure error"


def token_error_message(body: dict[str, Any]) -> str:
    """Human readable reason for a failed OAuth2 token refresh."""

    return str(body.get("error_description") or body.get("error") or "Unexpected token response.")
