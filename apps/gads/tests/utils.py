from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock

CONFIGURED = {
    "customer_id": "1234567890",
    "conversion_action_id": "111",
    "developer_token": "dev-token-abcd",
    "client_id": "client-id.apps.googleusercontent.com",
    "client_secret": "client-secret-wxyz",
    "refresh_token": "1//refresh-token-9876",
    "conversion_value": "1000",
    "currency_code": "SEK",
}


class DictStore:
    """In-process key-value store that remembers the ttl of every write."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = dict(initial or {})
        self.ttls: dict[str, int | None] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        self.data[key] = value
        self.ttls[key] = ttl

    def delete(self, key: str) -> None:
        self.data.pop(key, None)
        self.ttls.pop(key, None)


def response(status_code: int = 200, body: Any = None, text: str | None = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text if text is not None else json.dumps(body if body is not None else {})
    return resp


def token_response(token: str = "ya29.token", expires_in: int = 3599) -> MagicMock:
    return response(200, {"access_token": token, "expires_in": expires_in, "token_type": "Bearer"})
