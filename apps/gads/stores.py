"""Key-value storage for the access-token cache and the credential-error flag."""

from __future__ import annotations

from typing import Any, Protocol

from django.conf import settings
from django.core.cache import caches

TOKEN_CACHE_KEY = "gads:access_token"
CREDENTIAL_ERROR_KEY = "gads:credential_error"


class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class CacheStore:
    """Django cache backed store. ``ttl=None`` keeps the entry until deleted."""

    def __init__(self, alias: str | None = None) -> None:
        self.alias = alias or getattr(settings, "GADS_STORE_CACHE_ALIAS", "default")

    @property
    def cache(self):
        return caches[self.alias]

    def get(self, key: str, default: Any = None) -> Any:
        return self.cache.get(key, default)

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        self.cache.set(key, value, timeout=ttl)

    def delete(self, key: str) -> None:
        self.cache.delete(key)


class CredentialErrorFlag:
    """Persistent marker telling operators that uploads fail on credentials."""

    MISSING = "missing"
    TOKEN_REFRESH_FAILED = "token_refresh_failed"

    NOTICE = (
        "Google Ads conversion uploads are failing due to invalid or missing credentials. "
        "Please check the Google Ads reporter settings."
    )

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def get(self) -> str | None:
        return self.store.get(CREDENTIAL_ERROR_KEY)

    def is_set(self) -> bool:
        return bool(self.get())

    def set(self, reason: str) -> None:
        self.store.set(CREDENTIAL_ERROR_KEY, reason, ttl=None)

    def clear(self) -> None:
        self.store.delete(CREDENTIAL_ERROR_KEY)

    def notice(self) -> str | None:
        return self.NOTICE if self.is_set() else None
