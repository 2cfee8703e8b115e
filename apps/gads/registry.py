"""Conversion reporter registry and default wiring."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from functools import lru_cache
from typing import Any, Protocol

from apps.gads.adapters.google_ads import GoogleAdsClient
from apps.gads.conf import Settings
from apps.gads.diagnostics import DiagnosticLog
from apps.gads.reporter import ConversionReporter
from apps.gads.stores import CacheStore


class Reporter(Protocol):
    name: str

    def enqueue(
        self,
        attributions: Mapping[str, Any],
        click_ids: Mapping[str, Mapping[str, str]],
        campaigns: Mapping[str, Any],
        context: Mapping[str, Any],
    ) -> list[dict[str, Any]]:
        ...

    def process(self, payload: Mapping[str, Any]) -> bool:
        ...


class ReporterRegistry(Mapping[str, Reporter]):
    """Ordered, read-only provider name -> reporter mapping."""

    def __init__(self, reporters: Mapping[str, Reporter] | None = None) -> None:
        self._reporters: dict[str, Reporter] = dict(reporters or {})

    def __getitem__(self, name: str) -> Reporter:
        return self._reporters[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._reporters)

    def __len__(self) -> int:
        return len(self._reporters)

    def __repr__(self) -> str:
        return f"ReporterRegistry({list(self._reporters)!r})"


def get_settings() -> Settings:
    return Settings()


def get_store() -> CacheStore:
    return CacheStore()


def get_diagnostic_log(settings: Settings | None = None) -> DiagnosticLog:
    return DiagnosticLog(settings or get_settings())


def get_reporter(settings: Settings | None = None) -> ConversionReporter:
    settings = settings or get_settings()
    return ConversionReporter(settings, get_diagnostic_log(settings), get_store())


def get_client(settings: Settings | None = None, *, include_action: bool = False) -> GoogleAdsClient:
    """Client built from the current settings, for operator commands."""

    settings = settings or get_settings()
    values = settings.get_all()
    return GoogleAdsClient(
        customer_id=values["customer_id"],
        developer_token=values["developer_token"],
        client_id=values["client_id"],
        client_secret=values["client_secret"],
        refresh_token=values["refresh_token"],
        login_customer_id=values["login_customer_id"],
        conversion_action_id=values["conversion_action_id"] if include_action else "",
        token_store=get_store(),
        log=get_diagnostic_log(settings),
    )


@lru_cache(maxsize=1)
def build_registry() -> ReporterRegistry:
    reporters: dict[str, Reporter] = {}
    reporters = get_reporter().register(reporters)
    return ReporterRegistry(reporters)
