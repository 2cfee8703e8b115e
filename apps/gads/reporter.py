"""Google Ads conversion reporter.

Conversions are always queued, even while credentials are missing, so that
nothing is lost during a credential outage. Payloads snapshot the settings at
enqueue time; :meth:`ConversionReporter.process` reconciles that snapshot with
the live settings before uploading.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from apps.gads.adapters.google_ads import GoogleAdsClient
from apps.gads.conf import REQUIRED_FIELDS, Settings
from apps.gads.diagnostics import DiagnosticLog
from apps.gads.services import format_conversion_datetime, to_float
from apps.gads.services.actions import build_resource_name
from apps.gads.stores import CredentialErrorFlag, KeyValueStore

logger = logging.getLogger("gads.reporter")

PROVIDER = "google_ads"

# Settings copied verbatim into every payload.
SNAPSHOT_FIELDS: tuple[str, ...] = (
    "customer_id",
    "conversion_action_id",
    "conversion_value",
    "currency_code",
    "developer_token",
    "client_id",
    "client_secret",
    "refresh_token",
    "login_customer_id",
)

# Current settings win over the payload snapshot for these fields: an operator
# who replaces the action id wants queued jobs to follow the new action.
SETTINGS_FIRST_FIELDS: frozenset[str] = frozenset({"conversion_action_id"})


def _is_set(value: Any) -> bool:
    """Empty, None, 0 and "0" count as unset, so the other side of the merge is used.

    Jobs queued before a conversion value was configured carry the "0" default.
    """

    if value is None or isinstance(value, bool):
        return bool(value)
    if isinstance(value, (int, float)):
        return value != 0
    return str(value) not in ("", "0")


class ConversionReporter:
    name = PROVIDER

    def __init__(
        self,
        settings: Settings,
        log: DiagnosticLog,
        store: KeyValueStore,
        *,
        queue=None,
        client_factory: Callable[..., GoogleAdsClient] = GoogleAdsClient,
    ) -> None:
        self.settings = settings
        self.log = log
        self.store = store
        self.flag = CredentialErrorFlag(store)
        self.client_factory = client_factory
        self._queue = queue

    @property
    def queue(self):
        if self._queue is None:
            from apps.gads.queue import DatabaseJobQueue

            self._queue = DatabaseJobQueue()
        return self._queue

    def register(self, reporters: Mapping[str, Any]) -> dict[str, Any]:
        """Return ``reporters`` with this reporter added under its provider name."""

        updated = dict(reporters)
        updated[self.name] = self
        return updated

    def enqueue(
        self,
        attributions: Mapping[str, Any],
        click_ids: Mapping[str, Mapping[str, str]],
        campaigns: Mapping[str, Any],
        context: Mapping[str, Any],
    ) -> list[dict[str, Any]]:
        """Build one queue payload per attribution that carries a gclid."""

        settings = self.settings.get_all()
        if not attributions:
            return []

        conversion_datetime = format_conversion_datetime(context["timestamp"])

        payloads: list[dict[str, Any]] = []
        for hash_, fraction in attributions.items():
            gclid = (click_ids.get(hash_) or {}).get(self.name)
            if not gclid:
                continue

            self.log.info(f"Enqueued — gclid: {gclid}, datetime: {conversion_datetime}, fraction: {fraction}")
            payload: dict[str, Any] = {
                "gclid": gclid,
                "conversion_datetime": conversion_datetime,
                "attribution_fraction": fraction,
            }
            for field in SNAPSHOT_FIELDS:
                payload[field] = settings[field]
            payloads.append(payload)

        return payloads

    def merge(self, payload: Mapping[str, Any], settings: Mapping[str, str]) -> dict[str, str]:
        """Reconcile a payload snapshot with the current settings."""

        merged: dict[str, str] = {}
        for field in SNAPSHOT_FIELDS:
            snapshot = payload.get(field)
            current = settings.get(field)
            if field in SETTINGS_FIRST_FIELDS:
                chosen = current if _is_set(current) else snapshot
            else:
                chosen = snapshot if _is_set(snapshot) else current
            merged[field] = "" if chosen is None else str(chosen)
        return merged

    def process(self, payload: Mapping[str, Any]) -> bool:
        """Upload one queued conversion. ``False`` asks the queue to retry later."""

        gclid = payload.get("gclid", "")
        merged = self.merge(payload, self.settings.get_all())

        missing = [field for field in REQUIRED_FIELDS if not merged.get(field)]
        if missing:
            self.flag.set(CredentialErrorFlag.MISSING)
            self.log.error(f"Aborted — gclid: {gclid}, missing credentials")
            logger.error("gads_missing_credentials gclid=%s fields=%s", gclid, ",".join(missing))
            return False

        customer_id = merged["customer_id"]
        conversion_action_id = merged["conversion_action_id"]
        self.log.info(f"Processing — gclid: {gclid}, customer: {customer_id}, action_id: {conversion_action_id}")

        resource_name = build_resource_name(customer_id, conversion_action_id)
        attributed_value = to_float(merged["conversion_value"]) * to_float(payload.get("attribution_fraction"))

        client = self.client_factory(
            customer_id=customer_id,
            developer_token=merged["developer_token"],
            client_id=merged["client_id"],
            client_secret=merged["client_secret"],
            refresh_token=merged["refresh_token"],
            login_customer_id=merged["login_customer_id"],
            token_store=self.store,
            log=self.log,
        )
        result = client.upload_click_conversion(
            gclid,
            resource_name,
            payload.get("conversion_datetime", ""),
            attributed_value,
            merged["currency_code"],
        )

        if not result.success:
            if result.credential_error:
                self.flag.set(CredentialErrorFlag.TOKEN_REFRESH_FAILED)
            self.log.error(f"Upload failed — gclid: {gclid}, error: {result.error}")
            logger.error("gads_upload_failed gclid=%s error=%s", gclid, result.error)
            return False

        self.flag.clear()
        logger.info("gads_conversion_uploaded gclid=%s action=%s", gclid, resource_name)
        return True

    def reset_failed_jobs(self) -> int:
        """Give every failed job of this reporter another chance and kick the queue."""

        count = self.queue.reset_failed(self.name)
        self.queue.schedule_run()
        logger.info("gads_failed_jobs_reset count=%s", count)
        return count
