"""Re-drive failed uploads when the reporter settings change."""

from __future__ import annotations

import logging

from django.dispatch import receiver

from apps.gads.conf import Settings, settings_updated
from apps.gads.registry import get_reporter, get_store
from apps.gads.stores import CredentialErrorFlag

logger = logging.getLogger("gads.signals")


@receiver(settings_updated, dispatch_uid="gads_on_settings_updated")
def on_settings_updated(sender: Settings, old=None, new=None, **kwargs) -> None:
    # The notice goes away as soon as credentials are re-entered.
    CredentialErrorFlag(get_store()).clear()

    if not sender.is_configured():
        logger.info("gads_settings_saved configured=false")
        return

    get_reporter(sender).reset_failed_jobs()
