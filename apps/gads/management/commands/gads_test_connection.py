"""Verify the Google Ads credentials against the live API."""

from __future__ import annotations

from django.core.management.base import BaseCommand

from apps.gads.diagnostics import DiagnosticLog
from apps.gads.registry import get_client, get_settings


class Command(BaseCommand):
    help = "Refresh an OAuth2 token and, when an action id is set, look the conversion action up."

    def handle(self, *args, **options):
        settings = get_settings()
        if not settings.is_configured():
            self.stderr.write("Please fill in all required fields first.")
            raise SystemExit(2)

        values = settings.get_all()
        client = get_client(settings, include_action=True)
        result = client.test_connection()

        if result.success:
            if result.conversion_action_name:
                settings.update(
                    {
                        "conversion_action_name": result.conversion_action_name,
                        "conversion_action_category": result.conversion_action_category,
                    }
                )
                self.stdout.write(
                    self.style.SUCCESS(
                        f"Connection successful. Conversion action: {result.conversion_action_name} "
                        f"({result.conversion_action_category})"
                    )
                )
            else:
                self.stdout.write(self.style.SUCCESS("Connection successful."))
            return

        self.stderr.write(f"Connection failed: {result.error}")
        self.stderr.write(f"- client_id: {values['client_id']}")
        self.stderr.write(f"- client_secret: {DiagnosticLog.mask(values['client_secret'])}")
        self.stderr.write(f"- refresh_token: {DiagnosticLog.mask(values['refresh_token'])}")
        self.stderr.write(f"- developer_token: {DiagnosticLog.mask(values['developer_token'])}")
        self.stderr.write(f"- customer_id: {values['customer_id']}")
        if values["login_customer_id"]:
            self.stderr.write(f"- login_customer_id: {values['login_customer_id']}")
        if result.debug:
            self.stderr.write(f"- response: {result.debug}")
        raise SystemExit(2)
