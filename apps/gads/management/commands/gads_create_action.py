"""Create an UPLOAD_CLICKS conversion action and store its id."""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from apps.gads.conf import GadsSettings
from apps.gads.registry import get_client, get_settings
from apps.gads.services import to_float

CATEGORIES = (
    "DEFAULT",
    "PAGE_VIEW",
    "PURCHASE",
    "SIGNUP",
    "DOWNLOAD",
    "ADD_TO_CART",
    "BEGIN_CHECKOUT",
    "SUBSCRIBE_PAID",
    "PHONE_CALL_LEAD",
    "IMPORTED_LEAD",
    "SUBMIT_LEAD_FORM",
    "BOOK_APPOINTMENT",
    "REQUEST_QUOTE",
    "GET_DIRECTIONS",
    "OUTBOUND_CLICK",
    "CONTACT",
    "ENGAGEMENT",
    "STORE_VISIT",
    "STORE_SALE",
    "QUALIFIED_LEAD",
    "CONVERTED_LEAD",
)


class Command(BaseCommand):
    help = "Create a Google Ads conversion action for uploaded clicks and save its id in the settings."

    def add_arguments(self, parser):
        parser.add_argument("--name", required=True, help="Conversion action name.")
        parser.add_argument(
            "--category",
            default=GadsSettings.conversion_action_category,
            choices=CATEGORIES,
            help="Conversion action category.",
        )
        parser.add_argument("--value", help="Default conversion value (defaults to the stored value).")
        parser.add_argument("--currency", help="Currency code (defaults to the stored currency).")

    def handle(self, *args, **options):
        settings = get_settings()
        values = settings.get_all()
        missing = [
            key
            for key in ("customer_id", "developer_token", "client_id", "client_secret", "refresh_token")
            if not values[key]
        ]
        if missing:
            raise CommandError(f"Missing settings: {', '.join(missing)}")

        name = options["name"].strip()
        if not name:
            raise CommandError("Conversion action name must not be empty.")
        category = options["category"]
        value = to_float(options.get("value") if options.get("value") is not None else values["conversion_value"])
        currency = (options.get("currency") or values["currency_code"]).upper()

        result = get_client(settings).create_conversion_action(name, value, currency, category)
        if not result.success:
            self.stderr.write(f"Could not create conversion action: {result.error}")
            raise SystemExit(2)

        settings.update(
            {
                "conversion_action_id": result.conversion_action_id,
                "conversion_action_name": name,
                "conversion_action_category": category,
            }
        )
        self.stdout.write(self.style.SUCCESS(f"Conversion action created: {name} (ID: {result.conversion_action_id})"))
