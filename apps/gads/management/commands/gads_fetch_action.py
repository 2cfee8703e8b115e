"""Look up a conversion action by id."""

from __future__ import annotations

from django.core.management.base import BaseCommand

from apps.gads.registry import get_client, get_settings


class Command(BaseCommand):
    help = "Fetch a conversion action's name and category; optionally store it as the active action."

    def add_arguments(self, parser):
        parser.add_argument("conversion_action_id", nargs="?", help="Defaults to the stored action id.")
        parser.add_argument("--save", action="store_true", help="Store the id, name and category in the settings.")

    def handle(self, *args, **options):
        settings = get_settings()
        action_id = (options.get("conversion_action_id") or settings.get("conversion_action_id")).strip()
        if not action_id:
            self.stderr.write("No conversion action id given or stored.")
            raise SystemExit(2)

        result = get_client(settings).fetch_conversion_action_details(action_id)
        if not result.success:
            self.stderr.write(f"Could not fetch conversion action: {result.error}")
            raise SystemExit(2)

        self.stdout.write(f"Conversion action {action_id}: {result.conversion_action_name} ({result.conversion_action_category})")
        if options.get("save"):
            settings.update(
                {
                    "conversion_action_id": action_id,
                    "conversion_action_name": result.conversion_action_name,
                    "conversion_action_category": result.conversion_action_category,
                }
            )
            self.stdout.write(self.style.SUCCESS("Saved."))
