"""Show or change the Google Ads reporter settings."""

from __future__ import annotations

from pathlib import Path

import yaml
from django.core.management.base import BaseCommand, CommandError

from apps.gads.conf import SECRET_FIELDS, GadsConfigError, GadsSettings, sanitize_settings
from apps.gads.diagnostics import DiagnosticLog
from apps.gads.registry import get_settings


def load_settings_file(path: str | Path) -> dict[str, object]:
    """Read a YAML mapping of setting name -> value."""

    path = Path(path)
    if not path.exists():
        raise GadsConfigError(f"Settings file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise GadsConfigError(f"Settings file must contain a mapping: {path}")
    return {str(key): value for key, value in data.items()}


class Command(BaseCommand):
    help = "Display the Google Ads reporter settings or update them from KEY=VALUE pairs / a YAML file."

    def add_arguments(self, parser):
        parser.add_argument(
            "--set",
            action="append",
            default=[],
            metavar="KEY=VALUE",
            help="Update one setting. May be repeated.",
        )
        parser.add_argument(
            "--import",
            dest="import_path",
            help="Read settings from a YAML mapping.",
        )
        parser.add_argument(
            "--show-secrets",
            action="store_true",
            help="Print secrets unmasked.",
        )

    def handle(self, *args, **options):
        settings = get_settings()
        values: dict[str, object] = {}

        if options.get("import_path"):
            try:
                values.update(load_settings_file(options["import_path"]))
            except (GadsConfigError, yaml.YAMLError) as exc:
                raise CommandError(str(exc)) from exc

        for pair in options.get("set") or []:
            key, sep, value = pair.partition("=")
            if not sep:
                raise CommandError(f"Expected KEY=VALUE, got {pair!r}")
            values[key.strip()] = value

        unknown = sorted(set(values) - set(GadsSettings.keys()))
        for key in unknown:
            self.stderr.write(f"Ignoring unknown setting: {key}")

        if values:
            settings.update(sanitize_settings(values))
            self.stdout.write(self.style.SUCCESS("Settings saved."))

        current = settings.get_all()
        show_secrets = options.get("show_secrets")
        self.stdout.write("Google Ads reporter settings:")
        for key in GadsSettings.keys():
            value = current[key]
            if key in SECRET_FIELDS and not show_secrets:
                value = DiagnosticLog.mask(value)
            self.stdout.write(f"- {key}: {value}")

        state = "yes" if settings.is_configured() else "no"
        self.stdout.write(f"Configured: {state}")
