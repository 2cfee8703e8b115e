"""Print or clear the diagnostic log."""

from __future__ import annotations

from django.core.management.base import BaseCommand

from apps.gads.registry import get_diagnostic_log


class Command(BaseCommand):
    help = "Print the Google Ads diagnostic log."

    def add_arguments(self, parser):
        parser.add_argument("--path", action="store_true", help="Only print the log file location.")
        parser.add_argument("--clear", action="store_true", help="Delete the log file.")

    def handle(self, *args, **options):
        log = get_diagnostic_log()

        if options.get("path"):
            self.stdout.write(log.relative_path())
            return

        if options.get("clear"):
            log.clear()
            self.stdout.write("Log file cleared.")
            return

        contents = log.get_contents()
        if not contents:
            self.stdout.write("Log file is empty.")
            return
        self.stdout.write(contents, ending="")
