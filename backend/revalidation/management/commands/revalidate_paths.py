"""Management command to send revalidation requests for explicit paths."""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from config.domain_exceptions import ConfigurationError
from revalidation.engine import get_engine
from revalidation.paths import normalize_path


class Command(BaseCommand):
    help = "Revalidate one or more paths (or absolute URLs) on the configured endpoint"

    def add_arguments(self, parser):
        parser.add_argument("paths", nargs="+", help="Paths or absolute URLs to revalidate")
        parser.add_argument(
            "--force",
            action="store_true",
            help="Ignore the per-path cooldown window",
        )

    def handle(self, *args, **options):
        try:
            engine = get_engine()
        except ConfigurationError as e:
            raise CommandError(str(e)) from e

        if not engine.is_configured():
            raise CommandError("Revalidation endpoint or token not configured")

        site_url = engine.options.site_url
        paths = [normalize_path(p, site_url) for p in options["paths"]]
        attempts = engine.revalidate_paths(paths, force=options["force"], trigger="manual")

        skipped = len(dict.fromkeys(paths)) - len(attempts)
        if skipped:
            self.stdout.write(f"Skipped {skipped} path(s) still in cooldown")

        failures = 0
        for attempt in attempts:
            if attempt.success:
                self.stdout.write(self.style.SUCCESS(f"Revalidated {attempt.path} ({attempt.status_code})"))
            else:
                failures += 1
                detail = attempt.status_code or attempt.response.get("message")
                self.stdout.write(self.style.ERROR(f"Failed {attempt.path}: {detail}"))

        if failures:
            raise CommandError(f"{failures} path(s) failed to revalidate")
