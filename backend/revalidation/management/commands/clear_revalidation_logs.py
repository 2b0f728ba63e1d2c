"""Management command to clear the revalidation audit log."""

from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from revalidation.audit_log import AuditLog


class Command(BaseCommand):
    help = "Delete every entry from the revalidation audit log"

    def handle(self, *args, **options):
        if not AuditLog().clear():
            raise CommandError("Failed to clear revalidation logs")
        self.stdout.write(self.style.SUCCESS("Cleared revalidation logs"))
