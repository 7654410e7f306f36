"""Export volunteering participations to CSV."""

from __future__ import annotations

import csv
from pathlib import Path

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError

from core.models import VolunteeringParticipation
from core.services import EXPORT_COLUMNS, export_rows


class Command(BaseCommand):
    """Write participations as CSV to stdout or a file."""

    help = "Export volunteering participations as CSV (all students, or one with --student)."

    def add_arguments(self, parser) -> None:
        """Add command arguments."""

        parser.add_argument(
            "--student",
            default=None,
            help="Optional username to limit the export to one student.",
        )
        parser.add_argument(
            "--output",
            default=None,
            help="Optional file path; defaults to stdout.",
        )
        parser.add_argument(
            "--verified-only",
            action="store_true",
            help="Only export staff-verified participations.",
        )

    def handle(self, *args, **options) -> str | None:
        """Run the command."""

        username: str | None = options["student"]
        output: str | None = options["output"]

        queryset = VolunteeringParticipation.objects.select_related("student", "opportunity").order_by(
            "student__username", "start_date", "id"
        )
        if username:
            student = get_user_model().objects.filter(username=username).first()
            if student is None:
                raise CommandError(f"Unknown student {username!r}.")
            queryset = queryset.filter(student=student)
        if options["verified_only"]:
            queryset = queryset.filter(verified=True)

        if output:
            with Path(output).open("w", newline="", encoding="utf-8") as handle:
                count = self._write(handle, queryset)
            self.stdout.write(self.style.SUCCESS(f"Exported {count} participation(s) to {output}."))
        else:
            self._write(self.stdout, queryset)
        return None

    def _write(self, handle, queryset) -> int:
        writer = csv.writer(handle)
        writer.writerow(EXPORT_COLUMNS)
        count = 0
        for row in export_rows(queryset):
            writer.writerow(row)
            count += 1
        return count
