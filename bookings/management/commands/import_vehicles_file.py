from __future__ import annotations

from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from bookings.importers import import_vehicle_rows, load_rows


class Command(BaseCommand):
    help = "Import vehicles from a CSV/XLS/XLSX file (same logic as /bookings/vehicles/import/)."

    def add_arguments(self, parser):
        parser.add_argument(
            "path",
            type=str,
            help="Path to the file. Example: /app/import_data/fleet.xlsx",
        )

    def handle(self, *args, **options):
        path = Path(options["path"])
        if not path.exists():
            raise CommandError(f"File not found: {path}")
        if not path.is_file():
            raise CommandError(f"Not a file: {path}")

        with path.open("rb") as upload:
            try:
                rows = load_rows(upload)
            except Exception as exc:  # noqa: BLE001 - any reader failure is reported the same way
                raise CommandError(f"Failed to read file: {path}. Error: {exc}") from exc

        if not rows:
            self.stdout.write(self.style.WARNING("No rows found (empty file)."))
            return

        imported, skipped = import_vehicle_rows(rows)

        self.stdout.write(self.style.SUCCESS(f"Imported vehicles: {imported}"))
        self.stdout.write(f"Skipped rows (missing or invalid fields): {skipped}")
