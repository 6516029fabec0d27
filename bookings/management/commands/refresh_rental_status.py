from django.core.management.base import BaseCommand
from django.utils import timezone

from bookings.models import Rental


class Command(BaseCommand):
    help = "Regenerate the cached status of every rental from the current time."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Report how many rentals are stale without saving them.",
        )

    def handle(self, *args, **options):
        now = timezone.now()
        stale = []
        for rental in Rental.objects.all().iterator():
            if rental.refresh_status(now):
                stale.append(rental)

        if stale and not options["dry_run"]:
            Rental.objects.bulk_update(stale, ["status"])

        verb = "Would update" if options["dry_run"] else "Updated"
        self.stdout.write(self.style.SUCCESS(f"{verb} {len(stale)} rental status(es)."))
