"""
Management command to import channel iCal feeds as bookings.

Meant to run from cron.

Usage:
    python manage.py sync_calendars
    python manage.py sync_calendars --apartment sea-view-loft
"""

from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = 'Import bookings from the iCal feeds of every apartment calendar source'

    def add_arguments(self, parser):
        parser.add_argument(
            '--apartment',
            type=str,
            help='Only sync the apartment with this code'
        )

    def handle(self, *args, **options):
        from rentals.models import Apartment
        from rentals.services import sync_apartment_calendars

        apartments = Apartment.objects.filter(is_active=True)
        if options['apartment']:
            apartments = apartments.filter(code=options['apartment'])
            if not apartments.exists():
                raise CommandError(f"Apartment not found: {options['apartment']}")

        failures = 0

        for apartment in apartments:
            outcome = sync_apartment_calendars(apartment)

            for result in outcome['results']:
                self.stdout.write(
                    f"{apartment.code}/{result.source.source}: {result.events} events, "
                    f"{result.created} created, {result.updated} updated"
                )
            for source, error in outcome['errors'].items():
                failures += 1
                self.stdout.write(self.style.ERROR(f"{apartment.code}/{source}: {error}"))

        if failures:
            self.stdout.write(self.style.WARNING(f'Done with {failures} failed source(s)'))
        else:
            self.stdout.write(self.style.SUCCESS('✓ All calendars synchronized'))
