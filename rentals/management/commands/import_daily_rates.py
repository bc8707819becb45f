"""
Management command to import daily rates from Excel/CSV files.

Usage:
    python manage.py import_daily_rates sea-view-loft path/to/rates.xlsx
    python manage.py import_daily_rates sea-view-loft path/to/rates.csv --validate-only
"""

from pathlib import Path

from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = 'Import daily rates (price, blocked days, minimum stay) from Excel or CSV file'

    def add_arguments(self, parser):
        parser.add_argument(
            'apartment_code',
            type=str,
            help='Code of the apartment the rates belong to'
        )
        parser.add_argument(
            'file_path',
            type=str,
            help='Path to the Excel or CSV file to import'
        )
        parser.add_argument(
            '--validate-only',
            action='store_true',
            help='Only validate the file without importing'
        )

    def handle(self, *args, **options):
        from rentals.models import Apartment
        from rentals.services import DailyRateImportService

        try:
            apartment = Apartment.objects.get(code=options['apartment_code'])
        except Apartment.DoesNotExist:
            raise CommandError(f"Apartment not found: {options['apartment_code']}")

        file_path = Path(options['file_path'])

        if not file_path.exists():
            raise CommandError(f'File not found: {file_path}')

        if file_path.suffix.lower() not in ['.xlsx', '.xls', '.csv']:
            raise CommandError(f'Unsupported file format: {file_path.suffix}')

        self.stdout.write(f'Processing: {file_path.name} → {apartment.name}')

        result = DailyRateImportService().import_file(
            apartment, file_path, validate_only=options['validate_only']
        )

        self.stdout.write('')
        self.stdout.write(f"  Total rows: {result['rows_total']}")
        self.stdout.write(f"  Created:    {result['rows_created']}")
        self.stdout.write(f"  Updated:    {result['rows_updated']}")
        self.stdout.write(f"  Skipped:    {result['rows_skipped']}")

        if result['errors']:
            self.stdout.write('')
            self.stdout.write(self.style.WARNING('Errors:'))
            for error in result['errors'][:20]:
                self.stdout.write(f"  Row {error['row']}: {error['message']}")

        self.stdout.write('')
        if not result['success']:
            raise CommandError('Import failed')
        if options['validate_only']:
            self.stdout.write(self.style.SUCCESS('✓ File is valid (nothing written)'))
        else:
            self.stdout.write(self.style.SUCCESS('✓ Import completed'))
