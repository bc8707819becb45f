import os
import tempfile
from datetime import date
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

import requests
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from rentals.exceptions import InvalidRangeError
from rentals.models import Booking, CalendarSource, DailyRate
from rentals.services.rate_service import (
    DailyRateImportService,
    bulk_update_rates,
    delete_daily_rate,
    rates_in_range,
    upsert_daily_rate,
)

from .helpers import SAMPLE_ICS, make_apartment

RATES_CSV = """Date,Price,Blocked,Min Stay,Notes
2026-06-01,120.50,,,
2026-06-02,,yes,,maintenance
02/06/2026,130,,3,
not-a-date,100,,,
2026-06-04,abc,,,
"""


def write_temp_file(content, suffix='.csv'):
    handle, path = tempfile.mkstemp(suffix=suffix)
    with os.fdopen(handle, 'w', encoding='utf-8') as f:
        f.write(content)
    return path


class DailyRateEditTests(TestCase):

    def setUp(self):
        self.apartment = make_apartment()

    def test_upsert_creates_then_replaces(self):
        rate, created = upsert_daily_rate(self.apartment, date(2026, 6, 1), price=Decimal('120.00'), min_stay=3)
        self.assertTrue(created)

        rate, created = upsert_daily_rate(self.apartment, date(2026, 6, 1), is_blocked=True)
        self.assertFalse(created)
        self.assertIsNone(rate.price)
        self.assertIsNone(rate.min_stay)
        self.assertTrue(rate.is_blocked)
        self.assertEqual(DailyRate.objects.filter(apartment=self.apartment).count(), 1)

    def test_delete(self):
        upsert_daily_rate(self.apartment, date(2026, 6, 1), price=Decimal('120.00'))

        self.assertTrue(delete_daily_rate(self.apartment, date(2026, 6, 1)))
        self.assertFalse(delete_daily_rate(self.apartment, date(2026, 6, 1)))

    def test_rates_in_range_is_inclusive(self):
        for day in (1, 5, 10, 11):
            upsert_daily_rate(self.apartment, date(2026, 6, day), price=Decimal('100.00'))

        rates = rates_in_range(self.apartment, date(2026, 6, 5), date(2026, 6, 10))
        self.assertEqual([rate.date.day for rate in rates], [5, 10])


class BulkUpdateRatesTests(TestCase):

    def setUp(self):
        self.apartment = make_apartment()

    def test_upserts_every_day_of_the_range(self):
        count = bulk_update_rates(self.apartment, date(2026, 6, 1), date(2026, 6, 7), price=Decimal('150.00'))

        self.assertEqual(count, 7)
        prices = set(rates_in_range(self.apartment, date(2026, 6, 1), date(2026, 6, 7)).values_list('price', flat=True))
        self.assertEqual(prices, {Decimal('150.00')})

    def test_only_passed_fields_are_touched(self):
        upsert_daily_rate(self.apartment, date(2026, 6, 2), price=Decimal('150.00'), min_stay=4)

        bulk_update_rates(self.apartment, date(2026, 6, 1), date(2026, 6, 3), is_blocked=True)

        kept = DailyRate.objects.get(apartment=self.apartment, date=date(2026, 6, 2))
        self.assertTrue(kept.is_blocked)
        self.assertEqual(kept.price, Decimal('150.00'))
        self.assertEqual(kept.min_stay, 4)

    def test_reset_prices_only_touches_existing_rows(self):
        upsert_daily_rate(self.apartment, date(2026, 6, 2), price=Decimal('150.00'), is_blocked=True)
        upsert_daily_rate(self.apartment, date(2026, 6, 3), min_stay=2)

        modified = bulk_update_rates(self.apartment, date(2026, 6, 1), date(2026, 6, 30), reset_prices=True)

        self.assertEqual(modified, 1)
        self.assertEqual(DailyRate.objects.filter(apartment=self.apartment).count(), 2)
        cleared = DailyRate.objects.get(apartment=self.apartment, date=date(2026, 6, 2))
        self.assertIsNone(cleared.price)
        self.assertTrue(cleared.is_blocked)

    def test_reset_min_stay(self):
        upsert_daily_rate(self.apartment, date(2026, 6, 2), min_stay=5)
        upsert_daily_rate(self.apartment, date(2026, 6, 3), price=Decimal('90.00'))

        modified = bulk_update_rates(self.apartment, date(2026, 6, 1), date(2026, 6, 30), reset_min_stay=True)

        self.assertEqual(modified, 1)
        self.assertEqual(DailyRate.objects.get(apartment=self.apartment, date=date(2026, 6, 2)).min_stay, 1)
        self.assertIsNone(DailyRate.objects.get(apartment=self.apartment, date=date(2026, 6, 3)).min_stay)

    def test_inverted_range(self):
        with self.assertRaises(InvalidRangeError):
            bulk_update_rates(self.apartment, date(2026, 6, 7), date(2026, 6, 1), price=Decimal('150.00'))
        self.assertFalse(DailyRate.objects.exists())


class DailyRateImportTests(TestCase):

    def setUp(self):
        self.apartment = make_apartment()
        self.path = write_temp_file(RATES_CSV)
        self.addCleanup(os.remove, self.path)

    def test_import_csv(self):
        result = DailyRateImportService().import_file(self.apartment, self.path)

        self.assertTrue(result['success'])
        self.assertEqual(result['rows_total'], 5)
        self.assertEqual(result['rows_created'], 2)
        # 02/06/2026 is the same day as 2026-06-02
        self.assertEqual(result['rows_updated'], 1)
        self.assertEqual(result['rows_skipped'], 2)
        self.assertEqual([error['row'] for error in result['errors']], [5, 6])

        first = DailyRate.objects.get(apartment=self.apartment, date=date(2026, 6, 1))
        self.assertEqual(first.price, Decimal('120.50'))
        self.assertFalse(first.is_blocked)

        second = DailyRate.objects.get(apartment=self.apartment, date=date(2026, 6, 2))
        self.assertEqual(second.price, Decimal('130.00'))
        self.assertEqual(second.min_stay, 3)

    def test_validate_only_writes_nothing(self):
        result = DailyRateImportService().import_file(self.apartment, self.path, validate_only=True)

        self.assertTrue(result['validate_only'])
        self.assertEqual(result['rows_created'] + result['rows_updated'], 3)
        self.assertFalse(DailyRate.objects.exists())

    def test_missing_date_column(self):
        path = write_temp_file("Price,Notes\n100,x\n")
        self.addCleanup(os.remove, path)

        result = DailyRateImportService().import_file(self.apartment, path)

        self.assertFalse(result['success'])
        self.assertIn('date', result['errors'][0]['message'])

    def test_unsupported_format(self):
        path = write_temp_file("date,price\n", suffix='.txt')
        self.addCleanup(os.remove, path)

        result = DailyRateImportService().import_file(self.apartment, path)

        self.assertFalse(result['success'])
        self.assertIn('Unsupported', result['errors'][0]['message'])


class ImportDailyRatesCommandTests(TestCase):

    def setUp(self):
        self.apartment = make_apartment()
        self.path = write_temp_file(RATES_CSV)
        self.addCleanup(os.remove, self.path)

    def test_command_imports_file(self):
        out = StringIO()
        call_command('import_daily_rates', 'sea-view-loft', self.path, stdout=out)

        self.assertIn('Import completed', out.getvalue())
        self.assertEqual(DailyRate.objects.filter(apartment=self.apartment).count(), 2)

    def test_command_validate_only(self):
        out = StringIO()
        call_command('import_daily_rates', 'sea-view-loft', self.path, '--validate-only', stdout=out)

        self.assertIn('nothing written', out.getvalue())
        self.assertFalse(DailyRate.objects.exists())

    def test_unknown_apartment(self):
        with self.assertRaises(CommandError):
            call_command('import_daily_rates', 'nowhere', self.path, stdout=StringIO())

    def test_missing_file(self):
        with self.assertRaises(CommandError):
            call_command('import_daily_rates', 'sea-view-loft', '/nonexistent/rates.csv', stdout=StringIO())


class SyncCalendarsCommandTests(TestCase):

    def setUp(self):
        self.apartment = make_apartment()
        CalendarSource.objects.create(apartment=self.apartment, source='airbnb', url='http://example.com/a.ics')

    @patch("rentals.services.calendar_service.requests.get")
    def test_sync_all(self, mock_get):
        mock_get.return_value.text = SAMPLE_ICS
        out = StringIO()

        call_command('sync_calendars', stdout=out)

        self.assertIn('sea-view-loft/airbnb: 2 events, 2 created', out.getvalue())
        self.assertEqual(Booking.objects.filter(apartment=self.apartment).count(), 2)

    @patch("rentals.services.calendar_service.requests.get")
    def test_failed_source_is_reported(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("unreachable")
        out = StringIO()

        with self.assertLogs('rentals.services.calendar_service', level='WARNING'):
            call_command('sync_calendars', '--apartment', 'sea-view-loft', stdout=out)

        self.assertIn('1 failed source', out.getvalue())

    def test_unknown_apartment(self):
        with self.assertRaises(CommandError):
            call_command('sync_calendars', '--apartment', 'nowhere', stdout=StringIO())


class DailyRateImportValidationTests(TestCase):

    def setUp(self):
        self.apartment = make_apartment()

    def import_csv(self, content):
        path = write_temp_file(content)
        self.addCleanup(os.remove, path)
        return DailyRateImportService().import_file(self.apartment, path)

    def test_non_numeric_min_stay_is_reported(self):
        result = self.import_csv("date,price,min_stay\n2026-06-01,100,two\n2026-06-02,100,2\n")

        self.assertEqual(result['rows_created'], 1)
        self.assertEqual(result['rows_skipped'], 1)
        self.assertEqual(result['errors'], [{'row': 2, 'message': 'Invalid minimum stay: two'}])
        self.assertFalse(DailyRate.objects.filter(date=date(2026, 6, 1)).exists())

    def test_fractional_and_zero_min_stay_are_reported(self):
        result = self.import_csv("date,min_stay\n2026-06-01,2.5\n2026-06-02,0\n2026-06-03,3\n")

        self.assertEqual([error['row'] for error in result['errors']], [2, 3])
        self.assertEqual(DailyRate.objects.get(date=date(2026, 6, 3)).min_stay, 3)
