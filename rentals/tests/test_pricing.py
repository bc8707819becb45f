from datetime import date, datetime, timezone as dt_timezone
from decimal import Decimal

from django.test import SimpleTestCase, TestCase

from rentals.exceptions import InvalidRangeError, NotFoundError
from rentals.models import DailyRate, SeasonalPrice
from rentals.services.pricing_service import (
    PriceConfig,
    PricingService,
    SOURCE_BASE,
    SOURCE_DAILY_RATE,
    SOURCE_SEASON,
    calculate_base_price,
    count_nights,
    resolve_nightly_price,
    resolve_nightly_source,
    to_utc_date,
    total_stay_price,
)

from .helpers import make_apartment


class CalculateBasePriceTests(SimpleTestCase):

    def test_per_person_ignores_included_guests_and_surcharge(self):
        config = PriceConfig(
            unit_price=Decimal('35.00'),
            price_type='per_person',
            base_guests=2,
            extra_guest_price=Decimal('50.00'),
        )
        self.assertEqual(calculate_base_price(config, 3, 4), Decimal('420.00'))

    def test_flat_without_extra_guests_ignores_surcharge(self):
        config = PriceConfig(unit_price=Decimal('100.00'), base_guests=2, extra_guest_price=Decimal('20.00'))
        self.assertEqual(calculate_base_price(config, 2, 3), Decimal('300.00'))
        self.assertEqual(calculate_base_price(config, 1, 3), Decimal('300.00'))

    def test_flat_with_fixed_surcharge(self):
        config = PriceConfig(unit_price=Decimal('100.00'), base_guests=2, extra_guest_price=Decimal('20.00'))
        # 100*3 + (4-2)*20*3
        self.assertEqual(calculate_base_price(config, 4, 3), Decimal('420.00'))

    def test_flat_with_percentage_surcharge_adds_per_extra_guest(self):
        config = PriceConfig(
            unit_price=Decimal('100.00'),
            base_guests=2,
            extra_guest_price=Decimal('10'),
            extra_guest_price_type='percentage',
        )
        # 100*2 + 2 extra guests * (100*10%*2)
        self.assertEqual(calculate_base_price(config, 4, 2), Decimal('240.00'))

    def test_zero_surcharge_is_ignored(self):
        config = PriceConfig(unit_price=Decimal('80.00'), base_guests=1, extra_guest_price=Decimal('0'))
        self.assertEqual(calculate_base_price(config, 5, 1), Decimal('80.00'))


class DateHelperTests(SimpleTestCase):

    def test_to_utc_date_converts_aware_datetimes(self):
        self.assertEqual(to_utc_date('2026-07-01T23:30:00-02:00'), date(2026, 7, 2))
        self.assertEqual(to_utc_date(datetime(2026, 7, 1, 23, 30)), date(2026, 7, 1))
        self.assertEqual(to_utc_date(date(2026, 7, 1)), date(2026, 7, 1))

    def test_to_utc_date_rejects_other_types(self):
        with self.assertRaises(TypeError):
            to_utc_date(20260701)

    def test_count_nights_by_calendar_days(self):
        self.assertEqual(count_nights(date(2026, 7, 1), date(2026, 7, 4)), 3)

    def test_count_nights_rounds_sub_day_noise(self):
        check_in = datetime(2026, 7, 1, 0, 0, tzinfo=dt_timezone.utc)
        self.assertEqual(count_nights(check_in, datetime(2026, 7, 3, 23, 0, tzinfo=dt_timezone.utc)), 3)
        self.assertEqual(count_nights(check_in, datetime(2026, 7, 3, 1, 0, tzinfo=dt_timezone.utc)), 2)

    def test_count_nights_charges_at_least_one_night(self):
        # different UTC dates, less than a day apart
        self.assertEqual(count_nights('2026-07-01T23:00:00Z', '2026-07-02T01:00:00Z'), 1)

    def test_count_nights_rejects_timestamps_on_the_same_utc_date(self):
        with self.assertRaises(InvalidRangeError):
            count_nights('2026-07-01T10:00:00Z', '2026-07-01T14:00:00Z')
        # 23:30 at UTC-02:00 is already Jul 2 in UTC, the same date as check-out
        with self.assertRaises(InvalidRangeError):
            count_nights('2026-07-01T23:30:00-02:00', '2026-07-02T23:00:00Z')

    def test_count_nights_rejects_same_day_and_inverted_ranges(self):
        with self.assertRaises(InvalidRangeError):
            count_nights(date(2026, 7, 1), date(2026, 7, 1))
        with self.assertRaises(InvalidRangeError):
            count_nights(date(2026, 7, 4), date(2026, 7, 1))


class ResolveNightlyPriceTests(TestCase):

    def setUp(self):
        self.apartment = make_apartment()
        self.summer = SeasonalPrice.objects.create(
            apartment=self.apartment,
            name='Summer',
            start_date=date(2026, 6, 15),
            end_date=date(2026, 9, 15),
            price=Decimal('140.00'),
        )

    def test_daily_rate_wins_over_season(self):
        DailyRate.objects.create(apartment=self.apartment, date=date(2026, 7, 2), price=Decimal('150.00'))

        night = resolve_nightly_source(self.apartment, date(2026, 7, 2), 2)

        self.assertEqual(night.source, SOURCE_DAILY_RATE)
        self.assertEqual(night.price, Decimal('150.00'))

    def test_daily_rate_keeps_guest_surcharge(self):
        DailyRate.objects.create(apartment=self.apartment, date=date(2026, 7, 2), price=Decimal('150.00'))
        self.assertEqual(resolve_nightly_price(self.apartment, date(2026, 7, 2), 4), Decimal('190.00'))

    def test_season_fallback(self):
        night = resolve_nightly_source(self.apartment, date(2026, 7, 3), 2)
        self.assertEqual(night.source, SOURCE_SEASON)
        self.assertEqual(night.price, Decimal('140.00'))
        self.assertEqual(night.label, 'Summer')

    def test_season_bounds_are_inclusive(self):
        self.assertEqual(resolve_nightly_price(self.apartment, date(2026, 6, 15), 2), Decimal('140.00'))
        self.assertEqual(resolve_nightly_price(self.apartment, date(2026, 9, 15), 2), Decimal('140.00'))
        self.assertEqual(resolve_nightly_price(self.apartment, date(2026, 9, 16), 2), Decimal('100.00'))

    def test_first_season_in_stored_order_wins(self):
        SeasonalPrice.objects.create(
            apartment=self.apartment,
            name='August peak',
            start_date=date(2026, 8, 1),
            end_date=date(2026, 8, 31),
            price=Decimal('180.00'),
            sort_order=1,
        )
        self.assertEqual(resolve_nightly_price(self.apartment, date(2026, 8, 10), 2), Decimal('140.00'))

        self.summer.sort_order = 2
        self.summer.save()
        self.assertEqual(resolve_nightly_price(self.apartment, date(2026, 8, 10), 2), Decimal('180.00'))

    def test_base_fallback_applies_guest_rules(self):
        night = resolve_nightly_source(self.apartment, date(2026, 11, 3), 3)
        self.assertEqual(night.source, SOURCE_BASE)
        self.assertEqual(night.price, Decimal('120.00'))

    def test_blocked_day_without_price_is_not_a_price_source(self):
        DailyRate.objects.create(apartment=self.apartment, date=date(2026, 7, 5), is_blocked=True)
        self.assertEqual(resolve_nightly_price(self.apartment, date(2026, 7, 5), 2), Decimal('140.00'))

    def test_night_is_compared_on_the_utc_calendar(self):
        DailyRate.objects.create(apartment=self.apartment, date=date(2026, 11, 2), price=Decimal('90.00'))
        # 23:30 at UTC-02:00 is already Nov 2 in UTC
        self.assertEqual(resolve_nightly_price(self.apartment, '2026-11-01T23:30:00-02:00', 2), Decimal('90.00'))


class TotalStayPriceTests(TestCase):

    def setUp(self):
        self.apartment = make_apartment()

    def test_three_nights_four_guests_no_overrides(self):
        total = total_stay_price(self.apartment.id, date(2026, 3, 1), date(2026, 3, 4), 4)
        self.assertEqual(total, Decimal('420.00'))

    def test_override_night_plus_two_regular_nights(self):
        DailyRate.objects.create(apartment=self.apartment, date=date(2026, 3, 2), price=Decimal('150.00'))

        override_night = resolve_nightly_price(self.apartment, date(2026, 3, 2), 4)
        total = total_stay_price(self.apartment.id, date(2026, 3, 1), date(2026, 3, 4), 4)

        self.assertEqual(total, override_night + 2 * Decimal('140.00'))

    def test_override_night_with_included_guests(self):
        DailyRate.objects.create(apartment=self.apartment, date=date(2026, 3, 2), price=Decimal('150.00'))
        total = total_stay_price(self.apartment.id, date(2026, 3, 1), date(2026, 3, 4), 2)
        self.assertEqual(total, Decimal('350.00'))

    def test_total_is_sum_of_nightly_prices_across_branches(self):
        SeasonalPrice.objects.create(
            apartment=self.apartment,
            name='Easter',
            start_date=date(2026, 4, 3),
            end_date=date(2026, 4, 5),
            price=Decimal('130.00'),
        )
        DailyRate.objects.create(apartment=self.apartment, date=date(2026, 4, 4), price=Decimal('175.50'))

        check_in, check_out = date(2026, 4, 1), date(2026, 4, 8)
        nights = [date(2026, 4, day) for day in range(1, 8)]
        expected = sum((resolve_nightly_price(self.apartment, night, 3) for night in nights), Decimal('0'))

        quote = PricingService(self.apartment).quote(check_in, check_out, 3)

        self.assertEqual(total_stay_price(self.apartment.id, check_in, check_out, 3), expected)
        self.assertEqual(quote['total'], expected)
        self.assertEqual(
            [night['source'] for night in quote['nightly']],
            ['base', 'base', 'season', 'daily_rate', 'season', 'base', 'base']
        )

    def test_per_person_apartment(self):
        apartment = make_apartment(
            code='hostel-room',
            price_type='per_person',
            base_price=Decimal('35.00'),
        )
        total = total_stay_price(apartment.id, date(2026, 5, 1), date(2026, 5, 3), 3)
        self.assertEqual(total, Decimal('210.00'))

    def test_unknown_apartment(self):
        with self.assertRaises(NotFoundError):
            total_stay_price(99999, date(2026, 3, 1), date(2026, 3, 4), 2)

    def test_inverted_range_is_rejected(self):
        with self.assertRaises(InvalidRangeError):
            total_stay_price(self.apartment.id, date(2026, 3, 4), date(2026, 3, 1), 2)

    def test_same_day_timestamps_are_rejected(self):
        with self.assertRaises(InvalidRangeError):
            total_stay_price(self.apartment.id, '2026-07-01T10:00:00Z', '2026-07-01T14:00:00Z', 2)

    def test_quote_prefetches_daily_rates_in_one_query(self):
        DailyRate.objects.create(apartment=self.apartment, date=date(2026, 3, 2), price=Decimal('150.00'))
        service = PricingService(self.apartment)

        # seasons + daily rates
        with self.assertNumQueries(2):
            quote = service.quote(date(2026, 3, 1), date(2026, 3, 8), 2)

        self.assertEqual(quote['nights'], 7)
