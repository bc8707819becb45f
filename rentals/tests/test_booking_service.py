from datetime import date
from decimal import Decimal
from unittest.mock import patch

import requests
from django.test import TestCase, override_settings

from rentals.exceptions import FeedUnavailableError, InvalidRangeError, UnavailableError
from rentals.models import Booking, CalendarSource, DailyRate
from rentals.services.booking_service import (
    BookingService,
    check_stay_restrictions,
    search_available_apartments,
)

from .helpers import SAMPLE_ICS, make_apartment


class StayRestrictionTests(TestCase):

    def setUp(self):
        self.apartment = make_apartment(min_stay=2)

    def test_blocked_night_rejects_stay(self):
        DailyRate.objects.create(apartment=self.apartment, date=date(2026, 6, 3), is_blocked=True)

        with self.assertRaises(UnavailableError) as ctx:
            check_stay_restrictions(self.apartment, date(2026, 6, 1), date(2026, 6, 5))

        self.assertEqual(ctx.exception.reason, 'blocked')
        self.assertEqual(ctx.exception.details['blocked_dates'], ['2026-06-03'])

    def test_blocked_check_out_day_is_not_a_night(self):
        DailyRate.objects.create(apartment=self.apartment, date=date(2026, 6, 5), is_blocked=True)
        self.assertEqual(check_stay_restrictions(self.apartment, date(2026, 6, 1), date(2026, 6, 5)), 4)

    def test_apartment_minimum_stay(self):
        with self.assertRaises(UnavailableError) as ctx:
            check_stay_restrictions(self.apartment, date(2026, 6, 1), date(2026, 6, 2))
        self.assertEqual(ctx.exception.reason, 'min_stay')
        self.assertEqual(ctx.exception.details['min_stay'], 2)

    def test_arrival_day_minimum_stay_overrides_apartment_default(self):
        DailyRate.objects.create(apartment=self.apartment, date=date(2026, 6, 1), min_stay=5)

        with self.assertRaises(UnavailableError):
            check_stay_restrictions(self.apartment, date(2026, 6, 1), date(2026, 6, 4))

        # arrivals on other days keep the apartment default
        self.assertEqual(check_stay_restrictions(self.apartment, date(2026, 6, 2), date(2026, 6, 4)), 2)


class CreateBookingTests(TestCase):

    def setUp(self):
        self.apartment = make_apartment()
        self.service = BookingService()

    def book(self, check_in, check_out, guests=2, **kwargs):
        return self.service.create_booking(
            self.apartment, check_in, check_out,
            guests=guests,
            guest_name='Ada Lovelace',
            guest_email='ada@example.com',
            **kwargs
        )

    def test_booking_gets_server_computed_price(self):
        booking = self.book(date(2026, 3, 1), date(2026, 3, 4), guests=4)

        self.assertEqual(booking.total_price, Decimal('420.00'))
        self.assertEqual(booking.status, Booking.STATUS_PENDING)
        self.assertEqual(booking.source, Booking.SOURCE_DIRECT)

    def test_client_price_mismatch_is_logged_and_ignored(self):
        with self.assertLogs('rentals.services.booking_service', level='WARNING') as logs:
            booking = self.book(date(2026, 3, 1), date(2026, 3, 4), guests=4, client_price=Decimal('1.00'))

        self.assertEqual(booking.total_price, Decimal('420.00'))
        self.assertIn('Price mismatch', logs.output[0])

    def test_overlapping_booking_is_rejected(self):
        self.book(date(2026, 3, 1), date(2026, 3, 4))

        with self.assertRaises(UnavailableError) as ctx:
            self.book(date(2026, 3, 3), date(2026, 3, 6))

        self.assertEqual(ctx.exception.reason, 'booked')
        self.assertEqual(ctx.exception.status_code, 409)

    def test_back_to_back_bookings_are_allowed(self):
        self.book(date(2026, 3, 1), date(2026, 3, 4))
        second = self.book(date(2026, 3, 4), date(2026, 3, 6))
        self.assertEqual(second.check_in, date(2026, 3, 4))

    def test_cancelled_booking_frees_the_dates(self):
        first = self.book(date(2026, 3, 1), date(2026, 3, 4))
        first.status = Booking.STATUS_CANCELLED
        first.save()

        self.book(date(2026, 3, 2), date(2026, 3, 3))

    def test_too_many_guests(self):
        with self.assertRaises(UnavailableError) as ctx:
            self.book(date(2026, 3, 1), date(2026, 3, 4), guests=7)
        self.assertEqual(ctx.exception.reason, 'capacity')

    def test_inverted_range(self):
        with self.assertRaises(InvalidRangeError):
            self.book(date(2026, 3, 4), date(2026, 3, 1))

    @patch("rentals.services.calendar_service.requests.get")
    def test_external_calendar_overlap_is_rejected(self, mock_get):
        mock_get.return_value.text = SAMPLE_ICS
        CalendarSource.objects.create(apartment=self.apartment, source='airbnb', url='http://example.com/a.ics')

        with self.assertRaises(UnavailableError) as ctx:
            self.book(date(2026, 7, 11), date(2026, 7, 14))

        self.assertEqual(ctx.exception.reason, 'external')
        self.assertFalse(Booking.objects.exists())

    @patch("rentals.services.calendar_service.requests.get")
    def test_external_calendar_touching_stay_is_accepted(self, mock_get):
        mock_get.return_value.text = SAMPLE_ICS
        CalendarSource.objects.create(apartment=self.apartment, source='airbnb', url='http://example.com/a.ics')

        booking = self.book(date(2026, 7, 12), date(2026, 7, 14))
        self.assertEqual(booking.total_price, Decimal('200.00'))

    @patch("rentals.services.calendar_service.requests.get")
    def test_unavailable_feed_fails_closed(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("unreachable")
        CalendarSource.objects.create(apartment=self.apartment, source='airbnb', url='http://example.com/a.ics')

        with self.assertRaises(FeedUnavailableError):
            self.book(date(2026, 3, 1), date(2026, 3, 4))

        self.assertFalse(Booking.objects.exists())

    @override_settings(RENTALS={'FAIL_CLOSED_ON_FEED_ERROR': False})
    @patch("rentals.services.calendar_service.requests.get")
    def test_unavailable_feed_can_degrade(self, mock_get):
        mock_get.side_effect = requests.ConnectionError("unreachable")
        CalendarSource.objects.create(apartment=self.apartment, source='airbnb', url='http://example.com/a.ics')

        with self.assertLogs('rentals.services.booking_service', level='WARNING'):
            booking = BookingService().create_booking(
                self.apartment, date(2026, 3, 1), date(2026, 3, 4),
                guests=2, guest_name='Ada Lovelace'
            )

        self.assertEqual(booking.total_price, Decimal('300.00'))


class SearchAvailableApartmentsTests(TestCase):

    def setUp(self):
        self.loft = make_apartment()
        self.studio = make_apartment(name='Studio', code='studio', max_guests=2, base_price=Decimal('70.00'))
        self.villa = make_apartment(name='Villa', code='villa', max_guests=10, is_active=False)

    def test_lists_free_active_apartments_with_prices(self):
        results = search_available_apartments(date(2026, 5, 1), date(2026, 5, 3), 2)

        by_code = {item['apartment'].code: item['quote']['total'] for item in results}
        self.assertEqual(by_code, {'sea-view-loft': Decimal('200.00'), 'studio': Decimal('140.00')})

    def test_excludes_booked_and_small_apartments(self):
        Booking.objects.create(
            apartment=self.loft,
            guest_name='Existing',
            check_in=date(2026, 5, 2),
            check_out=date(2026, 5, 5),
            status=Booking.STATUS_CONFIRMED,
        )

        self.assertEqual(search_available_apartments(date(2026, 5, 1), date(2026, 5, 3), 2)[0]['apartment'], self.studio)
        self.assertEqual(search_available_apartments(date(2026, 5, 1), date(2026, 5, 3), 4), [])
