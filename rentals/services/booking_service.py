"""
Booking Services
================

Direct booking creation and availability search.

Creation Flow:
1. Validate the range and the guest count
2. Fetch external busy intervals (network, outside the transaction)
3. Lock the apartment row, check restrictions and persisted overlaps
4. Compute the authoritative price and save
"""

import logging
from decimal import Decimal

from django.db import transaction

from rentals.conf import get_setting
from rentals.exceptions import FeedUnavailableError, UnavailableError

from .calendar_service import fetch_busy_intervals, is_available
from .pricing_service import PricingService, count_nights, iter_nights, to_utc_date

logger = logging.getLogger(__name__)


def check_stay_restrictions(apartment, check_in, check_out):
    """
    Check blocked days and minimum stay for a stay.

    The minimum stay comes from the daily rate of the check-in day,
    falling back to the apartment's default.

    Raises:
        InvalidRangeError: check_out is not after check_in
        UnavailableError: a night is blocked or the stay is too short
    """
    from rentals.models import DailyRate

    nights = count_nights(check_in, check_out)
    first_night = to_utc_date(check_in)
    stay_nights = list(iter_nights(first_night, nights))

    rates = {
        rate.date: rate
        for rate in DailyRate.objects.filter(
            apartment=apartment,
            date__gte=stay_nights[0],
            date__lte=stay_nights[-1]
        )
    }

    blocked = [night for night in stay_nights if night in rates and rates[night].is_blocked]
    if blocked:
        raise UnavailableError(
            "Selected dates include blocked days.",
            reason='blocked',
            blocked_dates=[night.isoformat() for night in blocked]
        )

    arrival_rate = rates.get(first_night)
    if arrival_rate is not None and arrival_rate.min_stay:
        min_stay = arrival_rate.min_stay
    else:
        min_stay = apartment.min_stay or 1

    if nights < min_stay:
        raise UnavailableError(
            f"Minimum stay is {min_stay} nights.",
            reason='min_stay',
            min_stay=min_stay,
            nights=nights
        )

    return nights


class BookingService:
    """
    Create direct bookings safely against channel calendars and the database.

    Usage:
        booking = BookingService().create_booking(
            apartment, date(2026, 7, 1), date(2026, 7, 4),
            guests=2, guest_name='Ada Lovelace', guest_email='ada@example.com'
        )
    """

    def __init__(self, fail_closed=None):
        if fail_closed is None:
            fail_closed = get_setting('FAIL_CLOSED_ON_FEED_ERROR')
        self.fail_closed = fail_closed

    def check_external_calendars(self, apartment, check_in, check_out):
        """
        Raises:
            FeedUnavailableError: a feed failed and the service fails closed
            UnavailableError: a channel already holds an overlapping stay
        """
        try:
            busy = fetch_busy_intervals(apartment)
        except FeedUnavailableError as e:
            if self.fail_closed:
                logger.warning("Refusing booking for %s, feed unavailable: %s", apartment.code, e.message)
                raise
            logger.warning("Ignoring unavailable feed for %s: %s", apartment.code, e.message)
            return

        if not is_available(check_in, check_out, busy):
            raise UnavailableError(
                "The apartment is already booked on another channel for these dates.",
                reason='external'
            )

    def create_booking(self, apartment, check_in, check_out, guests, guest_name,
                       guest_email='', guest_phone='', client_price=None,
                       source='direct', status='pending', notes=''):
        """
        Create a booking with a server-computed price.

        Raises:
            InvalidRangeError, UnavailableError, FeedUnavailableError
        """
        from rentals.models import Apartment, Booking

        check_in = to_utc_date(check_in)
        check_out = to_utc_date(check_out)
        count_nights(check_in, check_out)

        if guests < 1 or guests > apartment.max_guests:
            raise UnavailableError(
                f"This apartment accepts 1 to {apartment.max_guests} guests.",
                reason='capacity',
                max_guests=apartment.max_guests
            )

        self.check_external_calendars(apartment, check_in, check_out)

        with transaction.atomic():
            # serialize concurrent bookings of the same apartment
            apartment = Apartment.objects.select_for_update().get(pk=apartment.pk)

            check_stay_restrictions(apartment, check_in, check_out)

            if Booking.objects.overlapping(apartment, check_in, check_out).exists():
                raise UnavailableError(
                    "The apartment is already booked for these dates.",
                    reason='booked'
                )

            total_price = PricingService(apartment).total(check_in, check_out, guests)

            if client_price is not None and Decimal(str(client_price)) != total_price:
                logger.warning(
                    "Price mismatch for %s %s-%s: client %s, server %s",
                    apartment.code, check_in, check_out, client_price, total_price
                )

            booking = Booking.objects.create(
                apartment=apartment,
                guest_name=guest_name,
                guest_email=guest_email,
                guest_phone=guest_phone,
                check_in=check_in,
                check_out=check_out,
                number_of_guests=guests,
                total_price=total_price,
                status=status,
                source=source,
                notes=notes,
            )

        logger.info("Created booking %s for %s (%s → %s)", booking.pk, apartment.code, check_in, check_out)
        return booking


def search_available_apartments(check_in, check_out, guests):
    """
    Active apartments bookable for a stay, each with its price quote.

    Only stored data is consulted (restrictions and persisted bookings);
    channel feeds are checked when the booking is actually created.

    Raises:
        InvalidRangeError: check_out is not after check_in
    """
    from rentals.models import Apartment, Booking

    check_in = to_utc_date(check_in)
    check_out = to_utc_date(check_out)
    count_nights(check_in, check_out)

    results = []
    apartments = Apartment.objects.filter(is_active=True, max_guests__gte=guests)

    for apartment in apartments:
        try:
            check_stay_restrictions(apartment, check_in, check_out)
        except UnavailableError:
            continue

        if Booking.objects.overlapping(apartment, check_in, check_out).exists():
            continue

        quote = PricingService(apartment).quote(check_in, check_out, guests)
        results.append({
            'apartment': apartment,
            'quote': quote,
        })

    return results
