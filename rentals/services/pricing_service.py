"""
Stay Pricing Services
=====================

Nightly price resolution for an apartment stay.

Calculation Flow (per night):
1. Daily rate with a price for that day   → unit price
2. Else first seasonal window containing it → unit price
3. Else apartment base price               → unit price
4. Unit price + guest rules (flat/per person, extra-guest surcharge) = nightly price

Stay total = sum of the independently resolved nightly prices.

All dates are compared on the UTC calendar at day granularity.
"""

import math
from collections import namedtuple
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone as dt_timezone
from decimal import Decimal, ROUND_HALF_UP

from dateutil.parser import isoparse

from rentals.exceptions import InvalidRangeError, NotFoundError

CENT = Decimal('0.01')

SOURCE_DAILY_RATE = 'daily_rate'
SOURCE_SEASON = 'season'
SOURCE_BASE = 'base'


@dataclass(frozen=True)
class PriceConfig:
    """Inputs of the base price calculator."""
    unit_price: Decimal
    price_type: str = 'flat'
    base_guests: int = 0
    extra_guest_price: Decimal = Decimal('0.00')
    extra_guest_price_type: str = 'fixed'


NightlyPrice = namedtuple('NightlyPrice', ['date', 'source', 'price', 'label'])


# =============================================================================
# DATE HELPERS
# =============================================================================

def to_utc_date(value):
    """
    Normalize a date, datetime or ISO string to a date on the UTC calendar.

    Naive datetimes are taken as UTC.
    """
    if isinstance(value, str):
        value = isoparse(value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(dt_timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Cannot interpret {value!r} as a date")


def _to_utc_instant(value):
    if isinstance(value, str):
        value = isoparse(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=dt_timezone.utc)
        return value.astimezone(dt_timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=dt_timezone.utc)
    raise TypeError(f"Cannot interpret {value!r} as a date")


def count_nights(check_in, check_out):
    """
    Number of nights charged for a stay.

    Check-out must fall on a later UTC calendar date than check-in. The day
    difference is rounded half-up to absorb sub-day timestamp noise, with
    at least one night charged.

    Raises:
        InvalidRangeError: check_out is not on a date after check_in
    """
    start = _to_utc_instant(check_in)
    end = _to_utc_instant(check_out)
    if end.date() <= start.date():
        raise InvalidRangeError(
            f"Check-out ({end.date().isoformat()}) must be after check-in ({start.date().isoformat()})"
        )
    days = (end - start).total_seconds() / 86400
    return max(1, int(math.floor(days + 0.5)))


def iter_nights(check_in, nights):
    """Yield the calendar date of each night, starting at check-in."""
    first = to_utc_date(check_in)
    for i in range(nights):
        yield first + timedelta(days=i)


# =============================================================================
# BASE PRICE CALCULATOR
# =============================================================================

def calculate_base_price(config, guest_count, nights):
    """
    Price of `nights` nights for `guest_count` guests at config.unit_price.

    per_person: guests × unit price × nights
    flat:       unit price × nights, plus for each guest beyond base_guests
                either a fixed amount × nights or unit price × percent × nights

    No validation and no rounding; callers pass sane numbers.
    """
    unit_price = Decimal(config.unit_price)

    if config.price_type == 'per_person':
        return guest_count * unit_price * nights

    total = unit_price * nights

    extra_guests = max(0, guest_count - config.base_guests)
    surcharge = Decimal(config.extra_guest_price)

    if extra_guests > 0 and surcharge > 0:
        if config.extra_guest_price_type == 'fixed':
            total += extra_guests * surcharge * nights
        else:
            # each extra guest adds one percentage of the unit price
            for _ in range(extra_guests):
                total += unit_price * (surcharge / Decimal('100')) * nights

    return total


# =============================================================================
# RATE RESOLVER
# =============================================================================

def resolve_nightly_source(apartment, night, guest_count, daily_rates=None, seasons=None):
    """
    Resolve the price of one night and the source it came from.

    Args:
        apartment: Apartment instance
        night: date/datetime/ISO string of the night
        guest_count: int
        daily_rates: optional {date: DailyRate} prefetched for the stay
        seasons: optional list of SeasonalPrice in stored order

    Returns:
        NightlyPrice(date, source, price, label)
    """
    from rentals.models import DailyRate

    day = to_utc_date(night)

    # 1. Daily rate override
    if daily_rates is None:
        daily_rate = DailyRate.objects.filter(
            apartment=apartment,
            date=day,
            price__isnull=False
        ).first()
    else:
        daily_rate = daily_rates.get(day)

    if daily_rate is not None and daily_rate.price is not None:
        amount = calculate_base_price(apartment.price_config(daily_rate.price), guest_count, 1)
        return NightlyPrice(day, SOURCE_DAILY_RATE, amount.quantize(CENT, rounding=ROUND_HALF_UP), 'Daily rate')

    # 2. First seasonal window in stored order
    if seasons is None:
        seasons = apartment.seasonal_prices.all()

    for season in seasons:
        if to_utc_date(season.start_date) <= day <= to_utc_date(season.end_date):
            amount = calculate_base_price(apartment.price_config(season.price), guest_count, 1)
            return NightlyPrice(day, SOURCE_SEASON, amount.quantize(CENT, rounding=ROUND_HALF_UP), season.name)

    # 3. Base price
    amount = calculate_base_price(apartment.price_config(), guest_count, 1)
    return NightlyPrice(day, SOURCE_BASE, amount.quantize(CENT, rounding=ROUND_HALF_UP), 'Base price')


def resolve_nightly_price(apartment, night, guest_count, daily_rates=None, seasons=None):
    """Price of one night: daily rate > seasonal window > base price."""
    return resolve_nightly_source(
        apartment, night, guest_count,
        daily_rates=daily_rates,
        seasons=seasons
    ).price


# =============================================================================
# STAY PRICE AGGREGATOR
# =============================================================================

class PricingService:
    """
    Stay pricing for one apartment.

    Usage:
        from rentals.services import PricingService

        service = PricingService(apartment)
        quote = service.quote(date(2026, 7, 1), date(2026, 7, 4), guests=4)

        print(quote['total'])          # Decimal('420.00')
        for night in quote['nightly']:
            print(night['date'], night['source'], night['price'])
    """

    def __init__(self, apartment):
        self.apartment = apartment
        self._seasons = None

    @property
    def seasons(self):
        if self._seasons is None:
            self._seasons = list(self.apartment.seasonal_prices.all())
        return self._seasons

    def daily_rates_for(self, first_night, nights):
        """Priced daily rates of the stay keyed by date, in one query."""
        from rentals.models import DailyRate

        last_night = first_night + timedelta(days=nights - 1)
        rates = DailyRate.objects.filter(
            apartment=self.apartment,
            date__gte=first_night,
            date__lte=last_night,
            price__isnull=False
        )
        return {rate.date: rate for rate in rates}

    def nightly_prices(self, check_in, check_out, guest_count):
        """List of NightlyPrice for every night of the stay."""
        nights = count_nights(check_in, check_out)
        first_night = to_utc_date(check_in)
        daily_rates = self.daily_rates_for(first_night, nights)

        return [
            resolve_nightly_source(
                self.apartment, night, guest_count,
                daily_rates=daily_rates,
                seasons=self.seasons
            )
            for night in iter_nights(first_night, nights)
        ]

    def total(self, check_in, check_out, guest_count):
        """Authoritative total price of the stay."""
        return sum(
            (night.price for night in self.nightly_prices(check_in, check_out, guest_count)),
            Decimal('0.00')
        )

    def quote(self, check_in, check_out, guest_count):
        """
        Full price breakdown of a stay.

        Returns:
            dict with apartment_id, check_in, check_out, nights, guests,
            nightly (list of {date, source, label, price}) and total
        """
        nightly = self.nightly_prices(check_in, check_out, guest_count)
        total = sum((night.price for night in nightly), Decimal('0.00'))

        return {
            'apartment_id': self.apartment.id,
            'check_in': to_utc_date(check_in),
            'check_out': to_utc_date(check_out),
            'nights': len(nightly),
            'guests': guest_count,
            'nightly': [
                {
                    'date': night.date,
                    'source': night.source,
                    'label': night.label,
                    'price': night.price,
                }
                for night in nightly
            ],
            'total': total,
        }


def get_apartment(apartment_id):
    """
    Load an apartment by primary key.

    Raises:
        NotFoundError: no apartment with this id
    """
    from rentals.models import Apartment

    try:
        return Apartment.objects.get(pk=apartment_id)
    except (Apartment.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Apartment with ID {apartment_id} not found.")


def total_stay_price(apartment_id, check_in, check_out, guest_count):
    """
    Authoritative total price of a stay.

    Raises:
        NotFoundError: unknown apartment
        InvalidRangeError: check_out is not after check_in
    """
    apartment = get_apartment(apartment_id)
    return PricingService(apartment).total(check_in, check_out, guest_count)
