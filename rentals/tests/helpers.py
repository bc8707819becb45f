"""Shared fixtures for the rentals tests."""

from decimal import Decimal

from rentals.models import Apartment, InvoiceSettings

SAMPLE_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Airbnb Inc//Hosting Calendar 1.0//EN
BEGIN:VEVENT
UID:evt1@airbnb.com
DTSTART;VALUE=DATE:20260710
DTEND;VALUE=DATE:20260712
SUMMARY:Reserved
DESCRIPTION:Reservation URL: https://www.airbnb.com/hosting/reservations/details/HMABCDEF12
END:VEVENT
BEGIN:VEVENT
UID:evt2@airbnb.com
DTSTART;VALUE=DATE:20260805
DTEND;VALUE=DATE:20260806
SUMMARY:Booked: Mario Rossi
DESCRIPTION:Guest mario.rossi@example.com phone +39 333 1234567
END:VEVENT
BEGIN:VEVENT
UID:no-dates@airbnb.com
SUMMARY:Broken event
END:VEVENT
END:VCALENDAR
"""


def make_apartment(**kwargs):
    """Flat €100/night, 2 included guests, €20 per extra guest."""
    defaults = {
        'name': 'Sea View Loft',
        'code': 'sea-view-loft',
        'base_price': Decimal('100.00'),
        'price_type': Apartment.PRICE_TYPE_FLAT,
        'base_guests': 2,
        'extra_guest_price': Decimal('20.00'),
        'extra_guest_price_type': Apartment.SURCHARGE_FIXED,
        'max_guests': 6,
        'min_stay': 1,
    }
    defaults.update(kwargs)
    return Apartment.objects.create(**defaults)


def make_invoice_settings(apartments=(), **kwargs):
    defaults = {
        'group_id': 'centre',
        'name': 'City Centre Apartments',
        'business_name': 'Centre Rentals',
        'activity_type': InvoiceSettings.ACTIVITY_TOURIST_RENTAL,
    }
    defaults.update(kwargs)
    settings_group = InvoiceSettings.objects.create(**defaults)
    settings_group.apartments.set(apartments)
    return settings_group
