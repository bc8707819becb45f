"""
Views package.

Re-exports all views so URL modules can import them from one place:
    from rentals.views import calculate_price, create_booking, etc.
"""

# Pricing views
from .pricing import (
    calculate_price,
    availability,
    daily_rates,
    bulk_rates,
)

# Booking views
from .bookings import (
    create_booking,
    booking_list,
)

# Calendar views
from .calendar import (
    ical_feed,
    calendar_sync,
)

# Invoice views
from .invoices import (
    generate_invoice,
    invoice_pdf,
    invoice_counters,
    reset_counter,
)

__all__ = [
    # Pricing
    'calculate_price', 'availability', 'daily_rates', 'bulk_rates',
    # Bookings
    'create_booking', 'booking_list',
    # Calendar
    'ical_feed', 'calendar_sync',
    # Invoices
    'generate_invoice', 'invoice_pdf', 'invoice_counters', 'reset_counter',
]
