"""
Rentals models package.

Re-exports all models so Django migrations and existing imports
continue to work unchanged:
    from rentals.models import Apartment, DailyRate, Booking, etc.
"""

# Core: Apartment and its pricing/calendar configuration
from .core import (
    Apartment,
    SeasonalPrice,
    CalendarSource,
)

# Rates: Per-day overrides
from .rates import (
    DailyRate,
)

# Bookings
from .bookings import (
    Booking,
)

# Invoicing: Settings groups, numbering, invoices
from .invoicing import (
    InvoiceSettings,
    InvoiceCounter,
    IssuedInvoiceNumber,
    Invoice,
)

__all__ = [
    # Core
    'Apartment', 'SeasonalPrice', 'CalendarSource',
    # Rates
    'DailyRate',
    # Bookings
    'Booking',
    # Invoicing
    'InvoiceSettings', 'InvoiceCounter', 'IssuedInvoiceNumber', 'Invoice',
]
