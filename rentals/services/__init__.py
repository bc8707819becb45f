"""
Services package.

Re-exports the service entry points:
    from rentals.services import PricingService, BookingService
"""

from .pricing_service import (
    PriceConfig,
    PricingService,
    calculate_base_price,
    count_nights,
    get_apartment,
    resolve_nightly_price,
    resolve_nightly_source,
    total_stay_price,
)
from .calendar_service import (
    BusyInterval,
    fetch_busy_intervals,
    fetch_calendar_events,
    generate_calendar_feed,
    import_calendar_bookings,
    is_available,
    sync_apartment_calendars,
)
from .booking_service import BookingService, check_stay_restrictions, search_available_apartments
from .rate_service import DailyRateImportService, bulk_update_rates, upsert_daily_rate
from .invoice_service import InvoiceNumberService, InvoiceService, format_invoice_number
from .invoice_pdf import render_invoice_pdf

__all__ = [
    # Pricing
    'PriceConfig', 'PricingService', 'calculate_base_price', 'count_nights',
    'get_apartment', 'resolve_nightly_price', 'resolve_nightly_source', 'total_stay_price',
    # Calendar
    'BusyInterval', 'fetch_busy_intervals', 'fetch_calendar_events', 'generate_calendar_feed',
    'import_calendar_bookings', 'is_available', 'sync_apartment_calendars',
    # Bookings
    'BookingService', 'check_stay_restrictions', 'search_available_apartments',
    # Rates
    'DailyRateImportService', 'bulk_update_rates', 'upsert_daily_rate',
    # Invoicing
    'InvoiceNumberService', 'InvoiceService', 'format_invoice_number', 'render_invoice_pdf',
]
