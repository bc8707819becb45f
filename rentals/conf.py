"""
App settings with defaults, overridable through ``settings.RENTALS``.
"""

from django.conf import settings

DEFAULTS = {
    'ICAL_TIMEOUT': 10,
    'ICAL_PRODID': '-//rentals//channel-manager//EN',
    'FAIL_CLOSED_ON_FEED_ERROR': True,
    'CURRENCY': 'EUR',
    'INVOICE_NUMBER_PADDING': 3,
}


def get_setting(name):
    """Return a RENTALS setting, falling back to DEFAULTS."""
    overrides = getattr(settings, 'RENTALS', {}) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]
