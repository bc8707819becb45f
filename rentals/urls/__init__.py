"""
URL configuration package.

Combines the URL patterns of each area into a single urlpatterns list.
The app_name is 'rentals' for namespacing.
"""

from .pricing import urlpatterns as pricing_urls
from .bookings import urlpatterns as booking_urls
from .calendar import urlpatterns as calendar_urls
from .invoices import urlpatterns as invoice_urls

app_name = 'rentals'

urlpatterns = (
    pricing_urls
    + booking_urls
    + calendar_urls
    + invoice_urls
)
