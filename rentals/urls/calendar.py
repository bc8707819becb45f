"""Calendar URL patterns: iCal export and feed import."""

from django.urls import path
from rentals.views import ical_feed, calendar_sync

urlpatterns = [
    path('ical/<slug:code>.ics', ical_feed, name='ical_feed'),
    path('api/apartments/<int:apartment_id>/calendar/sync/', calendar_sync, name='calendar_sync'),
]
