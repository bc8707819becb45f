"""Booking URL patterns."""

from django.urls import path
from rentals.views import create_booking, booking_list

urlpatterns = [
    path('api/bookings/', create_booking, name='create_booking'),
    path('api/bookings/list/', booking_list, name='booking_list'),
]
