"""Pricing URL patterns: quotes, availability, daily rates."""

from django.urls import path
from rentals.views import (
    calculate_price,
    availability,
    daily_rates,
    bulk_rates,
)

urlpatterns = [
    # Public
    path('api/calculate-price/', calculate_price, name='calculate_price'),
    path('api/availability/', availability, name='availability'),

    # Operator
    path('api/apartments/<int:apartment_id>/rates/', daily_rates, name='daily_rates'),
    path('api/apartments/<int:apartment_id>/bulk-rates/', bulk_rates, name='bulk_rates'),
]
