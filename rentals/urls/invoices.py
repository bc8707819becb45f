"""Invoice URL patterns."""

from django.urls import path
from rentals.views import (
    generate_invoice,
    invoice_pdf,
    invoice_counters,
    reset_counter,
)

urlpatterns = [
    path('api/invoices/generate/', generate_invoice, name='generate_invoice'),
    path('api/invoices/<int:invoice_id>/pdf/', invoice_pdf, name='invoice_pdf'),
    path('api/invoices/counters/', invoice_counters, name='invoice_counters'),
    path('api/invoices/settings/<slug:group_id>/reset-counter/', reset_counter, name='reset_counter'),
]
