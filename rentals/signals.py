"""
Signal handlers for issuing invoices automatically when a booking is paid.
"""

import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from .exceptions import InvoiceError
from .models import Booking, Invoice

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Booking)
def generate_invoice_on_payment(sender, instance, created, raw=False, **kwargs):
    """
    When a booking becomes paid and its apartment belongs to an invoice
    settings group with auto_generate_on_payment, issue its invoice once.
    """
    from .services.invoice_service import InvoiceService

    if raw or instance.payment_status != Booking.PAYMENT_PAID:
        return

    if Invoice.objects.filter(booking=instance).exists():
        return

    service = InvoiceService()
    settings_group = service.settings_for_booking(instance)
    if settings_group is None or not settings_group.auto_generate_on_payment:
        return

    try:
        service.generate_for_booking(instance, settings_group=settings_group)
    except InvoiceError as e:
        logger.warning("Automatic invoice for booking %s not generated: %s", instance.pk, e.message)
