"""
Invoice Services
================

Gap-free invoice numbering and invoice generation for bookings.

Numbering:
    One counter per (settings group, year). Every issued number is logged
    with the consumer that obtained it; (counter, number) is unique.

VAT:
    business + vat_included:  subtotal = price / (1 + rate), vat = price - subtotal
    business, VAT excluded:   subtotal = price, vat = price × rate
    tourist rental:           no VAT
"""

import logging
import string
from decimal import Decimal, ROUND_HALF_UP

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from django.utils.crypto import get_random_string

from rentals.conf import get_setting
from rentals.exceptions import InvoiceError

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')

MIN_INVOICE_YEAR = 2020
MAX_INVOICE_YEAR = 2100


class InvoiceNumberService:
    """
    Atomic invoice number issuance.

    Usage:
        number, formatted = InvoiceNumberService.next_number(group, 2026, 'booking:42')
        # (7, '007')
    """

    @staticmethod
    def pad(number):
        return str(number).zfill(get_setting('INVOICE_NUMBER_PADDING'))

    @classmethod
    @transaction.atomic
    def next_number(cls, settings_group, year, consumer_id):
        """
        Issue the next number of a (group, year) sequence.

        Concurrent callers never receive the same number: the counter row
        is locked for the rest of the transaction.

        Returns:
            (number, zero-padded string)
        """
        from rentals.models import InvoiceCounter, IssuedInvoiceNumber

        counter, _ = InvoiceCounter.objects.get_or_create(
            settings_group=settings_group,
            year=year,
            defaults={'prefix': settings_group.numbering_prefix}
        )
        counter = InvoiceCounter.objects.select_for_update().get(pk=counter.pk)

        InvoiceCounter.objects.filter(pk=counter.pk).update(
            last_number=F('last_number') + 1,
            updated_at=timezone.now()
        )
        counter.refresh_from_db(fields=['last_number'])

        IssuedInvoiceNumber.objects.create(
            counter=counter,
            number=counter.last_number,
            consumer_id=str(consumer_id)
        )

        logger.info(
            "Issued invoice number %s/%s #%d to %s",
            settings_group.group_id, year, counter.last_number, consumer_id
        )
        return counter.last_number, cls.pad(counter.last_number)

    @staticmethod
    def is_number_used(settings_group, year, number):
        from rentals.models import IssuedInvoiceNumber

        return IssuedInvoiceNumber.objects.filter(
            counter__settings_group=settings_group,
            counter__year=year,
            number=number
        ).exists()

    @staticmethod
    def reset_counter(settings_group, year):
        """
        Delete the counter of a (group, year) and its issue log.

        A year that already has invoices is never reset, so its numbers
        cannot be issued twice.

        Returns:
            True if a counter existed

        Raises:
            InvoiceError: year out of range or invoices already issued
        """
        from rentals.models import Invoice, InvoiceCounter

        if not MIN_INVOICE_YEAR <= year <= MAX_INVOICE_YEAR:
            raise InvoiceError(f"Year must be between {MIN_INVOICE_YEAR} and {MAX_INVOICE_YEAR}.")

        issued = Invoice.objects.filter(settings_group=settings_group, year=year).count()
        if issued:
            raise InvoiceError(
                f"Cannot reset the {year} counter of {settings_group.group_id}: "
                f"{issued} invoice(s) already issued."
            )

        deleted, _ = InvoiceCounter.objects.filter(settings_group=settings_group, year=year).delete()
        if deleted:
            logger.warning("Reset invoice counter %s/%s", settings_group.group_id, year)
        return deleted > 0

    @staticmethod
    def statistics(settings_group=None):
        from rentals.models import InvoiceCounter

        counters = InvoiceCounter.objects.select_related('settings_group')
        if settings_group is not None:
            counters = counters.filter(settings_group=settings_group)
        return [counter.get_statistics() for counter in counters]


def format_invoice_number(settings_group, year, formatted):
    """Apply the group's numbering format: {{year}}, {{number}}, {{prefix}}."""
    return (
        settings_group.numbering_format
        .replace('{{year}}', str(year))
        .replace('{{number}}', formatted)
        .replace('{{prefix}}', settings_group.numbering_prefix or '')
    )


def calculate_vat(settings_group, amount):
    """
    Split a booking amount into subtotal, VAT and total.

    Returns:
        dict with subtotal, vat_rate (None without VAT), vat_amount, total
    """
    amount = Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)

    if not settings_group.is_business:
        return {
            'subtotal': amount,
            'vat_rate': None,
            'vat_amount': Decimal('0.00'),
            'total': amount,
        }

    rate = settings_group.vat_rate or Decimal('22.00')

    if settings_group.vat_included:
        subtotal = (amount / (1 + rate / Decimal('100'))).quantize(CENT, rounding=ROUND_HALF_UP)
        vat_amount = amount - subtotal
    else:
        subtotal = amount
        vat_amount = (amount * rate / Decimal('100')).quantize(CENT, rounding=ROUND_HALF_UP)

    return {
        'subtotal': subtotal,
        'vat_rate': rate,
        'vat_amount': vat_amount,
        'total': subtotal + vat_amount,
    }


class InvoiceService:
    """
    Issue invoices (or receipts) for bookings.

    Usage:
        invoice = InvoiceService().generate_for_booking(booking)
        print(invoice.invoice_number)   # '2026/001'
    """

    @staticmethod
    def settings_for_booking(booking):
        from rentals.models import InvoiceSettings

        return InvoiceSettings.objects.filter(apartments=booking.apartment_id).order_by('id').first()

    def generate_for_booking(self, booking, settings_group=None, notes=''):
        """
        Raises:
            InvoiceError: already invoiced, unpriced booking or no settings group
        """
        from rentals.models import Invoice

        if Invoice.objects.filter(booking=booking).exists():
            raise InvoiceError(f"Booking {booking.pk} already has an invoice.")

        if booking.total_price is None or booking.total_price <= 0:
            raise InvoiceError("The booking price must be set before issuing an invoice.")

        if settings_group is None:
            settings_group = self.settings_for_booking(booking)
        if settings_group is None:
            raise InvoiceError("No invoice settings found for this apartment.")

        invoice_date = timezone.localdate()
        year = invoice_date.year
        amounts = calculate_vat(settings_group, booking.total_price)
        apartment = booking.apartment

        description = (
            f"Stay at {apartment.name} from {booking.check_in.strftime('%d/%m/%Y')} "
            f"to {booking.check_out.strftime('%d/%m/%Y')} "
            f"({booking.nights} nights, {booking.number_of_guests} guests)"
        )

        with transaction.atomic():
            sequence, formatted = InvoiceNumberService.next_number(
                settings_group, year, f"booking:{booking.pk}"
            )

            invoice = Invoice.objects.create(
                invoice_number=format_invoice_number(settings_group, year, formatted),
                settings_group=settings_group,
                booking=booking,
                year=year,
                sequence=sequence,
                invoice_date=invoice_date,
                document_type=(
                    Invoice.DOCUMENT_INVOICE if settings_group.is_business else Invoice.DOCUMENT_RECEIPT
                ),
                customer_name=booking.guest_name,
                customer_email=booking.guest_email,
                apartment_name=apartment.name,
                check_in=booking.check_in,
                check_out=booking.check_out,
                nights=booking.nights,
                guests=booking.number_of_guests,
                description=description,
                subtotal=amounts['subtotal'],
                vat_rate=amounts['vat_rate'],
                vat_amount=amounts['vat_amount'],
                total=amounts['total'],
                status=Invoice.STATUS_ISSUED,
                is_locked=True,
                public_access_code=get_random_string(8, string.ascii_uppercase + string.digits),
                notes=notes,
            )

        logger.info("Generated invoice %s for booking %s", invoice.invoice_number, booking.pk)
        return invoice
