"""
Invoicing models: InvoiceSettings, InvoiceCounter, IssuedInvoiceNumber, Invoice.
"""

from decimal import Decimal

from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models

from .bookings import Booking
from .core import Apartment

# =============================================================================
# SETTINGS GROUP
# =============================================================================

class InvoiceSettings(models.Model):
    """
    Invoicing configuration shared by a group of apartments.

    Each group has its own issuer data and its own numbering sequence.

    Numbering format placeholders:
        {{year}}    - invoice year
        {{number}}  - zero-padded sequence number
        {{prefix}}  - numbering_prefix
    """
    ACTIVITY_BUSINESS = 'business'
    ACTIVITY_TOURIST_RENTAL = 'tourist_rental'
    ACTIVITY_CHOICES = [
        (ACTIVITY_BUSINESS, 'Business (VAT)'),
        (ACTIVITY_TOURIST_RENTAL, 'Tourist rental (no VAT)'),
    ]

    group_id = models.SlugField(max_length=50, unique=True)
    name = models.CharField(max_length=200, help_text="e.g., 'City Centre Apartments'")
    apartments = models.ManyToManyField(
        Apartment,
        blank=True,
        related_name='invoice_settings'
    )

    # Issuer
    business_name = models.CharField(max_length=200)
    business_address = models.CharField(max_length=255, blank=True, default='')
    tax_code = models.CharField(max_length=50, blank=True, default='')
    vat_number = models.CharField(max_length=50, blank=True, default='')
    email = models.EmailField(blank=True, default='')

    activity_type = models.CharField(
        max_length=20,
        choices=ACTIVITY_CHOICES,
        default=ACTIVITY_TOURIST_RENTAL
    )
    vat_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('22.00'),
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    vat_included = models.BooleanField(
        default=True,
        help_text="Booking prices already include VAT"
    )

    numbering_format = models.CharField(max_length=100, default='{{year}}/{{number}}')
    numbering_prefix = models.CharField(max_length=20, blank=True, default='')

    auto_generate_on_payment = models.BooleanField(
        default=False,
        help_text="Issue an invoice automatically when a booking is paid"
    )
    invoice_footer = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name = "Invoice Settings"
        verbose_name_plural = "Invoice Settings"

    def __str__(self):
        return f"{self.name} ({self.group_id})"

    @property
    def is_business(self):
        return self.activity_type == self.ACTIVITY_BUSINESS


# =============================================================================
# NUMBERING
# =============================================================================

class InvoiceCounter(models.Model):
    """
    Sequence of invoice numbers for one (settings group, year).
    """
    settings_group = models.ForeignKey(
        InvoiceSettings,
        on_delete=models.CASCADE,
        related_name='counters'
    )
    year = models.PositiveIntegerField()
    last_number = models.PositiveIntegerField(default=0)
    prefix = models.CharField(max_length=20, blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['settings_group', '-year']
        verbose_name = "Invoice Counter"
        verbose_name_plural = "Invoice Counters"
        constraints = [
            models.UniqueConstraint(
                fields=['settings_group', 'year'],
                name='unique_invoice_counter_per_group_year',
            ),
        ]

    def __str__(self):
        return f"{self.settings_group.group_id} {self.year}: {self.last_number}"

    def get_statistics(self):
        issued = self.issued_numbers.order_by('number')
        first = issued.first()
        last = issued.last()
        return {
            'settings_group': self.settings_group.group_id,
            'year': self.year,
            'total_issued': self.last_number,
            'first_issued_at': first.issued_at.isoformat() if first else None,
            'last_issued_at': last.issued_at.isoformat() if last else None,
        }


class IssuedInvoiceNumber(models.Model):
    """
    Log entry for one issued number and the consumer that obtained it.
    """
    counter = models.ForeignKey(
        InvoiceCounter,
        on_delete=models.CASCADE,
        related_name='issued_numbers'
    )
    number = models.PositiveIntegerField()
    consumer_id = models.CharField(max_length=100)
    issued_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['counter', 'number']
        verbose_name = "Issued Invoice Number"
        verbose_name_plural = "Issued Invoice Numbers"
        constraints = [
            models.UniqueConstraint(
                fields=['counter', 'number'],
                name='unique_issued_number_per_counter',
            ),
        ]

    def __str__(self):
        return f"#{self.number} → {self.consumer_id}"


# =============================================================================
# INVOICE
# =============================================================================

class Invoice(models.Model):
    """
    Receipt or invoice issued for a booking.

    Customer and stay data are copied at issue time so later edits to the
    booking do not change an issued document.
    """
    DOCUMENT_RECEIPT = 'receipt'
    DOCUMENT_INVOICE = 'invoice'
    DOCUMENT_TYPE_CHOICES = [
        (DOCUMENT_RECEIPT, 'Receipt'),
        (DOCUMENT_INVOICE, 'Invoice'),
    ]

    STATUS_DRAFT = 'draft'
    STATUS_ISSUED = 'issued'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_ISSUED, 'Issued'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    invoice_number = models.CharField(max_length=50, unique=True)
    settings_group = models.ForeignKey(
        InvoiceSettings,
        on_delete=models.PROTECT,
        related_name='invoices'
    )
    booking = models.OneToOneField(
        Booking,
        on_delete=models.PROTECT,
        related_name='invoice'
    )
    year = models.PositiveIntegerField()
    sequence = models.PositiveIntegerField()
    invoice_date = models.DateField()
    document_type = models.CharField(
        max_length=20,
        choices=DOCUMENT_TYPE_CHOICES,
        default=DOCUMENT_RECEIPT
    )

    # Customer snapshot
    customer_name = models.CharField(max_length=200)
    customer_email = models.EmailField(blank=True, default='')

    # Stay snapshot
    apartment_name = models.CharField(max_length=200)
    check_in = models.DateField()
    check_out = models.DateField()
    nights = models.PositiveIntegerField()
    guests = models.PositiveIntegerField()

    description = models.TextField()
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    vat_rate = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    vat_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    is_locked = models.BooleanField(default=False)
    public_access_code = models.CharField(max_length=32, blank=True, default='', db_index=True)
    notes = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-year', '-sequence']
        verbose_name = "Invoice"
        verbose_name_plural = "Invoices"
        constraints = [
            models.UniqueConstraint(
                fields=['settings_group', 'year', 'sequence'],
                name='unique_invoice_sequence_per_group_year',
            ),
        ]

    def __str__(self):
        return f"{self.get_document_type_display()} {self.invoice_number} - {self.customer_name}"

    def to_dict(self):
        return {
            'id': self.id,
            'invoice_number': self.invoice_number,
            'settings_group': self.settings_group.group_id,
            'booking_id': self.booking_id,
            'invoice_date': self.invoice_date.isoformat(),
            'document_type': self.document_type,
            'customer_name': self.customer_name,
            'subtotal': str(self.subtotal),
            'vat_amount': str(self.vat_amount),
            'total': str(self.total),
            'status': self.status,
            'is_locked': self.is_locked,
        }
