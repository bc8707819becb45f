"""
Booking model: direct and channel reservations of an apartment.
"""

from decimal import Decimal

from django.db import models

from .core import Apartment


class BookingQuerySet(models.QuerySet):

    def active(self):
        return self.exclude(status=Booking.STATUS_CANCELLED)

    def overlapping(self, apartment, check_in, check_out):
        """
        Non-cancelled bookings whose [check_in, check_out) overlaps the given stay.

        A check-out on the new check-in day does not overlap.
        """
        return self.active().filter(
            apartment=apartment,
            check_in__lt=check_out,
            check_out__gt=check_in,
        )


class Booking(models.Model):
    """
    Reservation of an apartment for the half-open interval [check_in, check_out).

    Channel bookings imported from iCal feeds keep the channel's identifier
    in external_id so re-syncs update instead of duplicating.
    """
    STATUS_INQUIRY = 'inquiry'
    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = [
        (STATUS_INQUIRY, 'Inquiry'),
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_COMPLETED, 'Completed'),
    ]

    PAYMENT_PENDING = 'pending'
    PAYMENT_PAID = 'paid'
    PAYMENT_REFUNDED = 'refunded'
    PAYMENT_FAILED = 'failed'
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_PAID, 'Paid'),
        (PAYMENT_REFUNDED, 'Refunded'),
        (PAYMENT_FAILED, 'Failed'),
    ]

    SOURCE_DIRECT = 'direct'
    SOURCE_CHOICES = [
        (SOURCE_DIRECT, 'Direct'),
        ('airbnb', 'Airbnb'),
        ('booking', 'Booking.com'),
        ('other', 'Other'),
    ]

    apartment = models.ForeignKey(
        Apartment,
        on_delete=models.PROTECT,
        related_name='bookings'
    )

    guest_name = models.CharField(max_length=200)
    guest_email = models.EmailField(blank=True, default='')
    guest_phone = models.CharField(max_length=50, blank=True, default='')

    check_in = models.DateField(db_index=True)
    check_out = models.DateField(help_text="Departure day (not an occupied night)")
    number_of_guests = models.PositiveIntegerField(default=1)

    total_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00')
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_INQUIRY,
        db_index=True
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PAYMENT_STATUS_CHOICES,
        default=PAYMENT_PENDING
    )

    source = models.CharField(max_length=20, choices=SOURCE_CHOICES, default=SOURCE_DIRECT)
    external_id = models.CharField(max_length=255, blank=True, default='')
    notes = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        ordering = ['check_in']
        verbose_name = "Booking"
        verbose_name_plural = "Bookings"
        indexes = [
            models.Index(fields=['apartment', 'check_in', 'check_out'], name='booking_apartment_stay_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['apartment', 'source', 'external_id'],
                condition=~models.Q(external_id=''),
                name='unique_external_booking_per_source',
            ),
        ]

    def __str__(self):
        return f"{self.guest_name} @ {self.apartment.name} ({self.check_in} → {self.check_out})"

    @property
    def nights(self):
        return max(0, (self.check_out - self.check_in).days)

    @property
    def is_external(self):
        return self.source != self.SOURCE_DIRECT

    def to_dict(self):
        return {
            'id': self.id,
            'apartment_id': self.apartment_id,
            'guest_name': self.guest_name,
            'guest_email': self.guest_email,
            'guest_phone': self.guest_phone,
            'check_in': self.check_in.isoformat(),
            'check_out': self.check_out.isoformat(),
            'nights': self.nights,
            'number_of_guests': self.number_of_guests,
            'total_price': str(self.total_price),
            'status': self.status,
            'payment_status': self.payment_status,
            'source': self.source,
            'external_id': self.external_id,
        }
