"""
Core models: Apartment, SeasonalPrice, CalendarSource.
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

# =============================================================================
# APARTMENT
# =============================================================================

class Apartment(models.Model):
    """
    Rentable apartment with its pricing configuration.

    Pricing:
        flat:       base_price per night, plus a surcharge for every guest
                    beyond base_guests (fixed amount or % of the nightly price)
        per_person: base_price per guest per night, surcharge ignored
    """
    PRICE_TYPE_FLAT = 'flat'
    PRICE_TYPE_PER_PERSON = 'per_person'
    PRICE_TYPE_CHOICES = [
        (PRICE_TYPE_FLAT, 'Flat (per night)'),
        (PRICE_TYPE_PER_PERSON, 'Per person (per night)'),
    ]

    SURCHARGE_FIXED = 'fixed'
    SURCHARGE_PERCENTAGE = 'percentage'
    SURCHARGE_TYPE_CHOICES = [
        (SURCHARGE_FIXED, 'Fixed amount'),
        (SURCHARGE_PERCENTAGE, 'Percentage of nightly price'),
    ]

    name = models.CharField(max_length=200, help_text="e.g., 'Sea View Loft'")
    code = models.SlugField(
        max_length=50,
        unique=True,
        help_text="URL-friendly code, also used for the public iCal feed"
    )
    description = models.TextField(blank=True, default='')
    address = models.CharField(max_length=255, blank=True, default='')

    bedrooms = models.PositiveIntegerField(default=1)
    bathrooms = models.PositiveIntegerField(default=1)
    max_guests = models.PositiveIntegerField(default=2)

    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Nightly price (flat) or nightly price per guest (per person)"
    )
    price_type = models.CharField(
        max_length=20,
        choices=PRICE_TYPE_CHOICES,
        default=PRICE_TYPE_FLAT
    )
    base_guests = models.PositiveIntegerField(
        default=2,
        help_text="Guests included in the flat nightly price"
    )
    extra_guest_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Surcharge per extra guest per night (amount or percent)"
    )
    extra_guest_price_type = models.CharField(
        max_length=20,
        choices=SURCHARGE_TYPE_CHOICES,
        default=SURCHARGE_FIXED
    )
    min_stay = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        help_text="Default minimum stay in nights"
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name = "Apartment"
        verbose_name_plural = "Apartments"

    def __str__(self):
        return self.name

    def price_config(self, unit_price=None):
        """
        Pricing configuration for the base price calculator.

        Args:
            unit_price: Decimal replacing base_price (daily rate or season price)
        """
        from rentals.services.pricing_service import PriceConfig

        return PriceConfig(
            unit_price=self.base_price if unit_price is None else unit_price,
            price_type=self.price_type,
            base_guests=self.base_guests,
            extra_guest_price=self.extra_guest_price,
            extra_guest_price_type=self.extra_guest_price_type,
        )

    def get_price_display(self):
        suffix = '/person/night' if self.price_type == self.PRICE_TYPE_PER_PERSON else '/night'
        return f"{self.base_price}{suffix}"

    def get_surcharge_display(self):
        if self.price_type == self.PRICE_TYPE_PER_PERSON or self.extra_guest_price <= 0:
            return "No surcharge"
        if self.extra_guest_price_type == self.SURCHARGE_PERCENTAGE:
            return f"+{self.extra_guest_price}% per extra guest"
        return f"+{self.extra_guest_price} per extra guest"


class SeasonalPrice(models.Model):
    """
    Named seasonal price window of an apartment.

    Windows may overlap; the first window in stored order
    (sort_order, id) that contains a night wins.

    Example:
        Summer: Jun 15 - Sep 15, 140.00
        August peak: Aug 01 - Aug 31, 180.00 (sort after Summer = never used)
    """
    apartment = models.ForeignKey(
        Apartment,
        on_delete=models.CASCADE,
        related_name='seasonal_prices'
    )
    name = models.CharField(max_length=100, help_text="e.g., Summer, Christmas")
    start_date = models.DateField(help_text="First night (inclusive)")
    end_date = models.DateField(help_text="Last night (inclusive)")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        help_text="Replaces the apartment base price for nights in this window"
    )
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['apartment', 'sort_order', 'id']
        verbose_name = "Seasonal Price"
        verbose_name_plural = "Seasonal Prices"

    def __str__(self):
        return f"{self.name} ({self.start_date.strftime('%b %d')} - {self.end_date.strftime('%b %d')})"

    def clean(self):
        if self.end_date and self.start_date and self.end_date < self.start_date:
            raise ValidationError({
                'end_date': 'End date cannot be before start date.'
            })

    def contains_date(self, check_date):
        """Check if a night falls within this window."""
        return self.start_date <= check_date <= self.end_date

    def date_range_display(self):
        return f"{self.start_date.strftime('%b %d, %Y')} - {self.end_date.strftime('%b %d, %Y')}"


class CalendarSource(models.Model):
    """
    External iCal feed (Airbnb, Booking.com, ...) of an apartment.
    """
    SOURCE_CHOICES = [
        ('airbnb', 'Airbnb'),
        ('booking', 'Booking.com'),
        ('other', 'Other'),
    ]

    apartment = models.ForeignKey(
        Apartment,
        on_delete=models.CASCADE,
        related_name='calendar_sources'
    )
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES)
    url = models.URLField(max_length=500)

    last_synced_at = models.DateTimeField(null=True, blank=True)
    last_error = models.TextField(blank=True, default='')

    class Meta:
        ordering = ['apartment', 'source']
        verbose_name = "Calendar Source"
        verbose_name_plural = "Calendar Sources"
        unique_together = ['apartment', 'source']

    def __str__(self):
        return f"{self.apartment.name} ← {self.get_source_display()}"
