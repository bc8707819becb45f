"""
Daily rate model: per-apartment, per-day price override and restrictions.
"""

from django.core.validators import MinValueValidator
from django.db import models

from .core import Apartment


class DailyRate(models.Model):
    """
    Override pinned to one calendar day of an apartment.

    A row may carry a price, a block flag and/or a minimum stay.
    Rows without a price are not a price source.
    """
    apartment = models.ForeignKey(
        Apartment,
        on_delete=models.CASCADE,
        related_name='daily_rates'
    )
    date = models.DateField()
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Nightly price for this day (leave empty to use season/base)"
    )
    is_blocked = models.BooleanField(default=False)
    min_stay = models.PositiveIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1)],
        help_text="Minimum stay for arrivals on this day"
    )
    notes = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['apartment', 'date']
        verbose_name = "Daily Rate"
        verbose_name_plural = "Daily Rates"
        constraints = [
            models.UniqueConstraint(
                fields=['apartment', 'date'],
                name='unique_daily_rate_per_apartment_date',
            ),
        ]

    def __str__(self):
        parts = [f"{self.apartment.name} {self.date.isoformat()}"]
        if self.price is not None:
            parts.append(str(self.price))
        if self.is_blocked:
            parts.append("[BLOCKED]")
        return " ".join(parts)

    @property
    def has_price(self):
        return self.price is not None

    def to_dict(self):
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'price': str(self.price) if self.price is not None else None,
            'is_blocked': self.is_blocked,
            'min_stay': self.min_stay,
            'notes': self.notes,
        }
