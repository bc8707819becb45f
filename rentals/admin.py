"""
Rentals admin configuration.

Supports:
- Apartment management with seasonal prices and calendar sources inline
- Daily rates, bookings
- Invoice settings groups, counters and issued invoices
"""

from django.contrib import admin, messages
from django.urls import reverse
from django.utils.html import format_html

from .exceptions import InvoiceError
from .models import (
    Apartment, SeasonalPrice, CalendarSource,
    DailyRate,
    Booking,
    InvoiceSettings, InvoiceCounter, IssuedInvoiceNumber, Invoice,
)
from .services import InvoiceService, sync_apartment_calendars


# =============================================================================
# APARTMENT ADMIN
# =============================================================================

class SeasonalPriceInline(admin.TabularInline):
    model = SeasonalPrice
    extra = 0
    fields = ['name', 'start_date', 'end_date', 'price', 'sort_order']


class CalendarSourceInline(admin.TabularInline):
    model = CalendarSource
    extra = 0
    fields = ['source', 'url', 'last_synced_at', 'last_error']
    readonly_fields = ['last_synced_at', 'last_error']


@admin.register(Apartment)
class ApartmentAdmin(admin.ModelAdmin):
    list_display = ['name', 'code', 'price_display', 'surcharge_display', 'max_guests', 'min_stay', 'is_active']
    list_filter = ['is_active', 'price_type']
    search_fields = ['name', 'code', 'address']
    prepopulated_fields = {'code': ('name',)}
    actions = ['sync_calendars']

    fieldsets = (
        (None, {
            'fields': ('name', 'code', 'description', 'address', 'is_active')
        }),
        ('Capacity', {
            'fields': ('bedrooms', 'bathrooms', 'max_guests', 'min_stay'),
        }),
        ('Pricing', {
            'fields': ('base_price', 'price_type', 'base_guests', 'extra_guest_price', 'extra_guest_price_type'),
            'description': 'Seasonal prices and daily rates replace the base price; guest rules always apply.'
        }),
    )

    inlines = [SeasonalPriceInline, CalendarSourceInline]

    def price_display(self, obj):
        return obj.get_price_display()
    price_display.short_description = 'Price'

    def surcharge_display(self, obj):
        return obj.get_surcharge_display()
    surcharge_display.short_description = 'Extra guests'

    @admin.action(description='Sync channel calendars now')
    def sync_calendars(self, request, queryset):
        for apartment in queryset:
            outcome = sync_apartment_calendars(apartment)
            created = sum(result.created for result in outcome['results'])
            self.message_user(request, f"{apartment.name}: {created} new booking(s) imported.")
            for source, error in outcome['errors'].items():
                self.message_user(request, f"{apartment.name} / {source}: {error}", level=messages.ERROR)


# =============================================================================
# RATES & BOOKINGS
# =============================================================================

@admin.register(DailyRate)
class DailyRateAdmin(admin.ModelAdmin):
    list_display = ['apartment', 'date', 'price', 'is_blocked', 'min_stay']
    list_filter = ['apartment', 'is_blocked']
    date_hierarchy = 'date'
    ordering = ['apartment', 'date']


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = [
        'guest_name', 'apartment', 'check_in', 'check_out', 'number_of_guests',
        'total_price', 'status', 'payment_status', 'source', 'invoice_link'
    ]
    list_filter = ['status', 'payment_status', 'source', 'apartment']
    search_fields = ['guest_name', 'guest_email', 'external_id']
    date_hierarchy = 'check_in'
    readonly_fields = ['created_at', 'updated_at']
    actions = ['mark_confirmed', 'mark_cancelled', 'generate_invoices']

    fieldsets = (
        ('Stay', {
            'fields': ('apartment', 'check_in', 'check_out', 'number_of_guests')
        }),
        ('Guest', {
            'fields': ('guest_name', 'guest_email', 'guest_phone')
        }),
        ('Status', {
            'fields': ('total_price', 'status', 'payment_status', 'source', 'external_id', 'notes')
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def invoice_link(self, obj):
        invoice = Invoice.objects.filter(booking=obj).first()
        if invoice is None:
            return '-'
        url = reverse('admin:rentals_invoice_change', args=[invoice.pk])
        return format_html('<a href="{}">{}</a>', url, invoice.invoice_number)
    invoice_link.short_description = 'Invoice'

    @admin.action(description='Mark selected bookings as confirmed')
    def mark_confirmed(self, request, queryset):
        updated = queryset.update(status=Booking.STATUS_CONFIRMED)
        self.message_user(request, f'{updated} booking(s) confirmed.')

    @admin.action(description='Cancel selected bookings')
    def mark_cancelled(self, request, queryset):
        updated = queryset.update(status=Booking.STATUS_CANCELLED)
        self.message_user(request, f'{updated} booking(s) cancelled.')

    @admin.action(description='Generate invoices for selected bookings')
    def generate_invoices(self, request, queryset):
        service = InvoiceService()
        count = 0
        for booking in queryset.select_related('apartment'):
            try:
                service.generate_for_booking(booking)
                count += 1
            except InvoiceError as e:
                self.message_user(request, f"{booking}: {e.message}", level=messages.WARNING)
        self.message_user(request, f'{count} invoice(s) generated.')


# =============================================================================
# INVOICING
# =============================================================================

@admin.register(InvoiceSettings)
class InvoiceSettingsAdmin(admin.ModelAdmin):
    list_display = ['name', 'group_id', 'activity_type', 'vat_rate', 'numbering_format', 'auto_generate_on_payment']
    prepopulated_fields = {'group_id': ('name',)}
    filter_horizontal = ['apartments']

    fieldsets = (
        (None, {
            'fields': ('name', 'group_id', 'apartments')
        }),
        ('Issuer', {
            'fields': ('business_name', 'business_address', 'tax_code', 'vat_number', 'email')
        }),
        ('Tax', {
            'fields': ('activity_type', 'vat_rate', 'vat_included')
        }),
        ('Numbering', {
            'fields': ('numbering_format', 'numbering_prefix'),
            'description': 'Placeholders: {{year}}, {{number}}, {{prefix}}'
        }),
        ('Options', {
            'fields': ('auto_generate_on_payment', 'invoice_footer')
        }),
    )


class IssuedInvoiceNumberInline(admin.TabularInline):
    model = IssuedInvoiceNumber
    extra = 0
    fields = ['number', 'consumer_id', 'issued_at']
    readonly_fields = ['number', 'consumer_id', 'issued_at']
    can_delete = False


@admin.register(InvoiceCounter)
class InvoiceCounterAdmin(admin.ModelAdmin):
    list_display = ['settings_group', 'year', 'last_number', 'updated_at']
    list_filter = ['settings_group', 'year']
    readonly_fields = ['last_number', 'created_at', 'updated_at']
    inlines = [IssuedInvoiceNumberInline]


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ['invoice_number', 'document_type', 'customer_name', 'invoice_date', 'total', 'status', 'is_locked']
    list_filter = ['settings_group', 'year', 'status', 'document_type']
    search_fields = ['invoice_number', 'customer_name', 'customer_email']
    date_hierarchy = 'invoice_date'

    def get_readonly_fields(self, request, obj=None):
        if obj is not None and obj.is_locked:
            return [field.name for field in obj._meta.fields if field.name != 'notes']
        return ['invoice_number', 'year', 'sequence', 'created_at', 'updated_at']
