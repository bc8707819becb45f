from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Apartment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text="e.g., 'Sea View Loft'", max_length=200)),
                ('code', models.SlugField(help_text='URL-friendly code, also used for the public iCal feed', unique=True)),
                ('description', models.TextField(blank=True, default='')),
                ('address', models.CharField(blank=True, default='', max_length=255)),
                ('bedrooms', models.PositiveIntegerField(default=1)),
                ('bathrooms', models.PositiveIntegerField(default=1)),
                ('max_guests', models.PositiveIntegerField(default=2)),
                ('base_price', models.DecimalField(decimal_places=2, help_text='Nightly price (flat) or nightly price per guest (per person)', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('price_type', models.CharField(choices=[('flat', 'Flat (per night)'), ('per_person', 'Per person (per night)')], default='flat', max_length=20)),
                ('base_guests', models.PositiveIntegerField(default=2, help_text='Guests included in the flat nightly price')),
                ('extra_guest_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), help_text='Surcharge per extra guest per night (amount or percent)', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('extra_guest_price_type', models.CharField(choices=[('fixed', 'Fixed amount'), ('percentage', 'Percentage of nightly price')], default='fixed', max_length=20)),
                ('min_stay', models.PositiveIntegerField(default=1, help_text='Default minimum stay in nights', validators=[django.core.validators.MinValueValidator(1)])),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Apartment',
                'verbose_name_plural': 'Apartments',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='SeasonalPrice',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='e.g., Summer, Christmas', max_length=100)),
                ('start_date', models.DateField(help_text='First night (inclusive)')),
                ('end_date', models.DateField(help_text='Last night (inclusive)')),
                ('price', models.DecimalField(decimal_places=2, help_text='Replaces the apartment base price for nights in this window', max_digits=10, validators=[django.core.validators.MinValueValidator(Decimal('0.00'))])),
                ('sort_order', models.PositiveIntegerField(default=0)),
                ('apartment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='seasonal_prices', to='rentals.apartment')),
            ],
            options={
                'verbose_name': 'Seasonal Price',
                'verbose_name_plural': 'Seasonal Prices',
                'ordering': ['apartment', 'sort_order', 'id'],
            },
        ),
        migrations.CreateModel(
            name='CalendarSource',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('source', models.CharField(choices=[('airbnb', 'Airbnb'), ('booking', 'Booking.com'), ('other', 'Other')], max_length=20)),
                ('url', models.URLField(max_length=500)),
                ('last_synced_at', models.DateTimeField(blank=True, null=True)),
                ('last_error', models.TextField(blank=True, default='')),
                ('apartment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='calendar_sources', to='rentals.apartment')),
            ],
            options={
                'verbose_name': 'Calendar Source',
                'verbose_name_plural': 'Calendar Sources',
                'ordering': ['apartment', 'source'],
                'unique_together': {('apartment', 'source')},
            },
        ),
        migrations.CreateModel(
            name='DailyRate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('price', models.DecimalField(blank=True, decimal_places=2, help_text='Nightly price for this day (leave empty to use season/base)', max_digits=10, null=True)),
                ('is_blocked', models.BooleanField(default=False)),
                ('min_stay', models.PositiveIntegerField(blank=True, help_text='Minimum stay for arrivals on this day', null=True, validators=[django.core.validators.MinValueValidator(1)])),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('apartment', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='daily_rates', to='rentals.apartment')),
            ],
            options={
                'verbose_name': 'Daily Rate',
                'verbose_name_plural': 'Daily Rates',
                'ordering': ['apartment', 'date'],
            },
        ),
        migrations.AddConstraint(
            model_name='dailyrate',
            constraint=models.UniqueConstraint(fields=('apartment', 'date'), name='unique_daily_rate_per_apartment_date'),
        ),
        migrations.CreateModel(
            name='Booking',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('guest_name', models.CharField(max_length=200)),
                ('guest_email', models.EmailField(blank=True, default='', max_length=254)),
                ('guest_phone', models.CharField(blank=True, default='', max_length=50)),
                ('check_in', models.DateField(db_index=True)),
                ('check_out', models.DateField(help_text='Departure day (not an occupied night)')),
                ('number_of_guests', models.PositiveIntegerField(default=1)),
                ('total_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('status', models.CharField(choices=[('inquiry', 'Inquiry'), ('pending', 'Pending'), ('confirmed', 'Confirmed'), ('cancelled', 'Cancelled'), ('completed', 'Completed')], db_index=True, default='inquiry', max_length=20)),
                ('payment_status', models.CharField(choices=[('pending', 'Pending'), ('paid', 'Paid'), ('refunded', 'Refunded'), ('failed', 'Failed')], default='pending', max_length=20)),
                ('source', models.CharField(choices=[('direct', 'Direct'), ('airbnb', 'Airbnb'), ('booking', 'Booking.com'), ('other', 'Other')], default='direct', max_length=20)),
                ('external_id', models.CharField(blank=True, default='', max_length=255)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('apartment', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='bookings', to='rentals.apartment')),
            ],
            options={
                'verbose_name': 'Booking',
                'verbose_name_plural': 'Bookings',
                'ordering': ['check_in'],
            },
        ),
        migrations.AddIndex(
            model_name='booking',
            index=models.Index(fields=['apartment', 'check_in', 'check_out'], name='booking_apartment_stay_idx'),
        ),
        migrations.AddConstraint(
            model_name='booking',
            constraint=models.UniqueConstraint(condition=models.Q(('external_id', ''), _negated=True), fields=('apartment', 'source', 'external_id'), name='unique_external_booking_per_source'),
        ),
        migrations.CreateModel(
            name='InvoiceSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('group_id', models.SlugField(unique=True)),
                ('name', models.CharField(help_text="e.g., 'City Centre Apartments'", max_length=200)),
                ('business_name', models.CharField(max_length=200)),
                ('business_address', models.CharField(blank=True, default='', max_length=255)),
                ('tax_code', models.CharField(blank=True, default='', max_length=50)),
                ('vat_number', models.CharField(blank=True, default='', max_length=50)),
                ('email', models.EmailField(blank=True, default='', max_length=254)),
                ('activity_type', models.CharField(choices=[('business', 'Business (VAT)'), ('tourist_rental', 'Tourist rental (no VAT)')], default='tourist_rental', max_length=20)),
                ('vat_rate', models.DecimalField(decimal_places=2, default=Decimal('22.00'), max_digits=5, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('vat_included', models.BooleanField(default=True, help_text='Booking prices already include VAT')),
                ('numbering_format', models.CharField(default='{{year}}/{{number}}', max_length=100)),
                ('numbering_prefix', models.CharField(blank=True, default='', max_length=20)),
                ('auto_generate_on_payment', models.BooleanField(default=False, help_text='Issue an invoice automatically when a booking is paid')),
                ('invoice_footer', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('apartments', models.ManyToManyField(blank=True, related_name='invoice_settings', to='rentals.apartment')),
            ],
            options={
                'verbose_name': 'Invoice Settings',
                'verbose_name_plural': 'Invoice Settings',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='InvoiceCounter',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('year', models.PositiveIntegerField()),
                ('last_number', models.PositiveIntegerField(default=0)),
                ('prefix', models.CharField(blank=True, default='', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('settings_group', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='counters', to='rentals.invoicesettings')),
            ],
            options={
                'verbose_name': 'Invoice Counter',
                'verbose_name_plural': 'Invoice Counters',
                'ordering': ['settings_group', '-year'],
            },
        ),
        migrations.AddConstraint(
            model_name='invoicecounter',
            constraint=models.UniqueConstraint(fields=('settings_group', 'year'), name='unique_invoice_counter_per_group_year'),
        ),
        migrations.CreateModel(
            name='IssuedInvoiceNumber',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('number', models.PositiveIntegerField()),
                ('consumer_id', models.CharField(max_length=100)),
                ('issued_at', models.DateTimeField(auto_now_add=True)),
                ('counter', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='issued_numbers', to='rentals.invoicecounter')),
            ],
            options={
                'verbose_name': 'Issued Invoice Number',
                'verbose_name_plural': 'Issued Invoice Numbers',
                'ordering': ['counter', 'number'],
            },
        ),
        migrations.AddConstraint(
            model_name='issuedinvoicenumber',
            constraint=models.UniqueConstraint(fields=('counter', 'number'), name='unique_issued_number_per_counter'),
        ),
        migrations.CreateModel(
            name='Invoice',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('invoice_number', models.CharField(max_length=50, unique=True)),
                ('year', models.PositiveIntegerField()),
                ('sequence', models.PositiveIntegerField()),
                ('invoice_date', models.DateField()),
                ('document_type', models.CharField(choices=[('receipt', 'Receipt'), ('invoice', 'Invoice')], default='receipt', max_length=20)),
                ('customer_name', models.CharField(max_length=200)),
                ('customer_email', models.EmailField(blank=True, default='', max_length=254)),
                ('apartment_name', models.CharField(max_length=200)),
                ('check_in', models.DateField()),
                ('check_out', models.DateField()),
                ('nights', models.PositiveIntegerField()),
                ('guests', models.PositiveIntegerField()),
                ('description', models.TextField()),
                ('subtotal', models.DecimalField(decimal_places=2, max_digits=12)),
                ('vat_rate', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('vat_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total', models.DecimalField(decimal_places=2, max_digits=12)),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('issued', 'Issued'), ('cancelled', 'Cancelled')], default='draft', max_length=20)),
                ('is_locked', models.BooleanField(default=False)),
                ('public_access_code', models.CharField(blank=True, db_index=True, default='', max_length=32)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('booking', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='invoice', to='rentals.booking')),
                ('settings_group', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='invoices', to='rentals.invoicesettings')),
            ],
            options={
                'verbose_name': 'Invoice',
                'verbose_name_plural': 'Invoices',
                'ordering': ['-year', '-sequence'],
            },
        ),
        migrations.AddConstraint(
            model_name='invoice',
            constraint=models.UniqueConstraint(fields=('settings_group', 'year', 'sequence'), name='unique_invoice_sequence_per_group_year'),
        ),
    ]
