from django.apps import AppConfig


class RentalsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'rentals'
    verbose_name = 'Rentals'

    def ready(self):
        # connects the invoice-on-payment handler
        from . import signals  # noqa: F401
