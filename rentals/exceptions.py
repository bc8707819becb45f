"""
Errors raised by the pricing, availability, calendar and invoicing services.

Every error carries the HTTP status a view should answer with.
"""


class RentalsError(Exception):
    """Base exception for rentals service errors."""
    status_code = 400

    def __init__(self, message, status_code=None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class NotFoundError(RentalsError):
    """Raised when a referenced apartment (or booking, invoice group) does not exist."""
    status_code = 404


class InvalidRangeError(RentalsError):
    """Raised when check-out is not after check-in."""
    status_code = 400


class FeedUnavailableError(RentalsError):
    """Raised when a remote calendar feed cannot be fetched or parsed."""
    status_code = 503

    def __init__(self, message, url=None):
        super().__init__(message)
        self.url = url


class UnavailableError(RentalsError):
    """
    Raised when a stay cannot be booked.

    reason is one of: booked, blocked, min_stay, external, capacity.
    """
    status_code = 409

    def __init__(self, message, reason, **details):
        super().__init__(message)
        self.reason = reason
        self.details = details


class InvoiceError(RentalsError):
    """Raised when an invoice cannot be generated."""
    status_code = 400
