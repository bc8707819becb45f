"""
Booking views: direct booking creation and the operator booking list.
"""

import logging

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from rentals.models import Booking
from rentals.services import BookingService, get_apartment

from .mixins import (
    BadRequest,
    json_api,
    login_required_json,
    parse_date,
    parse_decimal,
    parse_int,
    parse_json_body,
    parse_optional_date,
    parse_text,
    success_response,
)

logger = logging.getLogger(__name__)


@csrf_exempt
@require_POST
@json_api
def create_booking(request):
    """
    Create a direct booking. The stored price is always computed server-side.

    Body: {apartment_id, check_in, check_out, guests, guest_name,
           guest_email, guest_phone?, total_price?, notes?}
    """
    data = parse_json_body(request)

    if not data.get('apartment_id'):
        raise BadRequest('apartment_id is required')
    guest_name = parse_text(data.get('guest_name'), 'guest_name')
    if not guest_name:
        raise BadRequest('guest_name is required')

    apartment = get_apartment(data['apartment_id'])
    if not apartment.is_active:
        raise BadRequest('This apartment is not bookable')

    booking = BookingService().create_booking(
        apartment,
        parse_date(data.get('check_in'), 'check_in'),
        parse_date(data.get('check_out'), 'check_out'),
        guests=parse_int(data.get('guests'), 'guests', default=1),
        guest_name=guest_name,
        guest_email=parse_text(data.get('guest_email'), 'guest_email'),
        guest_phone=parse_text(data.get('guest_phone'), 'guest_phone'),
        client_price=parse_decimal(data.get('total_price'), 'total_price'),
        notes=parse_text(data.get('notes'), 'notes'),
    )

    return success_response({'booking': booking.to_dict()}, message='Booking created', status=201)


@require_GET
@login_required_json
@json_api
def booking_list(request):
    """
    List bookings.

    Query: apartment_id?, start?, end? (stays overlapping [start, end)),
           include_cancelled?
    """
    bookings = Booking.objects.select_related('apartment')

    if request.GET.get('include_cancelled') != '1':
        bookings = bookings.active()

    if request.GET.get('apartment_id'):
        apartment = get_apartment(request.GET['apartment_id'])
        bookings = bookings.filter(apartment=apartment)

    start = parse_optional_date(request.GET.get('start'), 'start')
    end = parse_optional_date(request.GET.get('end'), 'end')
    if start:
        bookings = bookings.filter(check_out__gt=start)
    if end:
        bookings = bookings.filter(check_in__lt=end)

    return success_response({
        'count': bookings.count(),
        'bookings': [booking.to_dict() for booking in bookings.order_by('check_in')],
    })
