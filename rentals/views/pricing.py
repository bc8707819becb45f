"""
Pricing views: price quotes, availability search, daily rate management.
"""

import logging

from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST, require_http_methods

from rentals.exceptions import UnavailableError
from rentals.models import Booking
from rentals.services import (
    BookingService,
    PricingService,
    bulk_update_rates,
    check_stay_restrictions,
    get_apartment,
    search_available_apartments,
    upsert_daily_rate,
)
from rentals.services.rate_service import delete_daily_rate, rates_in_range

from .mixins import (
    BadRequest,
    json_api,
    login_required_json,
    parse_bool,
    parse_date,
    parse_decimal,
    parse_int,
    parse_json_body,
    success_response,
)

logger = logging.getLogger(__name__)


# =============================================================================
# PUBLIC ENDPOINTS
# =============================================================================

@csrf_exempt
@require_POST
@json_api
def calculate_price(request):
    """
    Quote a stay.

    Body: {apartment_id, check_in, check_out, guests}
    """
    data = parse_json_body(request)

    if not data.get('apartment_id'):
        raise BadRequest('apartment_id is required')
    check_in = parse_date(data.get('check_in'), 'check_in')
    check_out = parse_date(data.get('check_out'), 'check_out')
    guests = parse_int(data.get('guests'), 'guests', default=1)
    if guests < 1:
        raise BadRequest('guests must be at least 1')

    apartment = get_apartment(data['apartment_id'])
    quote = PricingService(apartment).quote(check_in, check_out, guests)

    return success_response({
        'apartment_id': apartment.id,
        'check_in': quote['check_in'],
        'check_out': quote['check_out'],
        'nights': quote['nights'],
        'guests': guests,
        'nightly': quote['nightly'],
        'total_price': quote['total'],
    })


@csrf_exempt
@require_POST
@json_api
def availability(request):
    """
    Availability search.

    Body: {check_in, check_out, guests[, apartment_id]}

    Without apartment_id: every active apartment that can host the stay,
    with its price. With apartment_id: whether that apartment is bookable,
    including the channel calendars.
    """
    data = parse_json_body(request)

    check_in = parse_date(data.get('check_in'), 'check_in')
    check_out = parse_date(data.get('check_out'), 'check_out')
    guests = parse_int(data.get('guests'), 'guests', default=1)

    if data.get('apartment_id'):
        apartment = get_apartment(data['apartment_id'])
        if guests > apartment.max_guests:
            return success_response({
                'available': False,
                'reason': 'capacity',
                'max_guests': apartment.max_guests,
            })

        try:
            check_stay_restrictions(apartment, check_in, check_out)
            if Booking.objects.overlapping(apartment, check_in, check_out).exists():
                raise UnavailableError('Apartment already booked', reason='booked')
            BookingService().check_external_calendars(apartment, check_in, check_out)
        except UnavailableError as e:
            return success_response({'available': False, 'reason': e.reason, **e.details})

        quote = PricingService(apartment).quote(check_in, check_out, guests)
        return success_response({
            'available': True,
            'nights': quote['nights'],
            'total_price': quote['total'],
        })

    results = search_available_apartments(check_in, check_out, guests)

    return success_response({
        'check_in': check_in,
        'check_out': check_out,
        'guests': guests,
        'apartments': [
            {
                'id': item['apartment'].id,
                'name': item['apartment'].name,
                'code': item['apartment'].code,
                'max_guests': item['apartment'].max_guests,
                'bedrooms': item['apartment'].bedrooms,
                'nights': item['quote']['nights'],
                'total_price': item['quote']['total'],
            }
            for item in results
        ],
    })


# =============================================================================
# OPERATOR ENDPOINTS
# =============================================================================

@require_http_methods(['GET', 'POST', 'DELETE'])
@login_required_json
@json_api
def daily_rates(request, apartment_id):
    """
    GET    ?start=YYYY-MM-DD&end=YYYY-MM-DD  list daily rates
    POST   {date, price, is_blocked, min_stay, notes}  create or replace one day
    DELETE ?date=YYYY-MM-DD  remove one day
    """
    apartment = get_apartment(apartment_id)

    if request.method == 'GET':
        start = parse_date(request.GET.get('start'), 'start')
        end = parse_date(request.GET.get('end'), 'end')
        rates = rates_in_range(apartment, start, end)
        return success_response({'rates': [rate.to_dict() for rate in rates]})

    if request.method == 'DELETE':
        day = parse_date(request.GET.get('date'), 'date')
        deleted = delete_daily_rate(apartment, day)
        return success_response({'deleted': deleted})

    data = parse_json_body(request)
    day = parse_date(data.get('date'), 'date')
    min_stay = parse_int(data.get('min_stay'), 'min_stay')
    if min_stay is not None and min_stay < 1:
        raise BadRequest('min_stay must be at least 1')

    rate, created = upsert_daily_rate(
        apartment,
        day,
        price=parse_decimal(data.get('price'), 'price'),
        is_blocked=parse_bool(data.get('is_blocked')),
        min_stay=min_stay,
        notes=data.get('notes') or '',
    )
    return success_response({'rate': rate.to_dict()}, status=201 if created else 200)


@require_POST
@login_required_json
@json_api
def bulk_rates(request, apartment_id):
    """
    Apply a change to an inclusive date range.

    Body: {start, end, price?, is_blocked?, min_stay?, notes?,
           reset_prices?, reset_min_stay?}
    """
    apartment = get_apartment(apartment_id)
    data = parse_json_body(request)

    is_blocked = data.get('is_blocked')
    count = bulk_update_rates(
        apartment,
        parse_date(data.get('start'), 'start'),
        parse_date(data.get('end'), 'end'),
        price=parse_decimal(data.get('price'), 'price'),
        is_blocked=None if is_blocked is None else parse_bool(is_blocked),
        min_stay=parse_int(data.get('min_stay'), 'min_stay'),
        notes=data.get('notes'),
        reset_prices=parse_bool(data.get('reset_prices')),
        reset_min_stay=parse_bool(data.get('reset_min_stay')),
    )
    return success_response({'modified_count': count})
