"""
Calendar views: public iCal export and operator-triggered feed import.
"""

import logging

from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST

from rentals.exceptions import FeedUnavailableError
from rentals.models import Apartment, CalendarSource
from rentals.services import (
    generate_calendar_feed,
    get_apartment,
    import_calendar_bookings,
    sync_apartment_calendars,
)

from .mixins import BadRequest, error_response, json_api, login_required_json, parse_json_body, success_response

logger = logging.getLogger(__name__)


@require_GET
def ical_feed(request, code):
    """
    iCal export of an apartment, for the channels to import.

    URL: /ical/{code}.ics
    """
    apartment = get_object_or_404(Apartment, code=code, is_active=True)

    response = HttpResponse(generate_calendar_feed(apartment), content_type='text/calendar; charset=utf-8')
    response['Content-Disposition'] = f'attachment; filename="{apartment.code}.ics"'
    return response


def _sync_result(result):
    return {
        'source': result.source.source,
        'events': result.events,
        'created': result.created,
        'updated': result.updated,
        'unchanged': result.unchanged,
    }


@require_POST
@login_required_json
@json_api
def calendar_sync(request, apartment_id):
    """
    Import channel calendars of an apartment.

    Body: {source, url} registers (or updates) that source and imports it;
    an empty body imports every registered source.
    """
    apartment = get_apartment(apartment_id)
    data = parse_json_body(request)

    if not data.get('source'):
        outcome = sync_apartment_calendars(apartment)
        return success_response({
            'results': [_sync_result(result) for result in outcome['results']],
            'errors': outcome['errors'],
        })

    valid_sources = dict(CalendarSource.SOURCE_CHOICES)
    if data['source'] not in valid_sources:
        raise BadRequest(f"Unknown source: {data['source']}")

    if data.get('url'):
        source, _ = CalendarSource.objects.update_or_create(
            apartment=apartment,
            source=data['source'],
            defaults={'url': data['url']}
        )
    else:
        source = CalendarSource.objects.filter(apartment=apartment, source=data['source']).first()
        if source is None:
            raise BadRequest('url is required for a new calendar source')

    try:
        result = import_calendar_bookings(source)
    except FeedUnavailableError as e:
        logger.warning("Manual sync failed for %s/%s: %s", apartment.code, source.source, e.message)
        return error_response(e.message, e.status_code, source=source.source)

    return success_response({'result': _sync_result(result)}, message='Calendar synchronized')
