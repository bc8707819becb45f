"""
Calendar services: iCal feed import/export and availability checks.

External busy intervals are fetched fresh on every call and never cached.
"""

import hashlib
import logging
import re
from collections import namedtuple
from datetime import timedelta

import icalendar
import requests
from django.utils import timezone

from rentals.conf import get_setting
from rentals.exceptions import FeedUnavailableError

from .pricing_service import to_utc_date

logger = logging.getLogger(__name__)

BusyInterval = namedtuple('BusyInterval', ['start', 'end'])

CalendarEvent = namedtuple(
    'CalendarEvent',
    ['uid', 'start', 'end', 'summary', 'description', 'external_id']
)

SyncResult = namedtuple('SyncResult', ['source', 'events', 'created', 'updated', 'unchanged'])

RESERVATION_CODE_RE = re.compile(r'reservations/(?:details/)?([A-Z0-9]+)', re.IGNORECASE)
UID_CODE_RE = re.compile(r'^[A-Z0-9]{6,}$', re.IGNORECASE)
EMAIL_RE = re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')
PHONE_RE = re.compile(r'\+?\d[\d\s().-]{6,}\d')
SUMMARY_PREFIX_RE = re.compile(
    r'^(booking:|reservation:|booked:|reserved:|blocked:|unavailable:)',
    re.IGNORECASE
)


# =============================================================================
# AVAILABILITY CHECKER
# =============================================================================

def is_available(candidate_start, candidate_end, busy_intervals):
    """
    Check a candidate stay against busy intervals.

    Half-open overlap: start < busy_end and end > busy_start. A stay ending
    on the day another starts does not overlap. The first overlap vetoes
    the whole range.

    Dates, datetimes and ISO strings are compared as UTC calendar dates.
    """
    candidate_start = to_utc_date(candidate_start)
    candidate_end = to_utc_date(candidate_end)

    for busy_start, busy_end in busy_intervals:
        if candidate_start < to_utc_date(busy_end) and candidate_end > to_utc_date(busy_start):
            return False
    return True


# =============================================================================
# FEED IMPORT
# =============================================================================

def fallback_event_uid(start, end, summary):
    """Stable identifier for an event published without a UID."""
    digest = hashlib.sha1(f"{start.isoformat()}|{end.isoformat()}|{summary}".encode('utf-8')).hexdigest()[:12]
    return f"{start:%Y%m%d}-{end:%Y%m%d}-{digest}@ical"


def extract_external_id(uid, description='', url=''):
    """
    Channel reservation code from an event, if one can be recognised.

    Looks for '.../reservations/details/CODE' in the description or URL,
    then for a UID whose local part is an alphanumeric code.
    """
    text = description or url or ''
    match = RESERVATION_CODE_RE.search(text)
    if match:
        return match.group(1)

    local_part = (uid or '').split('@')[0]
    if UID_CODE_RE.match(local_part):
        return local_part
    return None


def fetch_calendar_events(url, timeout=None):
    """
    Download and parse an iCal feed.

    Returns:
        list of CalendarEvent with start/end as UTC dates (end exclusive)

    Raises:
        FeedUnavailableError: network error, HTTP error or unparseable feed
    """
    if timeout is None:
        timeout = get_setting('ICAL_TIMEOUT')

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise FeedUnavailableError(f"Cannot fetch calendar feed: {e}", url=url) from e

    try:
        calendar = icalendar.Calendar.from_ical(response.text)
        events = []
        for component in calendar.walk('VEVENT'):
            if 'DTSTART' not in component or 'DTEND' not in component:
                continue

            start = to_utc_date(component.decoded('dtstart'))
            end = to_utc_date(component.decoded('dtend'))
            summary = str(component.get('summary', ''))
            uid = str(component.get('uid', '')) or fallback_event_uid(start, end, summary)
            description = str(component.get('description', ''))
            events.append(CalendarEvent(
                uid=uid,
                start=start,
                end=end,
                summary=summary,
                description=description,
                external_id=extract_external_id(uid, description, str(component.get('url', ''))),
            ))
    except (ValueError, KeyError, TypeError) as e:
        raise FeedUnavailableError(f"Cannot parse calendar feed: {e}", url=url) from e

    return events


def fetch_busy_intervals(apartment):
    """
    Busy intervals from every calendar source of an apartment.

    Raises:
        FeedUnavailableError: any source failed; availability is unknown
    """
    intervals = []
    for source in apartment.calendar_sources.all():
        for event in fetch_calendar_events(source.url):
            intervals.append(BusyInterval(event.start, event.end))
    return intervals


def extract_guest_info(event):
    """Guest name, email and phone guessed from an event's summary and description."""
    name = SUMMARY_PREFIX_RE.sub('', event.summary or '').strip() or 'Guest'

    email = ''
    phone = ''
    if event.description:
        email_match = EMAIL_RE.search(event.description)
        if email_match:
            email = email_match.group(0)
        phone_match = PHONE_RE.search(event.description)
        if phone_match:
            phone = phone_match.group(0).strip()

    return {
        'name': name[:200],
        'email': email,
        'phone': phone[:50],
        'notes': event.description,
    }


def import_calendar_bookings(source):
    """
    Import the events of one calendar source as bookings.

    Bookings are keyed by (apartment, channel, reservation code or UID), so
    re-running the import updates dates instead of creating duplicates.

    Raises:
        FeedUnavailableError: the feed could not be read (recorded on the source)
    """
    from rentals.models import Booking

    try:
        events = fetch_calendar_events(source.url)
    except FeedUnavailableError as e:
        source.last_error = e.message
        source.save(update_fields=['last_error'])
        raise

    created = updated = unchanged = 0

    for event in events:
        guest = extract_guest_info(event)
        booking, was_created = Booking.objects.get_or_create(
            apartment=source.apartment,
            source=source.source,
            external_id=event.external_id or event.uid,
            defaults={
                'guest_name': guest['name'],
                'guest_email': guest['email'],
                'guest_phone': guest['phone'],
                'check_in': event.start,
                'check_out': event.end,
                'status': Booking.STATUS_CONFIRMED,
                'payment_status': Booking.PAYMENT_PAID,
                'notes': guest['notes'] or f"Imported from {source.get_source_display()} iCal feed",
            }
        )

        if was_created:
            created += 1
        elif booking.check_in != event.start or booking.check_out != event.end:
            booking.check_in = event.start
            booking.check_out = event.end
            booking.save(update_fields=['check_in', 'check_out', 'updated_at'])
            updated += 1
        else:
            unchanged += 1

    source.last_synced_at = timezone.now()
    source.last_error = ''
    source.save(update_fields=['last_synced_at', 'last_error'])

    logger.info(
        "Synced %s for %s: %d events, %d created, %d updated",
        source.source, source.apartment.code, len(events), created, updated
    )
    return SyncResult(source, len(events), created, updated, unchanged)


def sync_apartment_calendars(apartment):
    """
    Import every calendar source of an apartment.

    A failing source is logged and reported; the others still run.

    Returns:
        dict with 'results' (list of SyncResult) and 'errors' ({source: message})
    """
    results = []
    errors = {}

    for source in apartment.calendar_sources.all():
        try:
            results.append(import_calendar_bookings(source))
        except FeedUnavailableError as e:
            logger.warning("Calendar sync failed for %s/%s: %s", apartment.code, source.source, e.message)
            errors[source.source] = e.message

    return {'results': results, 'errors': errors}


# =============================================================================
# FEED EXPORT
# =============================================================================

def generate_calendar_feed(apartment, bookings=None):
    """
    Build the iCal feed of an apartment's occupied and blocked days.

    Returns:
        bytes of a VCALENDAR with one VEVENT per non-cancelled booking
        (DTEND = check-out day, exclusive) and per blocked day
    """
    from rentals.models import Booking, DailyRate

    if bookings is None:
        bookings = Booking.objects.active().filter(apartment=apartment)

    cal = icalendar.Calendar()
    cal.add('VERSION', '2.0')
    cal.add('PRODID', get_setting('ICAL_PRODID'))
    cal.add('CALSCALE', 'GREGORIAN')
    cal.add('X-WR-CALNAME', f"{apartment.name} - Availability")

    stamp = timezone.now()

    for booking in bookings:
        ev = icalendar.Event()
        ev.add('uid', f"booking-{booking.pk}@{apartment.code}")
        ev.add('dtstamp', stamp)
        ev.add('dtstart', booking.check_in)
        ev.add('dtend', booking.check_out)
        ev.add('summary', 'Booked')
        cal.add_component(ev)

    blocked = DailyRate.objects.filter(apartment=apartment, is_blocked=True).order_by('date')
    for rate in blocked:
        ev = icalendar.Event()
        ev.add('uid', f"blocked-{rate.date.isoformat()}@{apartment.code}")
        ev.add('dtstamp', stamp)
        ev.add('dtstart', rate.date)
        ev.add('dtend', rate.date + timedelta(days=1))
        ev.add('summary', 'Not available')
        cal.add_component(ev)

    return cal.to_ical()
