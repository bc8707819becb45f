"""
Invoice views: generation, PDF download, numbering counters.
"""

import logging

from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.http import require_GET, require_POST

from rentals.models import Booking, Invoice, InvoiceSettings
from rentals.services import InvoiceNumberService, InvoiceService, render_invoice_pdf

from .mixins import BadRequest, json_api, login_required_json, parse_int, parse_json_body, success_response

logger = logging.getLogger(__name__)


@require_POST
@login_required_json
@json_api
def generate_invoice(request):
    """Body: {booking_id, group_id?, notes?}"""
    data = parse_json_body(request)

    booking_id = parse_int(data.get('booking_id'), 'booking_id')
    if booking_id is None:
        raise BadRequest('booking_id is required')
    booking = get_object_or_404(Booking.objects.select_related('apartment'), pk=booking_id)

    settings_group = None
    if data.get('group_id'):
        settings_group = get_object_or_404(InvoiceSettings, group_id=data['group_id'])

    invoice = InvoiceService().generate_for_booking(
        booking,
        settings_group=settings_group,
        notes=data.get('notes') or ''
    )
    return success_response({'invoice': invoice.to_dict()}, message='Invoice generated', status=201)


@require_GET
@login_required_json
@json_api
def invoice_pdf(request, invoice_id):
    invoice = get_object_or_404(Invoice.objects.select_related('settings_group'), pk=invoice_id)

    pdf_buffer = render_invoice_pdf(invoice)

    response = HttpResponse(pdf_buffer, content_type='application/pdf')
    filename = f"{invoice.document_type}_{invoice.invoice_number.replace('/', '-')}.pdf"
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@require_GET
@login_required_json
@json_api
def invoice_counters(request):
    """Numbering statistics, optionally for one settings group (?group_id=)."""
    settings_group = None
    if request.GET.get('group_id'):
        settings_group = get_object_or_404(InvoiceSettings, group_id=request.GET['group_id'])

    return success_response({'counters': InvoiceNumberService.statistics(settings_group)})


@require_POST
@login_required_json
@json_api
def reset_counter(request, group_id):
    """Body: {year?} (defaults to the current year)"""
    settings_group = get_object_or_404(InvoiceSettings, group_id=group_id)
    data = parse_json_body(request)
    year = parse_int(data.get('year'), 'year', default=timezone.localdate().year)

    existed = InvoiceNumberService.reset_counter(settings_group, year)
    return success_response({'reset': existed, 'group_id': group_id, 'year': year})
