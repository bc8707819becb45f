"""
Invoice PDF rendering with reportlab.
"""

from io import BytesIO

from django.utils.html import escape
from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from rentals.conf import get_setting


def _money(amount, currency):
    return f"{amount:.2f} {currency}"


def render_invoice_pdf(invoice):
    """
    Render an invoice as an A4 PDF.

    Returns:
        BytesIO positioned at the start of the document
    """
    buffer = BytesIO()
    settings_group = invoice.settings_group
    currency = get_setting('CURRENCY')

    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=20*mm,
        leftMargin=20*mm,
        topMargin=20*mm,
        bottomMargin=20*mm,
        title=f"{invoice.get_document_type_display()} {invoice.invoice_number}"
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'InvoiceTitle',
        parent=styles['Heading1'],
        fontSize=18,
        spaceAfter=4,
        textColor=colors.HexColor('#1e3a5f')
    )
    subtitle_style = ParagraphStyle(
        'InvoiceSubtitle',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.grey,
        spaceAfter=12
    )
    block_style = ParagraphStyle(
        'InvoiceBlock',
        parent=styles['Normal'],
        fontSize=9,
        leading=12
    )
    right_style = ParagraphStyle('InvoiceRight', parent=block_style, alignment=TA_RIGHT)

    story = []

    # Header
    story.append(Paragraph(
        f"{invoice.get_document_type_display()} n. {invoice.invoice_number}", title_style
    ))
    story.append(Paragraph(
        f"Date: {invoice.invoice_date.strftime('%d/%m/%Y')}", subtitle_style
    ))

    # Issuer / customer
    issuer_lines = [f"<b>{escape(settings_group.business_name)}</b>"]
    for line in [settings_group.business_address, settings_group.email]:
        if line:
            issuer_lines.append(escape(line))
    if settings_group.vat_number:
        issuer_lines.append(f"VAT: {escape(settings_group.vat_number)}")
    if settings_group.tax_code:
        issuer_lines.append(f"Tax code: {escape(settings_group.tax_code)}")

    customer_lines = ["<b>Bill to</b>", escape(invoice.customer_name)]
    if invoice.customer_email:
        customer_lines.append(escape(invoice.customer_email))

    parties = Table(
        [[Paragraph('<br/>'.join(issuer_lines), block_style),
          Paragraph('<br/>'.join(customer_lines), right_style)]],
        colWidths=[85*mm, 85*mm]
    )
    parties.setStyle(TableStyle([('VALIGN', (0, 0), (-1, -1), 'TOP')]))
    story.append(parties)
    story.append(Spacer(1, 10*mm))

    # Line items
    data = [
        ['Description', 'Nights', 'Amount'],
        [Paragraph(escape(invoice.description), block_style), str(invoice.nights), _money(invoice.subtotal, currency)],
    ]
    table = Table(data, colWidths=[120*mm, 20*mm, 30*mm])
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#1e3a5f')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#cbd5e1')),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    story.append(table)
    story.append(Spacer(1, 6*mm))

    # Totals
    totals = [['Subtotal', _money(invoice.subtotal, currency)]]
    if invoice.vat_rate is not None:
        totals.append([f"VAT {invoice.vat_rate}%", _money(invoice.vat_amount, currency)])
    totals.append(['Total', _money(invoice.total, currency)])

    totals_table = Table(totals, colWidths=[140*mm, 30*mm])
    totals_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('LINEABOVE', (0, -1), (-1, -1), 1, colors.HexColor('#1e3a5f')),
    ]))
    story.append(totals_table)

    if invoice.vat_rate is None:
        story.append(Spacer(1, 4*mm))
        story.append(Paragraph("Transaction not subject to VAT.", subtitle_style))

    if invoice.notes:
        story.append(Spacer(1, 6*mm))
        story.append(Paragraph(escape(invoice.notes), block_style))

    if settings_group.invoice_footer:
        story.append(Spacer(1, 10*mm))
        story.append(Paragraph(escape(settings_group.invoice_footer), subtitle_style))

    doc.build(story)
    buffer.seek(0)

    return buffer
