# onnet_dashboard/services/file_utils.py
from io import BytesIO
from xml.sax.saxutils import escape

from flask import current_app, make_response
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
import logging

from onnet_dashboard.models.receipt import KIND_TV
from onnet_dashboard.services.date_utils import format_long_date_es, month_name, parse_date_local
from onnet_dashboard.services.quotes import line_total, price_without_isv, quote_totals

logger = logging.getLogger(__name__)

BRAND_COLOR = colors.HexColor('#0b5394')

HEADER_TABLE_STYLE = [
    ('BACKGROUND', (0, 0), (-1, 0), BRAND_COLOR),
    ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
    ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
    ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
    ('BOTTOMPADDING', (0, 0), (-1, 0), 8),
    ('VALIGN', (0, 0), (-1, -1), 'TOP'),
    ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
]


def format_money(value):
    """Lempira amounts as printed on documents: L. 1,234.56"""
    return f"L. {float(value or 0):,.2f}"


def company_info():
    config = current_app.config
    return {
        'name': config.get('COMPANY_NAME', 'ON-NET WIRELESS'),
        'address': config.get('COMPANY_ADDRESS', ''),
        'phone': config.get('COMPANY_PHONE', ''),
        'email': config.get('COMPANY_EMAIL', ''),
        'rtn': config.get('COMPANY_RTN', ''),
    }


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle('Small', parent=styles['Normal'], fontSize=8, leading=10))
    styles.add(ParagraphStyle('Right', parent=styles['Normal'], alignment=2))
    styles.add(ParagraphStyle('DocTitle', parent=styles['Heading1'], textColor=BRAND_COLOR))
    return styles


def _text(value, placeholder='N/A'):
    value = '' if value is None else str(value).strip()
    return escape(value) if value else placeholder


def _company_header(elements, styles, company):
    elements.append(Paragraph(_text(company['name']), styles['DocTitle']))
    for line in (company['address'], company['phone'], company['email']):
        if line:
            elements.append(Paragraph(_text(line), styles['Normal']))
    if company['rtn']:
        elements.append(Paragraph(f"RTN: {_text(company['rtn'])}", styles['Normal']))
    elements.append(Spacer(1, 0.25 * inch))


def _build(elements, title):
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=letter,
        rightMargin=54,
        leftMargin=54,
        topMargin=54,
        bottomMargin=54,
        title=title,
    )
    doc.build(elements)
    buffer.seek(0)
    return buffer.getvalue()


def _label_table(rows):
    table = Table(rows, colWidths=[1.8 * inch, 4.9 * inch])
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ]))
    return table


def _totals_table(rows):
    table = Table(rows, colWidths=[5.0 * inch, 1.7 * inch])
    table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('LINEABOVE', (0, -1), (-1, -1), 1, colors.black),
    ]))
    return table


def generate_quote_pdf(quote, company=None):
    """
    Render a quote.

    Args:
        quote (Quote): stored quote with its items
        company (dict): issuer identity, read from the app config when omitted

    Returns:
        bytes: the PDF document
    """
    try:
        company = company or company_info()
        styles = _styles()
        elements = []

        _company_header(elements, styles, company)
        elements.append(Paragraph(f"COTIZACIÓN #{quote.id}", styles['Heading2']))
        elements.append(Paragraph(
            f"Fecha: {format_long_date_es(quote.quote_date)}", styles['Normal']
        ))
        elements.append(Spacer(1, 0.2 * inch))

        customer_rows = [
            ['Cliente:', Paragraph(_text(quote.customer_name), styles['Normal'])],
            ['Dirección:', Paragraph(_text(quote.customer_address), styles['Normal'])],
            ['Teléfono:', _text(quote.customer_phone)],
        ]
        if quote.customer_rtn:
            customer_rows.append(['RTN:', _text(quote.customer_rtn)])
        elements.append(_label_table(customer_rows))
        elements.append(Spacer(1, 0.25 * inch))

        item_rows = [['Cant.', 'Concepto', 'P. Unit. sin ISV', 'P. Unit. con ISV', 'Total']]
        for item in quote.items:
            concept = _text(item.concept)
            if item.description:
                concept += f"<br/><font size=8>{_text(item.description)}</font>"
            item_rows.append([
                f"{item.quantity:g}",
                Paragraph(concept, styles['Normal']),
                format_money(price_without_isv(item.unit_price, quote.isv_rate)),
                format_money(item.unit_price),
                format_money(line_total(item.quantity, item.unit_price)),
            ])

        items_table = Table(
            item_rows,
            colWidths=[0.6 * inch, 2.6 * inch, 1.2 * inch, 1.2 * inch, 1.1 * inch],
            repeatRows=1,
        )
        items_table.setStyle(TableStyle(HEADER_TABLE_STYLE + [
            ('ALIGN', (2, 1), (-1, -1), 'RIGHT'),
            ('ALIGN', (0, 1), (0, -1), 'CENTER'),
        ]))
        elements.append(items_table)
        elements.append(Spacer(1, 0.2 * inch))

        totals = quote_totals(quote.items, quote.isv_rate)
        rate_label = f"{quote.isv_rate * 100:g}%"
        elements.append(_totals_table([
            ['Subtotal:', format_money(totals['subtotal'])],
            [f'ISV ({rate_label}):', format_money(totals['isv'])],
            ['Total:', format_money(totals['total'])],
        ]))

        if quote.notes:
            elements.append(Spacer(1, 0.25 * inch))
            elements.append(Paragraph('Notas', styles['Heading3']))
            elements.append(Paragraph(_text(quote.notes), styles['Normal']))

        elements.append(Spacer(1, 0.4 * inch))
        elements.append(Paragraph(
            'Precios incluyen ISV. Cotización sujeta a cambios sin previo aviso.', styles['Small']
        ))

        return _build(elements, f"Cotización {quote.id}")

    except Exception as e:
        logger.error(f"Error generating quote PDF: {str(e)}")
        raise


def _months_label(months):
    labels = []
    for entry in months or []:
        labels.append(f"{month_name(entry['month'])} {entry['year']}")
    return ', '.join(labels) if labels else 'N/A'


def _expiry_label(value):
    parsed = parse_date_local(value)
    return format_long_date_es(parsed) if parsed else _text(value)


def generate_receipt_pdf(receipt, company=None):
    """Render an internet payment receipt or an IPTV renewal receipt"""
    try:
        company = company or company_info()
        styles = _styles()
        elements = []

        _company_header(elements, styles, company)
        title = 'RECIBO DE RENOVACIÓN IPTV' if receipt.kind == KIND_TV else 'RECIBO DE PAGO'
        elements.append(Paragraph(f"{title} No. {_text(receipt.number)}", styles['Heading2']))

        issued = parse_date_local(receipt.paid_on)
        elements.append(Paragraph(
            f"Fecha de pago: {format_long_date_es(issued) if issued else _text(receipt.paid_on)}",
            styles['Normal']
        ))
        elements.append(Spacer(1, 0.2 * inch))

        rows = [
            ['Cliente:', Paragraph(_text(receipt.customer_name), styles['Normal'])],
            ['Teléfono:', _text(receipt.customer_phone)],
            ['Dirección:', Paragraph(_text(receipt.customer_address), styles['Normal'])],
            ['Plan:', _text(receipt.plan_name)],
            ['Método de pago:', _text(receipt.method)],
            ['Referencia:', _text(receipt.reference)],
        ]
        if receipt.kind == KIND_TV:
            rows.append(['Expiración anterior:', _expiry_label(receipt.previous_expiry)])
            rows.append(['Nueva expiración:', _expiry_label(receipt.new_expiry)])
        rows.append(['Meses aplicados:', Paragraph(_months_label(receipt.months), styles['Normal'])])
        if receipt.note:
            rows.append(['Observación:', Paragraph(_text(receipt.note), styles['Normal'])])
        elements.append(_label_table(rows))
        elements.append(Spacer(1, 0.3 * inch))

        elements.append(_totals_table([
            ['Recibido:', format_money(receipt.received)],
            ['Cambio:', format_money(receipt.change)],
            ['Total pagado:', format_money(receipt.total)],
        ]))

        elements.append(Spacer(1, 0.4 * inch))
        elements.append(Paragraph('Gracias por su pago.', styles['Normal']))

        return _build(elements, f"Recibo {receipt.number}")

    except Exception as e:
        logger.error(f"Error generating receipt PDF: {str(e)}")
        raise


def pdf_response(data, filename):
    """Wrap PDF bytes in a download response"""
    response = make_response(data)
    response.headers['Content-Type'] = 'application/pdf'
    response.headers['Content-Disposition'] = f'attachment; filename={filename}'
    return response
