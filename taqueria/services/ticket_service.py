"""Customer ticket PDF for thermal printers (80 mm paper)."""
from datetime import datetime
from io import BytesIO
from typing import Any, Dict

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from taqueria.models import Order
from taqueria.utils.money import format_money

TICKET_WIDTH = 80 * mm

PAYMENT_LABELS = {
    'cash': 'Efectivo',
    'card': 'Tarjeta',
    'transfer': 'Transferencia',
}

ORDER_TYPE_LABELS = {
    'dine_in': 'Comer aquí',
    'takeout': 'Para llevar',
}


def _ticket_height(order: Order) -> float:
    rows = sum(1 + len(item.modifiers) for item in order.items)
    return (110 + rows * 7) * mm


def render_ticket_pdf(order: Order, business_info: Dict[str, Any]) -> BytesIO:
    """
    Render the ticket of a stored order.

    ``business_info`` carries ``name``, ``address`` and ``phone``.
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=(TICKET_WIDTH, _ticket_height(order)),
        rightMargin=4*mm,
        leftMargin=4*mm,
        topMargin=4*mm,
        bottomMargin=4*mm,
        title=order.order_number
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'TicketTitle',
        parent=styles['Heading2'],
        fontSize=12,
        alignment=TA_CENTER,
        spaceAfter=2,
        fontName='Helvetica-Bold'
    )
    center_style = ParagraphStyle(
        'TicketCenter',
        parent=styles['Normal'],
        fontSize=7,
        alignment=TA_CENTER,
        leading=9
    )
    small_style = ParagraphStyle('TicketSmall', parent=styles['Normal'], fontSize=7, leading=9)

    # 1. Business header
    elements.append(Paragraph(business_info.get('name') or 'Taquería', title_style))
    if business_info.get('address'):
        elements.append(Paragraph(business_info['address'], center_style))
    if business_info.get('phone'):
        elements.append(Paragraph(f"Tel: {business_info['phone']}", center_style))
    elements.append(Spacer(1, 3*mm))

    # 2. Order metadata
    created = order.created_at or datetime.now()
    meta = [
        f"<b>Orden:</b> {order.order_number}",
        f"<b>Fecha:</b> {created.strftime('%d/%m/%Y %H:%M')}",
        f"<b>Tipo:</b> {ORDER_TYPE_LABELS.get(order.type.value, order.type.value)}",
    ]
    if order.table is not None:
        meta.append(f"<b>Mesa:</b> {order.table.number}")
    if order.customer_name:
        meta.append(f"<b>Cliente:</b> {order.customer_name}")
    for line in meta:
        elements.append(Paragraph(line, small_style))
    elements.append(Spacer(1, 2*mm))

    # 3. Lines
    data = [['Cant', 'Producto', 'Importe']]
    for item in order.items:
        data.append([str(item.quantity), item.product_name, format_money(item.total_price)])
        for modifier in item.modifiers:
            price = f"+{format_money(modifier.price)}" if modifier.price else ''
            data.append(['', f"  {modifier.name}", price])

    table = Table(data, colWidths=[9*mm, 45*mm, 18*mm])
    table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 7),
        ('ALIGN', (2, 0), (2, -1), 'RIGHT'),
        ('LINEBELOW', (0, 0), (-1, 0), 0.5, colors.black),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 1),
        ('TOPPADDING', (0, 0), (-1, -1), 1),
    ]))
    elements.append(table)
    elements.append(Spacer(1, 2*mm))

    # 4. Totals
    totals = Table([
        ['Subtotal:', format_money(order.subtotal)],
        ['IVA:', format_money(order.tax)],
        ['TOTAL:', format_money(order.total)],
    ], colWidths=[50*mm, 22*mm])
    totals.setStyle(TableStyle([
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('FONTNAME', (0, 2), (-1, 2), 'Helvetica-Bold'),
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('LINEABOVE', (0, 2), (-1, 2), 0.5, colors.black),
    ]))
    elements.append(totals)

    if order.payment_method is not None:
        method = PAYMENT_LABELS.get(order.payment_method.value, order.payment_method.value)
        elements.append(Paragraph(f"<b>Pago:</b> {method}", small_style))

    elements.append(Spacer(1, 3*mm))
    elements.append(Paragraph("¡Gracias por su visita!", center_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer
