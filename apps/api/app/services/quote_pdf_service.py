"""
Quote PDF Generation Service.

Shapes a quote into a flat view model and renders it with reportlab:
letterhead, client/property block, core items, add-ons and VAT totals.
"""

import io
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from html import escape
from typing import Optional, List

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from app.db.enums import PricingType
from app.db.models import Quote

BRAND_COLOR = colors.HexColor("#4a5c4e")
MUTED_COLOR = colors.HexColor("#6b7280")
RULE_COLOR = colors.HexColor("#e5e7eb")
ROW_ALT_COLOR = colors.HexColor("#f9f8f5")


@dataclass
class PdfLineItem:
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal


@dataclass
class PdfParty:
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address_lines: List[str] = field(default_factory=list)


@dataclass
class QuotePdfData:
    """Everything the renderer needs; no ORM objects past this point."""

    quote_number: str
    title: str
    status: str
    pricing_type: str
    fixed_price: Optional[Decimal]
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    notes: Optional[str]
    valid_until: Optional[date]
    created_at: Optional[datetime]
    vat_registered: bool
    vat_number: Optional[str]
    client: PdfParty
    property_lines: List[str]
    core_items: List[PdfLineItem]
    addon_items: List[PdfLineItem]
    org: PdfParty


def _money(amount: Optional[Decimal]) -> str:
    return f"£{(amount or Decimal('0')):,.2f}"


def _quantity(value: Decimal) -> str:
    normalized = value.normalize()
    return f"{normalized:f}" if normalized == normalized.to_integral() else f"{value:f}"


def _long_date(value: Optional[date]) -> Optional[str]:
    if not value:
        return None
    return f"{value.day} {value:%B %Y}"


def build_quote_pdf_data(quote: Quote) -> QuotePdfData:
    """Shape a loaded quote (with client, property, org and items) for rendering."""
    org = quote.organization
    client = quote.client
    prop = quote.service_property

    def _items(rows) -> List[PdfLineItem]:
        return [
            PdfLineItem(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                amount=item.amount,
            )
            for item in sorted(rows, key=lambda i: i.sort_order)
        ]

    property_lines: List[str] = []
    if prop:
        property_lines = [
            line for line in (prop.address_line1, prop.address_line2, prop.town, prop.postcode) if line
        ]

    org_lines = [line for line in (org.address_line1, org.address_line2, org.town, org.postcode) if line]

    return QuotePdfData(
        quote_number=quote.quote_number,
        title=quote.title,
        status=quote.status,
        pricing_type=quote.pricing_type,
        fixed_price=quote.fixed_price,
        subtotal=quote.subtotal,
        tax_rate=quote.tax_rate,
        tax_amount=quote.tax_amount,
        total=quote.total,
        notes=quote.notes,
        valid_until=quote.valid_until,
        created_at=quote.created_at,
        vat_registered=bool(org.vat_registered),
        vat_number=org.vat_number,
        client=PdfParty(name=client.full_name, email=client.email, phone=client.phone),
        property_lines=property_lines,
        core_items=_items(quote.core_items),
        addon_items=_items(quote.addon_items),
        org=PdfParty(name=org.name, email=org.email, phone=org.phone, address_lines=org_lines),
    )


def _items_table(rows: List[PdfLineItem], heading: str) -> Table:
    data = [[heading, "Qty", "Unit price", "Amount"]]
    for row in rows:
        data.append(
            [
                Paragraph(escape(row.description), getSampleStyleSheet()["Normal"]),
                _quantity(row.quantity),
                _money(row.unit_price),
                _money(row.amount),
            ]
        )
    table = Table(data, colWidths=[90 * mm, 20 * mm, 30 * mm, 30 * mm], repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), BRAND_COLOR),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("LINEBELOW", (0, 0), (-1, -1), 0.5, RULE_COLOR),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, ROW_ALT_COLOR]),
                ("TOPPADDING", (0, 0), (-1, -1), 5),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
            ]
        )
    )
    return table


def _totals_table(data: QuotePdfData) -> Table:
    rows = []
    if data.vat_registered and data.tax_amount:
        rows.append(["Subtotal (ex VAT)", _money(data.subtotal)])
        rows.append([f"VAT @ {data.tax_rate.normalize():f}%", _money(data.tax_amount)])
    rows.append(["Total", _money(data.total)])

    table = Table(rows, colWidths=[40 * mm, 30 * mm], hAlign="RIGHT")
    table.setStyle(
        TableStyle(
            [
                ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
                ("FONTSIZE", (0, 0), (-1, -1), 10),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                ("LINEABOVE", (0, -1), (-1, -1), 1, BRAND_COLOR),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    return table


def render_quote_pdf(data: QuotePdfData) -> bytes:
    """
    Render a quote document.

    Args:
        data: View model from build_quote_pdf_data

    Returns:
        PDF bytes
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=20 * mm,
        leftMargin=20 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=f"Quote {data.quote_number}",
        author=data.org.name,
    )

    styles = getSampleStyleSheet()
    org_style = ParagraphStyle(
        "OrgName",
        parent=styles["Heading1"],
        fontSize=18,
        textColor=BRAND_COLOR,
        spaceAfter=4,
    )
    muted_style = ParagraphStyle(
        "Muted",
        parent=styles["Normal"],
        fontSize=9,
        textColor=MUTED_COLOR,
        leading=12,
    )
    heading_style = ParagraphStyle(
        "QuoteHeading",
        parent=styles["Heading2"],
        fontSize=13,
        spaceBefore=12,
        spaceAfter=6,
    )
    normal_style = styles["Normal"]

    elements = []

    # Letterhead
    elements.append(Paragraph(escape(data.org.name), org_style))
    contact = [*data.org.address_lines, data.org.email, data.org.phone]
    if data.vat_registered and data.vat_number:
        contact.append(f"VAT no. {data.vat_number}")
    elements.append(Paragraph("<br/>".join(escape(c) for c in contact if c), muted_style))
    elements.append(Spacer(1, 10))

    # Quote header
    elements.append(Paragraph(f"Quote {escape(data.quote_number)}", heading_style))
    meta = []
    issued = _long_date(data.created_at.date() if data.created_at else None)
    if issued:
        meta.append(f"Issued {issued}")
    valid_until = _long_date(data.valid_until)
    if valid_until:
        meta.append(f"Valid until {valid_until}")
    if meta:
        elements.append(Paragraph(" | ".join(meta), muted_style))
    elements.append(Paragraph(f"<b>{escape(data.title)}</b>", normal_style))
    elements.append(Spacer(1, 8))

    # Prepared for
    client_lines = [data.client.name, data.client.email, data.client.phone]
    party_rows = [
        [
            Paragraph("<b>Prepared for</b><br/>" + "<br/>".join(escape(c) for c in client_lines if c), normal_style),
            Paragraph(
                "<b>Property</b><br/>" + "<br/>".join(escape(line) for line in data.property_lines),
                normal_style,
            )
            if data.property_lines
            else "",
        ]
    ]
    party_table = Table(party_rows, colWidths=[85 * mm, 85 * mm])
    party_table.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
    elements.append(party_table)
    elements.append(Spacer(1, 12))

    # Items
    if data.pricing_type == PricingType.ITEMISED.value:
        if data.core_items:
            elements.append(_items_table(data.core_items, "Service"))
            elements.append(Spacer(1, 8))
        if data.addon_items:
            elements.append(_items_table(data.addon_items, "Add-ons"))
            elements.append(Spacer(1, 8))
    else:
        elements.append(_items_table(
            [PdfLineItem(data.title, Decimal("1"), data.total, data.total)], "Service"
        ))
        elements.append(Spacer(1, 8))

    elements.append(_totals_table(data))

    if data.notes:
        elements.append(Paragraph("Notes", heading_style))
        elements.append(Paragraph(escape(data.notes).replace("\n", "<br/>"), normal_style))

    doc.build(elements)
    pdf_bytes = buffer.getvalue()
    buffer.close()
    return pdf_bytes
