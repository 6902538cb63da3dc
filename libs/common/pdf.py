"""
PDF generation utilities using ReportLab.

Receipts come in three layouts:

- ``default``: full A4 receipt with the recipient contact block
- ``compact``: dense layout under the logo and company header, fits long orders
- ``standard``: company header and logo at regular sizing, signature line
"""

import io
import os
from datetime import datetime
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch, mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import (
    HRFlowable,
    Image,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from libs.common.currency import format_cents

RECEIPT_VARIANTS = ("default", "compact", "standard")

BRAND_COLOR = colors.HexColor("#4A90E2")
MUTED_COLOR = colors.HexColor("#64748b")
GRID_COLOR = colors.HexColor("#e2e8f0")

_FONT_REGULAR = "Helvetica"
_FONT_BOLD = "Helvetica-Bold"


def register_receipt_fonts(
    regular_path: Optional[str] = None, bold_path: Optional[str] = None
) -> tuple[str, str]:
    """
    Register TTF fonts for receipts and return ``(regular, bold)`` font names.

    The built-in Helvetica lacks Cyrillic glyphs, so deployments printing
    Ukrainian names should point these at a Unicode TTF (e.g. Noto Sans).
    Missing files fall back to Helvetica.
    """
    regular, bold = _FONT_REGULAR, _FONT_BOLD
    if regular_path and os.path.isfile(regular_path):
        pdfmetrics.registerFont(TTFont("ReceiptSans", regular_path))
        regular = bold = "ReceiptSans"
    if bold_path and os.path.isfile(bold_path):
        pdfmetrics.registerFont(TTFont("ReceiptSans-Bold", bold_path))
        bold = "ReceiptSans-Bold"
    return regular, bold


def _text(value) -> str:
    return escape(str(value)) if value is not None else ""


def generate_receipt_pdf(
    *,
    receipt_number: str,
    order_date: datetime,
    recipient: dict,  # {"name": str, "email": str|None, "phone": str|None, "address": str|None}
    items: List[dict],  # [{"product_name": str, "qty": int, "unit_price_cents": int, "line_total_cents": int}]
    subtotal_cents: int,
    total_cents: int,
    currency: str,
    company_name: str = "",
    logo_path: Optional[str] = None,
    variant: str = "default",
    font_path: Optional[str] = None,
    bold_font_path: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """
    Generate a receipt PDF for an order.

    Returns PDF as bytes; the caller persists and hashes them.
    """
    if variant not in RECEIPT_VARIANTS:
        raise ValueError(f"Unknown receipt variant: {variant}")

    compact = variant == "compact"
    font, bold = register_receipt_fonts(font_path, bold_font_path)
    base_size = 8 if compact else 10
    margin = 20 if compact else 0.75 * inch

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=margin,
        leftMargin=margin,
        topMargin=margin,
        bottomMargin=margin,
        title=f"Receipt {receipt_number}",
    )

    styles = getSampleStyleSheet()
    normal_style = ParagraphStyle(
        "ReceiptNormal",
        parent=styles["Normal"],
        fontName=font,
        fontSize=base_size,
        leading=base_size * 1.3,
    )
    company_style = ParagraphStyle(
        "ReceiptCompany",
        parent=normal_style,
        fontName=bold,
        fontSize=14 if compact else 18,
        leading=(14 if compact else 18) * 1.2,
        textColor=colors.HexColor("#333333"),
    )
    title_style = ParagraphStyle(
        "ReceiptTitle",
        parent=normal_style,
        fontName=bold,
        fontSize=16 if compact else 24,
        leading=(16 if compact else 24) * 1.2,
        alignment=1,
        spaceAfter=4,
    )
    number_style = ParagraphStyle(
        "ReceiptNumber",
        parent=normal_style,
        fontSize=base_size + 2,
        textColor=MUTED_COLOR,
        alignment=1,
    )
    footer_style = ParagraphStyle(
        "ReceiptFooter",
        parent=normal_style,
        fontSize=base_size - 1,
        textColor=MUTED_COLOR,
        alignment=1,
    )

    usable_width = A4[0] - 2 * margin
    elements = []

    # Header
    header_cells = []
    if logo_path and os.path.isfile(logo_path):
        logo_size = (12 if compact else 18) * mm
        logo = Image(logo_path, width=logo_size, height=logo_size, kind="proportional")
        header_cells.append(logo)
    if company_name:
        header_cells.append(Paragraph(_text(company_name), company_style))
    if header_cells:
        logo_column = (14 if compact else 20) * mm
        widths = [usable_width]
        if len(header_cells) == 2:
            widths = [logo_column, usable_width - logo_column]
        header = Table([header_cells], colWidths=widths, hAlign="LEFT")
        header.setStyle(
            TableStyle(
                [
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                    ("LEFTPADDING", (0, 0), (-1, -1), 0),
                ]
            )
        )
        elements.append(header)

    if variant == "standard" or compact:
        elements.append(
            HRFlowable(width="100%", thickness=2, color=BRAND_COLOR, spaceAfter=8)
        )

    elements.append(Paragraph("RECEIPT", title_style))
    elements.append(Paragraph(f"No. {_text(receipt_number)}", number_style))
    elements.append(
        HRFlowable(width="100%", thickness=1, color=colors.black, spaceAfter=8)
    )

    # Order info
    info_data = [
        ["Date:", order_date.strftime("%d.%m.%Y %H:%M")],
        ["Recipient:", Paragraph(_text(recipient.get("name")), normal_style)],
    ]
    if not compact:
        for label, key in (("Email:", "email"), ("Phone:", "phone"), ("Address:", "address")):
            if recipient.get(key):
                info_data.append([label, Paragraph(_text(recipient[key]), normal_style)])

    label_width = (0.9 if compact else 1.3) * inch
    info_table = Table(
        info_data,
        colWidths=[label_width, usable_width - label_width],
        hAlign="LEFT",
    )
    info_table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (0, -1), bold),
                ("FONTNAME", (1, 0), (1, -1), font),
                ("FONTSIZE", (0, 0), (-1, -1), base_size),
                ("TEXTCOLOR", (0, 0), (0, -1), MUTED_COLOR),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 2 if compact else 6),
                ("LEFTPADDING", (0, 0), (-1, -1), 0),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    elements.append(info_table)
    elements.append(Spacer(1, 8 if compact else 16))

    # Items
    item_data = [["Product", "Qty", "Price", "Amount"]]
    for item in items:
        item_data.append(
            [
                Paragraph(_text(item["product_name"]), normal_style),
                str(item["qty"]),
                format_cents(item["unit_price_cents"], currency),
                format_cents(item["line_total_cents"], currency),
            ]
        )

    item_table = Table(
        item_data,
        colWidths=[
            usable_width * 0.5,
            usable_width * 0.12,
            usable_width * 0.19,
            usable_width * 0.19,
        ],
        repeatRows=1,
    )
    header_background = BRAND_COLOR if variant == "standard" else colors.HexColor("#f1f5f9")
    header_text = colors.whitesmoke if variant == "standard" else colors.black
    item_table.setStyle(
        TableStyle(
            [
                # Header
                ("BACKGROUND", (0, 0), (-1, 0), header_background),
                ("TEXTCOLOR", (0, 0), (-1, 0), header_text),
                ("FONTNAME", (0, 0), (-1, 0), bold),
                # Body
                ("FONTNAME", (0, 1), (-1, -1), font),
                ("FONTSIZE", (0, 0), (-1, -1), base_size),
                ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                ("GRID", (0, 0), (-1, -1), 0.5, GRID_COLOR),
                ("PADDING", (0, 0), (-1, -1), 3 if compact else 6),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    elements.append(item_table)
    elements.append(Spacer(1, 6 if compact else 12))

    # Totals
    totals_data = [
        ["Subtotal:", format_cents(subtotal_cents, currency)],
        ["TOTAL:", format_cents(total_cents, currency)],
    ]
    totals_table = Table(
        totals_data,
        colWidths=[usable_width * 0.75, usable_width * 0.25],
    )
    totals_table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, 0), font),
                ("FONTNAME", (0, 1), (-1, 1), bold),
                ("FONTSIZE", (0, 0), (-1, 0), base_size),
                ("FONTSIZE", (0, 1), (-1, 1), base_size + (4 if compact else 6)),
                ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
                ("LINEABOVE", (0, 1), (-1, 1), 1, colors.black),
                ("TOPPADDING", (0, 1), (-1, 1), 6),
            ]
        )
    )
    elements.append(totals_table)
    elements.append(Spacer(1, 20 if compact else 30))

    if variant == "standard":
        signature = Table(
            [["Issued by: ____________________", "Received by: ____________________"]],
            colWidths=[usable_width / 2, usable_width / 2],
        )
        signature.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (-1, -1), font),
                    ("FONTSIZE", (0, 0), (-1, -1), base_size),
                ]
            )
        )
        elements.append(signature)
        elements.append(Spacer(1, 20))

    # Footer
    generated_str = (generated_at or datetime.now()).strftime("%d.%m.%Y %H:%M")
    elements.append(Paragraph("Thank you for your purchase!", footer_style))
    elements.append(Paragraph(f"Receipt generated: {generated_str}", footer_style))

    # Build PDF
    doc.build(elements)
    buffer.seek(0)
    return buffer.getvalue()
