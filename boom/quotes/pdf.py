"""
Génération du PDF d'un devis avec ReportLab.

Le document est construit à partir d'un `QuoteRead`: les lignes reprennent
les désignations et prix figés à la création du devis, les totaux sont ceux
enregistrés sur le devis (aucun recalcul).
"""
import io
import logging
from datetime import datetime
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from boom.config import settings
from boom.core.utils import as_utc
from boom.pricing.calculator import format_price, THOUSANDS_SEPARATOR
from boom.quotes.exceptions import QuotePdfGenerationException
from boom.quotes.models import QuoteRead

logger = logging.getLogger(__name__)

TERMS = [
    "Conditions de règlement : à la commande par CB, virement ou chèque.",
    "Ce devis est valable jusqu'à la date indiquée ci-dessus.",
    "Les prix sont exprimés en euros hors taxes (HT).",
]

def _money(value: float) -> str:
    # Les polices standard n'ont pas l'espace fine insécable
    return format_price(value).replace(THOUSANDS_SEPARATOR, " ")

def _date(value: Optional[datetime]) -> str:
    if value is None:
        return "non définie"
    return as_utc(value).strftime("%d/%m/%Y")

def _customer_lines(quote: QuoteRead) -> List[str]:
    customer = quote.customer
    if customer is None:
        return []
    name = f"{customer.first_name or ''} {customer.last_name or ''}".strip()
    lines = [escape(part) for part in (customer.company_name, name, customer.email) if part]
    return ["<b>Client</b>"] + lines

def render_quote_pdf(quote: QuoteRead) -> bytes:
    """
    Construit le PDF d'un devis et retourne ses octets.

    Contenu: en-tête société, numéro, dates d'émission et de validité, client
    (lectures admin), tableau des lignes, totaux HT/TVA/TTC, notes et
    conditions. La colonne remise n'apparaît que si une ligne est remisée.

    Raises:
        QuotePdfGenerationException: Si ReportLab échoue à construire le document.
    """
    logger.info(f"[QuotePDF] Génération PDF devis {quote.quote_number} (ID {quote.id})")

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4, title=f"Devis {quote.quote_number}",
        leftMargin=18 * mm, rightMargin=18 * mm, topMargin=18 * mm, bottomMargin=20 * mm,
    )
    primary_color = colors.HexColor(settings.PDF_PRIMARY_COLOR_HEX)
    styles = getSampleStyleSheet()
    normal_style = styles["Normal"]
    title_style = ParagraphStyle(name="QuoteTitle", parent=styles["Heading1"], textColor=primary_color)
    right_style = ParagraphStyle(name="Right", parent=normal_style, alignment=2)
    terms_style = ParagraphStyle(name="Terms", parent=normal_style, fontSize=8, textColor=colors.gray)
    footer_style = ParagraphStyle(name="Footer", parent=normal_style, fontSize=8, textColor=colors.gray, alignment=1)

    elements = [
        Paragraph(settings.PDF_COMPANY_INFO_HTML, normal_style),
        Spacer(1, 8 * mm),
        Paragraph("DEVIS", title_style),
        Paragraph(f"N° {escape(quote.quote_number)}", normal_style),
        Paragraph(f"Date : {_date(quote.created_at)}", normal_style),
        Paragraph(f"Valide jusqu'au : {_date(quote.valid_until)}", normal_style),
    ]
    customer_lines = _customer_lines(quote)
    if customer_lines:
        elements.append(Spacer(1, 4 * mm))
        elements.append(Paragraph("<br/>".join(customer_lines), right_style))
    elements.append(Spacer(1, 8 * mm))

    # Lignes du devis
    has_discount = any(item.discount_rate for item in quote.items)
    header = ["Désignation", "Réf.", "Qté", "Prix unit. HT"]
    if has_discount:
        header.append("Remise")
    header.append("Total HT")
    table_data = [header]
    for item in quote.items:
        row = [
            Paragraph(escape(item.product_name), normal_style),
            item.product_sku,
            str(item.quantity),
            _money(item.unit_price_ht),
        ]
        if has_discount:
            row.append(f"{item.discount_rate:g} %" if item.discount_rate else "")
        row.append(_money(item.line_total_ht))
        table_data.append(row)

    items_table = Table(table_data, repeatRows=1)
    items_table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), primary_color),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (2, 1), (-1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 6 * mm))

    # Totaux figés du devis
    totals_data = [["Sous-total HT", _money(quote.subtotal_ht)]]
    if quote.discount_amount > 0:
        totals_data.append(["Remise", f"-{_money(quote.discount_amount)}"])
    totals_data += [
        ["Total HT", _money(quote.total_ht)],
        [f"TVA ({quote.tax_rate:g} %)", _money(quote.tax_amount)],
        ["Total TTC", _money(quote.total_ttc)],
    ]
    totals_table = Table(totals_data, hAlign="RIGHT")
    totals_table.setStyle(TableStyle([
        ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("LINEABOVE", (0, -1), (-1, -1), 1, primary_color),
    ]))
    elements.append(totals_table)

    if quote.notes:
        elements.append(Spacer(1, 6 * mm))
        elements.append(Paragraph(f"<b>Notes :</b> {escape(quote.notes)}", normal_style))

    elements.append(Spacer(1, 8 * mm))
    for term in TERMS:
        elements.append(Paragraph(escape(term), terms_style))

    def add_footer(canvas, doc):
        canvas.saveState()
        footer = Paragraph(escape(settings.PDF_FOOTER_TEXT), footer_style)
        _, height = footer.wrap(doc.width, doc.bottomMargin)
        footer.drawOn(canvas, doc.leftMargin, height + 4 * mm)
        canvas.restoreState()

    try:
        doc.build(elements, onFirstPage=add_footer, onLaterPages=add_footer)
    except Exception as e:
        logger.error(f"[QuotePDF] Erreur ReportLab build() pour devis {quote.quote_number}: {e}", exc_info=True)
        raise QuotePdfGenerationException(f"Erreur lors de la construction du PDF: {e}", original_exception=e)

    pdf_bytes = buffer.getvalue()
    buffer.close()
    logger.info(f"[QuotePDF] PDF devis {quote.quote_number} généré ({len(pdf_bytes)} octets).")
    return pdf_bytes
