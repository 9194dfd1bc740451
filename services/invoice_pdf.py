"""
services/invoice_pdf.py - Invoice PDF rendering

Renders an Invoice into a fixed-layout A4 PDF with ReportLab:
- header with company details and invoice meta (Fakturanr, Ordrenr, Dato, Forfald)
- FAKTURERES TIL block
- line item table; the header row repeats on every page
- Subtotal, Moms and Total
- green BETALT stamp when the invoice is paid
- Betalingsoplysninger and Bemærkninger
- footer "Tak for din ordre!" and page number on every page

Usage:
    from services.invoice_pdf import render_invoice_pdf

    pdf_bytes = render_invoice_pdf(invoice)
"""

import io
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from domain import Invoice
from domain.converters import format_date_dk, format_dkk
from logging_config import setup_logging

logger = setup_logging(__name__, log_file="invoice_pdf.log")

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

PRIMARY = colors.Color(41 / 255, 98 / 255, 1)
TEXT = colors.Color(33 / 255, 33 / 255, 33 / 255)
GRAY = colors.Color(128 / 255, 128 / 255, 128 / 255)
LIGHT = colors.Color(245 / 255, 247 / 255, 250 / 255)
PAID_GREEN = colors.Color(22 / 255, 163 / 255, 74 / 255)

CONTENT_WIDTH = A4[0] - 30 * mm
ITEM_COL_WIDTHS = [95 * mm, 20 * mm, 30 * mm, 35 * mm]


def _money(amount: float, invoice: Invoice) -> str:
    if invoice.currency.upper() == "DKK":
        return format_dkk(amount)
    return format_dkk(amount, suffix=f" {invoice.currency}")


class InvoicePDF:
    """Builder for one invoice document."""

    def __init__(self, buffer: io.BytesIO, invoice: Invoice):
        self.buffer = buffer
        self.invoice = invoice
        self.elements = []
        self._init_doc()
        self._init_styles()

    def _init_doc(self):
        self.doc = SimpleDocTemplate(
            self.buffer,
            pagesize=A4,
            leftMargin=15 * mm,
            rightMargin=15 * mm,
            topMargin=15 * mm,
            bottomMargin=22 * mm,
            title=f"Faktura {self.invoice.invoice_number}",
            author=self.invoice.company.name,
        )

    def _init_styles(self):
        self.company_style = ParagraphStyle("Company", fontName=FONT_BOLD, fontSize=20, leading=24, textColor=TEXT)
        self.title_style = ParagraphStyle(
            "Title", fontName=FONT_BOLD, fontSize=26, leading=30, alignment=TA_RIGHT, textColor=PRIMARY,
        )
        self.body_style = ParagraphStyle("Body", fontName=FONT, fontSize=9, leading=12, textColor=TEXT)
        self.meta_style = ParagraphStyle("Meta", parent=self.body_style, alignment=TA_RIGHT)
        self.label_style = ParagraphStyle("Label", fontName=FONT_BOLD, fontSize=10, leading=14, textColor=PRIMARY)
        self.customer_style = ParagraphStyle("Customer", fontName=FONT_BOLD, fontSize=11, leading=14, textColor=TEXT)
        self.cell_style = ParagraphStyle("Cell", fontName=FONT, fontSize=10, leading=12, textColor=TEXT)
        self.stamp_style = ParagraphStyle(
            "Stamp", fontName=FONT_BOLD, fontSize=12, leading=14, alignment=TA_CENTER, textColor=PAID_GREEN,
        )

    def build(self) -> None:
        self._add_header()
        self._add_customer()
        self._add_items()
        self._add_totals()
        if self.invoice.is_paid:
            self._add_paid_stamp()
        self._add_payment_details()
        self._add_notes()
        self.doc.build(self.elements, onFirstPage=self._draw_footer, onLaterPages=self._draw_footer)

    # ------------------------------------------------------------------

    def _lines(self, *texts: str) -> str:
        return "<br/>".join(escape(t) for t in texts if t)

    def _add_header(self):
        inv = self.invoice
        company = inv.company
        left = [
            Paragraph(escape(company.name), self.company_style),
            Paragraph(self._lines(
                company.address,
                f"{company.zip} {company.city}".strip(),
                f"CVR: {company.cvr}" if company.cvr else "",
                f"Tlf: {company.phone}" if company.phone else "",
                company.email,
            ), self.body_style),
        ]
        right = [
            Paragraph("FAKTURA", self.title_style),
            Paragraph(self._lines(
                f"Fakturanr: {inv.invoice_number}",
                f"Ordrenr: {inv.order_number}" if inv.order_number else "",
                f"Dato: {format_date_dk(inv.issue_date)}",
                f"Forfald: {format_date_dk(inv.due_date)}" if inv.due_date else "",
            ), self.meta_style),
        ]
        table = Table([[left, right]], colWidths=[CONTENT_WIDTH * 0.55, CONTENT_WIDTH * 0.45])
        table.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LEFTPADDING", (0, 0), (-1, -1), 0),
            ("RIGHTPADDING", (0, 0), (-1, -1), 0),
            ("LINEBELOW", (0, 0), (-1, 0), 1, PRIMARY),
            ("BOTTOMPADDING", (0, 0), (-1, 0), 6 * mm),
        ]))
        self.elements.append(table)
        self.elements.append(Spacer(1, 8 * mm))

    def _add_customer(self):
        customer = self.invoice.customer
        self.elements.append(Paragraph("FAKTURERES TIL:", self.label_style))
        self.elements.append(Paragraph(escape(customer.name), self.customer_style))
        details = self._lines(
            customer.address,
            customer.city_line,
            customer.email,
            customer.phone,
            f"CVR: {customer.cvr}" if customer.cvr else "",
        )
        if details:
            self.elements.append(Paragraph(details, self.body_style))
        self.elements.append(Spacer(1, 8 * mm))

    def _add_items(self):
        inv = self.invoice
        data = [["Beskrivelse", "Antal", "Stk. pris", "Beløb"]]
        for line in inv.lines:
            data.append([
                Paragraph(escape(line.description), self.cell_style),
                str(line.quantity),
                _money(line.unit_price, inv),
                _money(line.total, inv),
            ])

        table = Table(data, colWidths=ITEM_COL_WIDTHS, repeatRows=1)
        table.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (-1, 0), FONT_BOLD),
            ("FONTNAME", (0, 1), (-1, -1), FONT),
            ("FONTSIZE", (0, 0), (-1, 0), 9),
            ("FONTSIZE", (0, 1), (-1, -1), 10),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("BACKGROUND", (0, 0), (-1, 0), PRIMARY),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, LIGHT]),
            ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("LINEBELOW", (0, -1), (-1, -1), 0.5, GRAY),
            ("TOPPADDING", (0, 0), (-1, -1), 4),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ]))
        self.elements.append(table)
        self.elements.append(Spacer(1, 5 * mm))

    def _add_totals(self):
        inv = self.invoice
        tax_rate = f"{inv.tax_rate:g}".replace(".", ",")
        data = [
            ["Subtotal:", _money(inv.subtotal, inv)],
            [f"Moms ({tax_rate}%):", _money(inv.tax_amount, inv)],
            ["Total:", _money(inv.total, inv)],
        ]
        table = Table(data, colWidths=[35 * mm, 40 * mm], hAlign="RIGHT")
        table.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (-1, 1), FONT),
            ("FONTSIZE", (0, 0), (-1, 1), 10),
            ("FONTNAME", (0, 2), (-1, 2), FONT_BOLD),
            ("FONTSIZE", (0, 2), (-1, 2), 14),
            ("TEXTCOLOR", (0, 2), (-1, 2), PRIMARY),
            ("LINEABOVE", (0, 2), (-1, 2), 1, PRIMARY),
            ("TOPPADDING", (0, 2), (-1, 2), 6),
            ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ]))
        self.elements.append(table)
        self.elements.append(Spacer(1, 6 * mm))

    def _add_paid_stamp(self):
        inv = self.invoice
        text = "BETALT"
        if inv.paid_date:
            text += f"<br/><font size=9>Betalt d. {format_date_dk(inv.paid_date)}</font>"
        stamp = Table([[Paragraph(text, self.stamp_style)]], colWidths=[50 * mm], hAlign="LEFT")
        stamp.setStyle(TableStyle([
            ("BOX", (0, 0), (-1, -1), 2, PAID_GREEN),
            ("TOPPADDING", (0, 0), (-1, -1), 4),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ]))
        self.elements.append(stamp)
        self.elements.append(Spacer(1, 6 * mm))

    def _add_payment_details(self):
        company = self.invoice.company
        if not company.has_bank_details:
            return
        self.elements.append(Paragraph("Betalingsoplysninger:", self.label_style))
        self.elements.append(Paragraph(self._lines(
            f"Bank: {company.bank_name}",
            f"Konto: {company.bank_account}",
            f"Angiv venligst fakturanr. {self.invoice.invoice_number} ved betaling",
        ), self.body_style))
        self.elements.append(Spacer(1, 5 * mm))

    def _add_notes(self):
        notes = self.invoice.notes.strip()
        if not notes:
            return
        self.elements.append(Paragraph("Bemærkninger:", self.label_style))
        self.elements.append(Paragraph(escape(notes).replace("\n", "<br/>"), self.body_style))

    def _draw_footer(self, canvas, doc):
        canvas.saveState()
        width = A4[0]
        canvas.setFont(FONT, 8)
        canvas.setFillColor(GRAY)
        canvas.drawCentredString(width / 2, 12 * mm, "Tak for din ordre!")
        company = self.invoice.company
        company_line = " · ".join(p for p in (company.name, f"CVR {company.cvr}" if company.cvr else "", company.email) if p)
        canvas.drawCentredString(width / 2, 8 * mm, company_line)
        canvas.drawRightString(width - 15 * mm, 8 * mm, f"Side {doc.page}")
        canvas.restoreState()


def render_invoice_pdf(invoice: Invoice) -> bytes:
    """Render an invoice and return the PDF bytes."""
    buffer = io.BytesIO()
    InvoicePDF(buffer, invoice).build()
    pdf = buffer.getvalue()
    logger.info(f"Rendered invoice {invoice.invoice_number}: {len(invoice.lines)} lines, {len(pdf)} bytes")
    return pdf
