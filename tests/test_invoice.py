"""
Tests for invoice construction and PDF rendering.
"""
from datetime import date

import pandas as pd
import pytest

from domain import InvoiceCompany, InvoiceLine, InvoiceParty, ValidationError, build_invoice
from domain.converters import format_date_dk, format_dkk
from services.invoice_pdf import render_invoice_pdf
from services.invoice_service import InvoiceService, lines_from_frame

COMPANY = InvoiceCompany("Trykkeriet ApS", cvr="12345678", bank_name="Danske Bank", bank_account="1234 5678901")
CUSTOMER = InvoiceParty("Kunde A/S", email="kunde@example.dk", zip="8000", city="Aarhus")


@pytest.fixture
def service():
    return InvoiceService(COMPANY, tax_rate=25.0, payment_days=14)


class TestBuildInvoice:
    def test_totals_from_lines(self):
        invoice = build_invoice(
            "1001", "A-1", CUSTOMER, COMPANY,
            [InvoiceLine("Flyers A5", 500, 0.9), InvoiceLine("Levering", 1, 49.5)],
        )
        assert invoice.subtotal == 499.5
        assert invoice.tax_amount == 124.88
        assert invoice.total == 624.38
        assert invoice.filename == "Faktura-1001.pdf"

    def test_line_total_rounded(self):
        assert InvoiceLine("x", 3, 0.333).total == 1.0


class TestLinesFromFrame:
    def test_blank_descriptions_skipped(self):
        df = pd.DataFrame([
            {"description": "Visitkort", "quantity": 250, "unit_price": 1.2},
            {"description": "  ", "quantity": 0, "unit_price": None},
            {"description": None, "quantity": None, "unit_price": None},
        ])
        assert lines_from_frame(df) == [InvoiceLine("Visitkort", 250, 1.2)]

    @pytest.mark.parametrize("quantity,unit_price", [(0, 10), (1, -5)])
    def test_invalid_line(self, quantity, unit_price):
        df = pd.DataFrame([{"description": "Plakat", "quantity": quantity, "unit_price": unit_price}])
        with pytest.raises(ValidationError):
            lines_from_frame(df)


class TestInvoiceService:
    def test_due_date_and_company(self, service):
        invoice = service.create_invoice(" 1002 ", CUSTOMER, [InvoiceLine("Flyers", 1, 100)], issue_date=date(2026, 3, 1))
        assert invoice.invoice_number == "1002"
        assert invoice.due_date == date(2026, 3, 15)
        assert invoice.company == COMPANY
        assert invoice.total == 125.0
        assert invoice.paid_date is None

    def test_paid_defaults_to_issue_date(self, service):
        invoice = service.create_invoice(
            "1003", CUSTOMER, [InvoiceLine("Flyers", 1, 100)], issue_date=date(2026, 3, 1), is_paid=True,
        )
        assert invoice.paid_date == date(2026, 3, 1)

    @pytest.mark.parametrize("number,customer,lines", [
        ("", CUSTOMER, [InvoiceLine("x", 1, 1)]),
        ("1", InvoiceParty(" "), [InvoiceLine("x", 1, 1)]),
        ("1", CUSTOMER, []),
    ])
    def test_missing_fields(self, service, number, customer, lines):
        with pytest.raises(ValidationError):
            service.create_invoice(number, customer, lines)

    def test_company_from_settings_ignores_unknown_keys(self):
        company = InvoiceCompany.from_settings({"name": "Tryk", "cvr": 12345678, "logo": "x.png"})
        assert company == InvoiceCompany("Tryk", cvr="12345678")


class TestRenderPdf:
    def test_renders_pdf_bytes(self, service):
        invoice = service.create_invoice(
            "1004", CUSTOMER, [InvoiceLine("Flyers <A5> & foldere", 500, 0.9)],
            notes="Levering uge 12\nRing før levering", is_paid=True,
        )
        pdf = service.render(invoice)
        assert pdf.startswith(b"%PDF")
        assert pdf.rstrip().endswith(b"%%EOF")

    def test_long_invoice_without_bank_details(self):
        lines = [InvoiceLine(f"Linje {i}", 1, 10) for i in range(80)]
        invoice = build_invoice("1005", "", CUSTOMER, InvoiceCompany("Tryk"), lines, currency="EUR")
        assert render_invoice_pdf(invoice).startswith(b"%PDF")


def test_format_dkk():
    assert format_dkk(1234.5) == "1.234,50 kr."
    assert format_dkk(1234567, decimals=0, suffix="") == "1.234.567"


def test_format_date_dk():
    assert format_date_dk(date(2026, 1, 5)) == "05.01.2026"
    assert format_date_dk(None) == ""
