"""
Invoice Service

Builds invoices from the invoice form (company data and VAT rate from
settings.toml [invoice]) and renders them with services.invoice_pdf.
"""

from datetime import date, timedelta
from typing import Optional
import logging

import pandas as pd

from domain import Invoice, InvoiceCompany, InvoiceLine, InvoiceParty, ValidationError, build_invoice
from domain.converters import safe_float, safe_int, safe_str
from logging_config import setup_logging
from services.invoice_pdf import render_invoice_pdf

logger = setup_logging(__name__, log_file="invoice_service.log")


def lines_from_frame(df: pd.DataFrame) -> list[InvoiceLine]:
    """
    Invoice lines from an edited table with description, quantity, unit_price.

    Rows without a description are skipped.

    Raises:
        ValidationError: A described line has a non-positive quantity or a
            negative unit price
    """
    lines = []
    for position, (_, row) in enumerate(df.iterrows(), start=1):
        description = safe_str(row.get("description")).strip()
        if not description:
            continue
        quantity = safe_int(row.get("quantity"))
        unit_price = safe_float(row.get("unit_price"))
        if quantity <= 0:
            raise ValidationError(f"Linje {position}: antal skal være større end 0")
        if unit_price < 0:
            raise ValidationError(f"Linje {position}: stykpris kan ikke være negativ")
        lines.append(InvoiceLine(description, quantity, unit_price))
    return lines


class InvoiceService:
    """Invoice construction and rendering."""

    def __init__(
        self,
        company: InvoiceCompany,
        tax_rate: float = 25.0,
        payment_days: int = 8,
        currency: str = "DKK",
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.company = company
        self.tax_rate = tax_rate
        self.payment_days = payment_days
        self.currency = currency
        self._logger = logger_instance or logger

    @classmethod
    def create_default(cls) -> "InvoiceService":
        from settings_service import SettingsService

        settings = SettingsService()
        return cls(
            InvoiceCompany.from_settings(settings.company),
            tax_rate=settings.tax_rate,
            payment_days=settings.payment_days,
            currency=settings.settings_dict["invoice"].get("currency", "DKK"),
        )

    def create_invoice(
        self,
        invoice_number: str,
        customer: InvoiceParty,
        lines: list[InvoiceLine],
        order_number: str = "",
        issue_date: Optional[date] = None,
        notes: str = "",
        is_paid: bool = False,
        paid_date: Optional[date] = None,
    ) -> Invoice:
        """
        Raises:
            ValidationError: Missing invoice number, customer name or lines
        """
        if not invoice_number.strip():
            raise ValidationError("Fakturanummer mangler")
        if not customer.name.strip():
            raise ValidationError("Kundens navn mangler")
        if not lines:
            raise ValidationError("Fakturaen har ingen linjer")

        issue_date = issue_date or date.today()
        return build_invoice(
            invoice_number.strip(),
            order_number.strip(),
            customer,
            self.company,
            lines,
            tax_rate=self.tax_rate,
            issue_date=issue_date,
            currency=self.currency,
            due_date=issue_date + timedelta(days=self.payment_days),
            notes=notes,
            is_paid=is_paid,
            paid_date=(paid_date or issue_date) if is_paid else None,
        )

    def render(self, invoice: Invoice) -> bytes:
        return render_invoice_pdf(invoice)


def get_invoice_service() -> InvoiceService:
    """Get or create an InvoiceService instance (session-scoped)."""
    try:
        from state import get_service
        return get_service('invoice_service', InvoiceService.create_default)
    except ImportError:
        logger.debug("state module unavailable, creating new InvoiceService instance")
        return InvoiceService.create_default()
