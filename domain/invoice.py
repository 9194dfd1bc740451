"""
Invoice Domain Models

Structured invoice record rendered to PDF by services.invoice_pdf.
Amounts are in the invoice currency; tax_rate is a percentage.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class InvoiceParty:
    """The customer being billed."""
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    zip: str = ""
    city: str = ""
    country: str = ""
    cvr: str = ""

    @property
    def city_line(self) -> str:
        return f"{self.zip} {self.city}".strip()


@dataclass(frozen=True)
class InvoiceCompany:
    """The issuing print shop."""
    name: str
    address: str = ""
    zip: str = ""
    city: str = ""
    country: str = ""
    cvr: str = ""
    phone: str = ""
    email: str = ""
    bank_name: str = ""
    bank_account: str = ""

    @property
    def has_bank_details(self) -> bool:
        return bool(self.bank_name and self.bank_account)

    @classmethod
    def from_settings(cls, data: dict) -> "InvoiceCompany":
        return cls(**{k: str(v) for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass(frozen=True)
class InvoiceLine:
    description: str
    quantity: int
    unit_price: float

    @property
    def total(self) -> float:
        return round(self.quantity * self.unit_price, 2)


@dataclass(frozen=True)
class Invoice:
    """
    An invoice ready for rendering.

    Use build_invoice() to construct one from lines so that subtotal,
    tax and total are consistent.
    """
    invoice_number: str
    order_number: str
    issue_date: date
    customer: InvoiceParty
    company: InvoiceCompany
    lines: tuple[InvoiceLine, ...] = field(default_factory=tuple)
    subtotal: float = 0.0
    tax_rate: float = 25.0
    tax_amount: float = 0.0
    total: float = 0.0
    currency: str = "DKK"
    due_date: Optional[date] = None
    notes: str = ""
    is_paid: bool = False
    paid_date: Optional[date] = None

    @property
    def filename(self) -> str:
        return f"Faktura-{self.invoice_number}.pdf"


def build_invoice(
    invoice_number: str,
    order_number: str,
    customer: InvoiceParty,
    company: InvoiceCompany,
    lines: list[InvoiceLine],
    tax_rate: float = 25.0,
    issue_date: Optional[date] = None,
    **extra,
) -> Invoice:
    """
    Build an Invoice with totals computed from its lines.

    Example:
        >>> inv = build_invoice("1001", "A-1", InvoiceParty("Kunde"), InvoiceCompany("Tryk"),
        ...                     [InvoiceLine("Flyers", 2, 100.0)])
        >>> (inv.subtotal, inv.tax_amount, inv.total)
        (200.0, 50.0, 250.0)
    """
    subtotal = round(sum(line.total for line in lines), 2)
    tax_amount = round(subtotal * tax_rate / 100, 2)
    return Invoice(
        invoice_number=invoice_number,
        order_number=order_number,
        issue_date=issue_date or date.today(),
        customer=customer,
        company=company,
        lines=tuple(lines),
        subtotal=subtotal,
        tax_rate=tax_rate,
        tax_amount=tax_amount,
        total=round(subtotal + tax_amount, 2),
        **extra,
    )
