"""
Domain Models Package

Pure models and algorithms of the pricing admin. Nothing in this package
touches Streamlit or the database.

Key Components:
- Enums: AttributeKind, SectionType, UiMode, ColumnRole, PriceSource, AssetKind
- Models: AttributeGroup, AttributeValue, Product, PriceRow, TemplateBankEntry, DesignAsset
- Matrix keys: build_key, build_variant_key, MatrixContext
- Interpolation: interpolate, interpolate_components, round_price, compose_price
- Pricing state: PricingState, AnchorEntry, PricePoint
- Layout: MatrixLayout and its building blocks
- Invoice: Invoice, InvoiceLine, build_invoice
"""

from domain.enums import AssetKind, AttributeKind, ColumnRole, PriceSource, SectionType, UiMode
from domain.errors import (
    CsvImportError,
    NotFoundError,
    PricingAdminError,
    StorageError,
    ValidationError,
)
from domain.models import (
    AttributeGroup,
    AttributeValue,
    DesignAsset,
    PriceRow,
    Product,
    TemplateBankEntry,
    index_values,
    value_name,
)
from domain.matrix_keys import MatrixContext, build_key, build_variant_key, parse_key
from domain.interpolation import (
    AnchorPoint,
    compose_price,
    interpolate,
    interpolate_components,
    round_price,
)
from domain.pricing_state import AnchorEntry, PricePoint, PricingState
from domain.pricing_structure import (
    CsvMeta,
    LayoutColumn,
    LayoutRow,
    MatrixCombination,
    MatrixLayout,
    VerticalAxisConfig,
    matrix_combinations,
)
from domain.invoice import Invoice, InvoiceCompany, InvoiceLine, InvoiceParty, build_invoice

__all__ = [
    # Enums
    "AssetKind",
    "AttributeKind",
    "ColumnRole",
    "PriceSource",
    "SectionType",
    "UiMode",
    # Errors
    "CsvImportError",
    "NotFoundError",
    "PricingAdminError",
    "StorageError",
    "ValidationError",
    # Models
    "AttributeGroup",
    "AttributeValue",
    "DesignAsset",
    "PriceRow",
    "Product",
    "TemplateBankEntry",
    "index_values",
    "value_name",
    # Matrix keys
    "MatrixContext",
    "build_key",
    "build_variant_key",
    "parse_key",
    # Interpolation
    "AnchorPoint",
    "compose_price",
    "interpolate",
    "interpolate_components",
    "round_price",
    # Pricing state
    "AnchorEntry",
    "PricePoint",
    "PricingState",
    # Layout
    "CsvMeta",
    "LayoutColumn",
    "LayoutRow",
    "MatrixCombination",
    "MatrixLayout",
    "VerticalAxisConfig",
    "matrix_combinations",
    # Invoice
    "Invoice",
    "InvoiceCompany",
    "InvoiceLine",
    "InvoiceParty",
    "build_invoice",
]
