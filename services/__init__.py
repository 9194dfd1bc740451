"""
Services Package

Business logic of the pricing admin, between the repositories and the
Streamlit pages.

Each service module follows these principles:
1. Single Responsibility - one domain per service
2. Dependency Injection - dependencies passed in, not created
3. Dataclasses - structured results

Streamlit Pattern:
- Service classes receive repositories in __init__ and expose create_default()
- get_*_service() helpers cache one instance per session via state.get_service

Available Services:
- AttributeService: attribute groups, values and the library
- PricingService: layout, editor state, publish, CSV and template bank
- AssetService: design asset uploads over ObjectStorage
- InvoiceService: invoice construction and PDF rendering
"""

from services.column_classifier import CLASSIFIER_RULES, ClassifierRule, classify_header
from services.csv_interchange import (
    CsvImportResult,
    apply_import,
    export_price_csv,
    import_price_csv,
)
from services.price_matrix import (
    anchor_frame,
    apply_anchor_edits,
    combination_label,
    compose_layout,
    curve_frame,
    price_matrix_frame,
    row_markup,
)
from services.attribute_service import AttributeService, get_attribute_service
from services.pricing_service import PricingService, PublishResult, build_price_rows, get_pricing_service
from services.object_storage import HttpObjectStorage, LocalObjectStorage, ObjectStorage, build_object_storage
from services.asset_service import AssetService, get_asset_service
from services.invoice_pdf import render_invoice_pdf
from services.invoice_service import InvoiceService, get_invoice_service, lines_from_frame

__all__ = [
    # Classifier
    "CLASSIFIER_RULES",
    "ClassifierRule",
    "classify_header",
    # CSV
    "CsvImportResult",
    "apply_import",
    "export_price_csv",
    "import_price_csv",
    # Matrix frames
    "anchor_frame",
    "combination_label",
    "compose_layout",
    "apply_anchor_edits",
    "curve_frame",
    "price_matrix_frame",
    "row_markup",
    # Services
    "AttributeService",
    "get_attribute_service",
    "PricingService",
    "PublishResult",
    "build_price_rows",
    "get_pricing_service",
    "AssetService",
    "get_asset_service",
    "InvoiceService",
    "get_invoice_service",
    "lines_from_frame",
    "render_invoice_pdf",
    # Storage
    "ObjectStorage",
    "LocalObjectStorage",
    "HttpObjectStorage",
    "build_object_storage",
]
