"""
Domain Models

Dataclasses for the catalogue entities of the pricing admin:
attribute groups and values, products, published price rows,
template bank snapshots and design assets.

Design Principles:
1. Immutability (frozen=True) - safe to keep in session state and to hash
2. Factory methods - clean construction from repository DataFrame rows
3. Computed properties - display and lookup logic lives on the model
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional
import json

import pandas as pd

from domain.converters import safe_bool, safe_float, safe_int, safe_json, safe_str
from domain.enums import AssetKind, AttributeKind, UiMode


# Type aliases for clarity
ValueID = str
GroupID = str
ProductID = str
Price = float


# =============================================================================
# AttributeValue - one option inside a group
# =============================================================================

@dataclass(frozen=True)
class AttributeValue:
    """
    A selectable option within an attribute group, e.g. "A4" or "135g".

    Identity is the id; names are not required to be unique.

    Attributes:
        id: Row id of the value
        group_id: Owning group
        name: Display name
        enabled: Hidden from matrices and storefront when False
        width_mm: Width for format values
        height_mm: Height for format values
        key: Optional stable machine key
        sort_order: Position inside the group
        meta: Free-form JSON (colour swatches, descriptions, icons)
    """
    id: ValueID
    group_id: GroupID
    name: str
    enabled: bool = True
    width_mm: Optional[float] = None
    height_mm: Optional[float] = None
    key: Optional[str] = None
    sort_order: int = 0
    meta: dict = field(default_factory=dict, hash=False, compare=False)

    @classmethod
    def from_dataframe_row(cls, row: pd.Series) -> "AttributeValue":
        width = row.get("width_mm")
        height = row.get("height_mm")
        return cls(
            id=safe_str(row.get("id")),
            group_id=safe_str(row.get("group_id")),
            name=safe_str(row.get("name")),
            enabled=safe_bool(row.get("enabled"), True),
            width_mm=None if pd.isna(width) else float(width),
            height_mm=None if pd.isna(height) else float(height),
            key=safe_str(row.get("key")) or None,
            sort_order=safe_int(row.get("sort_order")),
            meta=safe_json(row.get("meta"), {}) or {},
        )

    @property
    def dimension_label(self) -> str:
        """e.g. "210 x 297 mm" for formats, "" when no size is set."""
        if self.width_mm and self.height_mm:
            return f"{self.width_mm:g} x {self.height_mm:g} mm"
        return ""

    @property
    def dedup_key(self) -> str:
        """Key used to drop duplicate values when copying from the library."""
        return f"{self.name}|{self.width_mm or ''}|{self.height_mm or ''}"


# =============================================================================
# AttributeGroup - a group owning its values
# =============================================================================

@dataclass(frozen=True)
class AttributeGroup:
    """
    A named group of attribute values belonging to a product, or to the
    shared library when product_id is None.

    The kind determines which matrix axis the group may populate.
    """
    id: GroupID
    name: str
    kind: AttributeKind
    ui_mode: UiMode = UiMode.BUTTONS
    product_id: Optional[ProductID] = None
    library_group_id: Optional[GroupID] = None
    source: str = "product"
    sort_order: int = 0
    enabled: bool = True
    values: tuple[AttributeValue, ...] = field(default_factory=tuple)

    @classmethod
    def from_dataframe_row(
        cls,
        row: pd.Series,
        values: Optional[list[AttributeValue]] = None,
    ) -> "AttributeGroup":
        ordered = sorted(values or [], key=lambda v: (v.sort_order, v.name))
        return cls(
            id=safe_str(row.get("id")),
            name=safe_str(row.get("name")),
            kind=AttributeKind.from_string(safe_str(row.get("kind"), "other")),
            ui_mode=UiMode.from_string(safe_str(row.get("ui_mode"))),
            product_id=safe_str(row.get("product_id")) or None,
            library_group_id=safe_str(row.get("library_group_id")) or None,
            source=safe_str(row.get("source"), "product"),
            sort_order=safe_int(row.get("sort_order")),
            enabled=safe_bool(row.get("enabled"), True),
            values=tuple(ordered),
        )

    @property
    def is_library(self) -> bool:
        return self.product_id is None

    @property
    def enabled_values(self) -> tuple[AttributeValue, ...]:
        return tuple(v for v in self.values if v.enabled)

    def value_by_id(self, value_id: ValueID) -> Optional[AttributeValue]:
        for value in self.values:
            if value.id == value_id:
                return value
        return None


def index_values(groups: list[AttributeGroup]) -> dict[ValueID, AttributeValue]:
    """Map every value id across the given groups to its value."""
    return {v.id: v for g in groups for v in g.values}


def value_name(groups: list[AttributeGroup], value_id: ValueID, default: str = "") -> str:
    """Display name of a value id, or default when unknown."""
    value = index_values(groups).get(value_id)
    return value.name if value else default


# =============================================================================
# Product
# =============================================================================

@dataclass(frozen=True)
class Product:
    """
    A product record.

    pricing_structure holds the matrix_layout_v1 dict; generator_state
    holds the serialized PricingState saved at the last publish.
    """
    id: ProductID
    name: str
    slug: str = ""
    pricing_structure: Optional[dict] = field(default=None, hash=False, compare=False)
    generator_state: Optional[dict] = field(default=None, hash=False, compare=False)

    @classmethod
    def from_dataframe_row(cls, row: pd.Series) -> "Product":
        return cls(
            id=safe_str(row.get("id")),
            name=safe_str(row.get("name")),
            slug=safe_str(row.get("slug")),
            pricing_structure=safe_json(row.get("pricing_structure")),
            generator_state=safe_json(row.get("generator_state")),
        )


# =============================================================================
# PriceRow - one published price
# =============================================================================

@dataclass(frozen=True)
class PriceRow:
    """
    One row of generic_product_prices.

    Upserted on (product_id, variant_name, variant_value, quantity).
    variant_name is the matrix context key (format::material::variant),
    variant_value is the vertical axis value id.
    """
    product_id: ProductID
    variant_name: str
    variant_value: str
    quantity: int
    price: Price
    extra_data: dict = field(default_factory=dict, hash=False, compare=False)

    @classmethod
    def from_dataframe_row(cls, row: pd.Series) -> "PriceRow":
        return cls(
            product_id=safe_str(row.get("product_id")),
            variant_name=safe_str(row.get("variant_name")),
            variant_value=safe_str(row.get("variant_value")),
            quantity=safe_int(row.get("quantity")),
            price=safe_float(row.get("price")),
            extra_data=safe_json(row.get("extra_data"), {}) or {},
        )

    def to_record(self) -> dict[str, Any]:
        """Parameters for the upsert statement."""
        return {
            "product_id": self.product_id,
            "variant_name": self.variant_name,
            "variant_value": self.variant_value,
            "quantity": self.quantity,
            "price": self.price,
            "extra_data": json.dumps(self.extra_data, sort_keys=True),
        }


# =============================================================================
# TemplateBankEntry - a named snapshot in the price list bank
# =============================================================================

@dataclass(frozen=True)
class TemplateBankEntry:
    """
    A named JSON snapshot of {pricing_structure, generator_state, rows}.

    The bank is an archive of setups (seasonal lists, offers) that can be
    loaded back into the editor before publishing.
    """
    id: str
    name: str
    spec: dict = field(default_factory=dict, hash=False, compare=False)
    product_id: Optional[ProductID] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_dataframe_row(cls, row: pd.Series) -> "TemplateBankEntry":
        created = row.get("created_at")
        return cls(
            id=safe_str(row.get("id")),
            name=safe_str(row.get("name")),
            spec=safe_json(row.get("spec"), {}) or {},
            product_id=safe_str(row.get("product_id")) or None,
            created_at=None if pd.isna(created) else pd.to_datetime(created).to_pydatetime(),
        )

    @property
    def combination_count(self) -> int:
        return len(self.spec.get("rows") or [])


# =============================================================================
# DesignAsset - an entry in the design asset library
# =============================================================================

@dataclass(frozen=True)
class DesignAsset:
    """An uploaded design asset referenced by public URL."""
    id: str
    kind: AssetKind
    name: str
    file_url: str = ""
    description: str = ""
    icon_url: str = ""
    product_id: Optional[ProductID] = None
    storage_path: str = ""
    meta: dict = field(default_factory=dict, hash=False, compare=False)
    created_at: Optional[datetime] = None

    @classmethod
    def from_dataframe_row(cls, row: pd.Series) -> "DesignAsset":
        created = row.get("created_at")
        return cls(
            id=safe_str(row.get("id")),
            kind=AssetKind(safe_str(row.get("kind"), "template")),
            name=safe_str(row.get("name")),
            file_url=safe_str(row.get("file_url")),
            description=safe_str(row.get("description")),
            icon_url=safe_str(row.get("icon_url")),
            product_id=safe_str(row.get("product_id")) or None,
            storage_path=safe_str(row.get("storage_path")),
            meta=safe_json(row.get("meta"), {}) or {},
            created_at=None if pd.isna(created) else pd.to_datetime(created).to_pydatetime(),
        )

    @property
    def is_image(self) -> bool:
        return self.file_url.lower().endswith((".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg"))
