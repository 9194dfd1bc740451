"""
Domain Enums

Enumerations for the categorical data of the pricing admin.
These replace magic strings at the CSV and persistence boundaries.
"""

from enum import Enum


class AttributeKind(Enum):
    """
    Kind of an attribute group.

    The kind decides which axis of the price matrix a group may populate:
    formats and materials can be the vertical axis, everything else
    contributes to the variant key.
    """
    FORMAT = "format"
    MATERIAL = "material"
    FINISH = "finish"
    OTHER = "other"
    CUSTOM = "custom"

    @classmethod
    def from_string(cls, value: str) -> "AttributeKind":
        """
        Convert a stored kind string to AttributeKind.

        Raises:
            ValueError: If value is not a known kind

        Example:
            >>> AttributeKind.from_string("Material")
            <AttributeKind.MATERIAL: 'material'>
        """
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            raise ValueError(
                f"Invalid attribute kind: {value}. "
                f"Must be one of: {', '.join(k.value for k in cls)}"
            ) from None

    @property
    def section_type(self) -> "SectionType":
        """Layout section type used when a group of this kind is placed in the matrix."""
        return {
            AttributeKind.FORMAT: SectionType.FORMATS,
            AttributeKind.MATERIAL: SectionType.MATERIALS,
            AttributeKind.FINISH: SectionType.FINISHES,
            AttributeKind.OTHER: SectionType.PRODUCTS,
            AttributeKind.CUSTOM: SectionType.PRODUCTS,
        }[self]

    @property
    def can_be_vertical_axis(self) -> bool:
        return self in (AttributeKind.FORMAT, AttributeKind.MATERIAL)

    @property
    def display_name(self) -> str:
        return {
            AttributeKind.FORMAT: "Format",
            AttributeKind.MATERIAL: "Materiale",
            AttributeKind.FINISH: "Efterbehandling",
            AttributeKind.OTHER: "Andet",
            AttributeKind.CUSTOM: "Tilpasset",
        }[self]


class SectionType(Enum):
    """Section types of a matrix_layout_v1 pricing structure."""
    FORMATS = "formats"
    MATERIALS = "materials"
    FINISHES = "finishes"
    PRODUCTS = "products"


class UiMode(Enum):
    """How a section is rendered on the storefront."""
    BUTTONS = "buttons"
    DROPDOWN = "dropdown"
    CHECKBOXES = "checkboxes"
    HIDDEN = "hidden"

    @classmethod
    def from_string(cls, value: str | None) -> "UiMode":
        """Unknown or empty values fall back to BUTTONS."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.BUTTONS


class ColumnRole(Enum):
    """Role of a CSV column detected from its header."""
    FORMAT = "format"
    MATERIAL = "material"
    FINISH = "finish"
    QTY = "qty"
    PRICE = "price"
    IGNORE = "ignore"
    UNKNOWN = "unknown"

    @property
    def is_attribute(self) -> bool:
        return self in (ColumnRole.FORMAT, ColumnRole.MATERIAL, ColumnRole.FINISH)


class PriceSource(Enum):
    """Where the price of a matrix cell comes from."""
    ANCHOR = "anchor"
    OVERRIDE = "override"
    INTERPOLATED = "interpolated"
    EMPTY = "empty"

    @property
    def display_name(self) -> str:
        return {
            PriceSource.ANCHOR: "Anker",
            PriceSource.OVERRIDE: "Manuel",
            PriceSource.INTERPOLATED: "Beregnet",
            PriceSource.EMPTY: "",
        }[self]


class AssetKind(Enum):
    """Kinds of entries in the design asset library."""
    TEMPLATE = "template"
    MATERIAL = "material"
    FINISH = "finish"
    PRODUCT = "product"

    @property
    def display_name(self) -> str:
        return {
            AssetKind.TEMPLATE: "Skabeloner",
            AssetKind.MATERIAL: "Materialer",
            AssetKind.FINISH: "Efterbehandlinger",
            AssetKind.PRODUCT: "Produktbilleder",
        }[self]

    @classmethod
    def display_order(cls) -> list["AssetKind"]:
        return [cls.TEMPLATE, cls.MATERIAL, cls.FINISH, cls.PRODUCT]
