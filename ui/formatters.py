"""
UI Formatting Utilities

Helper functions for consistent display formatting across Streamlit pages.

Design Principles:
- Pure functions with no side effects
- Use domain enums (PriceSource, AttributeKind) for business logic
- Return simple types (str, tuple) for flexibility
"""

from typing import Optional

from domain import AttributeGroup, AttributeValue, PriceSource
from domain.converters import format_dkk


def format_price(price: Optional[float], precision: int = 2) -> str:
    """
    Format a price with millify notation for metrics.

    Returns:
        Formatted price string (e.g., "1.5k", "250"), "–" for no price
    """
    from millify import millify

    if price is None or price == 0:
        return "–"
    return millify(price, precision=precision)


def format_quantity(quantity: int) -> str:
    """Danish thousands separator: 2500 -> "2.500 stk."."""
    return f"{quantity:,} stk.".replace(",", ".")


def format_final_price(price: Optional[float]) -> str:
    if not price:
        return "–"
    return format_dkk(price)


def source_badge(source: PriceSource) -> tuple[str, str]:
    """
    Label and st.badge colour for a price source.

    Returns:
        Tuple of (label, color)
    """
    color = {
        PriceSource.ANCHOR: "blue",
        PriceSource.OVERRIDE: "orange",
        PriceSource.INTERPOLATED: "gray",
        PriceSource.EMPTY: "red",
    }[source]
    return source.display_name or "Ingen pris", color


def value_label(value: AttributeValue) -> str:
    """Value name with its dimensions when it has any, e.g. "A4 (210 x 297 mm)"."""
    if value.dimension_label:
        return f"{value.name} ({value.dimension_label})"
    return value.name


def group_label(group: AttributeGroup) -> str:
    return f"{group.name} · {group.kind.display_name}"
