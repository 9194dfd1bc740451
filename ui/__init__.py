"""
UI Package

Presentation layer components for Streamlit pages.
Contains column definitions and formatting utilities.

This package separates UI-specific concerns from business logic,
keeping page files focused on layout and user interaction.
"""

from ui.column_definitions import (
    get_anchor_column_config,
    get_invoice_line_column_config,
    get_matrix_column_config,
    get_template_column_config,
)
from ui.formatters import (
    format_final_price,
    format_price,
    format_quantity,
    group_label,
    source_badge,
    value_label,
)

__all__ = [
    # Column configs
    "get_anchor_column_config",
    "get_invoice_line_column_config",
    "get_matrix_column_config",
    "get_template_column_config",
    # Formatters
    "format_final_price",
    "format_price",
    "format_quantity",
    "group_label",
    "source_badge",
    "value_label",
]
