"""
Price Matrix Frames

Builds the pandas DataFrames the price matrix page renders and edits:
the full matrix of final prices, the per-context anchor editor table and
the price curve. Also turns an edited anchor table back into a new
PricingState and composes the layout from the editor choices.
"""

from dataclasses import replace
from typing import Optional

import pandas as pd

from domain import (
    AttributeGroup,
    LayoutColumn,
    LayoutRow,
    MatrixCombination,
    MatrixContext,
    MatrixLayout,
    PriceSource,
    PricingState,
    ValidationError,
    VerticalAxisConfig,
    index_values,
    matrix_combinations,
)
from domain.pricing_structure import new_row_id, new_section_id
from logging_config import setup_logging

logger = setup_logging(__name__, log_file="price_matrix.log")

ANCHOR_COLUMNS = ["quantity", "price", "markup_percent", "is_locked", "exclude_from_curve", "source", "final"]


def combination_label(combo: MatrixCombination, groups: list[AttributeGroup]) -> str:
    """Value names of a combination joined with " / ", vertical value first."""
    values = index_values(groups)
    names = [values[v].name if v in values else v for _, v in combo.selection]
    return " / ".join(names)


def price_matrix_frame(
    state: PricingState,
    structure: MatrixLayout,
    groups: list[AttributeGroup],
    enabled_only: bool = True,
) -> pd.DataFrame:
    """
    Final prices of every combination x quantity.

    Columns: context_key, label, then one column per quantity. Cells
    without a price are NaN.
    """
    enabled = {v.id for g in groups for v in g.enabled_values} if enabled_only else None
    records = []
    for combo in matrix_combinations(structure, enabled):
        record = {"context_key": combo.context.key, "label": combination_label(combo, groups)}
        for point in state.price_curve(combo.context):
            record[point.quantity] = point.final if point.source != PriceSource.EMPTY else float("nan")
        records.append(record)
    return pd.DataFrame(records, columns=["context_key", "label", *state.quantities])


def row_markup(state: PricingState, ctx: MatrixContext, quantity: int) -> float:
    """
    Markup shown for a row: the entry's own markup when locked, else 0.

    Interpolated rows start at 0 so that any markup set on them promotes the
    row to a manual override.
    """
    entry = state.get_anchor(ctx, quantity)
    return float(entry.markup_percent) if entry.is_locked else 0.0


def anchor_frame(state: PricingState, ctx: MatrixContext) -> pd.DataFrame:
    """One editor row per quantity of the quantity set."""
    records = []
    for quantity in state.quantities:
        entry = state.get_anchor(ctx, quantity)
        point = state.price_point(ctx, quantity)
        records.append({
            "quantity": quantity,
            "price": entry.price if entry.is_locked else point.base,
            "markup_percent": row_markup(state, ctx, quantity),
            "is_locked": entry.is_locked,
            "exclude_from_curve": entry.exclude_from_curve,
            "source": point.source.value,
            "final": point.final,
        })
    return pd.DataFrame(records, columns=ANCHOR_COLUMNS)


def apply_anchor_edits(
    state: PricingState,
    ctx: MatrixContext,
    before: pd.DataFrame,
    edited: pd.DataFrame,
) -> PricingState:
    """
    Fold the differences between two anchor tables into the state.

    - a changed price is a direct price edit (locks when positive)
    - a changed markup goes through the row markup rules
    - changed lock / exclude flags are written as they are
    """
    before_rows = {int(r["quantity"]): r for _, r in before.iterrows()}
    for _, row in edited.iterrows():
        quantity = int(row["quantity"])
        old = before_rows.get(quantity)
        if old is None:
            continue

        price = _number(row["price"])
        if price != _number(old["price"]):
            state = state.with_anchor(ctx, quantity, price=price)
        if bool(row["is_locked"]) != bool(old["is_locked"]):
            state = state.with_anchor(ctx, quantity, is_locked=bool(row["is_locked"]))
        if bool(row["exclude_from_curve"]) != bool(old["exclude_from_curve"]):
            state = state.with_anchor(ctx, quantity, exclude_from_curve=bool(row["exclude_from_curve"]))
        markup = _number(row["markup_percent"])
        if markup != _number(old["markup_percent"]):
            state = state.with_row_markup(ctx, quantity, markup)
    return state


def curve_frame(state: PricingState, ctx: MatrixContext) -> pd.DataFrame:
    """Price curve of one context for charting; unit_price is final / quantity."""
    points = state.price_curve(ctx)
    return pd.DataFrame({
        "quantity": [p.quantity for p in points],
        "final": [p.final for p in points],
        "base": [p.base for p in points],
        "source": [p.source.value for p in points],
        "unit_price": [p.final / p.quantity if p.quantity else 0.0 for p in points],
    })


def _number(value) -> float:
    if value is None or pd.isna(value):
        return 0.0
    return round(float(value), 4)


def compose_layout(
    current: Optional[MatrixLayout],
    axis_group: AttributeGroup,
    axis_value_ids: list[str],
    sections: list[tuple[AttributeGroup, list[str]]],
    quantities,
) -> MatrixLayout:
    """
    Layout from the editor choices, keeping ids and settings of what stays.

    Sections whose group is still chosen keep their row, id, ui mode and
    title; newly chosen groups are appended as one new row.

    Raises:
        ValidationError: The axis group is not a format or material group,
            or it is also chosen as a section
    """
    if not axis_group.kind.can_be_vertical_axis:
        raise ValidationError(f"{axis_group.name} kan ikke bruges som lodret akse")
    if any(group.id == axis_group.id for group, _ in sections):
        raise ValidationError(f"{axis_group.name} er allerede lodret akse")

    previous_axis = current.vertical_axis if current is not None else None
    if previous_axis is not None and previous_axis.group_id == axis_group.id:
        axis = replace(previous_axis, value_ids=tuple(axis_value_ids))
    else:
        axis = VerticalAxisConfig(
            section_id=new_section_id(),
            section_type=axis_group.kind.section_type,
            group_id=axis_group.id,
            value_ids=tuple(axis_value_ids),
            ui_mode=axis_group.ui_mode,
        )

    chosen = {group.id: (group, value_ids) for group, value_ids in sections}
    placed: set[str] = set()
    rows = []
    for row in (current.layout_rows if current is not None else ()):
        columns = []
        for col in row.columns:
            if col.group_id in chosen and col.group_id not in placed:
                group, value_ids = chosen[col.group_id]
                columns.append(replace(col, section_type=group.kind.section_type, value_ids=tuple(value_ids)))
                placed.add(col.group_id)
        if columns:
            rows.append(replace(row, columns=tuple(columns)))

    new_columns = [
        LayoutColumn(
            id=new_section_id(),
            section_type=group.kind.section_type,
            group_id=group.id,
            value_ids=tuple(value_ids),
            ui_mode=group.ui_mode,
        )
        for group, value_ids in sections
        if group.id not in placed
    ]
    if new_columns:
        rows.append(LayoutRow(id=new_row_id(), columns=tuple(new_columns)))

    return MatrixLayout(vertical_axis=axis, layout_rows=tuple(rows)).with_quantities(quantities)
