"""
Tests for the DataFrame helpers behind the price matrix editor.
"""
import pandas as pd
import pytest

from domain import (
    AttributeGroup,
    AttributeKind,
    AttributeValue,
    LayoutColumn,
    LayoutRow,
    MatrixContext,
    MatrixLayout,
    PriceSource,
    PricingState,
    SectionType,
    VerticalAxisConfig,
    matrix_combinations,
)
from services.price_matrix import (
    anchor_frame,
    apply_anchor_edits,
    combination_label,
    curve_frame,
    price_matrix_frame,
    row_markup,
)

CTX = MatrixContext.from_ids("a4", "m135")


def _group(group_id, name, kind, *values):
    return AttributeGroup(
        id=group_id, name=name, kind=kind, product_id="p1",
        values=tuple(AttributeValue(id=vid, group_id=group_id, name=vname) for vid, vname in values),
    )


GROUPS = [
    _group("g_fmt", "Format", AttributeKind.FORMAT, ("a4", "A4"), ("a5", "A5")),
    _group("g_mat", "Papir", AttributeKind.MATERIAL, ("m135", "135g")),
]

STRUCTURE = MatrixLayout(
    vertical_axis=VerticalAxisConfig("sec_axis", SectionType.FORMATS, "g_fmt", ("a4", "a5")),
    layout_rows=(LayoutRow("row_1", (LayoutColumn("sec_mat", SectionType.MATERIALS, "g_mat", ("m135",)),)),),
)


@pytest.fixture
def state():
    return (
        PricingState(quantities=(100, 150, 200))
        .with_anchor(CTX, 100, price=100)
        .with_anchor(CTX, 200, price=200)
    )


class TestAnchorFrame:
    def test_one_row_per_quantity(self, state):
        df = anchor_frame(state, CTX)
        assert list(df["quantity"]) == [100, 150, 200]
        assert list(df["source"]) == ["anchor", "interpolated", "anchor"]

    def test_interpolated_row_shows_base_price(self, state):
        row = anchor_frame(state, CTX).iloc[1]
        assert row["price"] == pytest.approx(150)
        assert not row["is_locked"]
        assert row["final"] == 150


class TestApplyAnchorEdits:
    def test_unchanged_table_keeps_state(self, state):
        before = anchor_frame(state, CTX)
        assert apply_anchor_edits(state, CTX, before, before.copy()) == state

    def test_price_edit_locks_row(self, state):
        before = anchor_frame(state, CTX)
        edited = before.copy()
        edited.loc[1, "price"] = 175

        updated = apply_anchor_edits(state, CTX, before, edited)

        entry = updated.get_anchor(CTX, 150)
        assert entry.is_locked
        assert entry.price == 175
        assert updated.price_point(CTX, 150).source == PriceSource.ANCHOR

    def test_markup_edit_promotes_row(self, state):
        before = anchor_frame(state, CTX)
        edited = before.copy()
        edited.loc[1, "markup_percent"] = 10

        updated = apply_anchor_edits(state, CTX, before, edited)

        assert updated.price_point(CTX, 150).source == PriceSource.OVERRIDE
        assert updated.price_point(CTX, 150).final == 165

    def test_interpolated_row_starts_without_markup(self):
        state = (
            PricingState(quantities=(100, 150, 200))
            .with_anchor(CTX, 100, price=100)
            .with_anchor(CTX, 200, price=200, markup_percent=20)
        )
        before = anchor_frame(state, CTX)
        assert list(before["markup_percent"]) == [0, 0, 20]
        assert state.price_point(CTX, 150).final == 165

        edited = before.copy()
        edited.loc[1, "markup_percent"] = 4
        updated = apply_anchor_edits(state, CTX, before, edited)

        point = updated.price_point(CTX, 150)
        assert point.source == PriceSource.OVERRIDE
        assert point.markup_percent == 4
        assert point.final == 156

    def test_row_markup_of_override(self, state):
        promoted = state.with_row_markup(CTX, 150, 12.5)
        assert row_markup(promoted, CTX, 150) == 12.5
        assert row_markup(promoted.with_row_markup(CTX, 150, 0), CTX, 150) == 0

    def test_cleared_price_removes_anchor(self, state):
        before = anchor_frame(state, CTX)
        edited = before.copy()
        edited.loc[2, "price"] = None

        updated = apply_anchor_edits(state, CTX, before, edited)
        assert CTX.cell_key(200) not in updated.anchors


class TestMatrixFrames:
    def test_price_matrix_frame(self, state):
        state = state.with_quantities([100, 200])
        df = price_matrix_frame(state, STRUCTURE, GROUPS)

        assert list(df.columns) == ["context_key", "label", 100, 200]
        assert list(df["label"]) == ["A4 / 135g", "A5 / 135g"]
        assert list(df.loc[0, [100, 200]]) == [100, 200]
        assert pd.isna(df.loc[1, 100])

    def test_disabled_values_hidden(self, state):
        groups = [
            _group("g_fmt", "Format", AttributeKind.FORMAT, ("a4", "A4")),
            GROUPS[1],
        ]
        assert len(price_matrix_frame(state, STRUCTURE, groups)) == 1
        assert len(price_matrix_frame(state, STRUCTURE, groups, enabled_only=False)) == 2

    def test_curve_frame_unit_price(self, state):
        df = curve_frame(state, CTX)
        assert list(df["unit_price"]) == [1.0, 1.0, 1.0]
        assert list(df["source"]) == ["anchor", "interpolated", "anchor"]


def test_combination_label_falls_back_to_id():
    combo = matrix_combinations(STRUCTURE)[0]
    assert combination_label(combo, GROUPS) == "A4 / 135g"
    assert combination_label(combo, []) == "a4 / m135"
