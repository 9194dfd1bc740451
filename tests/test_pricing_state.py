"""
Tests for PricingState: the anchor store, row markup promotion and
markup composition.
"""
import pytest

from domain import AnchorEntry, MatrixContext, PriceSource, PricingState

CTX = MatrixContext.from_ids("a4", "135g")
OTHER = MatrixContext.from_ids("a5", "135g")


def _state(**kwargs) -> PricingState:
    kwargs.setdefault("quantities", (100, 150, 200))
    return PricingState(**kwargs)


def _with_two_anchors() -> PricingState:
    return _state().with_anchor(CTX, 100, price=100).with_anchor(CTX, 200, price=200)


class TestAnchorStore:
    def test_price_edit_locks_entry(self):
        state = _state().with_anchor(CTX, 100, price=45)
        entry = state.get_anchor(CTX, 100)
        assert entry.is_locked
        assert entry.is_active

    def test_clearing_price_removes_entry(self):
        state = _state().with_anchor(CTX, 100, price=45).with_anchor(CTX, 100, price=0)
        assert CTX.cell_key(100) not in state.anchors

    def test_edits_return_new_state(self):
        original = _state()
        updated = original.with_anchor(CTX, 100, price=45)
        assert original.anchors == {}
        assert updated is not original

    def test_excluded_entry_is_not_a_curve_point(self):
        state = _with_two_anchors().with_anchor(CTX, 150, price=999, exclude_from_curve=True)
        assert [a.quantity for a in state.active_anchors(CTX)] == [100, 200]
        assert state.price_point(CTX, 150).source == PriceSource.OVERRIDE

    def test_contexts_are_independent(self):
        state = _with_two_anchors()
        assert state.price_point(OTHER, 150).source == PriceSource.EMPTY
        assert state.price_point(OTHER, 150).final == 0.0

    def test_removed_quantity_leaves_orphan(self):
        state = _with_two_anchors().with_quantity_removed(200)
        assert CTX.cell_key(200) in state.anchors
        assert [a.quantity for a in state.active_anchors(CTX)] == [100]

    def test_without_context(self):
        state = _with_two_anchors().with_anchor(OTHER, 100, price=10).without_context(CTX)
        assert list(state.anchors) == [OTHER.cell_key(100)]


class TestRowMarkup:
    def test_markup_on_anchor_changes_only_markup(self):
        state = _with_two_anchors().with_row_markup(CTX, 100, 10)
        entry = state.get_anchor(CTX, 100)
        assert entry == AnchorEntry(price=100, markup_percent=10, is_locked=True)

    def test_markup_on_interpolated_row_promotes_override(self):
        state = _with_two_anchors().with_row_markup(CTX, 150, 10)
        entry = state.get_anchor(CTX, 150)
        assert entry.is_override
        assert entry.price == pytest.approx(150)
        point = state.price_point(CTX, 150)
        assert point.source == PriceSource.OVERRIDE
        assert point.final == 165

    def test_zero_markup_reverts_promoted_row(self):
        state = _with_two_anchors().with_row_markup(CTX, 150, 10).with_row_markup(CTX, 150, 0)
        assert CTX.cell_key(150) not in state.anchors
        assert state.price_point(CTX, 150).source == PriceSource.INTERPOLATED

    def test_zero_markup_on_interpolated_row_is_a_no_op(self):
        state = _with_two_anchors()
        assert state.with_row_markup(CTX, 150, 0) is state

    def test_no_promotion_without_anchors(self):
        state = _state()
        assert state.with_row_markup(CTX, 150, 10) is state


class TestMarkupComposition:
    def test_local_product_and_master_markup(self):
        state = (
            _state(rounding=1)
            .with_anchor(CTX, 100, price=100, markup_percent=10)
            .with_product_markup("a4", "135g", 20)
        )
        assert state.price_point(CTX, 100).final == 132

    def test_variant_markup_wins_over_coarse(self):
        ctx = MatrixContext.from_ids("a4", "135g", ["mat"])
        state = (
            _state()
            .with_anchor(ctx, 100, price=100)
            .with_product_markup("a4", "135g", 20)
            .with_product_markup("a4", "135g", 50, variant_key=ctx.variant_key)
        )
        assert state.product_markup_for(ctx) == 50
        assert state.product_markup_for(CTX) == 20

    def test_zero_product_markup_removes_key(self):
        state = _state().with_product_markup("a4", "135g", 20).with_product_markup("a4", "135g", 0)
        assert state.product_markups == {}

    def test_master_markup_and_rounding(self):
        state = _state().with_anchor(CTX, 100, price=101).with_master_markup(10).with_rounding(10)
        assert state.price_point(CTX, 100).final == 110

    def test_invalid_rounding_unit(self):
        with pytest.raises(ValueError):
            _state().with_rounding(3)


class TestSerialization:
    def test_dict_round_trip(self):
        state = _with_two_anchors().with_row_markup(CTX, 150, 10).with_product_markup("a4", None, 5)
        assert PricingState.from_dict(state.to_dict()) == state

    def test_from_dict_uses_defaults_for_missing_keys(self):
        state = PricingState.from_dict({"anchors": {}}, quantities=(10, 20), rounding=5)
        assert state.quantities == (10, 20)
        assert state.rounding == 5

    def test_quantities_sorted_and_deduplicated(self):
        assert _state().with_quantities([500, 100, 100, 0]).quantities == (100, 500)
