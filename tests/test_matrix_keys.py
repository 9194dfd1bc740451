"""
Tests for the matrix key builder.
"""
import pytest

from domain.matrix_keys import (
    MatrixContext,
    build_key,
    build_variant_key,
    markup_key,
    parse_key,
)


class TestBuildKey:
    def test_variant_order_does_not_matter(self):
        assert build_key("f1", "m1", ["b", "a"], 100) == build_key("f1", "m1", ["a", "b"], 100)

    def test_key_layout(self):
        assert build_key("f1", "m1", ["fin2", "fin1"], 100) == "f1::m1::fin1|fin2::100"

    def test_missing_parts_become_none(self):
        assert build_key(None, None, [], 50) == "none::none::none::50"

    def test_duplicate_and_empty_variant_ids_dropped(self):
        assert build_variant_key(["x", "", "x", None]) == "x"


class TestParseKey:
    def test_round_trip_through_context(self):
        ctx, quantity = parse_key("f1::m1::a|b::250")
        assert ctx == MatrixContext("f1", "m1", "a|b")
        assert quantity == 250
        assert ctx.cell_key(quantity) == "f1::m1::a|b::250"

    @pytest.mark.parametrize("key", ["f1::m1::100", "f1::m1::none::many", ""])
    def test_malformed_keys_rejected(self, key):
        with pytest.raises(ValueError):
            parse_key(key)


class TestMatrixContext:
    def test_from_ids_sorts_variants(self):
        ctx = MatrixContext.from_ids("f", "m", ["z", "a"])
        assert ctx.key == "f::m::a|z"
        assert ctx.variant_value_ids == ("a", "z")

    def test_no_variants(self):
        ctx = MatrixContext.from_ids("f", None)
        assert ctx.variant_value_ids == ()
        assert ctx.material_id == "none"

    def test_from_context_key(self):
        assert MatrixContext.from_context_key("f::m::none") == MatrixContext("f", "m", "none")
        with pytest.raises(ValueError):
            MatrixContext.from_context_key("f::m")

    def test_markup_keys_most_specific_first(self):
        ctx = MatrixContext.from_ids("f", "m", ["v"])
        assert ctx.markup_keys == ("f::m::v", "f::m")
        assert markup_key("f", None) == "f::none"
