"""
Tests for the matrix layout, its combinations and the CSV meta line.
"""
import pytest

from domain import (
    AttributeGroup,
    AttributeKind,
    AttributeValue,
    CsvMeta,
    LayoutColumn,
    LayoutRow,
    MatrixContext,
    MatrixLayout,
    SectionType,
    ValidationError,
    VerticalAxisConfig,
    matrix_combinations,
)
from domain.pricing_structure import disambiguate_section_headers
from services.price_matrix import compose_layout

LAYOUT_DICT = {
    "mode": "matrix_layout_v1",
    "version": 1,
    "vertical_axis": {
        "sectionId": "sec_axis",
        "sectionType": "materials",
        "groupId": "g_mat",
        "valueIds": ["m135", "m170"],
        "labelOverride": "Papir",
    },
    "layout_rows": [
        {
            "id": "row_1",
            "columns": [
                {"id": "sec_fmt", "sectionType": "formats", "groupId": "g_fmt", "valueIds": ["a4", "a5"]},
                {"id": "sec_fin", "sectionType": "finishes", "groupId": "g_fin", "valueIds": ["mat", "blank"],
                 "ui_mode": "dropdown"},
            ],
        }
    ],
    "quantities": [500, 100, 100],
}


class TestMatrixLayout:
    def test_from_dict(self):
        layout = MatrixLayout.from_dict(LAYOUT_DICT)
        assert layout.vertical_axis.section_type == SectionType.MATERIALS
        assert layout.vertical_axis.title == "Papir"
        assert [c.id for c in layout.sections] == ["sec_fmt", "sec_fin"]
        assert layout.quantities == (100, 500)

    def test_round_trip(self):
        layout = MatrixLayout.from_dict(LAYOUT_DICT)
        assert MatrixLayout.from_dict(layout.to_dict()) == layout

    @pytest.mark.parametrize("data", [None, {}, {"mode": "legacy"}, {"mode": "matrix_layout_v1"}])
    def test_other_modes_are_not_layouts(self, data):
        assert MatrixLayout.from_dict(data) is None


class TestCombinations:
    def test_cartesian_product_in_axis_order(self):
        combos = matrix_combinations(MatrixLayout.from_dict(LAYOUT_DICT))
        assert len(combos) == 8
        assert [c.vertical_value_id for c in combos[:4]] == ["m135"] * 4

    def test_axis_material_and_format_section(self):
        combo = matrix_combinations(MatrixLayout.from_dict(LAYOUT_DICT))[0]
        assert combo.context == MatrixContext.from_ids("a4", "m135", ["mat"])
        assert combo.selection_map == {"sec_axis": "m135", "sec_fmt": "a4", "sec_fin": "mat"}

    def test_disabled_values_skipped(self):
        combos = matrix_combinations(MatrixLayout.from_dict(LAYOUT_DICT), {"m135", "a4", "mat", "blank"})
        assert len(combos) == 2

    def test_section_without_enabled_values_is_dropped(self):
        combos = matrix_combinations(MatrixLayout.from_dict(LAYOUT_DICT), {"m135", "a4"})
        assert [c.context.key for c in combos] == ["a4::m135::none"]


class TestCsvMeta:
    def test_line_round_trip(self):
        meta = CsvMeta.from_structure(MatrixLayout.from_dict(LAYOUT_DICT))
        parsed = CsvMeta.parse_line(meta.to_line())
        assert parsed == meta
        assert [s["groupId"] for s in parsed.column_sections] == ["g_mat", "g_fmt", "g_fin"]

    @pytest.mark.parametrize("line", ["Format;Papir", "#meta;{not json", '#meta;{"sections": []}'])
    def test_invalid_lines(self, line):
        assert CsvMeta.parse_line(line) is None


def test_duplicate_headers_get_section_suffix():
    assert disambiguate_section_headers([("sec_abcdefgh1", "Papir"), ("sec_2", "Papir"), ("x", "Format")]) == [
        "Papir__sec_sec_abcd", "Papir__sec_sec_2", "Format",
    ]


def _group(group_id, kind, *value_ids):
    return AttributeGroup(
        id=group_id, name=group_id, kind=kind, product_id="p1",
        values=tuple(AttributeValue(id=v, group_id=group_id, name=v) for v in value_ids),
    )


class TestComposeLayout:
    FMT = _group("g_fmt", AttributeKind.FORMAT, "a4", "a5")
    MAT = _group("g_mat", AttributeKind.MATERIAL, "m135")
    FIN = _group("g_fin", AttributeKind.FINISH, "mat", "blank")

    def test_new_layout(self):
        layout = compose_layout(None, self.FMT, ["a4"], [(self.MAT, ["m135"])], [100, 50])
        assert layout.vertical_axis.group_id == "g_fmt"
        assert layout.vertical_axis.section_type == SectionType.FORMATS
        assert len(layout.layout_rows) == 1
        assert layout.sections[0].section_type == SectionType.MATERIALS
        assert layout.quantities == (50, 100)

    def test_existing_sections_keep_ids_and_settings(self):
        current = MatrixLayout.from_dict(LAYOUT_DICT)
        layout = compose_layout(current, self.MAT, ["m135"], [(self.FIN, ["blank"]), (self.FMT, ["a4"])], [100])

        assert layout.vertical_axis.section_id == "sec_axis"
        assert layout.vertical_axis.title == "Papir"
        assert [c.id for c in layout.sections] == ["sec_fmt", "sec_fin"]
        assert layout.sections[1].value_ids == ("blank",)
        assert layout.sections[1].ui_mode.value == "dropdown"

    def test_removed_section_disappears(self):
        current = MatrixLayout.from_dict(LAYOUT_DICT)
        layout = compose_layout(current, self.MAT, ["m135"], [(self.FMT, ["a4"])], [100])
        assert [c.group_id for c in layout.sections] == ["g_fmt"]

    def test_finish_cannot_be_axis(self):
        with pytest.raises(ValidationError):
            compose_layout(None, self.FIN, ["mat"], [], [100])

    def test_axis_group_cannot_be_a_section(self):
        with pytest.raises(ValidationError):
            compose_layout(None, self.FMT, ["a4"], [(self.FMT, ["a5"])], [100])


def test_layout_rows_are_kept_in_order():
    layout = MatrixLayout(
        vertical_axis=VerticalAxisConfig("s", SectionType.FORMATS, "g"),
        layout_rows=(
            LayoutRow("r2", (LayoutColumn("c2", SectionType.FINISHES, "g2"),)),
            LayoutRow("r1", (LayoutColumn("c1", SectionType.MATERIALS, "g1"),)),
        ),
    )
    assert [c.id for c in layout.sections] == ["c2", "c1"]
