"""
Pricing Structure (matrix_layout_v1)

The persisted description of a product's price matrix layout:
which attribute group forms the vertical axis, which groups populate the
sections of each layout row, and the quantity list.

The layout is stored on products.pricing_structure independently from the
prices themselves.
"""

from dataclasses import dataclass, replace
from itertools import product as cartesian
import json
from typing import Any, Optional
import uuid

from domain.enums import SectionType, UiMode
from domain.matrix_keys import MatrixContext

LAYOUT_MODE = "matrix_layout_v1"
LAYOUT_VERSION = 1
CSV_META_PREFIX = "#meta;"


def new_section_id() -> str:
    return f"sec_{uuid.uuid4().hex[:10]}"


def new_row_id() -> str:
    return f"row_{uuid.uuid4().hex[:10]}"


# =============================================================================
# Layout building blocks
# =============================================================================

@dataclass(frozen=True)
class VerticalAxisConfig:
    """The group whose values are rendered as matrix rows."""
    section_id: str
    section_type: SectionType
    group_id: str
    value_ids: tuple[str, ...] = ()
    title: str = ""
    description: str = ""
    ui_mode: UiMode = UiMode.BUTTONS

    @classmethod
    def from_dict(cls, data: dict) -> "VerticalAxisConfig":
        return cls(
            section_id=data.get("sectionId") or new_section_id(),
            section_type=SectionType(data.get("sectionType", "materials")),
            group_id=data.get("groupId", ""),
            value_ids=tuple(data.get("valueIds") or ()),
            # labelOverride is the legacy name of title
            title=data.get("title") or data.get("labelOverride") or "",
            description=data.get("description") or "",
            ui_mode=UiMode.from_string(data.get("ui_mode")),
        )

    def to_dict(self) -> dict:
        return {
            "sectionId": self.section_id,
            "sectionType": self.section_type.value,
            "groupId": self.group_id,
            "valueIds": list(self.value_ids),
            "title": self.title,
            "description": self.description,
            "ui_mode": self.ui_mode.value,
        }


@dataclass(frozen=True)
class LayoutColumn:
    """A section within a layout row, backed by one attribute group."""
    id: str
    section_type: SectionType
    group_id: str
    value_ids: tuple[str, ...] = ()
    ui_mode: UiMode = UiMode.BUTTONS
    title: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "LayoutColumn":
        return cls(
            id=data.get("id") or new_section_id(),
            section_type=SectionType(data.get("sectionType", "finishes")),
            group_id=data.get("groupId", ""),
            value_ids=tuple(data.get("valueIds") or ()),
            ui_mode=UiMode.from_string(data.get("ui_mode")),
            title=data.get("title") or data.get("labelOverride") or "",
            description=data.get("description") or "",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sectionType": self.section_type.value,
            "groupId": self.group_id,
            "valueIds": list(self.value_ids),
            "ui_mode": self.ui_mode.value,
            "title": self.title,
            "description": self.description,
        }


@dataclass(frozen=True)
class LayoutRow:
    """A horizontal row of sections."""
    id: str
    columns: tuple[LayoutColumn, ...] = ()
    title: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "LayoutRow":
        return cls(
            id=data.get("id") or new_row_id(),
            columns=tuple(LayoutColumn.from_dict(c) for c in data.get("columns") or ()),
            title=data.get("title") or "",
            description=data.get("description") or "",
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "columns": [c.to_dict() for c in self.columns],
        }


# =============================================================================
# MatrixLayout - the full structure
# =============================================================================

@dataclass(frozen=True)
class MatrixLayout:
    """
    A matrix_layout_v1 pricing structure.

    Attributes:
        vertical_axis: Group rendered as rows (formats or materials)
        layout_rows: Ordered rows of sections
        quantities: Quantity list shared by the whole matrix
    """
    vertical_axis: VerticalAxisConfig
    layout_rows: tuple[LayoutRow, ...] = ()
    quantities: tuple[int, ...] = ()

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["MatrixLayout"]:
        """Parse a stored structure; None for missing or non-matrix_layout_v1 modes."""
        if not data or data.get("mode") != LAYOUT_MODE or not data.get("vertical_axis"):
            return None
        return cls(
            vertical_axis=VerticalAxisConfig.from_dict(data["vertical_axis"]),
            layout_rows=tuple(LayoutRow.from_dict(r) for r in data.get("layout_rows") or ()),
            quantities=tuple(sorted({int(q) for q in data.get("quantities") or ()})),
        )

    def to_dict(self) -> dict:
        return {
            "mode": LAYOUT_MODE,
            "version": LAYOUT_VERSION,
            "vertical_axis": self.vertical_axis.to_dict(),
            "layout_rows": [r.to_dict() for r in self.layout_rows],
            "quantities": list(self.quantities),
        }

    @property
    def sections(self) -> tuple[LayoutColumn, ...]:
        """All sections in row order, then column order."""
        return tuple(col for row in self.layout_rows for col in row.columns)

    def with_quantities(self, quantities) -> "MatrixLayout":
        return replace(self, quantities=tuple(sorted({int(q) for q in quantities if int(q) > 0})))

    def with_rows(self, rows) -> "MatrixLayout":
        return replace(self, layout_rows=tuple(rows))

    def with_vertical_axis(self, axis: VerticalAxisConfig) -> "MatrixLayout":
        return replace(self, vertical_axis=axis)


# =============================================================================
# Combinations
# =============================================================================

@dataclass(frozen=True)
class MatrixCombination:
    """
    One row of the price matrix: a vertical axis value plus one selected
    value per section.

    selection maps section id -> value id and includes the vertical axis.
    """
    vertical_value_id: str
    selection: tuple[tuple[str, str], ...]
    context: MatrixContext

    @property
    def selection_map(self) -> dict[str, str]:
        return dict(self.selection)


def extract_dimension_ids(
    selection: dict[str, str],
    structure: MatrixLayout,
) -> tuple[Optional[str], Optional[str]]:
    """
    Resolve (format_id, material_id) from a section selection.

    The vertical axis wins; otherwise the first formats/materials section
    in layout order supplies the id.
    """
    format_id = None
    material_id = None
    axis = structure.vertical_axis
    axis_value = selection.get(axis.section_id)
    if axis_value:
        if axis.section_type == SectionType.FORMATS:
            format_id = axis_value
        elif axis.section_type == SectionType.MATERIALS:
            material_id = axis_value

    for col in structure.sections:
        selected = selection.get(col.id)
        if not selected:
            continue
        if col.section_type == SectionType.FORMATS and format_id is None:
            format_id = selected
        elif col.section_type == SectionType.MATERIALS and material_id is None:
            material_id = selected
    return format_id, material_id


def context_for_selection(selection: dict[str, str], structure: MatrixLayout) -> MatrixContext:
    """
    Matrix context of a selection.

    Every selected value that did not become the format or material id is
    a secondary selection and goes into the variant key.
    """
    format_id, material_id = extract_dimension_ids(selection, structure)
    used = {format_id, material_id}
    variant_ids = [v for v in selection.values() if v and v not in used]
    return MatrixContext.from_ids(format_id, material_id, variant_ids)


def matrix_combinations(
    structure: MatrixLayout,
    enabled_value_ids: Optional[set[str]] = None,
) -> list[MatrixCombination]:
    """
    Enumerate every (vertical value × section values) combination.

    Args:
        structure: The layout
        enabled_value_ids: When given, values outside this set are skipped

    Returns:
        Combinations in vertical-axis order, then section order
    """
    def keep(values) -> list[str]:
        if enabled_value_ids is None:
            return list(values)
        return [v for v in values if v in enabled_value_ids]

    axis = structure.vertical_axis
    sections = [col for col in structure.sections if keep(col.value_ids)]
    section_values = [keep(col.value_ids) for col in sections]

    combos = []
    for vertical_value in keep(axis.value_ids):
        for picked in cartesian(*section_values):
            selection = {axis.section_id: vertical_value}
            selection.update({col.id: val for col, val in zip(sections, picked)})
            combos.append(MatrixCombination(
                vertical_value_id=vertical_value,
                selection=tuple(selection.items()),
                context=context_for_selection(selection, structure),
            ))
    return combos


# =============================================================================
# CSV meta line
# =============================================================================

@dataclass(frozen=True)
class CsvMeta:
    """Layout information carried on the first line of an exported CSV."""
    vertical_axis: dict
    sections: tuple[dict, ...] = ()
    quantities: tuple[int, ...] = ()

    @classmethod
    def from_structure(cls, structure: MatrixLayout) -> "CsvMeta":
        axis = structure.vertical_axis
        return cls(
            vertical_axis={
                "sectionId": axis.section_id,
                "groupId": axis.group_id,
                "sectionType": axis.section_type.value,
            },
            sections=tuple(
                {
                    "sectionId": col.id,
                    "groupId": col.group_id,
                    "sectionType": col.section_type.value,
                    "ui_mode": col.ui_mode.value,
                }
                for col in structure.sections
            ),
            quantities=tuple(structure.quantities),
        )

    def to_line(self) -> str:
        payload: dict[str, Any] = {
            "vertical_axis": self.vertical_axis,
            "sections": list(self.sections),
            "quantities": list(self.quantities),
        }
        return CSV_META_PREFIX + json.dumps(payload, ensure_ascii=False)

    @classmethod
    def parse_line(cls, line: str) -> Optional["CsvMeta"]:
        """None when the line is not a meta line or its content is unreadable."""
        if not line.startswith(CSV_META_PREFIX):
            return None
        try:
            data = json.loads(line[len(CSV_META_PREFIX):])
            if not isinstance(data, dict) or not isinstance(data.get("vertical_axis"), dict):
                return None
            sections = tuple(data.get("sections") or ())
            quantities = tuple(int(q) for q in data.get("quantities") or ())
        except (TypeError, ValueError):
            return None
        if not all(isinstance(section, dict) for section in sections):
            return None
        return cls(vertical_axis=data["vertical_axis"], sections=sections, quantities=quantities)

    @property
    def column_sections(self) -> list[dict]:
        """Attribute columns of the CSV in order: the vertical axis first."""
        return [self.vertical_axis, *self.sections]


def disambiguate_section_headers(sections: list[tuple[str, str]]) -> list[str]:
    """
    Header names for (section_id, name) pairs; duplicates get "__sec_<id8>".

    Example:
        >>> disambiguate_section_headers([("a1", "Papir"), ("b2", "Papir"), ("c3", "Format")])
        ['Papir__sec_a1', 'Papir__sec_b2', 'Format']
    """
    counts: dict[str, int] = {}
    for _, name in sections:
        counts[name] = counts.get(name, 0) + 1
    return [
        f"{name}__sec_{section_id[:8]}" if counts[name] > 1 else name
        for section_id, name in sections
    ]
