"""
CSV Interchange

Import and export of price matrices as CSV.

File format:
    line 1 (optional)  #meta;<json>   layout of the exported matrix
    line 2             headers, ";" or "," delimited
    line 3..           data rows, quoted-field aware

Two data layouts are understood on import:
    wide  attribute columns followed by numeric quantity columns holding prices
    long  attribute columns plus one quantity column and one price column

Import problems (unmapped columns, unknown names, empty files) never abort
the import; they end up as warnings on the result so the caller can show
a partial result.
"""

import csv
import io
import re
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from domain.converters import parse_number, parse_quantity_header
from domain.enums import AttributeKind, ColumnRole, SectionType
from domain.errors import CsvImportError
from domain.matrix_keys import MatrixContext
from domain.models import AttributeGroup, AttributeValue, index_values
from domain.pricing_state import AnchorEntry, PricingState
from domain.pricing_structure import CsvMeta, MatrixLayout, disambiguate_section_headers, matrix_combinations
from logging_config import setup_logging
from services.column_classifier import classify_header, matching_rule

logger = setup_logging(__name__, log_file="csv_interchange.log")

_WEIGHT_SUFFIX = re.compile(r"(\d+)\s*(?:gr|gram|g)\b")

_SECTION_ROLES = {
    SectionType.FORMATS: ColumnRole.FORMAT,
    SectionType.MATERIALS: ColumnRole.MATERIAL,
    SectionType.FINISHES: ColumnRole.FINISH,
    SectionType.PRODUCTS: ColumnRole.FINISH,
}

_ROLE_KINDS = {
    ColumnRole.FORMAT: (AttributeKind.FORMAT,),
    ColumnRole.MATERIAL: (AttributeKind.MATERIAL,),
    ColumnRole.FINISH: (AttributeKind.FINISH, AttributeKind.OTHER, AttributeKind.CUSTOM),
}


# =============================================================================
# Result types
# =============================================================================

@dataclass(frozen=True)
class ColumnPlan:
    """How one CSV column is read."""
    index: int
    header: str
    role: ColumnRole
    quantity: Optional[int] = None
    group_ids: tuple[str, ...] = ()


@dataclass
class CsvImportResult:
    """
    Outcome of an import.

    Attributes:
        anchors: Locked anchor entries keyed by matrix key
        quantities: Quantities that received at least one price
        warnings: Human-readable problems, in the order found
        unmatched: Cell texts that matched no attribute value
        unmapped_columns: Headers that were neither attribute nor quantity
        rows_read: Data rows in the file
        used_meta: True when a #meta line drove the column mapping
    """
    anchors: dict[str, AnchorEntry] = field(default_factory=dict)
    quantities: list[int] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    unmatched: list[str] = field(default_factory=list)
    unmapped_columns: list[str] = field(default_factory=list)
    rows_read: int = 0
    used_meta: bool = False

    @property
    def price_count(self) -> int:
        return len(self.anchors)

    @property
    def is_partial(self) -> bool:
        return bool(self.warnings)


# =============================================================================
# Parsing
# =============================================================================

def detect_delimiter(header_line: str) -> str:
    """";" when it outnumbers "," in the header line, else ","."""
    return ";" if header_line.count(";") > header_line.count(",") else ","


def read_csv_text(text: str) -> tuple[Optional[CsvMeta], list[str], list[list[str]]]:
    """
    Split CSV text into (meta, headers, rows).

    Raises:
        CsvImportError: If there is no header line
    """
    lines = [line for line in text.lstrip("\ufeff").splitlines() if line.strip()]
    meta = None
    if lines and lines[0].startswith("#meta;"):
        meta = CsvMeta.parse_line(lines[0])
        if meta is None:
            logger.warning("Ignoring unreadable #meta line")
        lines = lines[1:]
    if not lines:
        raise CsvImportError("CSV-filen indeholder ingen overskriftslinje")

    delimiter = detect_delimiter(lines[0])
    reader = csv.reader(lines, delimiter=delimiter, quotechar='"', skipinitialspace=True)
    parsed = [[cell.strip() for cell in row] for row in reader]
    return meta, parsed[0], [row for row in parsed[1:] if any(row)]


# =============================================================================
# Value matching
# =============================================================================

def normalize_name(name: str) -> str:
    """
    Normalise an attribute value name for matching.

    Example:
        >>> normalize_name(" 135 gr ")
        '135g'
    """
    text = _WEIGHT_SUFFIX.sub(r"\1g", str(name or "").lower().strip())
    return "".join(text.split())


def match_value(cell: str, groups: list[AttributeGroup]) -> Optional[AttributeValue]:
    """
    Find the attribute value a cell refers to.

    Exact normalised name (or key) first, then a unique prefix match
    either way round.
    """
    wanted = normalize_name(cell)
    if not wanted:
        return None
    values = [v for g in groups for v in g.values]

    for value in values:
        if normalize_name(value.name) == wanted or (value.key and normalize_name(value.key) == wanted):
            return value

    prefixed = [
        v for v in values
        if normalize_name(v.name).startswith(wanted) or wanted.startswith(normalize_name(v.name) or "\0")
    ]
    if len(prefixed) == 1:
        return prefixed[0]
    return None


# =============================================================================
# Import
# =============================================================================

def _plan_columns(
    headers: list[str],
    meta: Optional[CsvMeta],
    groups: list[AttributeGroup],
) -> list[ColumnPlan]:
    plans = []
    meta_sections = meta.column_sections if meta else []
    group_ids = {g.id for g in groups}

    for index, header in enumerate(headers):
        if index < len(meta_sections):
            section = meta_sections[index]
            try:
                role = _SECTION_ROLES[SectionType(section.get("sectionType"))]
            except ValueError:
                role = ColumnRole.UNKNOWN
            group_id = str(section.get("groupId") or "")
            if group_id in group_ids:
                plans.append(ColumnPlan(index, header, role, group_ids=(group_id,)))
                continue

        role = classify_header(header)
        logger.debug(f"Column {header!r} classified as {role.value} by rule {matching_rule(header)}")
        quantity = parse_quantity_header(header) if role == ColumnRole.QTY else None
        candidates = ()
        if role.is_attribute:
            kinds = _ROLE_KINDS[role]
            candidates = tuple(g.id for g in groups if g.kind in kinds)
        plans.append(ColumnPlan(index, header, role, quantity=quantity, group_ids=candidates))
    return plans


def import_price_csv(
    text: str,
    groups: list[AttributeGroup],
    structure: Optional[MatrixLayout] = None,
) -> CsvImportResult:
    """
    Read a price CSV into locked anchors.

    Args:
        text: Full CSV text
        groups: The product's attribute groups; cell texts are matched
            against their values
        structure: Current layout; when given, only groups used by the
            layout are matched

    Returns:
        CsvImportResult; never raises for content problems

    Raises:
        CsvImportError: If the file has no header line at all
    """
    meta, headers, rows = read_csv_text(text)
    if structure is not None:
        used = {structure.vertical_axis.group_id, *(c.group_id for c in structure.sections)}
        groups = [g for g in groups if g.id in used] or groups
    result = CsvImportResult(rows_read=len(rows), used_meta=meta is not None)
    if meta is None and _starts_with_meta(text):
        result.warnings.append("Ugyldig #meta-linje ignoreret, kolonner genkendt ud fra overskrifter")
    plans = _plan_columns(headers, meta, groups)
    groups_by_id = {g.id: g for g in groups}

    attribute_cols = [p for p in plans if p.role.is_attribute]
    wide_cols = [p for p in plans if p.role == ColumnRole.QTY and p.quantity is not None]
    qty_col = next((p for p in plans if p.role == ColumnRole.QTY and p.quantity is None), None)
    price_col = next((p for p in plans if p.role == ColumnRole.PRICE), None)
    long_layout = not wide_cols and qty_col is not None and price_col is not None

    for plan in plans:
        if plan.role == ColumnRole.UNKNOWN:
            result.unmapped_columns.append(plan.header)
        elif plan.role.is_attribute and not plan.group_ids:
            result.unmapped_columns.append(plan.header)
    if result.unmapped_columns:
        result.warnings.append("Ukendte kolonner ignoreret: " + ", ".join(result.unmapped_columns))

    if not wide_cols and not long_layout:
        result.warnings.append("Ingen antal-kolonner fundet")
        logger.warning(f"No quantity columns in CSV headers {headers}")
        return result

    quantities: set[int] = set()
    for line_no, row in enumerate(rows, start=1):
        ctx = _resolve_row_context(row, attribute_cols, groups_by_id, result)
        if ctx is None:
            continue

        if long_layout:
            quantity = parse_number(_cell(row, qty_col.index))
            price = parse_number(_cell(row, price_col.index))
            cells = [(int(quantity), price)] if quantity and quantity > 0 else []
        else:
            cells = [(p.quantity, parse_number(_cell(row, p.index))) for p in wide_cols]

        for quantity, price in cells:
            if price is None or price <= 0 or quantity <= 0:
                continue
            result.anchors[ctx.cell_key(quantity)] = AnchorEntry(price=price, is_locked=True)
            quantities.add(quantity)

    result.quantities = sorted(quantities)
    if result.unmatched:
        result.warnings.append("Ukendte værdier: " + ", ".join(result.unmatched))
    if not result.anchors:
        result.warnings.append("Ingen priser kunne aflæses fra filen")

    logger.info(
        f"CSV import: {result.rows_read} rows, {result.price_count} prices, "
        f"{len(result.warnings)} warnings (meta={result.used_meta})"
    )
    return result


def _cell(row: list[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def _starts_with_meta(text: str) -> bool:
    return text.lstrip("\ufeff \t\r\n").startswith("#meta;")


def _resolve_row_context(
    row: list[str],
    attribute_cols: list[ColumnPlan],
    groups_by_id: dict[str, AttributeGroup],
    result: CsvImportResult,
) -> Optional[MatrixContext]:
    """Matrix context of a data row, or None when a named value is unknown."""
    format_id = None
    material_id = None
    variant_ids = []

    for plan in attribute_cols:
        if not plan.group_ids:
            continue
        cell = _cell(row, plan.index)
        if not cell:
            continue
        value = match_value(cell, [groups_by_id[g] for g in plan.group_ids])
        if value is None:
            if cell not in result.unmatched:
                result.unmatched.append(cell)
            return None
        if plan.role == ColumnRole.FORMAT and format_id is None:
            format_id = value.id
        elif plan.role == ColumnRole.MATERIAL and material_id is None:
            material_id = value.id
        else:
            variant_ids.append(value.id)

    return MatrixContext.from_ids(format_id, material_id, variant_ids)


def apply_import(state: PricingState, result: CsvImportResult) -> PricingState:
    """
    Merge an import into the editor state.

    Imported anchors overwrite prices but keep an existing local markup;
    their quantities join the quantity set.
    """
    merged = {}
    for key, entry in result.anchors.items():
        existing = state.anchors.get(key)
        markup = existing.markup_percent if existing else 0.0
        merged[key] = AnchorEntry(price=entry.price, markup_percent=markup, is_locked=True)
    return state.with_anchors_merged(merged).with_quantities((*state.quantities, *result.quantities))


# =============================================================================
# Export
# =============================================================================

def _format_cell(value: float, delimiter: str) -> str:
    if value == int(value):
        return str(int(value))
    text = f"{value:.2f}"
    return text.replace(".", ",") if delimiter == ";" else text


def price_export_frame(
    state: PricingState,
    structure: MatrixLayout,
    groups: list[AttributeGroup],
    mode: str = "anchors",
    delimiter: str = ";",
) -> pd.DataFrame:
    """
    Matrix as a DataFrame with one column per attribute section and one
    per quantity.

    Args:
        mode: "anchors" writes locked curve prices only (re-importable);
            "final" writes computed final prices for every cell
    """
    if mode not in ("anchors", "final"):
        raise ValueError(f"Unknown export mode: {mode}")

    values = index_values(groups)
    groups_by_id = {g.id: g for g in groups}
    axis = structure.vertical_axis
    section_names = [(axis.section_id, axis.title or _group_name(groups_by_id, axis.group_id))]
    section_names += [(c.id, c.title or _group_name(groups_by_id, c.group_id)) for c in structure.sections]
    headers = disambiguate_section_headers(section_names)
    section_ids = [sid for sid, _ in section_names]
    quantities = list(state.quantities)

    records = []
    for combo in matrix_combinations(structure):
        selection = combo.selection_map
        record = {h: values[selection[sid]].name if selection.get(sid) in values else selection.get(sid, "")
                  for h, sid in zip(headers, section_ids)}
        for quantity in quantities:
            if mode == "anchors":
                entry = state.get_anchor(combo.context, quantity)
                cell = _format_cell(entry.price, delimiter) if entry.is_active else ""
            else:
                point = state.price_point(combo.context, quantity)
                cell = _format_cell(point.final, delimiter) if point.final > 0 else ""
            record[str(quantity)] = cell
        records.append(record)

    return pd.DataFrame(records, columns=[*headers, *[str(q) for q in quantities]])


def export_price_csv(
    state: PricingState,
    structure: MatrixLayout,
    groups: list[AttributeGroup],
    mode: str = "anchors",
    delimiter: str = ";",
) -> str:
    """Full CSV text including the #meta line."""
    frame = price_export_frame(state, structure, groups, mode=mode, delimiter=delimiter)
    meta = CsvMeta.from_structure(structure.with_quantities(state.quantities))
    buffer = io.StringIO()
    buffer.write(meta.to_line() + "\n")
    frame.to_csv(buffer, sep=delimiter, index=False, lineterminator="\n")
    return buffer.getvalue()


def _group_name(groups_by_id: dict[str, AttributeGroup], group_id: str) -> str:
    group = groups_by_id.get(group_id)
    return group.name if group else group_id
