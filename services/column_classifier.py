"""
CSV Column-Role Classifier

Classifies a CSV header into a ColumnRole using an explicit, ordered rule
list. Earlier rules shadow later ones:

1. exact synonym matches (Danish and English)
2. substring matches (finish substrings before "papir", so "Papirfinish"
   is a finish and "Papirtype" a material)
3. numeric headers, after stripping thousand-separator dots, are quantities

The rules are data, not code, so their precedence can be read and tested.
"""

from dataclasses import dataclass
from typing import Callable

from domain.converters import parse_quantity_header
from domain.enums import ColumnRole


@dataclass(frozen=True)
class ClassifierRule:
    """One rule: match the normalised header, yield a role."""
    name: str
    role: ColumnRole
    matches: Callable[[str], bool]


def _exact(*words: str) -> Callable[[str], bool]:
    vocabulary = frozenset(words)
    return lambda header: header in vocabulary


def _contains(*fragments: str) -> Callable[[str], bool]:
    return lambda header: any(f in header for f in fragments)


def _numeric(header: str) -> bool:
    return parse_quantity_header(header) is not None


CLASSIFIER_RULES: tuple[ClassifierRule, ...] = (
    # --- exact matches ---
    ClassifierRule("exact-ignore", ColumnRole.IGNORE, _exact(
        "", "#", "id", "sku", "note", "noter", "notes", "kommentar", "comment",
        "bemærkning", "bemærkninger",
    )),
    ClassifierRule("exact-finish", ColumnRole.FINISH, _exact(
        "finish", "papirfinish", "efterbehandling", "coating", "lak", "surface",
        "overflade", "laminering", "foliering",
    )),
    ClassifierRule("exact-format", ColumnRole.FORMAT, _exact(
        "format", "size", "størrelse", "str", "str.", "dimension", "dimensioner",
    )),
    ClassifierRule("exact-material", ColumnRole.MATERIAL, _exact(
        "materiale", "material", "papir", "paper", "papirtype", "medie", "media",
        "papirvægt", "paper weight", "weight", "grammage", "gramvægt", "gsm",
    )),
    ClassifierRule("exact-qty", ColumnRole.QTY, _exact(
        "antal", "oplag", "quantity", "qty", "stk", "stk.", "styk",
    )),
    ClassifierRule("exact-price", ColumnRole.PRICE, _exact(
        "pris", "price", "dkk", "pris (dkk)", "price (dkk)", "beløb", "amount",
    )),
    # --- substring fallbacks ---
    ClassifierRule("contains-finish", ColumnRole.FINISH, _contains(
        "finish", "efterbehandl", "lamin", "folie", "coating",
    )),
    ClassifierRule("contains-material", ColumnRole.MATERIAL, _contains(
        "papir", "paper", "materi", "medie", "gram",
    )),
    ClassifierRule("contains-format", ColumnRole.FORMAT, _contains(
        "format", "størrelse", "size",
    )),
    ClassifierRule("contains-qty", ColumnRole.QTY, _contains(
        "antal", "oplag", "quantity",
    )),
    ClassifierRule("contains-price", ColumnRole.PRICE, _contains(
        "pris", "price",
    )),
    # --- numeric fallback ---
    ClassifierRule("numeric-qty", ColumnRole.QTY, _numeric),
)


def normalize_header(header: str) -> str:
    """Lowercase, trim and collapse internal whitespace; drop surrounding quotes."""
    text = str(header or "").strip().strip('"').strip()
    return " ".join(text.lower().split())


def classify_header(header: str, rules: tuple[ClassifierRule, ...] = CLASSIFIER_RULES) -> ColumnRole:
    """
    Classify a CSV header.

    Examples:
        >>> classify_header("Papirfinish")
        <ColumnRole.FINISH: 'finish'>
        >>> classify_header("Materiale")
        <ColumnRole.MATERIAL: 'material'>
        >>> classify_header("1.000")
        <ColumnRole.QTY: 'qty'>
        >>> classify_header("Leveringstid")
        <ColumnRole.UNKNOWN: 'unknown'>
    """
    normalized = normalize_header(header)
    for rule in rules:
        if rule.matches(normalized):
            return rule.role
    return ColumnRole.UNKNOWN


def matching_rule(header: str, rules: tuple[ClassifierRule, ...] = CLASSIFIER_RULES) -> str | None:
    """Name of the first rule matching header, for diagnostics."""
    normalized = normalize_header(header)
    for rule in rules:
        if rule.matches(normalized):
            return rule.name
    return None
