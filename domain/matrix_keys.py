"""
Matrix Key Builder

Deterministic string keys for cells of the price matrix.

A key has four parts joined by "::":

    formatId::materialId::variantKey::quantity

variantKey is "none" when there are no secondary selections, otherwise
the deduplicated, lexicographically sorted secondary value ids joined with
"|". Sorting makes the key independent of selection order, so the anchor
editor, the CSV importer, the publish step and the reconstruction from
published rows all land on the same key for the same combination.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

KEY_SEPARATOR = "::"
VARIANT_SEPARATOR = "|"
NONE_PART = "none"


def build_variant_key(variant_value_ids: Iterable[str]) -> str:
    """
    Build the variant part of a matrix key.

    Examples:
        >>> build_variant_key(["b", "a", "b"])
        'a|b'
        >>> build_variant_key([])
        'none'
    """
    ids = sorted({str(v) for v in variant_value_ids if v})
    if not ids:
        return NONE_PART
    return VARIANT_SEPARATOR.join(ids)


def context_key(format_id: Optional[str], material_id: Optional[str], variant_key: str) -> str:
    """Matrix key without the quantity part: one price curve."""
    return KEY_SEPARATOR.join((format_id or NONE_PART, material_id or NONE_PART, variant_key or NONE_PART))


def build_key(
    format_id: Optional[str],
    material_id: Optional[str],
    variant_value_ids: Iterable[str],
    quantity: int,
) -> str:
    """
    Build the full matrix key for one cell.

    Example:
        >>> build_key("fmt", "mat", ["fin2", "fin1"], 100)
        'fmt::mat::fin1|fin2::100'
    """
    return f"{context_key(format_id, material_id, build_variant_key(variant_value_ids))}{KEY_SEPARATOR}{int(quantity)}"


def markup_key(format_id: Optional[str], material_id: Optional[str], variant_key: Optional[str] = None) -> str:
    """
    Scope key for a product markup.

    Without a variant the markup applies to every variant of the
    (format, material) pair.
    """
    base = KEY_SEPARATOR.join((format_id or NONE_PART, material_id or NONE_PART))
    if variant_key is None:
        return base
    return f"{base}{KEY_SEPARATOR}{variant_key}"


@dataclass(frozen=True)
class MatrixContext:
    """
    A (format, material, variant) triple: everything in a key but the quantity.

    Anchors sharing a context form one interpolation curve.
    """
    format_id: str = NONE_PART
    material_id: str = NONE_PART
    variant_key: str = NONE_PART

    @classmethod
    def from_ids(
        cls,
        format_id: Optional[str],
        material_id: Optional[str],
        variant_value_ids: Iterable[str] = (),
    ) -> "MatrixContext":
        return cls(
            format_id=format_id or NONE_PART,
            material_id=material_id or NONE_PART,
            variant_key=build_variant_key(variant_value_ids),
        )

    @classmethod
    def from_context_key(cls, key: str) -> "MatrixContext":
        parts = key.split(KEY_SEPARATOR)
        if len(parts) != 3:
            raise ValueError(f"Malformed context key: {key!r}")
        return cls(*parts)

    @property
    def key(self) -> str:
        return context_key(self.format_id, self.material_id, self.variant_key)

    @property
    def variant_value_ids(self) -> tuple[str, ...]:
        if self.variant_key == NONE_PART:
            return ()
        return tuple(self.variant_key.split(VARIANT_SEPARATOR))

    def cell_key(self, quantity: int) -> str:
        return f"{self.key}{KEY_SEPARATOR}{int(quantity)}"

    @property
    def markup_keys(self) -> tuple[str, str]:
        """(variant-scoped, coarse) product markup keys, most specific first."""
        return (
            markup_key(self.format_id, self.material_id, self.variant_key),
            markup_key(self.format_id, self.material_id),
        )


def parse_key(key: str) -> tuple[MatrixContext, int]:
    """
    Split a full matrix key into its context and quantity.

    Raises:
        ValueError: If the key does not have four parts or the quantity
            part is not an integer
    """
    parts = key.split(KEY_SEPARATOR)
    if len(parts) != 4:
        raise ValueError(f"Malformed matrix key: {key!r}")
    format_id, material_id, variant_key, quantity = parts
    return MatrixContext(format_id, material_id, variant_key), int(quantity)
