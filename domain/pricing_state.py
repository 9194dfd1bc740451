"""
Pricing State

The editor state of one product's price matrix as a single immutable
value: anchors, product markups, master markup, rounding unit and the
quantity set. Every edit returns a new PricingState through a with_*
method; the session keeps the latest one.

Anchor rules:
    - an anchor is active (a curve point) when it is locked, not excluded
      from the curve and has a positive price
    - a locked but excluded entry is a manual override: it keeps its own
      price and markup and never shapes the curve
    - anything else is priced by interpolating the active anchors of its
      context
"""

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping, Optional

from domain.enums import PriceSource
from domain.interpolation import (
    ROUNDING_UNITS,
    AnchorPoint,
    apply_markup,
    finalize,
    interpolate,
    interpolate_components,
)
from domain.matrix_keys import MatrixContext, markup_key, parse_key

DEFAULT_QUANTITIES = (50, 100, 250, 500, 1000, 2500, 5000)


# =============================================================================
# AnchorEntry
# =============================================================================

@dataclass(frozen=True)
class AnchorEntry:
    """
    Price entry stored under a matrix key.

    Attributes:
        price: Base price before any markup
        markup_percent: Local markup for this quantity
        is_locked: Fixed by the user (manual input, CSV import or promotion)
        exclude_from_curve: Locked value that must not act as a curve point
    """
    price: float = 0.0
    markup_percent: float = 0.0
    is_locked: bool = False
    exclude_from_curve: bool = False

    @property
    def is_active(self) -> bool:
        """Usable as an interpolation control point."""
        return self.is_locked and not self.exclude_from_curve and self.price > 0

    @property
    def is_override(self) -> bool:
        return self.is_locked and self.exclude_from_curve and self.price > 0

    @property
    def is_empty(self) -> bool:
        return self == AnchorEntry()

    def to_dict(self) -> dict:
        return {
            "price": self.price,
            "markup_percent": self.markup_percent,
            "isLocked": self.is_locked,
            "excludeFromCurve": self.exclude_from_curve,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnchorEntry":
        return cls(
            price=float(data.get("price") or 0),
            markup_percent=float(data.get("markup_percent") or 0),
            is_locked=bool(data.get("isLocked", False)),
            exclude_from_curve=bool(data.get("excludeFromCurve", False)),
        )


EMPTY_ANCHOR = AnchorEntry()


# =============================================================================
# PricePoint
# =============================================================================

@dataclass(frozen=True)
class PricePoint:
    """
    Computed price of one matrix cell.

    Attributes:
        quantity: Print run
        base: Base price (anchor price or interpolated base)
        markup_percent: Local markup applied to base
        source: anchor / override / interpolated / empty
        final: Price after product and master markup, rounded
    """
    quantity: int
    base: float
    markup_percent: float
    source: PriceSource
    final: float


# =============================================================================
# PricingState
# =============================================================================

@dataclass(frozen=True)
class PricingState:
    """
    Immutable editor state for a product's price matrix.

    anchors and product_markups are never mutated in place; each with_*
    method copies the dict it changes.
    """
    anchors: dict[str, AnchorEntry] = field(default_factory=dict)
    product_markups: dict[str, float] = field(default_factory=dict)
    master_markup: float = 0.0
    rounding: int = 1
    quantities: tuple[int, ...] = DEFAULT_QUANTITIES

    # -------------------------------------------------------------------------
    # Anchor store
    # -------------------------------------------------------------------------

    def get_anchor(self, ctx: MatrixContext, quantity: int) -> AnchorEntry:
        return self.anchors.get(ctx.cell_key(quantity), EMPTY_ANCHOR)

    def anchors_for_context(self, ctx: MatrixContext) -> dict[int, AnchorEntry]:
        """Entries of one context keyed by quantity, orphans included."""
        result = {}
        prefix = ctx.key + "::"
        for key, entry in self.anchors.items():
            if key.startswith(prefix):
                _, quantity = parse_key(key)
                result[quantity] = entry
        return dict(sorted(result.items()))

    def active_anchors(self, ctx: MatrixContext) -> list[AnchorPoint]:
        """
        Curve points of a context.

        Entries under quantities no longer in the quantity set are orphaned
        and ignored.
        """
        active_quantities = set(self.quantities)
        return [
            AnchorPoint(quantity=q, price=e.price, markup=e.markup_percent)
            for q, e in self.anchors_for_context(ctx).items()
            if e.is_active and q in active_quantities
        ]

    def with_anchor(self, ctx: MatrixContext, quantity: int, **partial) -> "PricingState":
        """
        Overwrite fields of one entry.

        A price edit locks the entry when the price is positive and unlocks
        it when the price is cleared, unless is_locked is passed explicitly.
        exclude_from_curve is left as it is.
        """
        current = self.get_anchor(ctx, quantity)
        if "price" in partial and "is_locked" not in partial:
            partial["is_locked"] = float(partial["price"] or 0) > 0
        updated = replace(current, **partial)
        return self._with_entry(ctx.cell_key(quantity), updated)

    def with_row_markup(self, ctx: MatrixContext, quantity: int, markup: float) -> "PricingState":
        """
        Apply the per-row markup slider.

        - on an active anchor only markup_percent changes
        - on an interpolated row a non-zero markup promotes the row into a
          locked, curve-excluded override whose base is the current
          interpolated base price
        - on a promoted row a markup of 0 reverts it to an empty entry, so
          the row falls back to the interpolated price
        """
        entry = self.get_anchor(ctx, quantity)
        key = ctx.cell_key(quantity)

        if entry.is_active:
            return self._with_entry(key, replace(entry, markup_percent=markup))

        if entry.is_override:
            if markup == 0:
                return self._with_entry(key, EMPTY_ANCHOR)
            return self._with_entry(key, replace(entry, markup_percent=markup))

        if markup == 0:
            return self
        anchors = self.active_anchors(ctx)
        if not anchors:
            return self
        base, _ = interpolate_components(quantity, anchors)
        promoted = AnchorEntry(price=base, markup_percent=markup, is_locked=True, exclude_from_curve=True)
        return self._with_entry(key, promoted)

    def with_anchors_merged(self, entries: Mapping[str, AnchorEntry]) -> "PricingState":
        """Overwrite many entries at once (CSV import, template load)."""
        anchors = dict(self.anchors)
        anchors.update(entries)
        return replace(self, anchors=anchors)

    def without_context(self, ctx: MatrixContext) -> "PricingState":
        """Drop every entry of one context."""
        prefix = ctx.key + "::"
        return replace(self, anchors={k: v for k, v in self.anchors.items() if not k.startswith(prefix)})

    def _with_entry(self, key: str, entry: AnchorEntry) -> "PricingState":
        anchors = dict(self.anchors)
        if entry.is_empty:
            anchors.pop(key, None)
        else:
            anchors[key] = entry
        return replace(self, anchors=anchors)

    # -------------------------------------------------------------------------
    # Markups, rounding, quantities
    # -------------------------------------------------------------------------

    def product_markup_for(self, ctx: MatrixContext) -> float:
        """Variant-scoped product markup, else the (format, material) one, else 0."""
        for key in ctx.markup_keys:
            if key in self.product_markups:
                return self.product_markups[key]
        return 0.0

    def with_product_markup(
        self,
        format_id: Optional[str],
        material_id: Optional[str],
        markup: float,
        variant_key: Optional[str] = None,
    ) -> "PricingState":
        markups = dict(self.product_markups)
        key = markup_key(format_id, material_id, variant_key)
        if markup == 0:
            markups.pop(key, None)
        else:
            markups[key] = float(markup)
        return replace(self, product_markups=markups)

    def with_master_markup(self, markup: float) -> "PricingState":
        return replace(self, master_markup=float(markup))

    def with_rounding(self, unit: int) -> "PricingState":
        if unit not in ROUNDING_UNITS:
            raise ValueError(f"Rounding unit must be one of {ROUNDING_UNITS}, got {unit}")
        return replace(self, rounding=unit)

    def with_quantities(self, quantities: Iterable[int]) -> "PricingState":
        return replace(self, quantities=tuple(sorted({int(q) for q in quantities if int(q) > 0})))

    def with_quantity_added(self, quantity: int) -> "PricingState":
        return self.with_quantities((*self.quantities, quantity))

    def with_quantity_removed(self, quantity: int) -> "PricingState":
        """Remove a quantity; its entries stay behind as harmless orphans."""
        return self.with_quantities(q for q in self.quantities if q != quantity)

    # -------------------------------------------------------------------------
    # Price computation
    # -------------------------------------------------------------------------

    def price_point(self, ctx: MatrixContext, quantity: int) -> PricePoint:
        """Compute the price of one cell, including product/master markup and rounding."""
        entry = self.get_anchor(ctx, quantity)
        if entry.is_locked and entry.price > 0:
            source = PriceSource.OVERRIDE if entry.exclude_from_curve else PriceSource.ANCHOR
            base, markup = entry.price, entry.markup_percent
            with_local = apply_markup(base, markup)
        else:
            anchors = self.active_anchors(ctx)
            if not anchors:
                return PricePoint(quantity, 0.0, 0.0, PriceSource.EMPTY, 0.0)
            base, markup = interpolate_components(quantity, anchors)
            with_local = interpolate(quantity, anchors)
            source = PriceSource.INTERPOLATED

        final = finalize(with_local, self.product_markup_for(ctx), self.master_markup, self.rounding)
        return PricePoint(quantity, base, markup, source, final)

    def price_curve(self, ctx: MatrixContext) -> list[PricePoint]:
        return [self.price_point(ctx, q) for q in self.quantities]

    # -------------------------------------------------------------------------
    # Serialization (generator_state column, template bank)
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict:
        return {
            "anchors": {k: v.to_dict() for k, v in sorted(self.anchors.items())},
            "product_markups": dict(sorted(self.product_markups.items())),
            "master_markup": self.master_markup,
            "rounding": self.rounding,
            "quantities": list(self.quantities),
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]], **defaults) -> "PricingState":
        """
        Rebuild a state from its dict form.

        Missing keys fall back to defaults (keyword overrides) and then to
        the dataclass defaults.
        """
        base = cls(**defaults)
        if not data:
            return base
        rounding = int(data.get("rounding", base.rounding))
        return cls(
            anchors={k: AnchorEntry.from_dict(v) for k, v in (data.get("anchors") or {}).items()},
            product_markups={k: float(v) for k, v in (data.get("product_markups") or {}).items()},
            master_markup=float(data.get("master_markup", base.master_markup)),
            rounding=rounding if rounding in ROUNDING_UNITS else base.rounding,
            quantities=tuple(sorted({int(q) for q in data.get("quantities") or base.quantities})),
        )
