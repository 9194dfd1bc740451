"""
Pricing Service

Orchestrates the price matrix of a product:
- loading the layout and the editor state
- publishing final prices as flat rows
- CSV import/export against the editor state
- the template bank of named snapshots

The editor state lives in the session between edits; nothing is written
until publish() or a template save.

Design Principles:
1. Dependency Injection - Receives its repositories
2. Service Layer - Orchestrates business operations
3. Clean separation - No UI dependencies
"""

from dataclasses import dataclass
from typing import Optional
import logging

from domain import (
    AnchorEntry,
    AttributeGroup,
    MatrixContext,
    MatrixLayout,
    NotFoundError,
    PriceRow,
    PriceSource,
    PricingState,
    TemplateBankEntry,
    ValidationError,
    matrix_combinations,
)
from logging_config import setup_logging
from repositories.price_repo import PriceRepository
from repositories.product_repo import ProductRepository
from repositories.template_bank_repo import TemplateBankRepository
from services.csv_interchange import CsvImportResult, apply_import, export_price_csv, import_price_csv

logger = setup_logging(__name__, log_file="pricing_service.log")


@dataclass(frozen=True)
class PublishResult:
    """
    Outcome of a publish.

    Attributes:
        rows_written: Rows upserted
        combinations: Matrix combinations considered
        empty_cells: Combination x quantity cells skipped for lack of a price
    """
    rows_written: int
    combinations: int
    empty_cells: int


def state_defaults() -> dict:
    """PricingState defaults from settings.toml [pricing]."""
    from settings_service import SettingsService

    settings = SettingsService()
    return {
        "quantities": settings.default_quantities,
        "rounding": settings.default_rounding,
        "master_markup": settings.default_master_markup,
    }


def build_price_rows(
    product_id: str,
    state: PricingState,
    structure: MatrixLayout,
    groups: list[AttributeGroup],
) -> tuple[list[PriceRow], int, int]:
    """
    Flat rows for every enabled combination x quantity with a final price > 0.

    Returns:
        (rows, combinations considered, empty cells skipped)
    """
    enabled = {v.id for g in groups for v in g.enabled_values}
    combos = matrix_combinations(structure, enabled)
    axis = structure.vertical_axis
    rows = []
    empty = 0
    for combo in combos:
        ctx = combo.context
        for point in state.price_curve(ctx):
            if point.final <= 0:
                empty += 1
                continue
            rows.append(PriceRow(
                product_id=product_id,
                variant_name=ctx.key,
                variant_value=combo.vertical_value_id,
                quantity=point.quantity,
                price=point.final,
                extra_data={
                    "verticalAxisGroupId": axis.group_id,
                    "verticalAxisValueId": combo.vertical_value_id,
                    "formatId": None if ctx.format_id == "none" else ctx.format_id,
                    "materialId": None if ctx.material_id == "none" else ctx.material_id,
                    "variantValueIds": list(ctx.variant_value_ids),
                    "selection": combo.selection_map,
                    "basePrice": round(point.base, 4),
                    "markupPercent": point.markup_percent,
                    "source": point.source.value,
                },
            ))
    return rows, len(combos), empty


def state_from_rows(rows: list[PriceRow], base: PricingState) -> PricingState:
    """
    Rebuild editor anchors from published rows.

    Rows published as anchors or overrides come back as such, with their
    base price and markup. Rows without that information become plain
    locked anchors at their published price. Interpolated rows are skipped;
    they are recomputed from the anchors.
    """
    anchors: dict[str, AnchorEntry] = {}
    quantities = set()
    for row in rows:
        extra = row.extra_data or {}
        try:
            ctx = MatrixContext.from_context_key(row.variant_name)
        except ValueError:
            ctx = MatrixContext.from_ids(extra.get("formatId"), extra.get("materialId"), extra.get("variantValueIds") or ())
        quantities.add(row.quantity)

        source = extra.get("source")
        if source == PriceSource.INTERPOLATED.value:
            continue
        if "basePrice" in extra:
            entry = AnchorEntry(
                price=float(extra["basePrice"]),
                markup_percent=float(extra.get("markupPercent") or 0),
                is_locked=True,
                exclude_from_curve=source == PriceSource.OVERRIDE.value,
            )
        else:
            entry = AnchorEntry(price=row.price, is_locked=True)
        anchors[ctx.cell_key(row.quantity)] = entry

    state = base.with_anchors_merged(anchors)
    if quantities:
        state = state.with_quantities(quantities)
    return state


class PricingService:
    """
    Price matrix operations for products.

    Example:
        service = PricingService.create_default()
        structure = service.load_structure("p1")
        state = service.load_state("p1")
        state = state.with_anchor(ctx, 100, price=45)
        service.publish("p1", state, structure, groups)
    """

    def __init__(
        self,
        products: ProductRepository,
        prices: PriceRepository,
        templates: TemplateBankRepository,
        defaults: Optional[dict] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self._products = products
        self._prices = prices
        self._templates = templates
        self._defaults = defaults if defaults is not None else {}
        self._logger = logger_instance or logger

    @classmethod
    def create_default(cls) -> "PricingService":
        from repositories.price_repo import get_price_repository
        from repositories.product_repo import get_product_repository
        from repositories.template_bank_repo import get_template_bank_repository

        return cls(
            get_product_repository(),
            get_price_repository(),
            get_template_bank_repository(),
            defaults=state_defaults(),
        )

    # -------------------------------------------------------------------------
    # Layout and state
    # -------------------------------------------------------------------------

    def new_state(self) -> PricingState:
        return PricingState(**self._defaults)

    def load_structure(self, product_id: str) -> Optional[MatrixLayout]:
        product = self._products.require_product(product_id)
        return MatrixLayout.from_dict(product.pricing_structure)

    def save_structure(self, product_id: str, structure: MatrixLayout) -> None:
        self._products.save_pricing_structure(product_id, structure.to_dict())

    def load_state(self, product_id: str) -> PricingState:
        """
        Editor state for a product.

        The generator state saved at the last publish wins; without one the
        state is rebuilt from the published rows. The layout's quantity list
        is used when the saved state has none.
        """
        product = self._products.require_product(product_id)
        defaults = dict(self._defaults)
        structure = MatrixLayout.from_dict(product.pricing_structure)
        if structure is not None and structure.quantities:
            defaults["quantities"] = structure.quantities

        if product.generator_state:
            return PricingState.from_dict(product.generator_state, **defaults)

        rows = self._prices.get_prices(product_id)
        if not rows:
            return PricingState(**defaults)
        self._logger.info(f"Rebuilding editor state for {product_id} from {len(rows)} published rows")
        return state_from_rows(rows, PricingState(**defaults))

    # -------------------------------------------------------------------------
    # Publish
    # -------------------------------------------------------------------------

    def publish(
        self,
        product_id: str,
        state: PricingState,
        structure: Optional[MatrixLayout],
        groups: list[AttributeGroup],
    ) -> PublishResult:
        """
        Write final prices, the layout and the editor state in one transaction.

        Raises:
            ValidationError: If there is no layout or nothing to publish
        """
        if structure is None:
            raise ValidationError("Produktet har ingen prisstruktur")
        if not state.quantities:
            raise ValidationError("Der er ingen oplag at publicere")

        rows, combinations, empty = build_price_rows(product_id, state, structure, groups)
        if not rows:
            raise ValidationError("Der er ingen priser at publicere")

        written = self._prices.publish(
            product_id,
            rows,
            pricing_structure=structure.with_quantities(state.quantities).to_dict(),
            generator_state=state.to_dict(),
        )
        self._logger.info(
            f"Published {product_id}: {written} rows over {combinations} combinations, {empty} empty cells"
        )
        return PublishResult(rows_written=written, combinations=combinations, empty_cells=empty)

    def published_rows(self, product_id: str) -> list[PriceRow]:
        return self._prices.get_prices(product_id)

    # -------------------------------------------------------------------------
    # CSV
    # -------------------------------------------------------------------------

    def import_csv(
        self,
        state: PricingState,
        text: str,
        groups: list[AttributeGroup],
        structure: Optional[MatrixLayout] = None,
    ) -> tuple[PricingState, CsvImportResult]:
        """Merge a CSV into the state; the state is unchanged when nothing was read."""
        result = import_price_csv(text, groups, structure)
        if not result.anchors:
            return state, result
        return apply_import(state, result), result

    def export_csv(
        self,
        state: PricingState,
        structure: Optional[MatrixLayout],
        groups: list[AttributeGroup],
        mode: str = "anchors",
    ) -> str:
        if structure is None:
            raise ValidationError("Produktet har ingen prisstruktur")
        return export_price_csv(state, structure, groups, mode=mode)

    # -------------------------------------------------------------------------
    # Template bank
    # -------------------------------------------------------------------------

    def save_template(
        self,
        product_id: str,
        name: str,
        state: PricingState,
        structure: MatrixLayout,
        groups: list[AttributeGroup],
    ) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Skabelonen skal have et navn")
        rows, _, _ = build_price_rows(product_id, state, structure, groups)
        spec = {
            "pricing_structure": structure.with_quantities(state.quantities).to_dict(),
            "generator_state": state.to_dict(),
            "rows": [
                {
                    "variant_name": r.variant_name,
                    "variant_value": r.variant_value,
                    "quantity": r.quantity,
                    "price": r.price,
                    "extra_data": r.extra_data,
                }
                for r in rows
            ],
        }
        return self._templates.save_template(name, spec, product_id=product_id)

    def list_templates(self, product_id: Optional[str] = None) -> list[TemplateBankEntry]:
        return self._templates.list_templates(product_id)

    def load_template(self, template_id: str) -> tuple[Optional[MatrixLayout], PricingState]:
        """
        Layout and editor state of a template, for loading into the editor.

        Templates saved without a generator state are rebuilt from their rows.
        """
        entry = self._templates.get_template(template_id)
        if entry is None:
            raise NotFoundError(f"Skabelon {template_id} findes ikke")
        structure = MatrixLayout.from_dict(entry.spec.get("pricing_structure"))
        if entry.spec.get("generator_state"):
            return structure, PricingState.from_dict(entry.spec["generator_state"], **self._defaults)

        rows = [
            PriceRow(
                product_id=entry.product_id or "",
                variant_name=r.get("variant_name", ""),
                variant_value=r.get("variant_value", ""),
                quantity=int(r.get("quantity") or 0),
                price=float(r.get("price") or 0),
                extra_data=r.get("extra_data") or {},
            )
            for r in entry.spec.get("rows") or []
        ]
        return structure, state_from_rows(rows, self.new_state())

    def rename_template(self, template_id: str, name: str) -> None:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Skabelonen skal have et navn")
        self._templates.rename_template(template_id, name)

    def delete_template(self, template_id: str) -> None:
        self._templates.delete_template(template_id)


def get_pricing_service() -> PricingService:
    """
    Get or create a PricingService instance.

    Uses state.get_service for session state persistence across reruns.
    Falls back to direct instantiation if state module unavailable.
    """
    try:
        from state import get_service
        return get_service('pricing_service', PricingService.create_default)
    except ImportError:
        logger.debug("state module unavailable, creating new PricingService instance")
        return PricingService.create_default()
