"""
Tests for PricingService: publish, editor state loading and the template bank.

Runs against a temporary SQLite database through the real repositories.
"""
import pytest

from domain import (
    AnchorEntry,
    LayoutColumn,
    LayoutRow,
    MatrixContext,
    MatrixLayout,
    NotFoundError,
    PriceRow,
    PricingState,
    SectionType,
    ValidationError,
    VerticalAxisConfig,
)
from services.pricing_service import PricingService, build_price_rows, state_from_rows


@pytest.fixture
def service(repos):
    return PricingService(repos.products, repos.prices, repos.templates, defaults={"quantities": (100, 250, 500)})


@pytest.fixture
def structure(catalog):
    return MatrixLayout(
        vertical_axis=VerticalAxisConfig(
            section_id="sec_axis", section_type=SectionType.FORMATS,
            group_id=catalog["Format"], value_ids=(catalog["A4"], catalog["A5"]),
        ),
        layout_rows=(
            LayoutRow(id="row_1", columns=(
                LayoutColumn("sec_mat", SectionType.MATERIALS, catalog["Papir"], (catalog["135g"],)),
                LayoutColumn("sec_fin", SectionType.FINISHES, catalog["Finish"], (catalog["Mat"],)),
            )),
        ),
        quantities=(100, 250, 500),
    )


@pytest.fixture
def a4(catalog):
    return MatrixContext.from_ids(catalog["A4"], catalog["135g"], [catalog["Mat"]])


@pytest.fixture
def state(a4):
    return (
        PricingState(quantities=(100, 250, 500))
        .with_anchor(a4, 100, price=45)
        .with_anchor(a4, 500, price=40)
    )


class TestBuildPriceRows:
    def test_rows_for_priced_cells_only(self, catalog, repos, state, structure, a4):
        groups = repos.attributes.get_groups(catalog["product"])
        rows, combinations, empty = build_price_rows(catalog["product"], state, structure, groups)

        assert combinations == 2
        assert empty == 3
        assert [r.quantity for r in rows] == [100, 250, 500]
        assert {r.variant_name for r in rows} == {a4.key}
        assert all(r.variant_value == catalog["A4"] for r in rows)

    def test_extra_data_describes_the_cell(self, catalog, repos, state, structure):
        groups = repos.attributes.get_groups(catalog["product"])
        rows, _, _ = build_price_rows(catalog["product"], state, structure, groups)
        extra = rows[0].extra_data

        assert extra["formatId"] == catalog["A4"]
        assert extra["materialId"] == catalog["135g"]
        assert extra["variantValueIds"] == [catalog["Mat"]]
        assert extra["verticalAxisGroupId"] == catalog["Format"]
        assert extra["selection"]["sec_axis"] == catalog["A4"]
        assert extra["source"] == "anchor"
        assert rows[1].extra_data["source"] == "interpolated"

    def test_disabled_values_are_not_published(self, catalog, repos, state, structure):
        repos.attributes.set_value_enabled(catalog["A5"], False)
        groups = repos.attributes.get_groups(catalog["product"])
        _, combinations, empty = build_price_rows(catalog["product"], state, structure, groups)
        assert (combinations, empty) == (1, 0)


class TestPublish:
    def test_publish_writes_rows_and_documents(self, service, repos, catalog, state, structure):
        groups = repos.attributes.get_groups(catalog["product"])
        result = service.publish(catalog["product"], state, structure, groups)

        assert result.rows_written == 3
        assert repos.prices.count_prices(catalog["product"]) == 3
        assert service.load_structure(catalog["product"]) == structure
        assert service.load_state(catalog["product"]) == state

    def test_republish_updates_in_place(self, service, repos, catalog, state, structure, a4):
        groups = repos.attributes.get_groups(catalog["product"])
        service.publish(catalog["product"], state, structure, groups)
        service.publish(catalog["product"], state.with_anchor(a4, 100, price=50), structure, groups)

        prices = {r.quantity: r.price for r in service.published_rows(catalog["product"])}
        assert repos.prices.count_prices(catalog["product"]) == 3
        assert prices[100] == 50

    def test_without_structure(self, service, catalog, state):
        with pytest.raises(ValidationError):
            service.publish(catalog["product"], state, None, [])

    def test_nothing_to_publish(self, service, repos, catalog, structure):
        groups = repos.attributes.get_groups(catalog["product"])
        with pytest.raises(ValidationError):
            service.publish(catalog["product"], PricingState(), structure, groups)
        assert repos.prices.count_prices(catalog["product"]) == 0


class TestLoadState:
    def test_new_product_gets_defaults(self, service, catalog):
        state = service.load_state(catalog["product"])
        assert state.anchors == {}
        assert state.quantities == (100, 250, 500)

    def test_layout_quantities_are_used(self, service, catalog, structure):
        service.save_structure(catalog["product"], structure.with_quantities([10, 20]))
        assert service.load_state(catalog["product"]).quantities == (10, 20)

    def test_rebuilt_from_published_rows(self, service, repos, catalog, a4):
        repos.prices.publish(catalog["product"], [
            PriceRow(catalog["product"], a4.key, catalog["A4"], 100, 45),
            PriceRow(catalog["product"], a4.key, catalog["A4"], 750, 30, {"source": "interpolated"}),
        ])
        state = service.load_state(catalog["product"])

        assert state.get_anchor(a4, 100) == AnchorEntry(price=45, is_locked=True)
        assert a4.cell_key(750) not in state.anchors
        assert state.quantities == (100, 750)

    def test_missing_product(self, service):
        with pytest.raises(NotFoundError):
            service.load_state("missing")


def test_state_from_rows_restores_overrides(a4):
    rows = [PriceRow("p1", a4.key, "a4", 250, 50, {"basePrice": 40, "markupPercent": 25, "source": "override"})]
    state = state_from_rows(rows, PricingState())
    assert state.get_anchor(a4, 250) == AnchorEntry(price=40, markup_percent=25, is_locked=True, exclude_from_curve=True)


class TestTemplates:
    def test_save_and_load(self, service, repos, catalog, state, structure):
        groups = repos.attributes.get_groups(catalog["product"])
        template_id = service.save_template(catalog["product"], " Jul ", state, structure, groups)

        [entry] = service.list_templates(catalog["product"])
        assert entry.name == "Jul"
        assert entry.combination_count == 3

        loaded_structure, loaded_state = service.load_template(template_id)
        assert loaded_structure == structure
        assert loaded_state == state

    def test_template_without_state_is_rebuilt_from_rows(self, service, repos, a4):
        template_id = repos.templates.save_template(
            "Gammel", {"rows": [{"variant_name": a4.key, "variant_value": "a4", "quantity": 100, "price": 45}]},
        )
        structure, state = service.load_template(template_id)
        assert structure is None
        assert state.get_anchor(a4, 100).price == 45

    def test_blank_name(self, service, catalog, state, structure):
        with pytest.raises(ValidationError):
            service.save_template(catalog["product"], "  ", state, structure, [])

    def test_rename_and_delete(self, service, repos):
        template_id = repos.templates.save_template("A", {})
        service.rename_template(template_id, "B")
        assert service.list_templates()[0].name == "B"
        with pytest.raises(ValidationError):
            service.rename_template(template_id, "")
        service.delete_template(template_id)
        with pytest.raises(NotFoundError):
            service.load_template(template_id)


class TestCsv:
    def test_import_without_prices_keeps_state(self, service, state):
        updated, result = service.import_csv(state, "Format;Materiale\nA4;135g", [])
        assert updated is state
        assert result.anchors == {}

    def test_export_requires_structure(self, service, state):
        with pytest.raises(ValidationError):
            service.export_csv(state, None, [])

    def test_export_contains_prices(self, service, repos, catalog, state, structure):
        groups = repos.attributes.get_groups(catalog["product"])
        text = service.export_csv(state, structure, groups)
        assert "A4;135g;Mat;45;;40" in text
