"""
Tests for the repositories against a temporary SQLite database.
"""
import pytest
from sqlalchemy import text

from domain import AssetKind, AttributeKind, NotFoundError, PriceRow, UiMode
from init_db import TABLES, init_db, verify_db_content
from repositories.product_repo import slugify


class TestInitDb:
    def test_creates_all_tables(self, db):
        assert set(TABLES) <= set(db.get_table_list())
        assert verify_db_content(db)

    def test_is_repeatable(self, db):
        assert init_db(db)

    def test_foreign_keys_enabled(self, db):
        with db.engine.connect() as conn:
            assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1


class TestProductRepository:
    def test_create_and_get(self, repos):
        product_id = repos.products.create_product("Flyers & Foldere")
        product = repos.products.get_product(product_id)
        assert product.name == "Flyers & Foldere"
        assert product.slug == "flyers-foldere"
        assert product.pricing_structure is None

    def test_require_missing_product(self, repos):
        with pytest.raises(NotFoundError):
            repos.products.require_product("missing")

    def test_documents_saved_independently(self, repos):
        product_id = repos.products.create_product("Visitkort")
        repos.products.save_pricing_structure(product_id, {"mode": "matrix_layout_v1"})
        repos.products.save_generator_state(product_id, {"rounding": 5})

        product = repos.products.get_product(product_id)
        assert product.pricing_structure == {"mode": "matrix_layout_v1"}
        assert product.generator_state == {"rounding": 5}

    def test_slugify_danish_letters(self):
        assert slugify("Årskort på Ærø") == "aarskort-paa-aeroe"


class TestAttributeRepository:
    def test_groups_with_values_in_order(self, repos, catalog):
        groups = repos.attributes.get_groups(catalog["product"])
        assert [g.name for g in groups] == ["Format", "Papir", "Finish"]
        fmt = groups[0]
        assert fmt.kind == AttributeKind.FORMAT
        assert [v.name for v in fmt.values] == ["A4", "A5"]
        assert fmt.values[0].width_mm == 210
        assert groups[1].values[0].width_mm is None

    def test_library_groups_are_separate(self, repos, catalog):
        repos.attributes.create_group("Standardformater", AttributeKind.FORMAT)
        assert [g.name for g in repos.attributes.get_groups(None)] == ["Standardformater"]
        assert len(repos.attributes.get_groups(catalog["product"])) == 3

    def test_update_group_and_value(self, repos, catalog):
        repos.attributes.update_group(catalog["Finish"], name="Overflade", ui_mode=UiMode.DROPDOWN)
        repos.attributes.update_value(catalog["Mat"], name="Mat laminat", meta={"color": "#eee"})

        group = repos.attributes.get_group(catalog["Finish"])
        assert group.name == "Overflade"
        assert group.ui_mode == UiMode.DROPDOWN
        value = group.value_by_id(catalog["Mat"])
        assert value.name == "Mat laminat"
        assert value.meta == {"color": "#eee"}

    def test_disable_value(self, repos, catalog):
        repos.attributes.set_value_enabled(catalog["A5"], False)
        group = repos.attributes.get_group(catalog["Format"])
        assert [v.name for v in group.enabled_values] == ["A4"]

    def test_reorder_values(self, repos, catalog):
        repos.attributes.reorder_values([catalog["A5"], catalog["A4"]])
        group = repos.attributes.get_group(catalog["Format"])
        assert [v.name for v in group.values] == ["A5", "A4"]

    def test_delete_group_removes_values(self, repos, catalog):
        repos.attributes.delete_group(catalog["Papir"])
        assert repos.attributes.get_group(catalog["Papir"]) is None
        assert repos.attributes.get_value(catalog["135g"]) is None

    def test_create_group_with_values(self, repos, catalog):
        group_id = repos.attributes.create_group_with_values(
            "Kopi", AttributeKind.MATERIAL, catalog["product"],
            [{"name": "250g"}, {"name": "300g", "enabled": False}],
            source="library",
        )
        group = repos.attributes.get_group(group_id)
        assert group.source == "library"
        assert [(v.name, v.enabled) for v in group.values] == [("250g", True), ("300g", False)]


class TestPriceRepository:
    def _row(self, product_id, quantity, price):
        return PriceRow(product_id, "a4::m135::none", "a4", quantity, price, {"source": "anchor"})

    def test_upsert_overwrites_on_conflict(self, repos, catalog):
        product_id = catalog["product"]
        repos.prices.publish(product_id, [self._row(product_id, 100, 45), self._row(product_id, 500, 40)])
        repos.prices.publish(product_id, [self._row(product_id, 100, 50)])

        rows = repos.prices.get_prices(product_id)
        assert [(r.quantity, r.price) for r in rows] == [(100, 50), (500, 40)]
        assert rows[0].extra_data == {"source": "anchor"}
        assert repos.prices.count_prices(product_id) == 2

    def test_publish_writes_rows_and_documents(self, repos, catalog):
        product_id = catalog["product"]
        written = repos.prices.publish(
            product_id, [self._row(product_id, 100, 45)],
            pricing_structure={"mode": "matrix_layout_v1"}, generator_state={"rounding": 1},
        )
        assert written == 1
        product = repos.products.get_product(product_id)
        assert product.generator_state == {"rounding": 1}

    def test_failed_publish_rolls_back(self, repos, catalog):
        product_id = catalog["product"]
        bad = PriceRow("no-such-product", "a4::m135::none", "a4", 100, 45)
        with pytest.raises(Exception):
            repos.prices.publish(
                product_id, [self._row(product_id, 100, 45), bad], generator_state={"rounding": 5},
            )
        assert repos.prices.count_prices(product_id) == 0
        assert repos.products.get_product(product_id).generator_state is None


class TestTemplateBankRepository:
    def test_save_list_rename_delete(self, repos, catalog):
        product_id = catalog["product"]
        template_id = repos.templates.save_template("Jul", {"rows": [{"quantity": 100}]}, product_id=product_id)

        entries = repos.templates.list_templates(product_id)
        assert [e.name for e in entries] == ["Jul"]
        assert entries[0].combination_count == 1

        repos.templates.rename_template(template_id, "Jul 2026")
        assert repos.templates.get_template(template_id).name == "Jul 2026"

        repos.templates.delete_template(template_id)
        assert repos.templates.list_templates() == []


class TestAssetRepository:
    def test_create_list_delete(self, repos):
        asset_id = repos.assets.create_asset(
            AssetKind.MATERIAL, "Silk 170g", "https://cdn.example/silk.png",
            storage_path="material/silk.png", meta={"filename": "silk.png"},
        )
        assets = repos.assets.list_assets(AssetKind.MATERIAL)
        assert [a.name for a in assets] == ["Silk 170g"]
        assert assets[0].is_image
        assert repos.assets.list_assets(AssetKind.TEMPLATE) == []

        repos.assets.update_asset(asset_id, description="Mat silk")
        assert repos.assets.get_asset(asset_id).description == "Mat silk"

        repos.assets.delete_asset(asset_id)
        assert repos.assets.get_asset(asset_id) is None
