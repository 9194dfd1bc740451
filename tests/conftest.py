"""
Pytest configuration file for the pricing admin project.
This file sets up the Python path so tests can import modules from the project root,
and provides a fresh SQLite database per test.
"""
import sys
from pathlib import Path

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


@pytest.fixture
def temp_db(tmp_path):
    # path for a fresh db per test
    return str(tmp_path / "test.db")


@pytest.fixture
def db(temp_db):
    """DatabaseConfig on a fresh SQLite file with the schema created."""
    from config import DatabaseConfig
    from init_db import init_db

    config = DatabaseConfig(url=f"sqlite:///{temp_db}", alias="test")
    assert init_db(config)
    yield config
    config.dispose()


@pytest.fixture
def repos(db):
    """All repositories wired to the test database."""
    from repositories.asset_repo import AssetRepository
    from repositories.attribute_repo import AttributeRepository
    from repositories.price_repo import PriceRepository
    from repositories.product_repo import ProductRepository
    from repositories.template_bank_repo import TemplateBankRepository

    class _Repos:
        products = ProductRepository(db)
        attributes = AttributeRepository(db)
        prices = PriceRepository(db)
        templates = TemplateBankRepository(db)
        assets = AssetRepository(db)

    return _Repos


@pytest.fixture
def catalog(repos):
    """
    A product with a format group (A4, A5), a material group (135g, 170g)
    and a finish group (Mat, Blank).

    Returns a dict of names -> ids plus "product".
    """
    from domain import AttributeKind

    product_id = repos.products.create_product("Flyers")
    ids = {"product": product_id}
    for group_name, kind, values in (
        ("Format", AttributeKind.FORMAT, [("A4", 210, 297), ("A5", 148, 210)]),
        ("Papir", AttributeKind.MATERIAL, [("135g", None, None), ("170g", None, None)]),
        ("Finish", AttributeKind.FINISH, [("Mat", None, None), ("Blank", None, None)]),
    ):
        group_id = repos.attributes.create_group(group_name, kind, product_id=product_id)
        ids[group_name] = group_id
        for name, width, height in values:
            ids[name] = repos.attributes.create_value(group_id, name, width_mm=width, height_mm=height)
    return ids
