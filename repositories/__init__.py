"""
Repository Layer Package

This package contains repository classes that encapsulate all database access.
Repositories provide a clean abstraction over the database, making the code
more testable and maintainable.

Key Components:
- BaseRepository: Foundation class with read_df() and transactional writes
- ProductRepository: Products and their pricing_structure / generator_state documents
- AttributeRepository: Attribute groups and values, per product and in the library
- PriceRepository: Published price rows, upsert and atomic publish
- TemplateBankRepository: Named pricing snapshots
- AssetRepository: Design asset records with cached listing
"""

from repositories.base import BaseRepository, new_id
from repositories.product_repo import ProductRepository, get_product_repository
from repositories.attribute_repo import AttributeRepository, get_attribute_repository
from repositories.price_repo import PriceRepository, get_price_repository
from repositories.template_bank_repo import TemplateBankRepository, get_template_bank_repository
from repositories.asset_repo import (
    AssetRepository,
    get_asset_repository,
    get_assets_df_with_cache,
    invalidate_asset_caches,
)

__all__ = [
    "BaseRepository",
    "new_id",
    "ProductRepository",
    "get_product_repository",
    "AttributeRepository",
    "get_attribute_repository",
    "PriceRepository",
    "get_price_repository",
    "TemplateBankRepository",
    "get_template_bank_repository",
    "AssetRepository",
    "get_asset_repository",
    "get_assets_df_with_cache",
    "invalidate_asset_caches",
]
