"""
Price Repository

Published price rows (generic_product_prices). Rows are upserted on
(product_id, variant_name, variant_value, quantity); a publish writes all
rows and the product documents in one transaction, so it either lands
completely or not at all.
"""

from typing import Optional
import logging

import pandas as pd
from sqlalchemy import text

from config import DatabaseConfig
from domain import PriceRow
from logging_config import setup_logging
from repositories.base import BaseRepository, new_id
from repositories.product_repo import ProductRepository

logger = setup_logging(__name__, log_file="price_repo.log")

UPSERT_PRICE = text(
    "INSERT INTO generic_product_prices "
    "(id, product_id, variant_name, variant_value, quantity, price, extra_data) "
    "VALUES (:id, :product_id, :variant_name, :variant_value, :quantity, :price, :extra_data) "
    "ON CONFLICT (product_id, variant_name, variant_value, quantity) DO UPDATE SET "
    "price = excluded.price, extra_data = excluded.extra_data, updated_at = CURRENT_TIMESTAMP"
)


def _upsert_params(rows: list[PriceRow]) -> list[dict]:
    return [{"id": new_id(), **row.to_record()} for row in rows]


class PriceRepository(BaseRepository):
    """
    Repository for published price rows.

    ## Methods:
    - `get_prices(product_id)`: PriceRow list
    - `get_prices_df(product_id)`: Raw DataFrame for display and export
    - `count_prices(product_id)`
    - `publish(product_id, rows, pricing_structure, generator_state)`: Rows plus documents
    """

    def __init__(self, db: DatabaseConfig, logger_instance: Optional[logging.Logger] = None):
        super().__init__(db, logger_instance or logger)

    def get_prices_df(self, product_id: str) -> pd.DataFrame:
        return self.read_df(
            "SELECT product_id, variant_name, variant_value, quantity, price, extra_data, updated_at "
            "FROM generic_product_prices WHERE product_id = :product_id "
            "ORDER BY variant_name, variant_value, quantity",
            {"product_id": product_id},
        )

    def get_prices(self, product_id: str) -> list[PriceRow]:
        df = self.get_prices_df(product_id)
        return [PriceRow.from_dataframe_row(row) for _, row in df.iterrows()]

    def count_prices(self, product_id: str) -> int:
        df = self.read_df(
            "SELECT COUNT(*) AS n FROM generic_product_prices WHERE product_id = :product_id",
            {"product_id": product_id},
        )
        return int(df["n"].iloc[0])

    def publish(
        self,
        product_id: str,
        rows: list[PriceRow],
        pricing_structure: Optional[dict] = None,
        generator_state: Optional[dict] = None,
    ) -> int:
        """
        Upsert rows and save the product documents atomically.

        Rows of combinations that no longer exist are left in place.

        Returns:
            Number of rows written
        """
        statements = []
        if rows:
            statements.append((UPSERT_PRICE, _upsert_params(rows)))
        statements.append(ProductRepository.documents_statement(product_id, pricing_structure, generator_state))
        self.execute_many(statements)
        self._logger.info(f"Published {len(rows)} price rows for product {product_id}")
        return len(rows)


def get_price_repository() -> PriceRepository:
    """Get or create a PriceRepository instance (session-scoped)."""
    def _create_price_repository() -> PriceRepository:
        logger.debug("Creating PriceRepository instance")
        return PriceRepository(DatabaseConfig())

    try:
        from state import get_service
        return get_service('price_repository', _create_price_repository)
    except ImportError:
        logger.debug("state module unavailable, creating new PriceRepository instance")
        return _create_price_repository()
