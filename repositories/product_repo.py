"""
Product Repository

Products and the two JSON documents stored on them: the pricing
structure (matrix layout) and the generator state (editor anchors and
markups saved at publish).
"""

from typing import Optional
import json
import logging
import re

from sqlalchemy import text

from config import DatabaseConfig
from domain import NotFoundError, Product
from logging_config import setup_logging
from repositories.base import BaseRepository, new_id

logger = setup_logging(__name__, log_file="product_repo.log")


def slugify(name: str) -> str:
    """
    Example:
        >>> slugify("Flyers & Foldere")
        'flyers-foldere'
    """
    replaced = str(name).lower().replace("æ", "ae").replace("ø", "oe").replace("å", "aa")
    return re.sub(r"[^a-z0-9]+", "-", replaced).strip("-")


class ProductRepository(BaseRepository):
    """Repository for the products table."""

    def __init__(self, db: DatabaseConfig, logger_instance: Optional[logging.Logger] = None):
        super().__init__(db, logger_instance or logger)

    def list_products(self) -> list[Product]:
        df = self.read_df("SELECT * FROM products ORDER BY name")
        return [Product.from_dataframe_row(row) for _, row in df.iterrows()]

    def get_product(self, product_id: str) -> Optional[Product]:
        df = self.read_df("SELECT * FROM products WHERE id = :id", {"id": product_id})
        if df.empty:
            return None
        return Product.from_dataframe_row(df.iloc[0])

    def require_product(self, product_id: str) -> Product:
        product = self.get_product(product_id)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    def create_product(self, name: str, slug: Optional[str] = None, product_id: Optional[str] = None) -> str:
        product_id = product_id or new_id()
        self.execute(
            text("INSERT INTO products (id, name, slug) VALUES (:id, :name, :slug)"),
            {"id": product_id, "name": name, "slug": slug or slugify(name)},
        )
        self._logger.info(f"Created product {name!r} ({product_id})")
        return product_id

    def rename_product(self, product_id: str, name: str) -> None:
        self.execute(
            text("UPDATE products SET name = :name, updated_at = CURRENT_TIMESTAMP WHERE id = :id"),
            {"id": product_id, "name": name},
        )

    def delete_product(self, product_id: str) -> None:
        self.execute(text("DELETE FROM products WHERE id = :id"), {"id": product_id})
        self._logger.info(f"Deleted product {product_id}")

    @staticmethod
    def documents_statement(
        product_id: str,
        pricing_structure: Optional[dict] = None,
        generator_state: Optional[dict] = None,
    ):
        """UPDATE statement for the JSON documents; None leaves a column as it is."""
        assignments = ["updated_at = CURRENT_TIMESTAMP"]
        params = {"id": product_id}
        if pricing_structure is not None:
            assignments.append("pricing_structure = :pricing_structure")
            params["pricing_structure"] = json.dumps(pricing_structure)
        if generator_state is not None:
            assignments.append("generator_state = :generator_state")
            params["generator_state"] = json.dumps(generator_state)
        return text(f"UPDATE products SET {', '.join(assignments)} WHERE id = :id"), params

    def save_pricing_structure(self, product_id: str, structure: dict) -> None:
        self.execute(*self.documents_statement(product_id, pricing_structure=structure))
        self._logger.info(f"Saved pricing structure for {product_id}")

    def save_generator_state(self, product_id: str, state: dict) -> None:
        self.execute(*self.documents_statement(product_id, generator_state=state))


def get_product_repository() -> ProductRepository:
    """Get or create a ProductRepository instance (session-scoped)."""
    def _create_product_repository() -> ProductRepository:
        logger.debug("Creating ProductRepository instance")
        return ProductRepository(DatabaseConfig())

    try:
        from state import get_service
        return get_service('product_repository', _create_product_repository)
    except ImportError:
        logger.debug("state module unavailable, creating new ProductRepository instance")
        return _create_product_repository()
