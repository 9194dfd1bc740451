"""
Template Bank Repository

Named JSON snapshots of a product's pricing setup stored in
price_list_templates.
"""

from typing import Optional
import json
import logging

from sqlalchemy import text

from config import DatabaseConfig
from domain import TemplateBankEntry
from logging_config import setup_logging
from repositories.base import BaseRepository, new_id

logger = setup_logging(__name__, log_file="template_bank_repo.log")


class TemplateBankRepository(BaseRepository):
    """Repository for the template bank."""

    def __init__(self, db: DatabaseConfig, logger_instance: Optional[logging.Logger] = None):
        super().__init__(db, logger_instance or logger)

    def list_templates(self, product_id: Optional[str] = None) -> list[TemplateBankEntry]:
        """Newest first; limited to one product when product_id is given."""
        if product_id is None:
            df = self.read_df("SELECT * FROM price_list_templates ORDER BY created_at DESC, name")
        else:
            df = self.read_df(
                "SELECT * FROM price_list_templates WHERE product_id = :product_id "
                "ORDER BY created_at DESC, name",
                {"product_id": product_id},
            )
        return [TemplateBankEntry.from_dataframe_row(row) for _, row in df.iterrows()]

    def get_template(self, template_id: str) -> Optional[TemplateBankEntry]:
        df = self.read_df("SELECT * FROM price_list_templates WHERE id = :id", {"id": template_id})
        if df.empty:
            return None
        return TemplateBankEntry.from_dataframe_row(df.iloc[0])

    def save_template(self, name: str, spec: dict, product_id: Optional[str] = None) -> str:
        template_id = new_id()
        self.execute(
            text(
                "INSERT INTO price_list_templates (id, product_id, name, spec) "
                "VALUES (:id, :product_id, :name, :spec)"
            ),
            {"id": template_id, "product_id": product_id, "name": name, "spec": json.dumps(spec)},
        )
        self._logger.info(f"Saved template {name!r} ({template_id}) with {len(spec.get('rows') or [])} rows")
        return template_id

    def rename_template(self, template_id: str, name: str) -> None:
        self.execute(
            text("UPDATE price_list_templates SET name = :name WHERE id = :id"),
            {"id": template_id, "name": name},
        )

    def delete_template(self, template_id: str) -> None:
        self.execute(text("DELETE FROM price_list_templates WHERE id = :id"), {"id": template_id})
        self._logger.info(f"Deleted template {template_id}")


def get_template_bank_repository() -> TemplateBankRepository:
    """Get or create a TemplateBankRepository instance (session-scoped)."""
    def _create_template_bank_repository() -> TemplateBankRepository:
        logger.debug("Creating TemplateBankRepository instance")
        return TemplateBankRepository(DatabaseConfig())

    try:
        from state import get_service
        return get_service('template_bank_repository', _create_template_bank_repository)
    except ImportError:
        logger.debug("state module unavailable, creating new TemplateBankRepository instance")
        return _create_template_bank_repository()
