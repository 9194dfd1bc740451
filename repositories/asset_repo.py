"""
Design Asset Repository

Records of uploaded design assets (templates, material swatches, finish
icons, product images). The files themselves live in object storage; this
table holds their public URLs and storage paths.
"""

from typing import Optional
import json
import logging

import pandas as pd
from sqlalchemy import text
import streamlit as st

from config import DatabaseConfig
from domain import AssetKind, DesignAsset
from logging_config import setup_logging
from repositories.base import BaseRepository, new_id

logger = setup_logging(__name__, log_file="asset_repo.log")

ASSET_FIELDS = ("kind", "name", "file_url", "description", "icon_url", "product_id", "storage_path", "meta")


class AssetRepository(BaseRepository):
    """Repository for the design_assets table."""

    def __init__(self, db: DatabaseConfig, logger_instance: Optional[logging.Logger] = None):
        super().__init__(db, logger_instance or logger)

    def get_assets_df(self, kind: Optional[AssetKind] = None) -> pd.DataFrame:
        if kind is None:
            return self.read_df("SELECT * FROM design_assets ORDER BY kind, name")
        return self.read_df(
            "SELECT * FROM design_assets WHERE kind = :kind ORDER BY name",
            {"kind": kind.value},
        )

    def list_assets(self, kind: Optional[AssetKind] = None) -> list[DesignAsset]:
        return [DesignAsset.from_dataframe_row(row) for _, row in self.get_assets_df(kind).iterrows()]

    def get_asset(self, asset_id: str) -> Optional[DesignAsset]:
        df = self.read_df("SELECT * FROM design_assets WHERE id = :id", {"id": asset_id})
        if df.empty:
            return None
        return DesignAsset.from_dataframe_row(df.iloc[0])

    def create_asset(
        self,
        kind: AssetKind,
        name: str,
        file_url: str,
        storage_path: str = "",
        description: str = "",
        icon_url: str = "",
        product_id: Optional[str] = None,
        meta: Optional[dict] = None,
    ) -> str:
        asset_id = new_id()
        self.execute(
            text(
                "INSERT INTO design_assets "
                "(id, kind, name, file_url, description, icon_url, product_id, storage_path, meta) "
                "VALUES (:id, :kind, :name, :file_url, :description, :icon_url, :product_id, :storage_path, :meta)"
            ),
            {
                "id": asset_id,
                "kind": kind.value,
                "name": name,
                "file_url": file_url,
                "description": description,
                "icon_url": icon_url,
                "product_id": product_id,
                "storage_path": storage_path,
                "meta": json.dumps(meta) if meta else None,
            },
        )
        invalidate_asset_caches()
        self._logger.info(f"Recorded {kind.value} asset {name!r} ({asset_id})")
        return asset_id

    def update_asset(self, asset_id: str, **fields) -> None:
        updates = {k: v for k, v in fields.items() if k in ASSET_FIELDS}
        if not updates:
            return
        if "kind" in updates and isinstance(updates["kind"], AssetKind):
            updates["kind"] = updates["kind"].value
        if "meta" in updates:
            updates["meta"] = json.dumps(updates["meta"]) if updates["meta"] else None
        assignments = ", ".join(f"{k} = :{k}" for k in updates)
        self.execute(text(f"UPDATE design_assets SET {assignments} WHERE id = :id"), {**updates, "id": asset_id})
        invalidate_asset_caches()

    def delete_asset(self, asset_id: str) -> None:
        self.execute(text("DELETE FROM design_assets WHERE id = :id"), {"id": asset_id})
        invalidate_asset_caches()
        self._logger.info(f"Deleted asset {asset_id}")


def get_asset_repository() -> AssetRepository:
    """Get or create an AssetRepository instance (session-scoped)."""
    def _create_asset_repository() -> AssetRepository:
        logger.debug("Creating AssetRepository instance")
        return AssetRepository(DatabaseConfig())

    try:
        from state import get_service
        return get_service('asset_repository', _create_asset_repository)
    except ImportError:
        logger.debug("state module unavailable, creating new AssetRepository instance")
        return _create_asset_repository()


# =============================================================================
# Caching Functions
# =============================================================================

@st.cache_data(ttl=600, show_spinner="Henter designfiler...")
def get_assets_df_with_cache(kind_value: Optional[str] = None) -> pd.DataFrame:
    """Cached asset listing for pages; cleared by every asset write."""
    kind = AssetKind(kind_value) if kind_value else None
    return AssetRepository(DatabaseConfig()).get_assets_df(kind)


def invalidate_asset_caches() -> None:
    get_assets_df_with_cache.clear()
