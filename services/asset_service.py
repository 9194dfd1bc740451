"""
Design Asset Service

Uploads design files to object storage and records them in the asset
library. A failed database insert removes the uploaded blob again.
"""

from typing import Optional
import logging

from domain import AssetKind, DesignAsset, NotFoundError, StorageError, ValidationError
from logging_config import setup_logging
from repositories.asset_repo import AssetRepository
from services.object_storage import ObjectStorage, guess_content_type, storage_path_for

logger = setup_logging(__name__, log_file="asset_service.log")

MAX_UPLOAD_BYTES = 25 * 1024 * 1024
ALLOWED_EXTENSIONS = (".pdf", ".png", ".jpg", ".jpeg", ".svg", ".webp", ".gif", ".ai", ".eps", ".zip")


class AssetService:
    """Design asset library: upload, list, update and delete."""

    def __init__(self, repo: AssetRepository, storage: ObjectStorage, logger_instance: Optional[logging.Logger] = None):
        self._repo = repo
        self._storage = storage
        self._logger = logger_instance or logger

    @classmethod
    def create_default(cls) -> "AssetService":
        from repositories.asset_repo import get_asset_repository
        from services.object_storage import build_object_storage
        return cls(get_asset_repository(), build_object_storage())

    def list_assets(self, kind: Optional[AssetKind] = None) -> list[DesignAsset]:
        return self._repo.list_assets(kind)

    def assets_by_kind(self) -> dict[AssetKind, list[DesignAsset]]:
        """All assets grouped by kind in display order; empty kinds included."""
        grouped: dict[AssetKind, list[DesignAsset]] = {kind: [] for kind in AssetKind.display_order()}
        for asset in self._repo.list_assets():
            grouped.setdefault(asset.kind, []).append(asset)
        return grouped

    def upload_asset(
        self,
        kind: AssetKind,
        name: str,
        filename: str,
        data: bytes,
        description: str = "",
        icon: Optional[tuple[str, bytes]] = None,
        product_id: Optional[str] = None,
    ) -> str:
        """
        Store a file (and optional icon) and record the asset.

        Args:
            icon: Optional (filename, bytes) of a small preview icon

        Returns:
            Id of the new asset

        Raises:
            ValidationError: Empty name, empty file, oversize file or
                unsupported extension
            StorageError: Upload failed
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Designfilen skal have et navn")
        self._validate_file(filename, data)

        path = storage_path_for(kind.value, filename)
        file_url = self._storage.upload(path, data, guess_content_type(filename))
        uploaded = [path]

        icon_url = ""
        try:
            if icon is not None:
                icon_name, icon_data = icon
                self._validate_file(icon_name, icon_data)
                icon_path = storage_path_for(f"{kind.value}/icons", icon_name)
                icon_url = self._storage.upload(icon_path, icon_data, guess_content_type(icon_name))
                uploaded.append(icon_path)

            asset_id = self._repo.create_asset(
                kind,
                name,
                file_url,
                storage_path=path,
                description=description.strip(),
                icon_url=icon_url,
                product_id=product_id,
                meta={"filename": filename, "size": len(data), "icon_path": uploaded[1] if len(uploaded) > 1 else None},
            )
        except Exception:
            for leftover in uploaded:
                try:
                    self._storage.delete(leftover)
                except StorageError as e:
                    self._logger.error(f"Could not remove orphaned upload {leftover}: {e}")
            raise

        self._logger.info(f"Uploaded {kind.value} asset {name!r} as {path}")
        return asset_id

    def update_asset(self, asset_id: str, name: Optional[str] = None, description: Optional[str] = None) -> None:
        fields = {}
        if name is not None:
            if not name.strip():
                raise ValidationError("Designfilen skal have et navn")
            fields["name"] = name.strip()
        if description is not None:
            fields["description"] = description.strip()
        self._repo.update_asset(asset_id, **fields)

    def delete_asset(self, asset_id: str) -> None:
        """Delete the record and its stored files."""
        asset = self._repo.get_asset(asset_id)
        if asset is None:
            raise NotFoundError(f"Designfil {asset_id} findes ikke")
        for path in (asset.storage_path, asset.meta.get("icon_path")):
            if path and not self._storage.delete(path):
                self._logger.warning(f"Stored file {path} was already gone")
        self._repo.delete_asset(asset_id)
        self._logger.info(f"Deleted asset {asset.name!r} ({asset_id})")

    @staticmethod
    def _validate_file(filename: str, data: bytes) -> None:
        if not data:
            raise ValidationError("Filen er tom")
        if len(data) > MAX_UPLOAD_BYTES:
            raise ValidationError(f"Filen er større end {MAX_UPLOAD_BYTES // (1024 * 1024)} MB")
        if not str(filename).lower().endswith(ALLOWED_EXTENSIONS):
            raise ValidationError(f"Filtypen understøttes ikke: {filename}")


def get_asset_service() -> AssetService:
    """
    Get or create an AssetService instance.

    Uses state.get_service for session state persistence across reruns.
    Falls back to direct instantiation if state module unavailable.
    """
    try:
        from state import get_service
        return get_service('asset_service', AssetService.create_default)
    except ImportError:
        logger.debug("state module unavailable, creating new AssetService instance")
        return AssetService.create_default()
