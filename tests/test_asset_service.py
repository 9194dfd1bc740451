"""
Tests for the design asset library: object storage backends and AssetService.
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from domain import AssetKind, NotFoundError, StorageError, ValidationError
from services.asset_service import AssetService
from services.object_storage import (
    HttpObjectStorage,
    LocalObjectStorage,
    build_object_storage,
    storage_path_for,
)

PNG = b"\x89PNG\r\n\x1a\nfake"


@pytest.fixture
def storage(tmp_path):
    return LocalObjectStorage(tmp_path, public_base_url="https://cdn.example")


@pytest.fixture
def service(repos, storage):
    return AssetService(repos.assets, storage)


def test_storage_path_is_safe_and_unique():
    first = storage_path_for("material", "../Silk 135g.PNG")
    second = storage_path_for("material", "../Silk 135g.PNG")
    assert first.startswith("material/")
    assert first.endswith("-silk-135g.png")
    assert first != second


class TestLocalObjectStorage:
    def test_upload_and_delete(self, storage, tmp_path):
        url = storage.upload("material/a.png", PNG, "image/png")
        assert url == "https://cdn.example/design-library/material/a.png"
        assert (tmp_path / "design-library" / "material" / "a.png").read_bytes() == PNG
        assert storage.delete("material/a.png")
        assert not storage.delete("material/a.png")

    def test_path_outside_bucket(self, storage):
        with pytest.raises(StorageError):
            storage.upload("../escape.png", PNG, "image/png")

    def test_file_url_without_public_base(self, tmp_path):
        storage = LocalObjectStorage(tmp_path)
        assert storage.public_url("x.pdf").startswith("file://")


class TestHttpObjectStorage:
    def setup_method(self):
        self.storage = HttpObjectStorage("https://store.example/", "secret", bucket="assets")

    def test_upload_puts_with_bearer_token(self):
        response = MagicMock()
        with patch("services.object_storage.requests.put", return_value=response) as put:
            url = self.storage.upload("finish/x.pdf", b"%PDF", "application/pdf")

        assert url == "https://store.example/storage/v1/object/public/assets/finish/x.pdf"
        args, kwargs = put.call_args
        assert args[0] == "https://store.example/storage/v1/object/assets/finish/x.pdf"
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["headers"]["Content-Type"] == "application/pdf"
        response.raise_for_status.assert_called_once()

    def test_upload_timeout(self):
        with patch("services.object_storage.requests.put", side_effect=requests.exceptions.Timeout()):
            with pytest.raises(StorageError):
                self.storage.upload("a.png", PNG, "image/png")

    def test_upload_http_error(self):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("403")
        with patch("services.object_storage.requests.put", return_value=response):
            with pytest.raises(StorageError):
                self.storage.upload("a.png", PNG, "image/png")

    def test_delete_missing_object(self):
        response = MagicMock(status_code=404)
        with patch("services.object_storage.requests.delete", return_value=response):
            assert self.storage.delete("a.png") is False


class TestBuildObjectStorage:
    def test_local_default(self, tmp_path):
        storage = build_object_storage({"local_root": str(tmp_path)}, secrets={})
        assert isinstance(storage, LocalObjectStorage)
        assert storage.root == tmp_path

    def test_http_from_secrets(self):
        storage = build_object_storage({"backend": "http"}, secrets={"url": "https://s.example", "key": "k"})
        assert isinstance(storage, HttpObjectStorage)
        assert storage.bucket == "design-library"

    def test_http_without_credentials(self):
        with pytest.raises(StorageError):
            build_object_storage({"backend": "http"}, secrets={})


class TestAssetService:
    def test_upload_records_asset(self, service, tmp_path):
        asset_id = service.upload_asset(
            AssetKind.MATERIAL, " Silk ", "silk.png", PNG, description="Mat", icon=("icon.png", PNG),
        )
        [asset] = service.list_assets(AssetKind.MATERIAL)
        assert asset.id == asset_id
        assert asset.name == "Silk"
        assert asset.file_url.startswith("https://cdn.example/design-library/material/")
        assert "/material/icons/" in asset.icon_url
        assert asset.meta["size"] == len(PNG)
        assert (tmp_path / "design-library" / asset.storage_path).exists()

    @pytest.mark.parametrize("name,filename,data", [
        ("", "a.png", PNG),
        ("A", "a.png", b""),
        ("A", "a.exe", PNG),
    ])
    def test_invalid_uploads(self, service, name, filename, data):
        with pytest.raises(ValidationError):
            service.upload_asset(AssetKind.TEMPLATE, name, filename, data)
        assert service.list_assets() == []

    def test_failed_insert_removes_upload(self, storage, tmp_path):
        repo = MagicMock()
        repo.create_asset.side_effect = RuntimeError("db down")
        service = AssetService(repo, storage)

        with pytest.raises(RuntimeError):
            service.upload_asset(AssetKind.PRODUCT, "Foto", "foto.jpg", b"jpeg", icon=("i.png", PNG))

        bucket = tmp_path / "design-library"
        assert [p for p in bucket.rglob("*") if p.is_file()] == []

    def test_assets_by_kind_includes_empty_kinds(self, service):
        service.upload_asset(AssetKind.FINISH, "Folie", "folie.pdf", b"%PDF-1.4")
        grouped = service.assets_by_kind()
        assert list(grouped) == AssetKind.display_order()
        assert [a.name for a in grouped[AssetKind.FINISH]] == ["Folie"]
        assert grouped[AssetKind.TEMPLATE] == []

    def test_delete_removes_files_and_record(self, service, tmp_path):
        asset_id = service.upload_asset(AssetKind.TEMPLATE, "Visitkort", "kort.pdf", b"%PDF-1.4")
        path = service.list_assets()[0].storage_path

        service.delete_asset(asset_id)

        assert service.list_assets() == []
        assert not (tmp_path / "design-library" / path).exists()

    def test_delete_missing_asset(self, service):
        with pytest.raises(NotFoundError):
            service.delete_asset("missing")

    def test_update_rejects_blank_name(self, service):
        asset_id = service.upload_asset(AssetKind.TEMPLATE, "Plakat", "plakat.pdf", b"%PDF-1.4")
        with pytest.raises(ValidationError):
            service.update_asset(asset_id, name=" ")
        service.update_asset(asset_id, description=" Ny ")
        assert service.list_assets()[0].description == "Ny"
