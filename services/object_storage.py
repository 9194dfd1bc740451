"""
Object Storage

Blob storage for design asset files, referenced afterwards by public URL.

- LocalObjectStorage: files under a local directory (development)
- HttpObjectStorage: hosted storage REST API
  (PUT {url}/storage/v1/object/{bucket}/{path} with a bearer token)

build_object_storage() picks one from settings.toml [storage] and
st.secrets [storage].
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
import mimetypes
import os
import re
import uuid

import requests

from domain import StorageError
from logging_config import setup_logging

logger = setup_logging(__name__, log_file="object_storage.log")

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def storage_path_for(folder: str, filename: str) -> str:
    """
    Unique object path for an upload; the filename is reduced to safe characters.

    Example:
        storage_path_for("material", "Silk 135g.png") -> "material/3f2a9c1b-silk-135g.png"
    """
    stem, ext = os.path.splitext(os.path.basename(filename or "file"))
    safe = re.sub(r"[^a-z0-9]+", "-", stem.lower()).strip("-") or "file"
    return f"{folder}/{uuid.uuid4().hex[:8]}-{safe}{ext.lower()}"


def guess_content_type(filename: str) -> str:
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or "application/octet-stream"


class ObjectStorage(ABC):
    """Storage interface for uploaded files."""

    bucket: str

    @abstractmethod
    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store data under path and return its public URL."""

    @abstractmethod
    def public_url(self, path: str) -> str:
        """Public URL of a stored object."""

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Remove an object; False when it did not exist."""


class LocalObjectStorage(ObjectStorage):
    """Files under <root>/<bucket>/<path>."""

    def __init__(self, root: str | Path, bucket: str = "design-library", public_base_url: str = ""):
        self.root = Path(root)
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    def _full_path(self, path: str) -> Path:
        full = (self.root / self.bucket / path).resolve()
        if not str(full).startswith(str((self.root / self.bucket).resolve())):
            raise StorageError(f"Ugyldig sti: {path}")
        return full

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        target = self._full_path(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error(f"Local upload failed for {path}: {e}")
            raise StorageError(f"Kunne ikke gemme filen: {e}") from e
        logger.info(f"Stored {len(data)} bytes at {target}")
        return self.public_url(path)

    def public_url(self, path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{self.bucket}/{path}"
        return self._full_path(path).as_uri()

    def delete(self, path: str) -> bool:
        target = self._full_path(path)
        if not target.exists():
            return False
        try:
            target.unlink()
        except OSError as e:
            logger.error(f"Local delete failed for {path}: {e}")
            raise StorageError(f"Kunne ikke slette filen: {e}") from e
        return True


class HttpObjectStorage(ObjectStorage):
    """Hosted storage REST API with bearer-token auth."""

    TIMEOUT = 30

    def __init__(self, url: str, key: str, bucket: str = "design-library", timeout: Optional[int] = None):
        self.url = url.rstrip("/")
        self.key = key
        self.bucket = bucket
        self.timeout = timeout or self.TIMEOUT

    def _object_url(self, path: str) -> str:
        return f"{self.url}/storage/v1/object/{self.bucket}/{path}"

    def _headers(self, content_type: Optional[str] = None) -> dict:
        headers = {"Authorization": f"Bearer {self.key}", "apikey": self.key}
        if content_type:
            headers["Content-Type"] = content_type
            headers["x-upsert"] = "true"
        return headers

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        try:
            response = requests.put(
                self._object_url(path),
                data=data,
                headers=self._headers(content_type),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.Timeout as e:
            logger.error(f"Storage upload timeout for {path}")
            raise StorageError("Upload tog for lang tid") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Storage upload error for {path}: {e}")
            raise StorageError(f"Upload fejlede: {e}") from e
        logger.info(f"Uploaded {len(data)} bytes to {self.bucket}/{path}")
        return self.public_url(path)

    def public_url(self, path: str) -> str:
        return f"{self.url}/storage/v1/object/public/{self.bucket}/{path}"

    def delete(self, path: str) -> bool:
        try:
            response = requests.delete(self._object_url(path), headers=self._headers(), timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Storage delete error for {path}: {e}")
            raise StorageError(f"Sletning fejlede: {e}") from e
        if response.status_code == 404:
            return False
        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            logger.error(f"Storage delete error for {path}: {e}")
            raise StorageError(f"Sletning fejlede: {e}") from e
        return True


def _storage_secrets() -> dict:
    import streamlit as st

    try:
        return dict(st.secrets["storage"])
    except (KeyError, AttributeError, FileNotFoundError):
        return {}


def build_object_storage(settings: Optional[dict] = None, secrets: Optional[dict] = None) -> ObjectStorage:
    """
    Object storage from [storage] settings.

    backend = "http" needs url and key, from secrets or settings.
    """
    if settings is None:
        from settings_service import SettingsService
        settings = SettingsService().storage
    secrets = _storage_secrets() if secrets is None else secrets
    bucket = settings.get("bucket", "design-library")

    if settings.get("backend", "local") == "http":
        url = secrets.get("url") or settings.get("url")
        key = secrets.get("key") or settings.get("key")
        if not url or not key:
            raise StorageError("Manglende url/key til fillager under [storage] i secrets.toml")
        return HttpObjectStorage(url, key, bucket=bucket, timeout=settings.get("timeout"))

    root = Path(settings.get("local_root", "uploads"))
    if not root.is_absolute():
        root = PROJECT_ROOT / root
    return LocalObjectStorage(root, bucket=bucket, public_base_url=settings.get("public_base_url", ""))
