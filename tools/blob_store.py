"""Public blob storage for before/after photos."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import storage

from models.errors import ConfigurationError, PersistenceError
from tidy_app.config import CoachConfig

PUBLIC_CACHE_CONTROL = "public,max-age=31536000"


class BlobStore:
    """Interface for storing publicly readable blobs."""

    def save_public(self, path: str, data: bytes, content_type: str) -> str:
        """Store ``data`` at ``path`` and return a stable public URL."""
        raise NotImplementedError


class LocalBlobStore(BlobStore):
    """Filesystem-backed blob store served under a public base URL."""

    def __init__(
        self, base_dir: str | Path = "data/blobs", public_base_url: str = "http://localhost:8080/blobs"
    ) -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")

    def save_public(self, path: str, data: bytes, content_type: str) -> str:
        root = self.base_dir.resolve()
        target = (root / path).resolve()
        if not target.is_relative_to(root):
            raise PersistenceError(f"blob path escapes the blob directory: {path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise PersistenceError(f"blob write failed for {path}: {exc}") from exc
        return f"{self.public_base_url}/{path}"


class GCSBlobStore(BlobStore):
    """Google Cloud Storage bucket with per-object public ACLs."""

    def __init__(self, bucket_name: str, client: Optional[Any] = None) -> None:
        self.bucket_name = bucket_name
        self._client = client

    def _bucket(self) -> Any:
        if self._client is None:
            self._client = storage.Client()
        return self._client.bucket(self.bucket_name)

    def save_public(self, path: str, data: bytes, content_type: str) -> str:
        try:
            blob = self._bucket().blob(path)
            blob.cache_control = PUBLIC_CACHE_CONTROL
            blob.upload_from_string(data, content_type=content_type)
            blob.make_public()
        except (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as exc:
            raise PersistenceError(f"blob upload failed for {path}: {exc}") from exc
        return f"https://storage.googleapis.com/{self.bucket_name}/{path}"


def build_blob_store(config: CoachConfig) -> BlobStore:
    if config.blob_backend == "gcs":
        if not config.gcs_bucket:
            raise ConfigurationError("GCS_BUCKET is required when BLOB_BACKEND=gcs")
        return GCSBlobStore(config.gcs_bucket)
    return LocalBlobStore(config.blob_dir, config.blob_public_base_url)


__all__ = ["BlobStore", "GCSBlobStore", "LocalBlobStore", "build_blob_store"]
