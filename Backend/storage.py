"""
Blob storage gateway backed by a local directory.

Objects are addressed as ``{bucket}/{path}`` under ``STORAGE_ROOT`` and served
by the app under ``/storage``.
"""

import logging
from pathlib import Path

from config import Config
from errors import StorageError

logger = logging.getLogger(__name__)


class LocalBlobStorage:
    def __init__(self, root: str = Config.STORAGE_ROOT, public_base_url: str = Config.PUBLIC_BASE_URL):
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/")

    def _resolve(self, bucket: str, path: str) -> Path:
        target = (self.root / bucket / path).resolve()
        if not bucket or not path or self.root not in target.parents:
            raise StorageError(f"Invalid object path: {bucket}/{path}")
        return target

    def upload(self, bucket: str, path: str, data: bytes, upsert: bool = False) -> str:
        """Store ``data`` and return the object key."""
        target = self._resolve(bucket, path)
        if target.exists() and not upsert:
            raise StorageError("The resource already exists")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info("Stored %d bytes at %s/%s", len(data), bucket, path)
        return f"{bucket}/{path}"

    def get_public_url(self, bucket: str, path: str) -> str:
        self._resolve(bucket, path)
        return f"{self.public_base_url}/storage/{bucket}/{path}"

    def remove(self, bucket: str, path: str) -> bool:
        target = self._resolve(bucket, path)
        if not target.exists():
            return False
        target.unlink()
        return True


storage = LocalBlobStorage()


def get_storage() -> LocalBlobStorage:
    return storage
