from abc import ABC, abstractmethod
from typing import BinaryIO

from pawpaw.core.config import get_settings


class StorageBackend(ABC):
    @abstractmethod
    async def put(self, key: str, body: BinaryIO | bytes, content_type: str | None = None) -> str:
        """Store file; return the stored key."""
        ...

    @abstractmethod
    async def url(self, key: str) -> str:
        """URL a client can fetch the file from (signed where the backend supports it)."""
        ...


def get_storage() -> StorageBackend:
    settings = get_settings()
    if settings.storage_backend == "gcs":
        from pawpaw.storage.gcs import GCSStorage
        return GCSStorage()
    from pawpaw.storage.local import LocalStorage
    return LocalStorage()
