from pathlib import Path
from typing import BinaryIO

from pawpaw.core.config import get_settings
from pawpaw.storage.base import StorageBackend


class LocalStorage(StorageBackend):
    """Files under STORAGE_LOCAL_PATH, served by the app at STORAGE_PUBLIC_BASE_URL."""

    def __init__(self) -> None:
        settings = get_settings()
        self.root = Path(settings.storage_local_path)
        self.root.mkdir(parents=True, exist_ok=True)
        self.base_url = settings.storage_public_base_url.rstrip("/")

    async def put(self, key: str, body: BinaryIO | bytes, content_type: str | None = None) -> str:
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(body, bytes):
            path.write_bytes(body)
        else:
            path.write_bytes(body.read())
        return key

    async def url(self, key: str) -> str:
        return f"{self.base_url}/{key}"
