from datetime import timedelta
from typing import BinaryIO

from google.cloud import storage

from pawpaw.core.config import get_settings
from pawpaw.storage.base import StorageBackend


class GCSStorage(StorageBackend):
    def __init__(self) -> None:
        settings = get_settings()
        self.bucket_name = settings.gcs_bucket_name or "pawpaw-uploads"
        self.url_ttl = timedelta(seconds=settings.signed_url_ttl_seconds)
        self._client = storage.Client()
        self._bucket = self._client.bucket(self.bucket_name)

    async def put(self, key: str, body: BinaryIO | bytes, content_type: str | None = None) -> str:
        blob = self._bucket.blob(key)
        if isinstance(body, bytes):
            blob.upload_from_string(body, content_type=content_type or "application/octet-stream")
        else:
            blob.upload_from_file(body, content_type=content_type or "application/octet-stream")
        return key

    async def url(self, key: str) -> str:
        blob = self._bucket.blob(key)
        return blob.generate_signed_url(version="v4", expiration=self.url_ttl, method="GET")
