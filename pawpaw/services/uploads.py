"""Image uploads for pet photos and chat pictures."""

import re
import time

from pawpaw.core.config import get_settings
from pawpaw.core.exceptions import BadRequestError, PayloadTooLargeError
from pawpaw.core.logging import get_logger
from pawpaw.storage.base import get_storage

log = get_logger(__name__)

ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif", "image/heic")
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: str) -> str:
    name = _UNSAFE.sub("_", filename.rsplit("/", 1)[-1]).strip("._")
    return name or "image"


async def upload_image(user_id: str, folder: str, filename: str, content: bytes, content_type: str | None) -> dict:
    """Store under <folder>/<user_id>/<ts>-<name>; return key and client URL."""
    if not content:
        raise BadRequestError("No image file provided")
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise BadRequestError("Unsupported image type", details={"content_type": content_type})
    max_bytes = get_settings().upload_max_bytes
    if len(content) > max_bytes:
        log.warning("upload_too_large", user_id=user_id, size=len(content), max_bytes=max_bytes)
        raise PayloadTooLargeError()
    key = f"{folder}/{user_id}/{int(time.time() * 1000)}-{safe_filename(filename)}"
    storage = get_storage()
    await storage.put(key, content, content_type=content_type)
    url = await storage.url(key)
    log.info("image_uploaded", user_id=user_id, key=key, size=len(content))
    return {"url": url, "filename": key}
