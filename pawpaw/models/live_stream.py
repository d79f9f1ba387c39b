from datetime import datetime

from beanie import Document
from pydantic import Field


class LiveStream(Document):
    pet_id: str
    owner_id: str
    title: str
    viewer_count: int = 0
    is_active: bool = True
    started_at: datetime = Field(default_factory=datetime.utcnow)
    ended_at: datetime | None = None

    class Settings:
        name = "live_streams"
        indexes = [
            [("pet_id", 1), ("is_active", 1)],
            [("is_active", 1), ("started_at", -1)],
        ]
