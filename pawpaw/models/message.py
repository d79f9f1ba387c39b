from datetime import datetime

from beanie import Document
from pydantic import Field


class Message(Document):
    conversation_id: str
    sender_id: str
    content: str | None = None
    image_url: str | None = None
    is_read: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "messages"
        indexes = [
            [("conversation_id", 1), ("created_at", 1)],
            [("conversation_id", 1), ("is_read", 1)],
        ]
