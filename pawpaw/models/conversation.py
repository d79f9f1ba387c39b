from datetime import datetime

from beanie import Document
from pydantic import Field
from pymongo import IndexModel


class Conversation(Document):
    match_id: str
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)  # bumped on each message

    class Settings:
        name = "conversations"
        indexes = [IndexModel([("match_id", 1)], name="conversations_match_unique", unique=True)]
