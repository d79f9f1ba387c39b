from datetime import datetime

from beanie import Document
from pydantic import Field


class PetProfile(Document):
    owner_id: str
    name: str
    breed: str
    age: int
    bio: str | None = None
    photo_url: str
    likes_count: int = 0  # denormalized from swipes; only $inc'd by the like counter
    is_featured: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "pet_profiles"
        indexes = [
            [("owner_id", 1)],
            [("likes_count", -1)],
        ]
