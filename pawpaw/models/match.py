from datetime import datetime

from beanie import Document
from pydantic import Field
from pymongo import IndexModel


def pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for a pair of users."""
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}"


class Match(Document):
    user1_id: str  # the user whose like completed the pair
    user2_id: str
    pet1_id: str
    pet2_id: str
    pair_key: str
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "matches"
        indexes = [
            IndexModel([("pair_key", 1)], name="matches_pair_unique", unique=True),
            [("user1_id", 1)],
            [("user2_id", 1)],
        ]

    def involves(self, user_id: str) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def other_side(self, user_id: str) -> tuple[str, str, str]:
        """Return (other_user_id, my_pet_id, other_pet_id) from user_id's point of view."""
        if user_id == self.user1_id:
            return self.user2_id, self.pet1_id, self.pet2_id
        return self.user1_id, self.pet2_id, self.pet1_id
