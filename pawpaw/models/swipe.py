from datetime import datetime
from typing import Literal

from beanie import Document
from pydantic import Field
from pymongo import ASCENDING, IndexModel

SwipeType = Literal["like", "pass"]


class Swipe(Document):
    """One decision per (swiper, pet); first write wins."""
    swiper_id: str
    swiped_pet_id: str
    swipe_type: SwipeType
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "swipes"
        indexes = [
            IndexModel(
                [("swiper_id", ASCENDING), ("swiped_pet_id", ASCENDING)],
                name="swipes_swiper_pet_unique",
                unique=True,
            ),
            [("swiped_pet_id", 1)],
        ]
