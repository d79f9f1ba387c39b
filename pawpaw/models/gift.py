from datetime import datetime
from typing import Literal

from beanie import Document
from pydantic import Field

GiftType = Literal["bone", "toy", "steak"]

GIFT_PRICES: dict[str, int] = {
    "bone": 10,
    "toy": 50,
    "steak": 500,
}


class Gift(Document):
    sender_id: str
    receiver_id: str
    gift_type: GiftType
    coin_value: int
    pet_id: str | None = None  # target profile, when sent to a pet
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "gifts"
        indexes = [
            [("sender_id", 1), ("created_at", -1)],
            [("receiver_id", 1), ("created_at", -1)],
        ]
