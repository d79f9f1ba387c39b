from datetime import datetime

from beanie import Document
from pydantic import Field
from pymongo import IndexModel


class Wallet(Document):
    """Coin balance per user. Mutated only through services.wallet."""
    user_id: str
    balance: int = 0
    total_earned: int = 0  # lifetime coins received as gifts
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "user_wallets"
        indexes = [IndexModel([("user_id", 1)], name="user_wallets_user_unique", unique=True)]
