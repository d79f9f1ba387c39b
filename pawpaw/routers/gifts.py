from typing import Literal

from fastapi import APIRouter, Depends, Query

from pawpaw.core.schemas import CamelModel
from pawpaw.deps import get_current_user
from pawpaw.models.gift import GIFT_PRICES
from pawpaw.models.user import User
from pawpaw.services import gifts as gifts_service
from pawpaw.services import wallet as wallet_service

router = APIRouter()


class GiftRequest(CamelModel):
    gift_type: str
    receiver_id: str | None = None
    pet_id: str | None = None


@router.post("/gifts")
async def gift_send(body: GiftRequest, user: User = Depends(get_current_user)):
    """Send a gift; coins leave the sender's balance and count toward the receiver's total earned."""
    result = await gifts_service.send_gift(
        str(user.id),
        body.gift_type,
        receiver_id=body.receiver_id,
        pet_id=body.pet_id,
    )
    return {
        "success": True,
        "newBalance": result.new_balance,
        "gift": {
            "id": str(result.gift.id),
            "giftType": result.gift.gift_type,
            "coinValue": result.gift.coin_value,
            "receiverId": result.gift.receiver_id,
        },
    }


@router.get("/gifts")
async def gift_list(
    user: User = Depends(get_current_user),
    direction: Literal["received", "sent"] = "received",
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    gifts = await gifts_service.list_gifts(str(user.id), direction=direction, limit=limit, offset=offset)
    return [
        {
            "id": str(g.id),
            "senderId": g.sender_id,
            "receiverId": g.receiver_id,
            "giftType": g.gift_type,
            "coinValue": g.coin_value,
            "petId": g.pet_id,
            "createdAt": g.created_at.isoformat(),
        }
        for g in gifts
    ]


@router.get("/gifts/prices")
async def gift_prices():
    return GIFT_PRICES


@router.get("/wallet")
async def wallet_get(user: User = Depends(get_current_user)):
    """Balance and lifetime earned; the wallet is created with the starting balance on first read."""
    wallet = await wallet_service.get_or_create_wallet(str(user.id))
    return {"balance": wallet.balance, "totalEarned": wallet.total_earned}
