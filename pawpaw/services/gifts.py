"""Gift sends: price lookup, wallet transfer and the immutable gift row as one unit."""

import asyncio
from dataclasses import dataclass

from beanie import PydanticObjectId
from bson.errors import InvalidId

from pawpaw.core.audit import log_event
from pawpaw.core.exceptions import InvalidArgumentError, InvalidOperationError, NotFoundError
from pawpaw.core.logging import get_logger
from pawpaw.db.session import atomic
from pawpaw.models.gift import GIFT_PRICES, Gift
from pawpaw.models.pet_profile import PetProfile
from pawpaw.services import wallet as wallet_service

log = get_logger(__name__)


@dataclass
class GiftResult:
    gift: Gift
    new_balance: int


def gift_price(gift_type: str) -> int:
    """Coin cost for gift_type; InvalidArgumentError if it is not on the price table."""
    price = GIFT_PRICES.get(gift_type)
    if price is None:
        raise InvalidArgumentError(
            "Invalid gift type",
            details={"gift_type": gift_type, "allowed": sorted(GIFT_PRICES)},
        )
    return price


async def resolve_receiver(receiver_id: str | None, pet_id: str | None) -> str:
    """A gift to a pet goes to the pet's owner."""
    if pet_id:
        try:
            pet = await PetProfile.get(PydanticObjectId(pet_id))
        except InvalidId:
            pet = None
        if not pet:
            raise NotFoundError("Pet not found")
        return pet.owner_id
    if not receiver_id:
        raise InvalidArgumentError("receiverId or petId is required")
    return receiver_id


async def send_gift(
    sender_id: str,
    gift_type: str,
    receiver_id: str | None = None,
    pet_id: str | None = None,
) -> GiftResult:
    """
    Validate kind -> check balance -> debit sender -> credit receiver -> record gift.
    Nothing is mutated when validation or the balance check fails. Inside a transaction
    the writes commit together; without one, a failure or cancellation after the debit
    reverses the wallet writes before re-raising.
    """
    cost = gift_price(gift_type)
    receiver = await resolve_receiver(receiver_id, pet_id)
    if receiver == sender_id:
        raise InvalidOperationError("Cannot send a gift to yourself")

    async with atomic() as session:
        new_balance = await wallet_service.transfer(sender_id, receiver, cost, session=session)
        gift = Gift(
            sender_id=sender_id,
            receiver_id=receiver,
            gift_type=gift_type,
            coin_value=cost,
            pet_id=pet_id,
        )
        try:
            await gift.insert(session=session)
            await log_event(
                sender_id,
                "gift_sent",
                "gift",
                str(gift.id),
                {"receiver_id": receiver, "gift_type": gift_type, "coin_value": cost},
                session=session,
            )
        except BaseException:
            if session is None:
                await asyncio.shield(_undo_transfer(sender_id, receiver, cost, gift))
            raise

    log.info(
        "gift_sent",
        gift_id=str(gift.id),
        sender_id=sender_id,
        receiver_id=receiver,
        gift_type=gift_type,
        coin_value=cost,
        new_balance=new_balance,
    )
    return GiftResult(gift=gift, new_balance=new_balance)


async def _undo_transfer(sender_id: str, receiver_id: str, cost: int, gift: Gift) -> None:
    log.warning("gift_send_rollback", sender_id=sender_id, receiver_id=receiver_id, cost=cost)
    await wallet_service.refund(sender_id, cost)
    await wallet_service.credit_earned(receiver_id, -cost)
    if gift.id is not None:
        await gift.delete()


async def list_gifts(user_id: str, direction: str = "received", limit: int = 50, offset: int = 0) -> list[Gift]:
    """Gifts sent or received by user_id, newest first."""
    field = Gift.receiver_id if direction == "received" else Gift.sender_id
    return (
        await Gift.find(field == user_id)
        .sort(-Gift.created_at)
        .skip(offset)
        .limit(limit)
        .to_list()
    )
