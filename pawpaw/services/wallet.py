"""Wallet ledger: lazy wallet creation, conditional debit, lifetime-earned credit."""

import asyncio
from datetime import datetime

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from pawpaw.core.config import get_settings
from pawpaw.core.exceptions import InsufficientFundsError, InvalidArgumentError
from pawpaw.core.logging import get_logger
from pawpaw.models.wallet import Wallet

log = get_logger(__name__)


def _collection():
    return Wallet.get_motor_collection()


def _new_wallet_fields() -> dict:
    return {
        "balance": get_settings().wallet_starting_balance,
        "total_earned": 0,
    }


async def _ensure_wallet(user_id: str, session=None) -> dict:
    """
    Insert-if-absent in one round trip. Two first-time callers racing on the same user
    both upsert; the loser hits the unique index and simply re-reads.
    """
    try:
        doc = await _collection().find_one_and_update(
            {"user_id": user_id},
            {"$setOnInsert": {"user_id": user_id, "updated_at": datetime.utcnow(), **_new_wallet_fields()}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
            session=session,
        )
    except DuplicateKeyError:
        doc = await _collection().find_one({"user_id": user_id}, session=session)
    return doc


async def get_or_create_wallet(user_id: str, session=None) -> Wallet:
    """Return the user's wallet, creating it with the starting balance on first access."""
    existing = await Wallet.find_one(Wallet.user_id == user_id, session=session)
    if existing:
        return existing
    doc = await _ensure_wallet(user_id, session=session)
    log.info("wallet_created", user_id=user_id, balance=doc["balance"])
    return await Wallet.find_one(Wallet.user_id == user_id, session=session)


async def debit(user_id: str, cost: int, session=None) -> int:
    """
    Check and debit in a single conditional update (balance >= cost).
    Returns the new balance; raises InsufficientFundsError leaving the wallet untouched.
    """
    if cost <= 0:
        raise InvalidArgumentError("Cost must be positive", details={"cost": cost})
    await _ensure_wallet(user_id, session=session)
    doc = await _collection().find_one_and_update(
        {"user_id": user_id, "balance": {"$gte": cost}},
        {"$inc": {"balance": -cost}, "$set": {"updated_at": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
        session=session,
    )
    if doc is None:
        current = await _collection().find_one({"user_id": user_id}, session=session)
        balance = current["balance"] if current else 0
        log.warning("insufficient_balance", user_id=user_id, balance=balance, cost=cost)
        raise InsufficientFundsError(details={"balance": balance, "cost": cost})
    return doc["balance"]


async def refund(user_id: str, amount: int, session=None) -> None:
    """Give back a debit that could not be completed."""
    await _collection().update_one(
        {"user_id": user_id},
        {"$inc": {"balance": amount}, "$set": {"updated_at": datetime.utcnow()}},
        session=session,
    )


async def credit_earned(user_id: str, amount: int, session=None) -> int:
    """Grow the receiver's lifetime total; balance is untouched. Returns new total_earned."""
    await _ensure_wallet(user_id, session=session)
    doc = await _collection().find_one_and_update(
        {"user_id": user_id},
        {"$inc": {"total_earned": amount}, "$set": {"updated_at": datetime.utcnow()}},
        return_document=ReturnDocument.AFTER,
        session=session,
    )
    return doc["total_earned"]


async def transfer(sender_id: str, receiver_id: str, cost: int, session=None) -> int:
    """
    Debit sender balance and credit receiver total_earned. Returns the sender's new balance.
    Without a session the debit is undone if the credit fails or the caller is cancelled.
    """
    new_balance = await debit(sender_id, cost, session=session)
    try:
        new_earned = await credit_earned(receiver_id, cost, session=session)
    except BaseException:
        if session is None:
            log.warning("wallet_transfer_rollback", sender_id=sender_id, receiver_id=receiver_id, cost=cost)
            await asyncio.shield(refund(sender_id, cost))
        raise
    log.info(
        "wallet_transfer",
        sender_id=sender_id,
        receiver_id=receiver_id,
        cost=cost,
        sender_balance=new_balance,
        receiver_total_earned=new_earned,
    )
    return new_balance
