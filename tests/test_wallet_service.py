import asyncio

import pytest

from pawpaw.core.exceptions import InsufficientFundsError, InvalidArgumentError
from pawpaw.models.wallet import Wallet
from pawpaw.services import wallet as wallet_service


async def test_wallet_created_lazily_with_defaults():
    assert await Wallet.count() == 0
    wallet = await wallet_service.get_or_create_wallet("u1")
    assert wallet.balance == 100
    assert wallet.total_earned == 0
    again = await wallet_service.get_or_create_wallet("u1")
    assert again.id == wallet.id
    assert await Wallet.count() == 1


async def test_concurrent_first_access_makes_one_wallet():
    await asyncio.gather(*(wallet_service.get_or_create_wallet("u1") for _ in range(5)))
    assert await Wallet.find(Wallet.user_id == "u1").count() == 1


async def test_debit_and_insufficient():
    assert await wallet_service.debit("u1", 60) == 40
    with pytest.raises(InsufficientFundsError) as exc:
        await wallet_service.debit("u1", 50)
    assert exc.value.details == {"balance": 40, "cost": 50}
    wallet = await wallet_service.get_or_create_wallet("u1")
    assert wallet.balance == 40


async def test_debit_rejects_non_positive_cost():
    with pytest.raises(InvalidArgumentError):
        await wallet_service.debit("u1", 0)


async def test_concurrent_debits_never_go_negative():
    results = await asyncio.gather(
        *(wallet_service.debit("u1", 50) for _ in range(3)),
        return_exceptions=True,
    )
    ok = [r for r in results if not isinstance(r, Exception)]
    failed = [r for r in results if isinstance(r, InsufficientFundsError)]
    assert len(ok) == 2 and len(failed) == 1
    wallet = await wallet_service.get_or_create_wallet("u1")
    assert wallet.balance == 0


async def test_transfer_moves_balance_into_earned():
    new_balance = await wallet_service.transfer("sender", "receiver", 10)
    sender = await wallet_service.get_or_create_wallet("sender")
    receiver = await wallet_service.get_or_create_wallet("receiver")
    assert new_balance == 90
    assert sender.balance == 90
    assert receiver.balance == 100
    assert receiver.total_earned == 10


async def test_transfer_refunds_when_credit_fails(monkeypatch):
    async def boom(*args, **kwargs):
        raise RuntimeError("write failed")

    monkeypatch.setattr(wallet_service, "credit_earned", boom)
    with pytest.raises(RuntimeError):
        await wallet_service.transfer("sender", "receiver", 10)
    sender = await wallet_service.get_or_create_wallet("sender")
    assert sender.balance == 100
