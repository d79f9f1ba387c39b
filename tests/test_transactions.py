"""send_gift with MONGODB_TRANSACTIONS=true, against a recording session."""

import pytest

from pawpaw.core.config import get_settings
from pawpaw.db import session as session_module
from pawpaw.models.gift import Gift
from pawpaw.services import gifts as gifts_service
from pawpaw.services import wallet as wallet_service


class FakeTransaction:
    def __init__(self, session):
        self.session = session

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.session.outcome = "aborted" if exc_type else "committed"
        return False


class FakeSession:
    def __init__(self):
        self.outcome = None
        self.ended = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.ended = True
        return False

    def start_transaction(self):
        return FakeTransaction(self)


class FakeClient:
    def __init__(self):
        self.sessions = []

    async def start_session(self):
        session = FakeSession()
        self.sessions.append(session)
        return session


@pytest.fixture
def tx_client(monkeypatch):
    monkeypatch.setenv("MONGODB_TRANSACTIONS", "true")
    get_settings.cache_clear()
    client = FakeClient()
    monkeypatch.setattr(session_module, "get_client", lambda: client)
    yield client
    get_settings.cache_clear()


@pytest.fixture
def recorded_writes(monkeypatch):
    """Replace every write in the gift path with a recorder of the session it got."""
    writes = []

    async def debit(user_id, cost, session=None):
        writes.append(("debit", session))
        return 100 - cost

    async def credit_earned(user_id, amount, session=None):
        writes.append(("credit_earned", session))
        return amount

    async def refund(user_id, amount, session=None):
        writes.append(("refund", session))

    async def insert(self, session=None, **kwargs):
        writes.append(("gift_insert", session))
        return self

    async def log_event(*args, session=None, **kwargs):
        writes.append(("audit", session))

    monkeypatch.setattr(wallet_service, "debit", debit)
    monkeypatch.setattr(wallet_service, "credit_earned", credit_earned)
    monkeypatch.setattr(wallet_service, "refund", refund)
    monkeypatch.setattr(Gift, "insert", insert)
    monkeypatch.setattr(gifts_service, "log_event", log_event)
    return writes


async def test_gift_writes_share_one_transaction(tx_client, recorded_writes):
    result = await gifts_service.send_gift("alice", "bone", receiver_id="bob")

    assert result.new_balance == 90
    [session] = tx_client.sessions
    assert [name for name, _ in recorded_writes] == ["debit", "credit_earned", "gift_insert", "audit"]
    assert all(s is session for _, s in recorded_writes)
    assert session.outcome == "committed"
    assert session.ended


async def test_failure_after_debit_aborts_transaction(tx_client, recorded_writes, monkeypatch):
    async def fail_insert(self, session=None, **kwargs):
        recorded_writes.append(("gift_insert", session))
        raise RuntimeError("insert failed")

    monkeypatch.setattr(Gift, "insert", fail_insert)
    with pytest.raises(RuntimeError):
        await gifts_service.send_gift("alice", "toy", receiver_id="bob")

    [session] = tx_client.sessions
    assert session.outcome == "aborted"
    # the transaction undoes the writes; no compensating writes are issued
    assert [name for name, _ in recorded_writes] == ["debit", "credit_earned", "gift_insert"]


async def test_atomic_yields_none_without_transactions():
    async with session_module.atomic() as session:
        assert session is None
