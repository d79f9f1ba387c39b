import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

os.environ.setdefault("MONGODB_DB_NAME", "pawpaw_test")
os.environ.setdefault("SECRET_KEY", "test-secret-key-min-32-characters-long")
os.environ.setdefault("REALTIME_BACKEND", "memory")


class FakeSocket:
    """Stands in for a WebSocket: records what the registry sends."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict] = []
        self.fail = fail

    async def send_json(self, data: dict) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


@pytest_asyncio.fixture(autouse=True)
async def db() -> AsyncGenerator[None, None]:
    """Fresh in-process MongoDB per test, with unique indexes created by Beanie."""
    from pawpaw.db.init import init_db
    await init_db(client=AsyncMongoMockClient())
    yield


@pytest.fixture(autouse=True)
def registries():
    from pawpaw.realtime.base import set_registry
    from pawpaw.realtime.memory import InMemoryConnectionRegistry
    regs = {"matches": InMemoryConnectionRegistry(), "chat": InMemoryConnectionRegistry()}
    for name, reg in regs.items():
        set_registry(name, reg)
    yield regs


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    from pawpaw.main import app
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def make_user():
    """Factory: insert a user and return (user, auth headers)."""
    from pawpaw.core.security import create_session_token
    from pawpaw.models.user import User
    from pawpaw.services.users import session_payload_for_user

    counter = {"n": 0}

    async def _make(name: str = "owner"):
        counter["n"] += 1
        user = User(google_sub=f"sub-{name}-{counter['n']}", email=f"{name}{counter['n']}@example.com", name=name)
        await user.insert()
        token = create_session_token(session_payload_for_user(user))
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture
def make_pet():
    from pawpaw.services import pets as pets_service

    async def _make(owner_id: str, name: str = "Rex", **extra):
        return await pets_service.create_pet(
            owner_id,
            name=name,
            breed=extra.get("breed", "Beagle"),
            age=extra.get("age", 3),
            photo_url=extra.get("photo_url", f"https://img.example.com/{name}.jpg"),
            bio=extra.get("bio"),
        )

    return _make


@pytest.fixture
def fake_socket():
    return FakeSocket
