"""Unit of work: a MongoDB transaction when the deployment supports one."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from pawpaw.core.config import get_settings
from pawpaw.db.init import get_client


@asynccontextmanager
async def atomic() -> AsyncIterator:
    """
    Yield a session bound to an open transaction, or None when transactions are disabled.
    Callers pass the yielded value as session= to every write; with None they must undo
    their own writes on failure.
    """
    if not get_settings().mongodb_transactions:
        yield None
        return
    async with await get_client().start_session() as session:
        async with session.start_transaction():
            yield session
