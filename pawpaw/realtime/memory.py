import asyncio
from typing import Any

from pawpaw.core.logging import get_logger
from pawpaw.realtime.base import ConnectionRegistry

log = get_logger(__name__)


class InMemoryConnectionRegistry(ConnectionRegistry):
    """Sockets held by this process only. Suitable for a single API instance."""

    def __init__(self) -> None:
        self._sockets: dict[str, set[Any]] = {}
        self._lock = asyncio.Lock()

    async def register(self, user_id: str, socket: Any) -> None:
        async with self._lock:
            self._sockets.setdefault(user_id, set()).add(socket)
            count = len(self._sockets[user_id])
        log.info("socket_registered", user_id=user_id, connection_count=count)

    async def unregister(self, user_id: str, socket: Any) -> None:
        async with self._lock:
            sockets = self._sockets.get(user_id)
            if not sockets:
                return
            sockets.discard(socket)
            count = len(sockets)
            if not sockets:
                del self._sockets[user_id]
        log.info("socket_unregistered", user_id=user_id, connection_count=count)

    def connection_count(self, user_id: str) -> int:
        return len(self._sockets.get(user_id, ()))

    async def send_if_present(self, user_id: str, event: dict[str, Any]) -> int:
        sockets = list(self._sockets.get(user_id, ()))
        delivered = 0
        for socket in sockets:
            try:
                await socket.send_json(event)
                delivered += 1
            except Exception as e:
                # Closed or broken socket: drop it, the client reconnects
                log.warning("socket_send_failed", user_id=user_id, error=str(e))
                await self.unregister(user_id, socket)
        return delivered
