"""Cross-instance fan-out: publish events on a Redis channel, deliver to local sockets."""

import asyncio
from typing import Any

import orjson
import redis.asyncio as aioredis

from pawpaw.core.config import get_settings
from pawpaw.core.logging import get_logger
from pawpaw.realtime.base import ConnectionRegistry
from pawpaw.realtime.memory import InMemoryConnectionRegistry

log = get_logger(__name__)


class RedisConnectionRegistry(ConnectionRegistry):
    retry_min_seconds = 1.0
    retry_max_seconds = 30.0

    def __init__(self, channel: str, redis=None) -> None:
        self.channel = channel
        self._redis = redis or aioredis.from_url(get_settings().redis_url)
        self._local = InMemoryConnectionRegistry()
        self._listener: asyncio.Task | None = None
        self._retry_delay = self.retry_min_seconds

    async def register(self, user_id: str, socket: Any) -> None:
        await self._local.register(user_id, socket)

    async def unregister(self, user_id: str, socket: Any) -> None:
        await self._local.unregister(user_id, socket)

    async def send_if_present(self, user_id: str, event: dict[str, Any]) -> int:
        """Publish for every instance; the return value is the number of subscribed instances."""
        payload = orjson.dumps({"user_id": user_id, "event": event})
        return await self._redis.publish(self.channel, payload)

    async def start(self) -> None:
        if self._listener is None:
            self._listener = asyncio.create_task(self._listen())

    async def stop(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None
        await self._redis.aclose()

    async def _listen(self) -> None:
        """Keep a subscription alive; a dropped connection is logged and retried with backoff."""
        self._retry_delay = self.retry_min_seconds
        while True:
            try:
                await self._consume()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                log.error(
                    "realtime_listener_failed", channel=self.channel, error=str(e), retry_in=self._retry_delay
                )
            else:
                log.warning("realtime_listener_ended", channel=self.channel, retry_in=self._retry_delay)
            await asyncio.sleep(self._retry_delay)
            self._retry_delay = min(self._retry_delay * 2, self.retry_max_seconds)

    async def _consume(self) -> None:
        pubsub = self._redis.pubsub()
        try:
            await pubsub.subscribe(self.channel)
            log.info("realtime_subscribed", channel=self.channel)
            self._retry_delay = self.retry_min_seconds
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    data = orjson.loads(message["data"])
                except orjson.JSONDecodeError:
                    log.warning("realtime_bad_payload", channel=self.channel)
                    continue
                await self._local.send_if_present(data["user_id"], data["event"])
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.aclose()
