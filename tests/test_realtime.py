import asyncio

import orjson
from fastapi import WebSocketDisconnect

from pawpaw.realtime.endpoint import serve_events
from pawpaw.realtime.memory import InMemoryConnectionRegistry
from pawpaw.realtime.redis import RedisConnectionRegistry


class FakeWebSocket:
    """Enough of starlette's WebSocket for serve_events."""

    def __init__(self, token=None, on_receive=None):
        self.headers = {"authorization": f"Bearer {token}"} if token else {}
        self.cookies = {}
        self.query_params = {}
        self.url = type("URL", (), {"path": "/api/ws/matches"})()
        self.accepted = False
        self.closed_code = None
        self.sent = []
        self._on_receive = on_receive

    async def accept(self):
        self.accepted = True

    async def send_json(self, data):
        self.sent.append(data)

    async def close(self, code=1000):
        self.closed_code = code

    async def receive_text(self):
        if self._on_receive:
            await self._on_receive()
        raise WebSocketDisconnect(code=1000)


async def test_memory_registry_fan_out(fake_socket):
    registry = InMemoryConnectionRegistry()
    phone, laptop, broken = fake_socket(), fake_socket(), fake_socket(fail=True)
    for sock in (phone, laptop, broken):
        await registry.register("u1", sock)

    delivered = await registry.send_if_present("u1", {"type": "match"})

    assert delivered == 2
    assert phone.sent == [{"type": "match"}] and laptop.sent == [{"type": "match"}]
    assert registry.connection_count("u1") == 2
    assert await registry.send_if_present("offline", {"type": "match"}) == 0


async def test_unregister_last_socket_forgets_user(fake_socket):
    registry = InMemoryConnectionRegistry()
    sock = fake_socket()
    await registry.register("u1", sock)
    await registry.unregister("u1", sock)
    await registry.unregister("u1", sock)
    assert registry.connection_count("u1") == 0


async def test_redis_registry_publishes_envelope():
    class FakeRedis:
        def __init__(self):
            self.published = []

        async def publish(self, channel, payload):
            self.published.append((channel, payload))
            return 1

    redis = FakeRedis()
    registry = RedisConnectionRegistry("pawpaw:events:matches", redis=redis)

    assert await registry.send_if_present("u1", {"type": "match"}) == 1
    channel, payload = redis.published[0]
    assert channel == "pawpaw:events:matches"
    assert orjson.loads(payload) == {"user_id": "u1", "event": {"type": "match"}}


async def test_socket_without_session_is_closed(registries):
    ws = FakeWebSocket()
    await serve_events(ws, "matches")
    assert ws.accepted
    assert ws.sent == [{"error": "Unauthorized"}]
    assert ws.closed_code == 1008


async def test_socket_registered_while_open(make_user, registries):
    user, headers = await make_user("alice")
    token = headers["Authorization"].split(" ", 1)[1]
    seen = {}

    async def while_open():
        seen["count"] = registries["matches"].connection_count(str(user.id))

    ws = FakeWebSocket(token=token, on_receive=while_open)
    await serve_events(ws, "matches")

    assert seen["count"] == 1
    assert registries["matches"].connection_count(str(user.id)) == 0
    assert ws.closed_code is None


class FakePubSub:
    def __init__(self, messages=(), fail=False):
        self.messages = list(messages)
        self.fail = fail
        self.closed = False

    async def subscribe(self, channel):
        if self.fail:
            raise ConnectionError("connection lost")

    async def listen(self):
        for message in self.messages:
            yield message
        await asyncio.Event().wait()

    async def unsubscribe(self, channel):
        pass

    async def aclose(self):
        self.closed = True


class FakePubSubRedis:
    def __init__(self, pubsubs):
        self.pubsubs = list(pubsubs)
        self.closed = False

    def pubsub(self):
        return self.pubsubs.pop(0)

    async def aclose(self):
        self.closed = True


async def test_redis_listener_resubscribes_after_connection_loss(fake_socket):
    envelope = orjson.dumps({"user_id": "u1", "event": {"type": "match"}})
    dropped = FakePubSub(fail=True)
    healthy = FakePubSub(messages=[{"type": "subscribe"}, {"type": "message", "data": envelope}])
    redis = FakePubSubRedis([dropped, healthy])
    registry = RedisConnectionRegistry("pawpaw:events:matches", redis=redis)
    registry.retry_min_seconds = 0.01
    sock = fake_socket()
    await registry.register("u1", sock)

    await registry.start()
    for _ in range(100):
        if sock.sent:
            break
        await asyncio.sleep(0.01)
    await registry.stop()

    assert sock.sent == [{"type": "match"}]
    assert dropped.closed
    assert redis.closed
