from abc import ABC, abstractmethod
from typing import Any

from pawpaw.core.config import get_settings


class ConnectionRegistry(ABC):
    """Maps user id -> open sockets. Delivery is best effort: offline users are skipped."""

    @abstractmethod
    async def register(self, user_id: str, socket: Any) -> None:
        ...

    @abstractmethod
    async def unregister(self, user_id: str, socket: Any) -> None:
        ...

    @abstractmethod
    async def send_if_present(self, user_id: str, event: dict[str, Any]) -> int:
        """Send event to the user's sockets; return how many local sockets received it."""
        ...

    async def start(self) -> None:
        """Hook for backends that need a background listener."""

    async def stop(self) -> None:
        """Release background resources."""


_registries: dict[str, ConnectionRegistry] = {}


def get_registry(name: str = "matches") -> ConnectionRegistry:
    """One registry per channel name (matches, chat), built from REALTIME_BACKEND."""
    if name in _registries:
        return _registries[name]
    settings = get_settings()
    if settings.realtime_backend == "redis":
        from pawpaw.realtime.redis import RedisConnectionRegistry
        registry: ConnectionRegistry = RedisConnectionRegistry(f"{settings.realtime_channel}:{name}")
    else:
        from pawpaw.realtime.memory import InMemoryConnectionRegistry
        registry = InMemoryConnectionRegistry()
    _registries[name] = registry
    return registry


def set_registry(name: str, registry: ConnectionRegistry) -> None:
    """Swap the registry for a channel (tests, custom fan-out)."""
    _registries[name] = registry


async def stop_registries() -> None:
    for registry in _registries.values():
        await registry.stop()
    _registries.clear()
