"""In-process key-value store backend."""

from collections.abc import Callable
from datetime import datetime, timedelta

from movecar.core.kv.base import KVStore, check_ttl
from movecar.utils import now


class MemoryKVStore(KVStore):
    """In-memory store with per-key expiry.

    Suitable for single-process deployments, development and tests. The clock
    is injectable so tests can move time forward.
    """

    def __init__(self, clock: Callable[[], datetime] = now) -> None:
        self._clock = clock
        self._store: dict[str, tuple[str, datetime]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._store[key]
            return None
        return value

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        expires_at = self._clock() + timedelta(seconds=check_ttl(ttl_seconds))
        self._store[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def ttl_of(self, key: str) -> float | None:
        """Seconds left before key expires, None if absent."""
        entry = self._store.get(key)
        if entry is None:
            return None
        return (entry[1] - self._clock()).total_seconds()

    def keys(self) -> list[str]:
        """Currently unexpired keys."""
        current = self._clock()
        return sorted(key for key, (_, expires_at) in self._store.items() if current < expires_at)
