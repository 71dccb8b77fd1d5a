"""Key-value store backends (memory, redis, mongodb)."""

from collections.abc import Callable
from datetime import datetime
from urllib.parse import urlparse

from movecar.core.kv.base import KVStore
from movecar.core.kv.memory import MemoryKVStore
from movecar.utils import now

__all__ = ["KVStore", "MemoryKVStore", "create_kv_store"]


def create_kv_store(store_url: str, clock: Callable[[], datetime] = now) -> KVStore:
    """Build the store selected by the URL scheme."""
    scheme = urlparse(store_url).scheme
    if scheme == "memory":
        return MemoryKVStore(clock)
    if scheme in ("redis", "rediss", "unix"):
        from movecar.core.kv.redis import RedisKVStore  # noqa: PLC0415

        return RedisKVStore.from_url(store_url)
    if scheme in ("mongodb", "mongodb+srv"):
        from movecar.core.kv.mongo import MongoKVStore  # noqa: PLC0415

        return MongoKVStore.from_url(store_url, clock)
    raise ValueError(f"Unsupported store URL scheme: {scheme!r}")
