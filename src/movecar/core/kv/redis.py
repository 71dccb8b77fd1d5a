"""Redis-backed key-value store backend."""

from typing import Any

import redis.asyncio as redis
import structlog
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from movecar.core.kv.base import KVStore, check_ttl
from movecar.errors import StorageUnavailableError

logger = structlog.get_logger(__name__)


class RedisKVStore(KVStore):
    """Redis store, suitable for multi-worker deployments with shared state.

    Every key is written with SET ... EX so Redis expires it on its own.
    """

    def __init__(self, client: Any, prefix: str = "movecar:") -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "movecar:") -> "RedisKVStore":
        return cls(redis.from_url(url, encoding="utf-8", decode_responses=True), prefix)

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.get(self._key(key))
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.exception("redis_get_failed", key=key)
            raise StorageUnavailableError from e
        if isinstance(value, bytes):
            return value.decode()
        return value

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(self._key(key), value, ex=check_ttl(ttl_seconds))
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.exception("redis_put_failed", key=key)
            raise StorageUnavailableError from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except (RedisConnectionError, RedisTimeoutError) as e:
            logger.exception("redis_delete_failed", key=key)
            raise StorageUnavailableError from e

    async def ping(self) -> None:
        try:
            await self._client.ping()
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise StorageUnavailableError from e

    async def close(self) -> None:
        await self._client.aclose()
