"""MongoDB-backed key-value store backend."""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import ConnectionFailure

from movecar.core.kv.base import KVStore, check_ttl
from movecar.errors import StorageUnavailableError
from movecar.utils import now

logger = structlog.get_logger(__name__)


class MongoKVStore(KVStore):
    """One document per key: {_id: key, value, expires_at}.

    Indexed on expires_at with a TTL of zero. The TTL monitor only runs about
    once a minute, so reads also filter on expires_at.
    """

    def __init__(self, collection: AsyncCollection[dict[str, Any]], clock: Callable[[], datetime] = now) -> None:
        self._collection = collection
        self._clock = clock
        self._client: AsyncMongoClient[dict[str, Any]] | None = None

    @classmethod
    def from_url(cls, url: str, clock: Callable[[], datetime] = now, collection_name: str = "kv") -> "MongoKVStore":
        client: AsyncMongoClient[dict[str, Any]] = AsyncMongoClient(url, tz_aware=True)
        database = client.get_database(urlparse(url).path[1:] or "movecar")
        store = cls(database.get_collection(collection_name), clock)
        store._client = client
        return store

    async def start(self) -> None:
        try:
            await self._collection.create_index([("expires_at", 1)], expireAfterSeconds=0)
        except ConnectionFailure as e:
            raise StorageUnavailableError from e

    async def get(self, key: str) -> str | None:
        try:
            doc = await self._collection.find_one({"_id": key, "expires_at": {"$gt": self._clock()}})
        except ConnectionFailure as e:
            logger.exception("mongo_get_failed", key=key)
            raise StorageUnavailableError from e
        if doc is None:
            return None
        return str(doc["value"])

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        expires_at = self._clock() + timedelta(seconds=check_ttl(ttl_seconds))
        try:
            await self._collection.replace_one({"_id": key}, {"_id": key, "value": value, "expires_at": expires_at}, upsert=True)
        except ConnectionFailure as e:
            logger.exception("mongo_put_failed", key=key)
            raise StorageUnavailableError from e

    async def delete(self, key: str) -> None:
        try:
            await self._collection.delete_one({"_id": key})
        except ConnectionFailure as e:
            logger.exception("mongo_delete_failed", key=key)
            raise StorageUnavailableError from e

    async def ping(self) -> None:
        if self._client is None:
            return
        try:
            await self._client.admin.command("ping")
        except ConnectionFailure as e:
            raise StorageUnavailableError from e

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
