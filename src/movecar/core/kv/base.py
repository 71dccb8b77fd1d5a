"""Key-value store contract shared by all backends."""

from abc import ABC, abstractmethod


class KVStore(ABC):
    """String key-value store where every write carries its own TTL.

    Keys vanish silently once their TTL lapses. Reads may lag writes made by
    other requests and nothing spanning several keys is atomic.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value or None if absent or expired."""

    @abstractmethod
    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store a value that expires after ttl_seconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key; deleting a missing key is not an error."""

    async def start(self) -> None:
        """Prepare the backend on application startup."""

    async def ping(self) -> None:
        """Raise StorageUnavailableError if the store cannot be reached."""

    async def close(self) -> None:
        """Release connections on shutdown."""


def check_ttl(ttl_seconds: int) -> int:
    if ttl_seconds <= 0:
        raise ValueError(f"TTL must be positive, got {ttl_seconds}")
    return ttl_seconds
