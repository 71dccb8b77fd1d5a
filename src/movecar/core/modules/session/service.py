import asyncio
from datetime import datetime
from enum import StrEnum
from typing import Any

import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from movecar.core.core import Service
from movecar.core.modules.session.models import (
    LIVE_KEYS,
    HistoryEntry,
    Location,
    NotifyStatus,
    OwnerToken,
    Session,
    SessionId,
    SessionKey,
    SessionStatus,
)

logger = structlog.get_logger(__name__)

_history_adapter = TypeAdapter(list[HistoryEntry])


class SessionService(Service):
    """Typed accessors for the session record spread across independent store keys.

    Nothing here is atomic. Readers treat missing or inconsistent combinations
    of keys as "no session" and never raise on malformed payloads.
    """

    async def load(self) -> Session | None:
        """Read every live key concurrently and assemble the session, or None if idle."""
        values = await asyncio.gather(*(self.kv.get(key) for key in LIVE_KEYS))
        raw = dict(zip(LIVE_KEYS, values, strict=True))

        session_id = raw[SessionKey.SESSION_ID]
        status = _parse_enum(SessionStatus, raw[SessionKey.STATUS])
        created_at = _parse_datetime(SessionKey.CREATED_AT, raw[SessionKey.CREATED_AT])
        if not session_id or status is None or created_at is None:
            if session_id:
                logger.warning("session_record_incomplete", has_status=status is not None, has_created_at=created_at is not None)
            return None

        owner_token = raw[SessionKey.OWNER_TOKEN]
        if not owner_token:
            owner_token = self.core.services.token.owner_token_for(SessionId(session_id), created_at)

        notify_status = _parse_enum(NotifyStatus, raw[SessionKey.NOTIFY_STATUS])
        if notify_status is None:
            notify_status = mirror_notify_status(status)

        return Session(
            session_id=SessionId(session_id),
            owner_token=OwnerToken(owner_token),
            status=status,
            created_at=created_at,
            completed_at=_parse_datetime(SessionKey.COMPLETED_AT, raw[SessionKey.COMPLETED_AT]),
            expires_at=_parse_datetime(SessionKey.EXPIRES_AT, raw[SessionKey.EXPIRES_AT]),
            notify_status=notify_status,
            requester_location=_parse_location(SessionKey.REQUESTER_LOCATION, raw[SessionKey.REQUESTER_LOCATION]),
            owner_location=_parse_location(SessionKey.OWNER_LOCATION, raw[SessionKey.OWNER_LOCATION]),
            owner_message=raw[SessionKey.OWNER_MESSAGE] or None,
        )

    async def save(self, session: Session, ttl_seconds: int) -> None:
        """Write every present field of the session with the given TTL.

        Absent optional fields are left untouched; use clear() to remove them.
        The session id goes last so a concurrent reader only sees a new id
        once the rest of the record exists.
        """
        await self.kv.put(SessionKey.OWNER_TOKEN, session.owner_token, ttl_seconds)
        await self.kv.put(SessionKey.CREATED_AT, session.created_at.isoformat(), ttl_seconds)
        await self.kv.put(SessionKey.STATUS, session.status, ttl_seconds)
        await self.kv.put(SessionKey.NOTIFY_STATUS, session.notify_status, ttl_seconds)
        if session.expires_at is not None:
            await self.kv.put(SessionKey.EXPIRES_AT, session.expires_at.isoformat(), ttl_seconds)
        if session.completed_at is not None:
            await self.kv.put(SessionKey.COMPLETED_AT, session.completed_at.isoformat(), ttl_seconds)
        if session.requester_location is not None:
            await self.put_location(SessionKey.REQUESTER_LOCATION, session.requester_location, ttl_seconds)
        if session.owner_location is not None:
            await self.put_location(SessionKey.OWNER_LOCATION, session.owner_location, ttl_seconds)
        if session.owner_message is not None:
            await self.kv.put(SessionKey.OWNER_MESSAGE, session.owner_message, ttl_seconds)
        await self.kv.put(SessionKey.SESSION_ID, session.session_id, ttl_seconds)

    async def put_location(self, key: SessionKey, location: Location, ttl_seconds: int) -> None:
        await self.kv.put(key, location.model_dump_json(), ttl_seconds)

    async def clear(self, *keys: SessionKey) -> None:
        for key in keys:
            await self.kv.delete(key)

    async def purge(self) -> None:
        """Delete every live session key. History is kept."""
        await self.clear(*LIVE_KEYS)

    async def get_history(self) -> list[HistoryEntry]:
        raw = await self.kv.get(SessionKey.HISTORY)
        if not raw:
            return []
        try:
            return _history_adapter.validate_json(raw)
        except PydanticValidationError:
            logger.warning("malformed_stored_value", key=SessionKey.HISTORY)
            return []

    async def append_history(self, entry: HistoryEntry) -> list[HistoryEntry]:
        """Prepend an entry, replacing any earlier entry for the same session, and cap the list."""
        config = self.core.config
        entries = [item for item in await self.get_history() if item.session_id != entry.session_id]
        entries = [entry, *entries][: config.history_limit]
        await self.kv.put(SessionKey.HISTORY, _history_adapter.dump_json(entries).decode(), config.history_ttl_seconds)
        return entries


def mirror_notify_status(status: SessionStatus) -> NotifyStatus:
    if status == SessionStatus.ARRIVING:
        return NotifyStatus.ARRIVING
    if status == SessionStatus.CLOSED:
        return NotifyStatus.CLOSED
    return NotifyStatus.WAITING


def _parse_enum(enum_type: type[StrEnum], raw: str | None) -> Any:
    if not raw:
        return None
    try:
        return enum_type(raw)
    except ValueError:
        logger.warning("malformed_stored_value", key=enum_type.__name__, value=raw[:32])
        return None


def _parse_datetime(key: SessionKey, raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        logger.warning("malformed_stored_value", key=key)
        return None


def _parse_location(key: SessionKey, raw: str | None) -> Location | None:
    if not raw:
        return None
    try:
        return Location.model_validate_json(raw)
    except PydanticValidationError:
        logger.warning("malformed_stored_value", key=key)
        return None
