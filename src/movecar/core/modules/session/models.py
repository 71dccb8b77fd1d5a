"""Session record assembled from independently expiring keys."""

from datetime import datetime
from enum import StrEnum
from typing import NewType

from pydantic import BaseModel

SessionId = NewType("SessionId", str)
OwnerToken = NewType("OwnerToken", str)


class SessionStatus(StrEnum):
    """Lifecycle state of the live session. No session record at all means idle."""

    ACTIVE = "active"
    ARRIVING = "arriving"
    CLOSED = "closed"


class NotifyStatus(StrEnum):
    """Status shown to the polling requester.

    Mirrors SessionStatus, except that WAITING stands in for ACTIVE until the
    owner confirms.
    """

    WAITING = "waiting"
    ARRIVING = "arriving"
    CLOSED = "closed"


class CloseReason(StrEnum):
    TERMINATED = "terminated"
    EXPIRED = "expired"
    SUPERSEDED = "superseded"


class SessionKey(StrEnum):
    """Logical store keys; each one carries its own TTL."""

    SESSION_ID = "session_id"
    STATUS = "session_status"
    CREATED_AT = "session_created_at"
    COMPLETED_AT = "session_completed_at"
    OWNER_TOKEN = "session_owner_token"
    EXPIRES_AT = "session_expires_at"
    NOTIFY_STATUS = "notify_status"
    OWNER_LOCATION = "owner_location"
    OWNER_MESSAGE = "owner_message"
    REQUESTER_LOCATION = "requester_location"
    HISTORY = "session_history"


# Everything except history belongs to the live session and is purged with it
LIVE_KEYS: tuple[SessionKey, ...] = tuple(key for key in SessionKey if key != SessionKey.HISTORY)


class Location(BaseModel):
    """Coordinate pair plus derived map links."""

    lat: float
    lng: float
    amap_url: str
    apple_url: str
    timestamp: datetime | None = None  # Set for owner locations


class Session(BaseModel):
    """The currently live notification episode."""

    session_id: SessionId
    owner_token: OwnerToken
    status: SessionStatus
    created_at: datetime
    completed_at: datetime | None = None
    expires_at: datetime | None = None
    notify_status: NotifyStatus = NotifyStatus.WAITING
    requester_location: Location | None = None
    owner_location: Location | None = None
    owner_message: str | None = None

    @property
    def is_closed(self) -> bool:
        return self.status == SessionStatus.CLOSED


class HistoryEntry(BaseModel):
    """Reduced record of a past session kept for operator visibility."""

    session_id: SessionId
    owner_token: OwnerToken
    created_at: datetime
    closed_at: datetime
    reason: CloseReason = CloseReason.TERMINATED
