"""Read models returned by lifecycle operations."""

from datetime import datetime

from pydantic import BaseModel, Field

from movecar.core.modules.access.models import Role
from movecar.core.modules.notification.models import ChannelResult, LocalSendRequest
from movecar.core.modules.session.models import Location, NotifyStatus, Session, SessionStatus


class NotifyOutcome(BaseModel):
    session: Session
    reused: bool


class StatusView(BaseModel):
    """What the polling requester sees."""

    status: NotifyStatus = Field(..., description="waiting, arriving or closed")
    session_id: str | None = None
    created_at: datetime | None = None
    expires_at: datetime | None = None
    completed_at: datetime | None = None
    owner_location: Location | None = None
    owner_message: str | None = None

    @classmethod
    def no_session(cls) -> "StatusView":
        """Uniform answer for a cookie that matches nothing, whether purged, replaced or guessed."""
        return cls(status=NotifyStatus.CLOSED)

    @classmethod
    def from_session(cls, session: Session) -> "StatusView":
        status = NotifyStatus.CLOSED if session.is_closed else session.notify_status
        return cls(
            status=status,
            session_id=session.session_id,
            created_at=session.created_at,
            expires_at=session.expires_at,
            completed_at=session.completed_at,
            owner_location=session.owner_location,
            owner_message=session.owner_message,
        )


class SessionView(BaseModel):
    """Identifiers visible to one role; never includes the other role's secret."""

    role: Role
    session_id: str | None = None
    owner_token: str | None = None
    status: SessionStatus
    notify_status: NotifyStatus
    created_at: datetime
    expires_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def for_role(cls, role: Role, session: Session) -> "SessionView":
        return cls(
            role=role,
            session_id=session.session_id if role == Role.REQUESTER else None,
            owner_token=session.owner_token if role == Role.OWNER else None,
            status=session.status,
            notify_status=NotifyStatus.CLOSED if session.is_closed else session.notify_status,
            created_at=session.created_at,
            expires_at=session.expires_at,
            completed_at=session.completed_at,
        )


class NotifyResult(BaseModel):
    """Outcome of a notify call: the session plus what happened on each push channel."""

    success: bool
    session_id: str
    reused: bool
    status: NotifyStatus
    service_count: int
    details: list[ChannelResult]
    partial_failure: bool
    local_meow_request: LocalSendRequest | None = None
