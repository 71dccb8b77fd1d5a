from datetime import timedelta

import structlog

from movecar.core.core import Service
from movecar.core.modules.lifecycle.models import NotifyOutcome
from movecar.core.modules.session.models import (
    CloseReason,
    HistoryEntry,
    Location,
    NotifyStatus,
    Session,
    SessionKey,
    SessionStatus,
)
from movecar.core.modules.session.service import mirror_notify_status
from movecar.errors import SessionClosedError, ValidationError

logger = structlog.get_logger(__name__)

MAX_OWNER_MESSAGE_LENGTH = 200


class LifecycleService(Service):
    """Session state machine: idle -> active -> arriving -> closed.

    Callers pass in the session returned by the expiry sweep and already
    authorized by the access guard. Every transition is a series of
    independent, individually TTL'd writes and is safe to re-apply.
    """

    async def notify(
        self, current: Session | None, incoming_session_id: str | None, requester_location: Location | None = None
    ) -> NotifyOutcome:
        """Extend the caller's own live session, or start a new one."""
        config = self.core.config
        now = self.core.now()
        expires_at = now + timedelta(seconds=config.session_window_seconds)
        sessions = self.core.services.session

        if current is not None and not current.is_closed and self.core.services.access.is_requester(current, incoming_session_id):
            # Arriving never falls back to active on a retry
            status = SessionStatus.ARRIVING if current.status == SessionStatus.ARRIVING else SessionStatus.ACTIVE
            session = current.model_copy(
                update={
                    "status": status,
                    "notify_status": mirror_notify_status(status),
                    "expires_at": expires_at,
                    "completed_at": None,
                    "requester_location": requester_location or current.requester_location,
                }
            )
            await sessions.clear(SessionKey.COMPLETED_AT)
            await sessions.save(session, config.field_ttl_seconds)
            logger.info("session_reused", session_id=session.session_id, status=status)
            return NotifyOutcome(session=session, reused=True)

        if current is not None and not current.is_closed:
            await sessions.append_history(
                HistoryEntry(
                    session_id=current.session_id,
                    owner_token=current.owner_token,
                    created_at=current.created_at,
                    closed_at=now,
                    reason=CloseReason.SUPERSEDED,
                )
            )
            logger.info("session_superseded", session_id=current.session_id)

        tokens = self.core.services.token
        session_id = tokens.new_session_id()
        while current is not None and session_id == current.session_id:
            session_id = tokens.new_session_id()

        session = Session(
            session_id=session_id,
            owner_token=tokens.owner_token_for(session_id, now),
            status=SessionStatus.ACTIVE,
            created_at=now,
            expires_at=expires_at,
            notify_status=NotifyStatus.WAITING,
            requester_location=requester_location,
        )
        stale = [SessionKey.OWNER_LOCATION, SessionKey.OWNER_MESSAGE, SessionKey.COMPLETED_AT]
        if requester_location is None:
            stale.append(SessionKey.REQUESTER_LOCATION)
        await sessions.clear(*stale)
        await sessions.save(session, config.field_ttl_seconds)
        logger.info("session_created", session_id=session_id, has_location=requester_location is not None)
        return NotifyOutcome(session=session, reused=False)

    async def owner_confirm(self, session: Session, location: Location | None, message: str | None) -> Session:
        """Owner acknowledges and is on the way; location and message replace earlier ones."""
        if session.is_closed:
            raise SessionClosedError
        message = normalize_owner_message(message)
        config = self.core.config
        updated = session.model_copy(
            update={
                "status": SessionStatus.ARRIVING,
                "notify_status": NotifyStatus.ARRIVING,
                "expires_at": self.core.now() + timedelta(seconds=config.session_window_seconds),
                "completed_at": None,
                "owner_location": location,
                "owner_message": message,
            }
        )
        stale = [SessionKey.COMPLETED_AT]
        if location is None:
            stale.append(SessionKey.OWNER_LOCATION)
        if message is None:
            stale.append(SessionKey.OWNER_MESSAGE)
        sessions = self.core.services.session
        await sessions.clear(*stale)
        await sessions.save(updated, config.field_ttl_seconds)
        logger.info("owner_confirmed", session_id=session.session_id, has_location=location is not None)
        return updated

    async def clear_owner_location(self, session: Session) -> Session:
        """Stop sharing the owner's location; status and deadline are untouched."""
        if session.is_closed:
            raise SessionClosedError
        await self.core.services.session.clear(SessionKey.OWNER_LOCATION)
        logger.info("owner_location_cleared", session_id=session.session_id)
        return session.model_copy(update={"owner_location": None})

    async def terminate(self, session: Session) -> Session:
        """Owner closes the session. Terminating a closed session changes nothing."""
        if session.is_closed:
            logger.debug("session_already_closed", session_id=session.session_id)
            return session
        return await self.close_session(session, CloseReason.TERMINATED)

    async def close_session(self, session: Session, reason: CloseReason) -> Session:
        """Mark closed, shrink every remaining key to the display window and record it in history."""
        if session.is_closed:
            return session
        config = self.core.config
        now = self.core.now()
        closed = session.model_copy(
            update={
                "status": SessionStatus.CLOSED,
                "notify_status": NotifyStatus.CLOSED,
                "completed_at": now,
                "expires_at": None,
                "owner_location": None,
                "owner_message": None,
            }
        )
        sessions = self.core.services.session
        await sessions.clear(SessionKey.EXPIRES_AT, SessionKey.OWNER_LOCATION, SessionKey.OWNER_MESSAGE)
        await sessions.save(closed, config.display_window_seconds)
        await sessions.append_history(
            HistoryEntry(
                session_id=closed.session_id,
                owner_token=closed.owner_token,
                created_at=closed.created_at,
                closed_at=now,
                reason=reason,
            )
        )
        logger.info("session_closed", session_id=session.session_id, reason=reason)
        return closed


def normalize_owner_message(message: str | None) -> str | None:
    if message is None:
        return None
    message = message.strip()
    if not message:
        return None
    if len(message) > MAX_OWNER_MESSAGE_LENGTH:
        raise ValidationError(f"Message must be at most {MAX_OWNER_MESSAGE_LENGTH} characters")
    return message
