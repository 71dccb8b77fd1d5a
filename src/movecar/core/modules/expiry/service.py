from datetime import datetime, timedelta

import structlog

from movecar.core.core import Service
from movecar.core.modules.session.models import CloseReason, Session

logger = structlog.get_logger(__name__)


class ExpiryService(Service):
    """Lazy expiry, run at the top of every operation that reads or mutates the session.

    The store has no expiry callbacks, so an overdue session is only closed,
    and a closed one only purged, when the next request looks at it.
    """

    def deadline(self, session: Session) -> datetime:
        """Sliding deadline; falls back to created_at + window if the expires_at key is missing."""
        if session.expires_at is not None:
            return session.expires_at
        return session.created_at + timedelta(seconds=self.core.config.session_window_seconds)

    async def auto_close_if_expired(self, session: Session | None) -> Session | None:
        """Close a live session whose deadline has been reached, exactly as terminate would."""
        if session is None or session.is_closed:
            return session
        if self.core.now() < self.deadline(session):
            return session
        logger.info("session_expired", session_id=session.session_id)
        return await self.core.services.lifecycle.close_session(session, CloseReason.EXPIRED)

    async def purge_if_view_expired(self, session: Session | None) -> Session | None:
        """Delete a closed session once its display window has passed. Returns None when purged."""
        if session is None or not session.is_closed:
            return session
        display_window = timedelta(seconds=self.core.config.display_window_seconds)
        if session.completed_at is not None and self.core.now() - session.completed_at <= display_window:
            return session
        await self.core.services.session.purge()
        logger.info("session_purged", session_id=session.session_id)
        return None

    async def sweep(self) -> Session | None:
        """Load the session, close it if overdue, purge it if its display window is over."""
        session = await self.core.services.session.load()
        session = await self.auto_close_if_expired(session)
        return await self.purge_if_view_expired(session)
