import secrets
from datetime import datetime
from zoneinfo import ZoneInfo

from movecar.core.core import Service
from movecar.core.modules.session.models import OwnerToken, SessionId

OWNER_TOKEN_SUFFIX = "owner"
SESSION_ID_BYTES = 3  # 24 bits, six hex characters


class TokenService(Service):
    """Issues the two capability tokens of a session.

    The session id lives in the requester's cookie; the owner token is embedded
    in the link pushed to the owner. They are never interchangeable.
    """

    def new_session_id(self) -> SessionId:
        """Fresh random session id; never reused across sessions."""
        return SessionId(secrets.token_hex(SESSION_ID_BYTES))

    def owner_token_for(self, session_id: SessionId, created_at: datetime) -> OwnerToken:
        """Derive the owner token from the session id and its creation time.

        Deterministic, so a token whose key went missing can be recomputed from
        the stored creation time.
        """
        local = created_at.astimezone(ZoneInfo(self.core.config.token_timezone))
        return OwnerToken(f"{session_id}-{local:%m%d}-{local:%H}-{local:%M}-{OWNER_TOKEN_SUFFIX}")
