import secrets

from movecar.core.core import Service
from movecar.core.modules.access.models import Role
from movecar.core.modules.session.models import Session
from movecar.errors import AccessDeniedError, NotFoundError


class AccessService(Service):
    """Authorizes requests against the stored session.

    Requester and owner credentials are checked by separate predicates and a
    credential of one role never satisfies the other. Every failure looks like
    "no session" so a guessed token reveals nothing.
    """

    def is_requester(self, session: Session | None, session_id: str | None) -> bool:
        if session is None or not session_id:
            return False
        return secrets.compare_digest(session.session_id.encode(), session_id.encode())

    def is_owner(self, session: Session | None, owner_token: str | None) -> bool:
        if session is None or not owner_token:
            return False
        return secrets.compare_digest(session.owner_token.encode(), owner_token.encode())

    def ensure_requester(self, session: Session | None, session_id: str | None) -> Session:
        """Ensure the presented cookie matches the current session id."""
        if session is None or not self.is_requester(session, session_id):
            raise NotFoundError
        return session

    def ensure_owner(self, session: Session | None, owner_token: str | None) -> Session:
        """Ensure the presented link token matches the current owner token."""
        if session is None or not self.is_owner(session, owner_token):
            raise NotFoundError
        return session

    def ensure_role(self, role: Role, session: Session | None, credential: str | None) -> Session:
        if role == Role.OWNER:
            return self.ensure_owner(session, credential)
        return self.ensure_requester(session, credential)

    def ensure_admin(self, admin_token: str | None) -> None:
        """Ensure the operator token matches; the history view does not exist without one configured."""
        expected = self.core.config.admin_token
        if not expected:
            raise NotFoundError("Not found")
        if not admin_token or not secrets.compare_digest(expected.encode(), admin_token.encode()):
            raise AccessDeniedError("Admin token required")
