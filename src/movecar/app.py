import asyncio
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from urllib.parse import quote

from movecar.config import Config
from movecar.core.core import Core
from movecar.core.kv import KVStore
from movecar.core.modules.access.models import Role
from movecar.core.modules.lifecycle.models import NotifyResult, SessionView, StatusView
from movecar.core.modules.location.models import Coordinates
from movecar.core.modules.location.utils import build_location
from movecar.core.modules.notification.models import NotificationContent
from movecar.core.modules.session.models import HistoryEntry, Location
from movecar.errors import NotFoundError
from movecar.utils import now


class App:
    """Facade for all operations: sweep expired state, authorize, then delegate the transition to Core."""

    def __init__(self, config: Config, clock: Callable[[], datetime] = now, kv: KVStore | None = None) -> None:
        self._core = Core(config, clock, kv)

    @property
    def config(self) -> Config:
        return self._core.config

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    async def check_health(self) -> None:
        """Raise StorageUnavailableError if the store is unreachable."""
        await self._core.kv.ping()

    # === Requester ===
    async def notify(
        self,
        session_cookie: str | None,
        message: str | None,
        location: Coordinates | None = None,
        plate: str | None = None,
        delayed: bool = False,
        origin: str = "",
    ) -> NotifyResult:
        """Start or extend the session and push the owner link (plate proof checked first when configured)."""
        services = self._core.services
        services.plate.ensure_plate(plate)
        services.notification.ensure_configured()

        current = await services.expiry.sweep()
        requester_location = build_location(location.lat, location.lng) if location else None
        outcome = await services.lifecycle.notify(current, session_cookie, requester_location)
        session = outcome.session

        if delayed:
            await asyncio.sleep(self.config.notify_delay_seconds)

        content = NotificationContent(
            message=(message or "").strip() or self.config.default_message,
            has_location=requester_location is not None,
            confirm_url=self.build_confirm_url(session.owner_token, origin),
        )
        dispatch = await services.notification.dispatch(content)
        return NotifyResult(
            success=dispatch.attempted,
            session_id=session.session_id,
            reused=outcome.reused,
            status=session.notify_status,
            service_count=len(dispatch.results),
            details=dispatch.results,
            partial_failure=dispatch.partial_failure,
            local_meow_request=dispatch.local_request,
        )

    async def check_status(self, session_cookie: str | None) -> StatusView:
        """Polling endpoint. A cookie that no longer matches anything sees the uniform no-session view."""
        if not session_cookie:
            raise NotFoundError
        services = self._core.services
        session = await services.expiry.sweep()
        if session is None or not services.access.is_requester(session, session_cookie):
            return StatusView.no_session()
        return StatusView.from_session(session)

    async def get_owner_location(self, session_cookie: str | None) -> Location:
        services = self._core.services
        session = services.access.ensure_requester(await services.expiry.sweep(), session_cookie)
        if session.owner_location is None:
            raise NotFoundError("No location")
        return session.owner_location

    # === Either role ===
    async def get_session(self, role: Role, credential: str | None) -> SessionView:
        services = self._core.services
        session = services.access.ensure_role(role, await services.expiry.sweep(), credential)
        return SessionView.for_role(role, session)

    # === Owner ===
    async def get_requester_location(self, owner_token: str | None) -> Location:
        services = self._core.services
        session = services.access.ensure_owner(await services.expiry.sweep(), owner_token)
        if session.requester_location is None:
            raise NotFoundError("No location")
        return session.requester_location

    async def owner_confirm(self, owner_token: str | None, location: Coordinates | None, message: str | None) -> SessionView:
        services = self._core.services
        session = services.access.ensure_owner(await services.expiry.sweep(), owner_token)
        owner_location = build_location(location.lat, location.lng, self._core.now()) if location else None
        session = await services.lifecycle.owner_confirm(session, owner_location, message)
        return SessionView.for_role(Role.OWNER, session)

    async def clear_owner_location(self, owner_token: str | None) -> SessionView:
        services = self._core.services
        session = services.access.ensure_owner(await services.expiry.sweep(), owner_token)
        session = await services.lifecycle.clear_owner_location(session)
        return SessionView.for_role(Role.OWNER, session)

    async def terminate_session(self, owner_token: str | None) -> SessionView:
        services = self._core.services
        session = services.access.ensure_owner(await services.expiry.sweep(), owner_token)
        session = await services.lifecycle.terminate(session)
        return SessionView.for_role(Role.OWNER, session)

    # === Operator ===
    async def get_history(self, admin_token: str | None) -> list[HistoryEntry]:
        self._core.services.access.ensure_admin(admin_token)
        return await self._core.services.session.get_history()

    def build_confirm_url(self, owner_token: str, origin: str) -> str:
        """Owner link; EXTERNAL_URL wins over the request origin."""
        base = (self.config.external_url or origin).rstrip("/")
        return f"{base}/owner-confirm?token={quote(owner_token, safe='')}"
