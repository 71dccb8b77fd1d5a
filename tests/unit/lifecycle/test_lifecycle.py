"""Tests for the session lifecycle driven through the App facade."""

from datetime import timedelta

import pytest

from movecar.core.modules.access.models import Role
from movecar.core.modules.lifecycle.service import normalize_owner_message
from movecar.core.modules.location.models import Coordinates
from movecar.core.modules.session.models import CloseReason, NotifyStatus, SessionKey, SessionStatus
from movecar.errors import NotFoundError, SessionClosedError, ValidationError


async def owner_token_of(app) -> str:
    session = await app._core.services.session.load()
    assert session is not None
    return session.owner_token


class TestNotify:
    """Tests for starting and extending sessions."""

    @pytest.mark.asyncio
    async def test_first_notify_starts_session(self, app, clock):
        result = await app.notify(None, "Blocking the gate", location=Coordinates(lat=31.23, lng=121.47))

        assert not result.reused
        assert result.status == NotifyStatus.WAITING
        assert result.success

        session = await app._core.services.session.load()
        assert session.session_id == result.session_id
        assert session.created_at == clock()
        assert session.requester_location is not None
        assert session.owner_token.startswith(f"{result.session_id}-0305-14-07")

    @pytest.mark.asyncio
    async def test_own_cookie_extends_session(self, app, clock):
        """Test that re-notifying with the live session's cookie keeps the id and slides the deadline."""
        first = await app.notify(None, "hello")
        clock.advance(300)
        second = await app.notify(first.session_id, "still here")

        assert second.reused
        assert second.session_id == first.session_id
        session = await app._core.services.session.load()
        assert (session.expires_at - clock()).total_seconds() == 600

    @pytest.mark.asyncio
    async def test_retry_keeps_arriving(self, app):
        first = await app.notify(None, "hello")
        await app.owner_confirm(await owner_token_of(app), None, None)

        second = await app.notify(first.session_id, "again")

        assert second.reused
        assert second.status == NotifyStatus.ARRIVING

    @pytest.mark.asyncio
    async def test_foreign_cookie_replaces_session(self, app):
        """Test that another requester supersedes the live session and it lands in history."""
        first = await app.notify(None, "hello")
        second = await app.notify("ffffff", "me too")

        assert not second.reused
        assert second.session_id != first.session_id

        history = await app.get_history("admin-secret")
        assert [(entry.session_id, entry.reason) for entry in history] == [(first.session_id, CloseReason.SUPERSEDED)]

    @pytest.mark.asyncio
    async def test_replaced_session_owner_link_is_dead(self, app):
        await app.notify(None, "hello")
        old_token = await owner_token_of(app)
        await app.notify(None, "new requester")

        with pytest.raises(NotFoundError):
            await app.owner_confirm(old_token, None, None)

    @pytest.mark.asyncio
    async def test_notify_after_close_starts_fresh(self, app, kv):
        """Test that a closed session is never reopened and its owner data is not carried over."""
        first = await app.notify(None, "hello")
        token = await owner_token_of(app)
        await app.owner_confirm(token, Coordinates(lat=48.85, lng=2.35), "Coming")
        await app.terminate_session(token)

        second = await app.notify(first.session_id, "hello again")

        assert not second.reused
        assert second.session_id != first.session_id
        assert await kv.get(SessionKey.OWNER_LOCATION) is None
        assert await kv.get(SessionKey.COMPLETED_AT) is None
        assert len(await app.get_history("admin-secret")) == 1

    @pytest.mark.asyncio
    async def test_new_session_drops_previous_requester_location(self, app, kv):
        await app.notify(None, "hello", location=Coordinates(lat=31.23, lng=121.47))
        await app.notify(None, "no location this time")
        assert await kv.get(SessionKey.REQUESTER_LOCATION) is None


class TestOwnerConfirm:
    @pytest.mark.asyncio
    async def test_confirm_sets_arriving_and_shares_location(self, app, clock):
        result = await app.notify(None, "hello")
        clock.advance(120)

        view = await app.owner_confirm(await owner_token_of(app), Coordinates(lat=48.85, lng=2.35), "  Five minutes  ")

        assert view.status == SessionStatus.ARRIVING
        assert view.session_id is None
        status = await app.check_status(result.session_id)
        assert status.status == NotifyStatus.ARRIVING
        assert status.owner_message == "Five minutes"
        assert status.owner_location.timestamp == clock()
        assert (status.expires_at - clock()).total_seconds() == 600

    @pytest.mark.asyncio
    async def test_reconfirm_replaces_message(self, app):
        result = await app.notify(None, "hello")
        token = await owner_token_of(app)
        await app.owner_confirm(token, None, "first")
        await app.owner_confirm(token, None, None)

        status = await app.check_status(result.session_id)
        assert status.owner_message is None

    @pytest.mark.asyncio
    async def test_confirm_closed_session(self, app):
        await app.notify(None, "hello")
        token = await owner_token_of(app)
        await app.terminate_session(token)

        with pytest.raises(SessionClosedError):
            await app.owner_confirm(token, None, None)

    @pytest.mark.asyncio
    async def test_requester_cookie_cannot_confirm(self, app):
        result = await app.notify(None, "hello")
        with pytest.raises(NotFoundError):
            await app.owner_confirm(result.session_id, None, None)


class TestClearOwnerLocation:
    @pytest.mark.asyncio
    async def test_clear_keeps_status(self, app):
        result = await app.notify(None, "hello")
        token = await owner_token_of(app)
        await app.owner_confirm(token, Coordinates(lat=48.85, lng=2.35), None)

        view = await app.clear_owner_location(token)

        assert view.status == SessionStatus.ARRIVING
        with pytest.raises(NotFoundError):
            await app.get_owner_location(result.session_id)

    @pytest.mark.asyncio
    async def test_clear_on_closed_session(self, app):
        await app.notify(None, "hello")
        token = await owner_token_of(app)
        await app.terminate_session(token)
        with pytest.raises(SessionClosedError):
            await app.clear_owner_location(token)


class TestTerminate:
    """Tests for closing sessions."""

    @pytest.mark.asyncio
    async def test_terminate_closes_and_records_history(self, app, kv, clock, config):
        result = await app.notify(None, "hello")
        token = await owner_token_of(app)
        await app.owner_confirm(token, Coordinates(lat=48.85, lng=2.35), "Coming")

        view = await app.terminate_session(token)

        assert view.status == SessionStatus.CLOSED
        assert view.completed_at == clock()
        status = await app.check_status(result.session_id)
        assert status.status == NotifyStatus.CLOSED
        assert status.owner_location is None
        assert status.owner_message is None
        assert kv.ttl_of(SessionKey.STATUS) == config.display_window_seconds

        history = await app.get_history("admin-secret")
        assert [(entry.session_id, entry.reason) for entry in history] == [(result.session_id, CloseReason.TERMINATED)]

    @pytest.mark.asyncio
    async def test_terminate_twice_is_a_noop(self, app, clock):
        """Test that a second terminate neither moves completed_at nor duplicates history."""
        await app.notify(None, "hello")
        token = await owner_token_of(app)
        first = await app.terminate_session(token)
        clock.advance(30)
        second = await app.terminate_session(token)

        assert second.completed_at == first.completed_at
        assert len(await app.get_history("admin-secret")) == 1

    @pytest.mark.asyncio
    async def test_terminate_after_purge(self, app, clock):
        await app.notify(None, "hello")
        token = await owner_token_of(app)
        await app.terminate_session(token)
        clock.advance(601)
        with pytest.raises(NotFoundError):
            await app.terminate_session(token)


class TestViews:
    """Tests for the read operations."""

    @pytest.mark.asyncio
    async def test_check_status_without_cookie(self, app):
        with pytest.raises(NotFoundError):
            await app.check_status(None)

    @pytest.mark.asyncio
    async def test_check_status_with_unknown_cookie(self, app):
        await app.notify(None, "hello")
        status = await app.check_status("ffffff")
        assert status.status == NotifyStatus.CLOSED
        assert status.session_id is None

    @pytest.mark.asyncio
    async def test_session_view_hides_the_other_credential(self, app):
        result = await app.notify(None, "hello")
        token = await owner_token_of(app)

        requester_view = await app.get_session(Role.REQUESTER, result.session_id)
        owner_view = await app.get_session(Role.OWNER, token)

        assert requester_view.session_id == result.session_id
        assert requester_view.owner_token is None
        assert owner_view.owner_token == token
        assert owner_view.session_id is None

    @pytest.mark.asyncio
    async def test_requester_location_for_owner(self, app):
        await app.notify(None, "hello", location=Coordinates(lat=31.23, lng=121.47))
        location = await app.get_requester_location(await owner_token_of(app))
        assert location.lat == 31.23
        assert location.amap_url.startswith("https://uri.amap.com/marker?position=")

    @pytest.mark.asyncio
    async def test_requester_location_missing(self, app):
        await app.notify(None, "hello")
        with pytest.raises(NotFoundError, match="No location"):
            await app.get_requester_location(await owner_token_of(app))


class TestNormalizeOwnerMessage:
    def test_blank_is_none(self):
        assert normalize_owner_message("   ") is None

    def test_stripped(self):
        assert normalize_owner_message("  ok ") == "ok"

    def test_too_long(self):
        with pytest.raises(ValidationError):
            normalize_owner_message("x" * 201)


class TestScenarios:
    @pytest.mark.asyncio
    async def test_full_session_lifecycle(self, app, clock):
        """Notify, confirm, terminate, then the session disappears after the display window."""
        result = await app.notify(None, "car blocks driveway")
        status = await app.check_status(result.session_id)
        assert status.status == NotifyStatus.WAITING

        token = await owner_token_of(app)
        await app.owner_confirm(token, Coordinates(lat=31.23, lng=121.47), None)
        status = await app.check_status(result.session_id)
        assert status.status == NotifyStatus.ARRIVING
        assert (status.owner_location.lat, status.owner_location.lng) == (31.23, 121.47)

        await app.terminate_session(token)
        status = await app.check_status(result.session_id)
        assert status.status == NotifyStatus.CLOSED
        assert status.completed_at == clock()
        assert len(await app.get_history("admin-secret")) == 1

        clock.advance(601)
        status = await app.check_status(result.session_id)
        assert status.session_id is None
        assert len(await app.get_history("admin-secret")) == 1

    @pytest.mark.asyncio
    async def test_quick_renotify_keeps_creation_time(self, app, clock):
        created_at = clock()
        first = await app.notify(None, "hello")
        clock.advance(2)
        second = await app.notify(first.session_id, "hello")

        session = await app._core.services.session.load()
        assert second.session_id == first.session_id
        assert session.created_at == created_at
        assert session.expires_at == clock() + timedelta(seconds=600)
