"""Shared pytest fixtures."""

from datetime import UTC, datetime, timedelta

import httpx
import pytest

from movecar.app import App
from movecar.config import Config
from movecar.core.core import Core
from movecar.core.kv import MemoryKVStore


class FakeClock:
    """Controllable clock shared by the store and the services."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 5, 14, 7, 30, tzinfo=UTC))


@pytest.fixture
def config():
    """Bark-only deployment with the history view enabled."""
    return Config(
        _env_file=None,
        bark_url="https://bark.example.com/device-key",
        admin_token="admin-secret",
        notify_delay_seconds=0,
    )


@pytest.fixture
def kv(clock):
    return MemoryKVStore(clock)


@pytest.fixture
def sent_requests():
    """Outgoing push requests captured by the mock transport."""
    return []


@pytest.fixture
def http_client(sent_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        sent_requests.append(request)
        return httpx.Response(200, json={"code": 200, "message": "success"})

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def app(config, clock, kv, http_client):
    """App wired to the in-memory store, the fake clock and the mock push transport."""
    instance = App(config, clock, kv)
    instance._core.services.notification.set_http_client(http_client)
    return instance


@pytest.fixture
def core(app) -> Core:
    return app._core
