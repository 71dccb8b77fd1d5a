from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import TYPE_CHECKING, cast

from movecar.config import Config
from movecar.core.kv import KVStore, create_kv_store
from movecar.utils import now

if TYPE_CHECKING:
    from movecar.core.modules.access.service import AccessService
    from movecar.core.modules.expiry.service import ExpiryService
    from movecar.core.modules.lifecycle.service import LifecycleService
    from movecar.core.modules.notification.service import NotificationService
    from movecar.core.modules.plate.service import PlateService
    from movecar.core.modules.session.service import SessionService
    from movecar.core.modules.token.service import TokenService


class Service:
    """Base class for services with direct key-value store access."""

    def __init__(self, kv: KVStore) -> None:
        self.kv = kv
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    session: SessionService
    token: TokenService
    expiry: ExpiryService
    access: AccessService
    lifecycle: LifecycleService
    plate: PlateService
    notification: NotificationService

    def __init__(self, kv: KVStore) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._kv = kv

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for initialization - session store first
        service_configs = [
            ("session", "movecar.core.modules.session.service", "SessionService"),
            ("token", "movecar.core.modules.token.service", "TokenService"),
            ("expiry", "movecar.core.modules.expiry.service", "ExpiryService"),
            ("access", "movecar.core.modules.access.service", "AccessService"),
            ("lifecycle", "movecar.core.modules.lifecycle.service", "LifecycleService"),
            ("plate", "movecar.core.modules.plate.service", "PlateService"),
            ("notification", "movecar.core.modules.notification.service", "NotificationService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(kv)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services that have cleanup logic."""
        for service in self._services:
            await service.on_stop()


class Core:
    """Container providing config, clock, key-value store, and all service instances."""

    config: Config
    kv: KVStore
    services: Services

    def __init__(self, config: Config, clock: Callable[[], datetime] = now, kv: KVStore | None = None) -> None:
        """Initialize core with config, the configured store, and auto-register services."""
        self.config = config
        self.clock = clock
        self.kv = kv if kv is not None else create_kv_store(config.store_url, clock)
        self.services = Services(self.kv)
        self.services.set_core(self)

    def now(self) -> datetime:
        return self.clock()

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.kv.start()
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close the store connection on shutdown."""
        await self.services.stop_all()
        await self.kv.close()
