from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from movecar.app import App
from movecar.config import Config
from movecar.errors import NotificationConfigError, StorageUnavailableError, UserError
from movecar.web.error_handlers import (
    general_exception_handler,
    notification_config_handler,
    storage_unavailable_handler,
    user_error_handler,
)
from movecar.web.openapi import set_custom_openapi
from movecar.web.routers import owner_router, requester_router, session_router


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """Create and configure FastAPI application."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        """FastAPI application lifespan management."""
        app.state.app = app_instance
        async with app_instance.lifespan():
            yield

    app = FastAPI(
        title="MoveCar API",
        lifespan=lifespan,
    )

    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Health check endpoint (at root level, not under /api)
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        await app_instance.check_health()
        return {"status": "healthy"}

    app.include_router(requester_router, prefix="/api")
    app.include_router(owner_router, prefix="/api")
    app.include_router(session_router, prefix="/api")

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(StorageUnavailableError, storage_unavailable_handler)
    app.add_exception_handler(NotificationConfigError, notification_config_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)

    return app
