from typing import Annotated, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie, HTTPAuthorizationCredentials, HTTPBearer

from movecar.app import App

SESSION_COOKIE = "movecar_session"

# Security schemes
bearer_scheme = HTTPBearer(auto_error=False)
cookie_scheme = APIKeyCookie(name=SESSION_COOKIE, auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_session_cookie(session_cookie: Annotated[str | None, Depends(cookie_scheme)] = None) -> str | None:
    """Requester credential; absence is decided by the operation, not here."""
    return session_cookie


async def get_owner_token(request: Request) -> str | None:
    """Owner credential from the URL path (/{token}) or the ?token= query parameter."""
    return request.path_params.get("token") or request.query_params.get("token")


async def get_admin_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> str | None:
    if credentials and credentials.scheme == "Bearer":
        return credentials.credentials
    return None


def get_origin(request: Request) -> str:
    return str(request.base_url).rstrip("/")


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
SessionCookieDep = Annotated[str | None, Depends(get_session_cookie)]
OwnerTokenDep = Annotated[str | None, Depends(get_owner_token)]
AdminTokenDep = Annotated[str | None, Depends(get_admin_token)]
OriginDep = Annotated[str, Depends(get_origin)]
