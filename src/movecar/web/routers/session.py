from typing import Annotated

from fastapi import APIRouter, Query

from movecar.core.modules.access.models import Role
from movecar.core.modules.lifecycle.models import SessionView
from movecar.core.modules.session.models import HistoryEntry
from movecar.web.deps import AdminTokenDep, AppDep, OwnerTokenDep, SessionCookieDep
from movecar.web.openapi import ErrorResponse

router = APIRouter(tags=["session"])


@router.get(
    "/session",
    summary="Get session identifiers",
    description="Identifiers visible to the given role: the requester authenticates with the session cookie, "
    "the owner with ?token=.",
    operation_id="getSession",
    responses={
        200: {"description": "Session identifiers for the role"},
        404: {"model": ErrorResponse, "description": "Session not found"},
    },
)
async def get_session(
    app: AppDep,
    session_cookie: SessionCookieDep,
    owner_token: OwnerTokenDep,
    role: Annotated[Role, Query(description="Which credential to check")] = Role.REQUESTER,
) -> SessionView:
    credential = owner_token if role == Role.OWNER else session_cookie
    return await app.get_session(role, credential)


@router.get(
    "/history",
    summary="Recent sessions",
    description="Most recent closed sessions, newest first (operator only).",
    operation_id="getHistory",
    responses={
        200: {"description": "Recent sessions"},
        403: {"model": ErrorResponse, "description": "Wrong admin token"},
        404: {"model": ErrorResponse, "description": "History view not enabled"},
    },
)
async def get_history(app: AppDep, admin_token: AdminTokenDep) -> list[HistoryEntry]:
    return await app.get_history(admin_token)
