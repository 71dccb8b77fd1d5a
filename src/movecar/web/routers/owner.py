"""Owner endpoints, authorized by the token in the pushed link.

Each route accepts the token as the last path segment or as ?token=.
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from movecar.core.modules.lifecycle.models import SessionView
from movecar.core.modules.location.models import Coordinates
from movecar.core.modules.session.models import Location
from movecar.web.deps import AppDep, OwnerTokenDep
from movecar.web.openapi import ErrorResponse

router = APIRouter(tags=["owner"])

OWNER_ERRORS = {
    404: {"model": ErrorResponse, "description": "Session not found"},
    409: {"model": ErrorResponse, "description": "Session already closed"},
}


class OwnerConfirmRequest(BaseModel):
    """Owner acknowledges the request."""

    location: Coordinates | None = Field(None, description="Owner's position, shown to the requester")
    message: str | None = Field(None, max_length=200, description="Short note for the requester")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"location": {"lat": 31.23, "lng": 121.47}, "message": "Coming in 5 minutes"},
            ]
        }
    }


@router.get(
    "/get-location/{token}",
    summary="Get requester location",
    operation_id="getRequesterLocationByPath",
    responses={404: {"model": ErrorResponse, "description": "Session or location not found"}},
)
@router.get(
    "/get-location",
    summary="Get requester location",
    description="Where the requester was when notifying.",
    operation_id="getRequesterLocation",
    responses={404: {"model": ErrorResponse, "description": "Session or location not found"}},
)
async def get_requester_location(app: AppDep, owner_token: OwnerTokenDep) -> Location:
    return await app.get_requester_location(owner_token)


@router.post(
    "/owner-confirm/{token}",
    summary="Confirm move request",
    operation_id="ownerConfirmByPath",
    responses=OWNER_ERRORS,
)
@router.post(
    "/owner-confirm",
    summary="Confirm move request",
    description="Mark the session as arriving and share an optional location and message.",
    operation_id="ownerConfirm",
    responses=OWNER_ERRORS,
)
async def owner_confirm(app: AppDep, owner_token: OwnerTokenDep, confirm_data: OwnerConfirmRequest | None = None) -> SessionView:
    confirm_data = confirm_data or OwnerConfirmRequest()
    return await app.owner_confirm(owner_token, confirm_data.location, confirm_data.message)


@router.post(
    "/owner-location/clear/{token}",
    summary="Stop sharing owner location",
    operation_id="clearOwnerLocationByPath",
    responses=OWNER_ERRORS,
)
@router.post(
    "/owner-location/clear",
    summary="Stop sharing owner location",
    description="Remove the owner's shared location without changing the session status.",
    operation_id="clearOwnerLocation",
    responses=OWNER_ERRORS,
)
async def clear_owner_location(app: AppDep, owner_token: OwnerTokenDep) -> SessionView:
    return await app.clear_owner_location(owner_token)


@router.post(
    "/terminate/{token}",
    summary="Close the session",
    operation_id="terminateSessionByPath",
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
@router.post(
    "/terminate",
    summary="Close the session",
    description="Close the session. Closing an already closed session is a no-op.",
    operation_id="terminateSession",
    responses={404: {"model": ErrorResponse, "description": "Session not found"}},
)
async def terminate_session(app: AppDep, owner_token: OwnerTokenDep) -> SessionView:
    return await app.terminate_session(owner_token)
