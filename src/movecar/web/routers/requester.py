from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from movecar.core.modules.lifecycle.models import NotifyResult, StatusView
from movecar.core.modules.location.models import Coordinates
from movecar.core.modules.session.models import Location
from movecar.web.deps import SESSION_COOKIE, AppDep, OriginDep, SessionCookieDep
from movecar.web.openapi import ErrorResponse

router = APIRouter(tags=["requester"])


class NotifyRequest(BaseModel):
    """Ask the owner to move the car."""

    message: str | None = Field(None, max_length=500, description="Note pushed to the owner; a default is used when empty")
    location: Coordinates | None = Field(None, description="Requester's position, shown to the owner")
    plate: str | None = Field(None, max_length=20, description="Plate proof, required when the deployment configures a plate")
    delayed: bool = Field(False, description="Wait before pushing the notification")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Your car blocks the driveway", "location": {"lat": 31.23, "lng": 121.47}},
            ]
        }
    }


@router.post(
    "/notify",
    summary="Notify the owner",
    description="Start a session, or extend the caller's own live session, and push the owner link.",
    operation_id="notify",
    responses={
        200: {"description": "At least one channel was attempted"},
        403: {"model": ErrorResponse, "description": "Plate proof does not match"},
        503: {"model": ErrorResponse, "description": "Store unreachable or no notification channel configured"},
    },
)
async def notify(
    notify_data: NotifyRequest, app: AppDep, session_cookie: SessionCookieDep, origin: OriginDep, response: Response
) -> NotifyResult:
    result = await app.notify(
        session_cookie,
        notify_data.message,
        location=notify_data.location,
        plate=notify_data.plate,
        delayed=notify_data.delayed,
        origin=origin,
    )

    response.set_cookie(
        key=SESSION_COOKIE,
        value=result.session_id,
        httponly=True,
        samesite="lax",
        secure=app.config.cookie_secure,
        max_age=app.config.field_ttl_seconds,
    )
    return result


@router.get(
    "/check-status",
    summary="Poll session status",
    description="Status of the caller's session: waiting, arriving or closed, plus what the owner shared.",
    operation_id="checkStatus",
    responses={
        200: {"description": "Current status; identifiers are null once the session is gone"},
        404: {"model": ErrorResponse, "description": "No session cookie"},
    },
)
async def check_status(app: AppDep, session_cookie: SessionCookieDep) -> StatusView:
    return await app.check_status(session_cookie)


@router.get(
    "/owner-location",
    summary="Get owner location",
    description="Location the owner shared when confirming.",
    operation_id="getOwnerLocation",
    responses={
        200: {"description": "Owner location with map links"},
        404: {"model": ErrorResponse, "description": "No session or no location shared"},
    },
)
async def get_owner_location(app: AppDep, session_cookie: SessionCookieDep) -> Location:
    return await app.get_owner_location(session_cookie)
