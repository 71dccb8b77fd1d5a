from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, Field

from movecar.web.deps import SESSION_COOKIE

SECURITY_SCHEMES = {
    "RequesterCookie": {
        "type": "apiKey",
        "in": "cookie",
        "name": SESSION_COOKIE,
        "description": "Session id issued by notify, identifies the requester",
    },
    "OwnerToken": {
        "type": "apiKey",
        "in": "query",
        "name": "token",
        "description": "Owner capability token from the pushed link, also accepted as the last path segment",
    },
    "AdminBearer": {
        "type": "http",
        "scheme": "bearer",
        "description": "Operator token for the history view",
    },
}

# Security per router tag, overridden per operation below
TAG_SECURITY: dict[str, list[dict[str, list[str]]]] = {
    "requester": [{"RequesterCookie": []}],
    "owner": [{"OwnerToken": []}],
}

OPERATION_SECURITY: dict[str, list[dict[str, list[str]]]] = {
    "notify": [{}, {"RequesterCookie": []}],  # Cookie optional, present when extending a session
    "getSession": [{"RequesterCookie": []}, {"OwnerToken": []}],
    "getHistory": [{"AdminBearer": []}],
}


def operation_security(operation: dict[str, Any]) -> list[dict[str, list[str]]]:
    operation_id = operation.get("operationId")
    if operation_id in OPERATION_SECURITY:
        return OPERATION_SECURITY[operation_id]
    for tag in operation.get("tags", []):
        if tag in TAG_SECURITY:
            return TAG_SECURITY[tag]
    return []


def set_custom_openapi(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title="MoveCar API",
            version="0.1.0",
            summary="Account-free move-my-car notifications",
            routes=app.routes,
        )

        openapi_schema.setdefault("components", {})["securitySchemes"] = SECURITY_SCHEMES

        # Replace the schemes FastAPI derives from the dependencies with the named ones above
        for path_item in openapi_schema["paths"].values():
            for operation in path_item.values():
                operation["security"] = operation_security(operation)

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Standard error response format."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"message": "Session not found", "type": "not_found"},
                {"message": "Session closed", "type": "session_closed"},
                {"message": "Plate number does not match", "type": "access_denied"},
                {"message": "Key-value store is unavailable", "type": "storage_unavailable"},
            ]
        }
    }
