"""Notification dispatch models."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class Channel(StrEnum):
    """Push channels the owner can be reached on."""

    BARK = "Bark"
    PUSHPLUS = "PushPlus"
    MEOW = "MeoW"
    MEOW_LOCAL = "MeoW(local)"
    TELEGRAM = "Telegram"


class ChannelResult(BaseModel):
    service: Channel
    success: bool
    status_code: int | None = None
    detail: str | None = None


class LocalSendRequest(BaseModel):
    """A prepared MeoW request the requester's browser sends itself."""

    url: str
    headers: dict[str, str]
    body: dict[str, Any]


class NotificationContent(BaseModel):
    """Everything a channel needs to build its payload."""

    message: str
    has_location: bool
    confirm_url: str
    title: str = "🚗 Move car request"


class DispatchResult(BaseModel):
    results: list[ChannelResult] = Field(default_factory=list)
    local_request: LocalSendRequest | None = None

    @property
    def attempted(self) -> bool:
        return bool(self.results)

    @property
    def partial_failure(self) -> bool:
        return any(not result.success for result in self.results)
