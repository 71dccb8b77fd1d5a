from enum import StrEnum


class Role(StrEnum):
    """Which capability a request presents: the requester's cookie or the owner's link token."""

    REQUESTER = "requester"
    OWNER = "owner"
