from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when no session matches the presented credential.

    A wrong token and a missing session are deliberately reported the same way.
    """

    def __init__(self, message: str = "Session not found") -> None:
        super().__init__(message)


class SessionClosedError(UserError):
    """Raised when an operation targets a session that is already closed.

    Clients react by starting a new notify.
    """

    def __init__(self, message: str = "Session closed") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a precondition such as the plate proof or the admin token does not match."""


class ValidationError(UserError):
    """Raised when user input fails validation."""


class StorageUnavailableError(Exception):
    """Raised when the key-value store cannot be reached.

    This is a deployment problem, not a user error, and it is never retried silently.
    """

    def __init__(self, message: str = "Key-value store is unavailable") -> None:
        super().__init__(message)


class NotificationConfigError(Exception):
    """Raised when notify is attempted with no notification channel configured."""

    def __init__(
        self, message: str = "No notification channel configured, set BARK_URL, PUSHPLUS_TOKEN, MEOW_NICKNAME or TELEGRAM_*"
    ) -> None:
        super().__init__(message)
