from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    store_url: str = "memory://"  # memory://, redis://host:6379/0 or mongodb://host/movecar
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = []
    # Public base URL of the owner page, falls back to the request origin. Owner links point at
    # <base>/owner-confirm?token=..., which the owner-facing frontend must serve; this service only
    # exposes POST /api/owner-confirm behind it.
    external_url: str | None = None
    forwarded_allow_ips: str = "127.0.0.1"  # Proxies trusted for X-Forwarded-Proto / X-Forwarded-For

    # Session lifecycle
    session_window_seconds: int = 600  # Sliding deadline for a live session
    display_window_seconds: int = 600  # How long a closed session stays readable before purge
    history_limit: int = 5
    history_ttl_seconds: int = 7 * 24 * 60 * 60
    token_timezone: str = "UTC"  # Time zone of the MMDD-HH-MM stamp inside owner tokens

    # Cookies and operator access
    cookie_secure: bool = False
    admin_token: str | None = None  # Enables GET /api/history when set

    # Notify
    plate_number: str | None = None  # When set, notify requires a matching plate proof
    plate_proof_length: int = 4
    default_message: str = "Someone is waiting by your car"
    notify_delay_seconds: int = 30
    http_timeout_seconds: float = 10.0

    # Notification channels, each enabled by its own settings
    bark_url: str | None = None
    pushplus_token: str | None = None
    meow_nickname: str | None = None
    meow_base_url: str = "https://api.chuckfang.com"
    meow_msg_type: str = "text"  # text or html
    meow_html_height: int = 260
    meow_local_send: bool = False  # Hand the prepared MeoW request to the client instead of sending it
    telegram_bot_token: str | None = None
    telegram_chat_id: str | None = None

    model_config = {
        "env_file": [".env"],
        "env_prefix": "MOVECAR_",
        "extra": "ignore",
    }

    @property
    def field_ttl_seconds(self) -> int:
        """TTL for live session keys: a session never outlives its window plus the display window."""
        return self.session_window_seconds + self.display_window_seconds

    @field_validator("token_timezone")
    @classmethod
    def validate_token_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {value}") from e
        return value
