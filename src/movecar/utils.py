from datetime import UTC, datetime


def now() -> datetime:
    return datetime.now(UTC)


def mask_token(value: str | None) -> str | None:
    """Shorten a capability token for log output."""
    if value is None:
        return None
    return value[:4] + "…" if len(value) > 4 else "…"
