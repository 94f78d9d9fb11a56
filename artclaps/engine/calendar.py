"""UTC day arithmetic shared by the clap limit and the stats endpoints."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC, convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_day_bounds(now: datetime) -> tuple[datetime, datetime]:
    """Return ``[today 00:00, tomorrow 00:00)`` for the UTC day containing *now*."""
    start = ensure_utc(now).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)
