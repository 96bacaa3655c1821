"""Id and timestamp generation shared by all models."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4


def new_id() -> str:
    """Return a short opaque identifier (8 hex chars)."""
    return uuid4().hex[:8]


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def parse_timestamp(value: str | None) -> datetime:
    """Parse an ISO 8601 timestamp, defaulting to now when missing.

    Accepts the trailing ``Z`` form written by older tooling.
    """
    if not value:
        return utc_now()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
