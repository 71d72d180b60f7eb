"""Time utilities for timestamps shared by the store and the core components.

All timestamps handled by the control plane are timezone-aware UTC datetimes.
Components accept a ``Clock`` callable so tests can pin the current time.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Return ``value`` as an aware datetime, assuming UTC for naive input."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_iso(value: datetime | None) -> str | None:
    """Format an optional datetime as an ISO 8601 string.

    Returns:
        ISO 8601 timestamp string with offset (e.g., "2025-10-12T14:30:00+00:00")
        or None if ``value`` is None
    """
    if value is None:
        return None
    return ensure_aware(value).isoformat()
