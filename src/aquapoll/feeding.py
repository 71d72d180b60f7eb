"""Feeding schedule calculation.

Two policies derive the next feeding timestamp:

- ``DRIFT`` keeps the existing cadence: the next feeding is the previously
  scheduled one plus the interval. Used when settings change without food
  being dispensed.
- ``RESET`` restarts the cadence from the moment food was dispensed. Used
  for operator feed-now requests and device-confirmed feedings.

Neither policy ever schedules a feeding before the call time.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from enum import Enum

from .constants import DEFAULT_FEEDING_INTERVAL_DELTA

_INTERVAL_PATTERN = re.compile(r"^\s*(\d+)\s*([a-zA-Z]*)")

_UNITS = {
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
}


class FeedingPolicy(str, Enum):
    """How the next feeding is anchored."""

    DRIFT = "drift"
    RESET = "reset"


def parse_interval(raw: str | None) -> timedelta:
    """Parse a feeding interval such as ``"4h"``, ``"90m"``, ``"30s"`` or ``"5"``.

    A bare number means hours. Long unit names resolve by their first letter
    (``"12 Hours"`` is twelve hours). Anything unparseable, unknown or zero
    falls back to four hours.
    """
    if not raw:
        return DEFAULT_FEEDING_INTERVAL_DELTA

    match = _INTERVAL_PATTERN.match(raw)
    if not match:
        return DEFAULT_FEEDING_INTERVAL_DELTA

    amount = int(match.group(1))
    unit_name = match.group(2).lower()
    unit = _UNITS.get(unit_name[:1] if unit_name else "h")
    if unit is None or amount <= 0:
        return DEFAULT_FEEDING_INTERVAL_DELTA
    return amount * unit


def next_feeding_at(
    interval: str | None,
    now: datetime,
    policy: FeedingPolicy,
    current_next: datetime | None = None,
) -> datetime:
    """Compute the next feeding time.

    Args:
        interval: Interval string (see ``parse_interval``)
        now: Call time
        policy: ``DRIFT`` anchors on ``current_next`` (or ``now`` if unset),
            ``RESET`` anchors on ``now``
        current_next: The currently scheduled next feeding

    Returns:
        The new next feeding time, never earlier than ``now``
    """
    step = parse_interval(interval)

    if policy is FeedingPolicy.RESET or current_next is None:
        return now + step

    candidate = current_next + step
    if candidate < now:
        # Skip whole missed intervals so the cadence stays on its grid
        missed = (now - candidate) // step + 1
        candidate += missed * step
    return candidate
