"""Heartbeat bookkeeping and online/offline classification.

Every poll for commands doubles as a heartbeat. Online status is derived on
demand from the last heartbeat, so a device that stops polling goes offline
without any background timer.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict

from .constants import LIVENESS_WINDOW
from .errors import DeviceStateNotFoundError
from .storage import BaseControlStore
from .utils.time import Clock, to_iso, utcnow


def is_online(
    last_seen: datetime | None,
    now: datetime,
    window: timedelta = LIVENESS_WINDOW,
) -> bool:
    """Return True iff the device was seen less than ``window`` ago."""
    if last_seen is None:
        return False
    return now - last_seen < window


class LivenessTracker:
    """Record heartbeats and report device online status."""

    def __init__(
        self,
        store: BaseControlStore,
        clock: Clock = utcnow,
        window: timedelta = LIVENESS_WINDOW,
    ) -> None:
        self._store = store
        self._clock = clock
        self._window = window

    def heartbeat(self, device_id: str) -> datetime:
        """Stamp ``last_seen`` with the current time and return it."""
        now = self._clock()
        self._store.update_device_state(device_id, {"last_seen": now})
        return now

    def status(self, device_id: str) -> Dict[str, Any]:
        """Return ``{esp32_online, last_seen}`` for the device.

        A device that was never provisioned is reported offline.
        """
        try:
            last_seen = self._store.read_device_state(device_id).last_seen
        except DeviceStateNotFoundError:
            last_seen = None
        return {
            "esp32_online": is_online(last_seen, self._clock(), self._window),
            "last_seen": to_iso(last_seen),
        }
