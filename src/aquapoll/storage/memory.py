"""In-process store used for tests and ephemeral deployments."""

from __future__ import annotations

from datetime import timedelta
from typing import Dict

from .base import BaseControlStore
from .models import DeviceRecord


class MemoryControlStore(BaseControlStore):
    """Keep device records in a dictionary for the lifetime of the process."""

    def __init__(
        self,
        reading_retention: timedelta | None = None,
        processed_command_limit: int | None = None,
    ):
        super().__init__(reading_retention, processed_command_limit)
        self._records: Dict[str, DeviceRecord] = {}

    def _load_record(self, device_id: str) -> DeviceRecord | None:
        record = self._records.get(device_id)
        # Hand out a copy so an aborted transaction leaves the stored record intact
        return record.model_copy(deep=True) if record is not None else None

    def _save_record(self, device_id: str, record: DeviceRecord) -> None:
        self._records[device_id] = record


__all__ = ["MemoryControlStore"]
