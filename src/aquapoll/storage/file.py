"""JSON file store with one document per device.

Each device is persisted as ``<storage_dir>/<device_id>.json`` holding the
device state, the command log and the retained sensor readings. Writes go
through a temporary file followed by an atomic rename.
"""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from pathlib import Path

from ..constants import DEFAULT_PROCESSED_COMMAND_LIMIT, DEFAULT_READING_RETENTION
from ..utils.time import to_iso, utcnow
from .base import BaseControlStore
from .models import DeviceRecord

logger = logging.getLogger(__name__)


class FileControlStore(BaseControlStore):
    """Persist device records as individual JSON files."""

    def __init__(
        self,
        storage_dir: Path | str,
        reading_retention: timedelta | None = DEFAULT_READING_RETENTION,
        processed_command_limit: int | None = DEFAULT_PROCESSED_COMMAND_LIMIT,
    ):
        """Initialize storage in ``storage_dir``, creating it if needed.

        Args:
            storage_dir: Directory containing one JSON file per device
            reading_retention: Drop sensor readings older than this on insert
            processed_command_limit: Processed commands kept per device
        """
        super().__init__(reading_retention, processed_command_limit)
        self._storage_dir = Path(storage_dir)
        self._storage_dir.mkdir(parents=True, exist_ok=True)

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir

    def _get_device_file_path(self, device_id: str) -> Path:
        safe_id = device_id.replace(":", "_").replace("/", "_")
        return self._storage_dir / f"{safe_id}.json"

    def _load_record(self, device_id: str) -> DeviceRecord | None:
        device_file = self._get_device_file_path(device_id)
        if not device_file.exists():
            return None

        raw = device_file.read_text(encoding="utf-8").strip()
        if not raw:
            return None

        try:
            data = json.loads(raw)
            return DeviceRecord.model_validate(data.get("record", {}))
        except (json.JSONDecodeError, ValueError) as exc:
            logger.error(f"Could not parse device file {device_file}: {exc}")
            raise ValueError(f"Could not parse device file {device_file}: {exc}") from exc

    def _save_record(self, device_id: str, record: DeviceRecord) -> None:
        device_file = self._get_device_file_path(device_id)
        device_file.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "device_id": device_id,
            "last_updated": to_iso(utcnow()),
            "record": record.model_dump(mode="json"),
        }

        tmp_file = device_file.with_suffix(".tmp")
        tmp_file.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        tmp_file.replace(device_file)


__all__ = ["FileControlStore"]
