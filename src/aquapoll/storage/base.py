"""Generic base class for control-plane storage.

This module defines the storage adapter contract the core components consume
and implements it once on top of a per-device ``DeviceRecord`` document.
Subclasses only decide where records live (memory, JSON files) by
implementing ``_load_record`` and ``_save_record``.

Every operation runs as a single read-modify-write under the store lock, so
``claim_oldest_unprocessed_command`` is an atomic mark-and-return: two
concurrent pollers can never both receive the same command.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, Dict, Iterator

from pydantic import ValidationError

from ..constants import CommandType
from ..errors import DeviceStateNotFoundError, StorageUnavailableError
from .models import Command, DeviceRecord, DeviceState, SensorReading, build_command

logger = logging.getLogger(__name__)


class BaseControlStore(ABC):
    """Abstract base class for device state, command queue and telemetry storage.

    Args:
        reading_retention: Drop sensor readings older than this on insert
            (None keeps everything)
        processed_command_limit: Keep at most this many processed commands
            per device (None keeps everything)
    """

    def __init__(
        self,
        reading_retention: timedelta | None = None,
        processed_command_limit: int | None = None,
    ):
        self._lock = threading.RLock()
        self._reading_retention = reading_retention
        self._processed_command_limit = processed_command_limit

    @property
    def reading_retention(self) -> timedelta | None:
        return self._reading_retention

    @property
    def processed_command_limit(self) -> int | None:
        return self._processed_command_limit

    # ------------------------------------------------------------------
    # Adapter hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _load_record(self, device_id: str) -> DeviceRecord | None:
        """Return the stored record for a device or None if absent.

        Raises:
            OSError: If the backing medium cannot be read
            ValueError: If the stored record is corrupt
        """

    @abstractmethod
    def _save_record(self, device_id: str, record: DeviceRecord) -> None:
        """Persist the record for a device.

        Raises:
            OSError: If the backing medium cannot be written
        """

    @contextmanager
    def _transaction(self, operation: str, device_id: str) -> Iterator[DeviceRecord]:
        """Yield the device record and persist it afterwards, under the lock."""
        with self._lock:
            try:
                record = self._load_record(device_id) or DeviceRecord()
            except (OSError, ValueError) as exc:
                logger.error(f"Storage read failed during {operation} for {device_id}: {exc}")
                raise StorageUnavailableError(operation, cause=exc) from exc

            yield record

            try:
                self._save_record(device_id, record)
            except OSError as exc:
                logger.error(f"Storage write failed during {operation} for {device_id}: {exc}")
                raise StorageUnavailableError(operation, cause=exc) from exc

    @contextmanager
    def _snapshot(self, operation: str, device_id: str) -> Iterator[DeviceRecord]:
        """Yield the device record for read-only access."""
        with self._lock:
            try:
                record = self._load_record(device_id) or DeviceRecord()
            except (OSError, ValueError) as exc:
                logger.error(f"Storage read failed during {operation} for {device_id}: {exc}")
                raise StorageUnavailableError(operation, cause=exc) from exc
            yield record

    # ------------------------------------------------------------------
    # Device state
    # ------------------------------------------------------------------

    def ensure_device_state(self, device_id: str) -> DeviceState:
        """Provision the device state row with defaults if it does not exist."""
        with self._transaction("ensure_device_state", device_id) as record:
            if record.device_state is None:
                record.device_state = DeviceState(id=device_id)
                logger.info(f"Provisioned device state for {device_id}")
            return record.device_state

    def read_device_state(self, device_id: str) -> DeviceState:
        """Return the device state.

        Raises:
            DeviceStateNotFoundError: If the device was never provisioned
        """
        with self._snapshot("read_device_state", device_id) as record:
            if record.device_state is None:
                raise DeviceStateNotFoundError(device_id)
            return record.device_state

    def update_device_state(self, device_id: str, fields: Dict[str, Any]) -> DeviceState:
        """Apply a partial update to the device state and return the new state.

        Raises:
            DeviceStateNotFoundError: If the device was never provisioned
            ValueError: If a field is unknown or a value is invalid
        """
        with self._transaction("update_device_state", device_id) as record:
            if record.device_state is None:
                raise DeviceStateNotFoundError(device_id)
            record.device_state = record.device_state.apply(fields)
            return record.device_state

    # ------------------------------------------------------------------
    # Sensor readings
    # ------------------------------------------------------------------

    def insert_sensor_reading(
        self,
        device_id: str,
        temperature: float,
        water_level: float | None,
        created_at: datetime,
    ) -> SensorReading:
        """Append a telemetry sample."""
        reading = SensorReading(
            device_id=device_id,
            temperature=temperature,
            water_level=water_level,
            created_at=created_at,
        )
        with self._transaction("insert_sensor_reading", device_id) as record:
            record.sensor_readings.append(reading)
            if self._reading_retention is not None:
                cutoff = created_at - self._reading_retention
                record.sensor_readings = [
                    r for r in record.sensor_readings if r.created_at >= cutoff
                ]
        return reading

    def list_sensor_readings(
        self, device_id: str, since: datetime, limit: int
    ) -> list[SensorReading]:
        """Return up to ``limit`` readings at or after ``since``, oldest first."""
        with self._snapshot("list_sensor_readings", device_id) as record:
            window = [r for r in record.sensor_readings if r.created_at >= since]
        window.sort(key=lambda r: r.created_at)
        return window[:limit]

    def latest_sensor_reading(self, device_id: str) -> SensorReading | None:
        """Return the newest reading or None if nothing was uploaded yet."""
        with self._snapshot("latest_sensor_reading", device_id) as record:
            if not record.sensor_readings:
                return None
            return max(record.sensor_readings, key=lambda r: r.created_at)

    # ------------------------------------------------------------------
    # Command queue
    # ------------------------------------------------------------------

    def insert_command(
        self,
        device_id: str,
        command_type: CommandType | str,
        value: Any,
        created_at: datetime,
    ) -> Command:
        """Append an unprocessed command.

        Raises:
            ValueError: If ``value`` does not fit ``command_type``
        """
        try:
            command = build_command(device_id, command_type, value, created_at)
        except ValidationError as exc:
            raise ValueError(f"Invalid {command_type} command value {value!r}: {exc}") from exc
        with self._transaction("insert_command", device_id) as record:
            record.commands.append(command)
        return command

    def update_commands_by_type(
        self, device_id: str, command_type: CommandType | str, processed_at: datetime
    ) -> int:
        """Mark every unprocessed command of a type processed; return how many."""
        type_value = CommandType(command_type).value
        count = 0
        with self._transaction("update_commands_by_type", device_id) as record:
            for index, command in enumerate(record.commands):
                if not command.processed and command.type == type_value:
                    record.commands[index] = command.mark_processed(processed_at)
                    count += 1
            self._prune_commands(record)
        return count

    def select_oldest_unprocessed_command(self, device_id: str) -> Command | None:
        """Return the oldest unprocessed command without claiming it."""
        with self._snapshot("select_oldest_unprocessed_command", device_id) as record:
            return self._oldest_pending(record)[1]

    def update_command(self, device_id: str, command_id: str, processed_at: datetime) -> None:
        """Mark a single command processed.

        Raises:
            KeyError: If no command with ``command_id`` exists
        """
        with self._transaction("update_command", device_id) as record:
            for index, command in enumerate(record.commands):
                if command.id == command_id:
                    record.commands[index] = command.mark_processed(processed_at)
                    return
            raise KeyError(command_id)

    def claim_oldest_unprocessed_command(
        self, device_id: str, processed_at: datetime
    ) -> Command | None:
        """Atomically select the oldest unprocessed command and mark it processed.

        Returns:
            The claimed command (already marked processed) or None if the
            queue has no unprocessed entries
        """
        with self._transaction("claim_oldest_unprocessed_command", device_id) as record:
            index, command = self._oldest_pending(record)
            if command is None:
                return None
            claimed = command.mark_processed(processed_at)
            record.commands[index] = claimed
            self._prune_commands(record)
            return claimed

    def list_commands(self, device_id: str, unprocessed_only: bool = False) -> list[Command]:
        """Return commands in insertion order."""
        with self._snapshot("list_commands", device_id) as record:
            if unprocessed_only:
                return [c for c in record.commands if not c.processed]
            return list(record.commands)

    def latest_command_of_type(
        self, device_id: str, command_type: CommandType | str
    ) -> Command | None:
        """Return the newest command of a type regardless of processed state."""
        type_value = CommandType(command_type).value
        with self._snapshot("latest_command_of_type", device_id) as record:
            matching = [c for c in record.commands if c.type == type_value]
        if not matching:
            return None
        return max(matching, key=lambda c: c.created_at)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _oldest_pending(record: DeviceRecord) -> tuple[int, Command | None]:
        oldest_index = -1
        oldest: Command | None = None
        for index, command in enumerate(record.commands):
            if command.processed:
                continue
            # Strict comparison keeps insertion order for equal timestamps
            if oldest is None or command.created_at < oldest.created_at:
                oldest_index, oldest = index, command
        return oldest_index, oldest

    def _prune_commands(self, record: DeviceRecord) -> None:
        limit = self._processed_command_limit
        if limit is None:
            return
        processed = [c for c in record.commands if c.processed]
        excess = len(processed) - limit
        if excess <= 0:
            return
        drop = {c.id for c in sorted(processed, key=lambda c: c.created_at)[:excess]}
        record.commands = [c for c in record.commands if c.id not in drop]


__all__ = ["BaseControlStore"]
