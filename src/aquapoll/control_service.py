"""Control service binding the store, command queue and automation together.

Contains the ControlService orchestration class used by the API routers.
Every operation threads an explicit device identifier through to the store;
no device data is cached in the process between calls.

Write operations follow the same sequence: apply the device state change,
supersede pending commands of the same type, enqueue the new command. Only
the first step can fail the request. Queueing failures are logged and the
caller still receives a queued-shaped response; the next write of the same
type supersedes whatever was left behind.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict

from .automation import AutoPumpController
from .command_queue import CommandQueue
from .constants import (
    AUTO_PUMP_TEMPERATURE_THRESHOLD,
    DEFAULT_DEVICE_ID,
    DEFAULT_HISTORY_RANGE,
    DEFAULT_PROCESSED_COMMAND_LIMIT,
    DEFAULT_READING_RETENTION,
    FEED_NOW,
    HISTORY_MAX_ROWS,
    HISTORY_RANGES,
    CommandType,
)
from .errors import (
    ControlError,
    DeviceStateNotFoundError,
    InvalidInputError,
    SensorReadingNotFoundError,
)
from .feeding import FeedingPolicy, next_feeding_at
from .liveness import LivenessTracker
from .storage import (
    BaseControlStore,
    Command,
    DeviceState,
    FeedingConfig,
    FileControlStore,
    MemoryControlStore,
)
from .utils import get_data_dir, get_env_bool, get_env_float, get_env_str
from .utils.serializers import serialize_dashboard, serialize_sensor_reading
from .utils.time import Clock, to_iso, utcnow

logger = logging.getLogger(__name__)

# Environment variable names
STORE_ENV = "AQUAPOLL_STORE"
DEVICE_ID_ENV = "AQUAPOLL_DEVICE_ID"
ADMIN_TOKEN_ENV = "AQUAPOLL_ADMIN_TOKEN"
PUMP_THRESHOLD_ENV = "AQUAPOLL_PUMP_THRESHOLD"
AUTO_PUMP_ENV = "AQUAPOLL_AUTO_PUMP"


def create_store_from_env() -> BaseControlStore:
    """Build the storage adapter selected by ``AQUAPOLL_STORE``."""
    kind = (get_env_str(STORE_ENV, "file") or "file").lower()
    if kind == "memory":
        logger.info("Using in-memory store; state is lost on restart")
        return MemoryControlStore(
            reading_retention=DEFAULT_READING_RETENTION,
            processed_command_limit=DEFAULT_PROCESSED_COMMAND_LIMIT,
        )
    if kind != "file":
        logger.warning(f"Unknown store '{kind}' in {STORE_ENV}. Using file store.")
    storage_dir = get_data_dir() / "devices"
    logger.info(f"Using file store at {storage_dir}")
    return FileControlStore(storage_dir)


class ControlService:
    """Command API surface for one aquarium controller."""

    def __init__(
        self,
        store: BaseControlStore | None = None,
        device_id: str | None = None,
        clock: Clock = utcnow,
        admin_token: str | None = None,
        pump_threshold: float | None = None,
        auto_pump: bool | None = None,
    ) -> None:
        """Initialize the service; unset arguments are read from the environment."""
        self._store = store if store is not None else create_store_from_env()
        self._clock = clock
        self.device_id = device_id or get_env_str(DEVICE_ID_ENV, DEFAULT_DEVICE_ID)
        self.admin_token = (
            admin_token if admin_token is not None else get_env_str(ADMIN_TOKEN_ENV, None)
        )

        self.queue = CommandQueue(self._store, clock)
        self.liveness = LivenessTracker(self._store, clock)
        self.auto_pump = AutoPumpController(
            self._store,
            self.queue,
            threshold=(
                pump_threshold
                if pump_threshold is not None
                else get_env_float(PUMP_THRESHOLD_ENV, AUTO_PUMP_TEMPERATURE_THRESHOLD)
            ),
            enabled=auto_pump if auto_pump is not None else get_env_bool(AUTO_PUMP_ENV, True),
        )

    @property
    def store(self) -> BaseControlStore:
        return self._store

    async def start(self) -> None:
        """Provision the device state row so every handler can rely on it."""
        self._store.ensure_device_state(self.device_id)
        logger.info(
            f"Control service started for device {self.device_id} "
            f"(auto-pump {'on' if self.auto_pump.enabled else 'off'}, "
            f"threshold {self.auto_pump.threshold}°C)"
        )

    async def stop(self) -> None:
        logger.info(f"Control service stopped for device {self.device_id}")

    # ------------------------------------------------------------------
    # Write paths
    # ------------------------------------------------------------------

    def _apply_state(self, fields: Dict[str, Any]) -> DeviceState:
        try:
            return self._store.update_device_state(self.device_id, fields)
        except ValueError as exc:
            raise InvalidInputError(str(exc)) from exc

    def _read_state(self) -> DeviceState:
        return self._store.read_device_state(self.device_id)

    def _queue_best_effort(self, command_type: CommandType, value: Any) -> Command | None:
        """Supersede and enqueue, logging instead of raising on failure."""
        try:
            return self.queue.replace(self.device_id, command_type, value)
        except (ControlError, ValueError) as exc:
            logger.error(
                f"Device state updated but {command_type.value} command was not queued "
                f"for {self.device_id}: {exc}"
            )
            return None

    def set_pump(self, state: bool) -> Dict[str, Any]:
        """Switch the pump and queue a PUMP command."""
        self._apply_state({"pump_active": state})
        self._queue_best_effort(CommandType.PUMP, state)
        return {"status": "queued", "command": {"type": CommandType.PUMP.value, "value": state}}

    def set_brightness(self, value: int) -> Dict[str, Any]:
        """Set the light brightness and queue a LIGHT command."""
        self._apply_state({"brightness": value})
        self._queue_best_effort(CommandType.LIGHT, value)
        return {"status": "queued", "command": {"type": CommandType.LIGHT.value, "value": value}}

    def feed_now(self) -> Dict[str, Any]:
        """Record a manual feeding, restart the schedule and queue a FEED command."""
        now = self._clock()
        state = self._read_state()
        scheduled = next_feeding_at(state.feeding_interval, now, FeedingPolicy.RESET)
        self._apply_state({"last_fed_at": now, "next_feeding_at": scheduled})
        self._queue_best_effort(CommandType.FEED, FEED_NOW)
        return {"status": "queued", "next_feeding_at": to_iso(scheduled)}

    def update_feeding_settings(
        self, interval: str | None = None, quantity: int | None = None
    ) -> Dict[str, Any]:
        """Change feeding interval and/or quantity and push them to the device.

        A new interval shifts the next feeding by the new interval from the
        currently scheduled one, keeping the existing cadence.

        Raises:
            InvalidInputError: If neither setting is provided
        """
        updates: Dict[str, Any] = {}
        if interval is not None:
            updates["feeding_interval"] = interval
        if quantity is not None:
            updates["feeding_quantity"] = quantity
        if not updates:
            raise InvalidInputError("No settings provided")

        state = self._read_state()
        scheduled: datetime | None = None
        if interval:
            scheduled = next_feeding_at(
                interval, self._clock(), FeedingPolicy.DRIFT, state.next_feeding_at
            )
            updates["next_feeding_at"] = scheduled

        state = self._apply_state(updates)
        config = FeedingConfig(interval=state.feeding_interval, quantity=state.feeding_quantity)
        self._queue_best_effort(CommandType.CONFIG, config)

        response: Dict[str, Any] = {"success": True}
        if scheduled is not None:
            response["next_feeding_at"] = to_iso(scheduled)
        return response

    def confirm_feed(self) -> Dict[str, Any]:
        """Record a feeding performed by the device on its own schedule."""
        now = self._clock()
        state = self._read_state()
        scheduled = next_feeding_at(state.feeding_interval, now, FeedingPolicy.RESET)
        self._apply_state({"last_fed_at": now, "next_feeding_at": scheduled})
        logger.info(f"Device {self.device_id} confirmed feeding; next at {to_iso(scheduled)}")
        return {"success": True, "next_feeding_at": to_iso(scheduled)}

    # ------------------------------------------------------------------
    # Device poll and telemetry
    # ------------------------------------------------------------------

    def poll(self) -> Dict[str, Any]:
        """Record a heartbeat and hand out at most one pending command."""
        try:
            self.liveness.heartbeat(self.device_id)
        except ControlError as exc:
            logger.error(f"Heartbeat update failed for {self.device_id}: {exc}")

        command = self.queue.dequeue_oldest_valid(self.device_id)
        if command is None:
            return {"has_command": False}
        return {"has_command": True, "command": command.to_wire()}

    def ingest_telemetry(self, temperature: float, water_level: float | None = None) -> Dict[str, Any]:
        """Store a reading and run the auto-pump rule against it."""
        self._store.insert_sensor_reading(self.device_id, temperature, water_level, self._clock())
        self.auto_pump.evaluate(self.device_id, temperature)
        return {"success": True}

    # ------------------------------------------------------------------
    # Read paths
    # ------------------------------------------------------------------

    def system_status(self) -> Dict[str, Any]:
        return self.liveness.status(self.device_id)

    def dashboard(self) -> Dict[str, Any]:
        """Return the latest reading merged with device state for the UI.

        Raises:
            SensorReadingNotFoundError: If nothing was uploaded yet
        """
        reading = self._store.latest_sensor_reading(self.device_id)
        if reading is None:
            raise SensorReadingNotFoundError(self.device_id)

        try:
            state: DeviceState | None = self._read_state()
        except DeviceStateNotFoundError as exc:
            logger.error(f"Error fetching device state: {exc}")
            state = None

        last_pump = self._store.latest_command_of_type(self.device_id, CommandType.PUMP)
        return serialize_dashboard(reading, state, last_pump)

    def history(self, range_name: str | None = None) -> Dict[str, Any]:
        """Return readings within a named window (``24h``, ``7d``, ``30d``)."""
        window: timedelta = HISTORY_RANGES.get(
            range_name or DEFAULT_HISTORY_RANGE, HISTORY_RANGES[DEFAULT_HISTORY_RANGE]
        )
        since = self._clock() - window
        readings = self._store.list_sensor_readings(self.device_id, since, HISTORY_MAX_ROWS)
        return {"data": [serialize_sensor_reading(r) for r in readings]}
