"""Persistent models for device state, queued commands and sensor readings.

Commands are a tagged union discriminated on ``type``; each variant owns the
payload shape the firmware expects for that actuator.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, Literal, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from ..constants import (
    DEFAULT_FEEDING_INTERVAL,
    DEFAULT_FEEDING_QUANTITY,
    FEED_NOW,
    CommandType,
)
from ..utils.time import ensure_aware


def _new_id() -> str:
    return uuid4().hex


class _TimestampedModel(BaseModel):
    """Base model that normalizes every datetime field to aware UTC."""

    @field_validator("*", mode="after")
    @classmethod
    def _aware_datetimes(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return ensure_aware(value)
        return value


# ===== Commands =====


class FeedingConfig(BaseModel):
    """Feeding settings pushed to the device in a CONFIG command."""

    interval: str | None = None
    quantity: int | None = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid")


class CommandBase(_TimestampedModel):
    """Fields shared by every queued command."""

    id: str = Field(default_factory=_new_id)
    device_id: str
    created_at: datetime
    processed: bool = False
    processed_at: datetime | None = None

    model_config = ConfigDict(extra="forbid")

    def to_wire(self) -> Dict[str, Any]:
        """Return the ``{type, value}`` payload delivered to the device."""
        return self.model_dump(mode="json", include={"type", "value"})

    def mark_processed(self, processed_at: datetime) -> "CommandBase":
        """Return a processed copy of this command."""
        return self.model_copy(update={"processed": True, "processed_at": processed_at})


class PumpCommand(CommandBase):
    """Switch the circulation pump on or off."""

    type: Literal["PUMP"] = "PUMP"
    value: bool


class FeedCommand(CommandBase):
    """Dispense one feeding immediately."""

    type: Literal["FEED"] = "FEED"
    value: Literal["NOW"] = FEED_NOW


class LightCommand(CommandBase):
    """Set the light brightness in percent."""

    type: Literal["LIGHT"] = "LIGHT"
    value: int = Field(ge=0, le=100)


class ConfigCommand(CommandBase):
    """Push new feeding settings to the device."""

    type: Literal["CONFIG"] = "CONFIG"
    value: FeedingConfig


Command = Annotated[
    Union[PumpCommand, FeedCommand, LightCommand, ConfigCommand],
    Field(discriminator="type"),
]

COMMAND_ADAPTER: TypeAdapter[Command] = TypeAdapter(Command)


def build_command(
    device_id: str,
    command_type: CommandType | str,
    value: Any,
    created_at: datetime,
) -> Command:
    """Validate a raw ``(type, value)`` pair into the matching command variant.

    Raises:
        ValueError: If the type is unknown or the value does not fit the type
    """
    if isinstance(value, BaseModel):
        value = value.model_dump()
    return COMMAND_ADAPTER.validate_python(
        {
            "type": CommandType(command_type).value,
            "value": value,
            "device_id": device_id,
            "created_at": created_at,
        }
    )


# ===== Device State =====


class DeviceState(_TimestampedModel):
    """Current actuator and configuration state of one device."""

    id: str
    pump_active: bool = False
    brightness: int = Field(default=0, ge=0, le=100)
    feeding_interval: str | None = DEFAULT_FEEDING_INTERVAL
    feeding_quantity: int = Field(default=DEFAULT_FEEDING_QUANTITY, ge=1)
    last_fed_at: datetime | None = None
    next_feeding_at: datetime | None = None
    last_seen: datetime | None = None

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def updatable_fields(cls) -> frozenset[str]:
        """Return the field names a partial update may touch."""
        return frozenset(name for name in cls.model_fields if name != "id")

    def apply(self, fields: Dict[str, Any]) -> "DeviceState":
        """Return a validated copy with ``fields`` applied.

        Raises:
            ValueError: If a field is unknown or a value is invalid
        """
        unknown = set(fields) - self.updatable_fields()
        if unknown:
            raise ValueError(f"Unknown device state fields: {sorted(unknown)}")
        return DeviceState.model_validate({**self.model_dump(), **fields})


# ===== Sensor Readings =====


class SensorReading(_TimestampedModel):
    """A single telemetry sample uploaded by the device."""

    id: str = Field(default_factory=_new_id)
    device_id: str
    temperature: float
    water_level: float | None = None
    created_at: datetime

    model_config = ConfigDict(extra="forbid")


# ===== Storage Record =====


class DeviceRecord(BaseModel):
    """Everything persisted for one device."""

    device_state: DeviceState | None = None
    commands: list[Command] = Field(default_factory=list)
    sensor_readings: list[SensorReading] = Field(default_factory=list)


__all__ = [
    "COMMAND_ADAPTER",
    "Command",
    "CommandBase",
    "ConfigCommand",
    "DeviceRecord",
    "DeviceState",
    "FeedCommand",
    "FeedingConfig",
    "LightCommand",
    "PumpCommand",
    "SensorReading",
    "build_command",
]
