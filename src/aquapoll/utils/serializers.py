"""Serialization helpers for API responses.

These convert internal models into JSON-safe primitives.
"""

from __future__ import annotations

from typing import Any, Dict

from ..storage import Command, DeviceState, SensorReading
from .time import to_iso


def serialize_sensor_reading(reading: SensorReading) -> Dict[str, Any]:
    """Convert a sensor reading into the history row format."""
    return {
        "id": reading.id,
        "temperature": reading.temperature,
        "water_level": reading.water_level,
        "created_at": to_iso(reading.created_at),
    }


def serialize_dashboard(
    reading: SensorReading,
    state: DeviceState | None,
    last_pump_command: Command | None,
) -> Dict[str, Any]:
    """Build the dashboard snapshot from the latest reading and device state.

    Device fields are None when the device state is unavailable so the
    dashboard can still show the latest telemetry.
    """
    return {
        "temperature": reading.temperature,
        "water_level": reading.water_level,
        "brightness": state.brightness if state else None,
        "pump_status": "ON" if state and state.pump_active else "OFF",
        "feeding": {
            "next_feeding": to_iso(state.next_feeding_at) if state else None,
            "interval": state.feeding_interval if state else None,
            "quantity": state.feeding_quantity if state else None,
            "last_fed": to_iso(state.last_fed_at) if state else None,
        },
        "last_updated": to_iso(reading.created_at),
        "last_pump_toggle": to_iso(last_pump_command.created_at) if last_pump_command else None,
    }
