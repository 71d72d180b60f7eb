"""Storage package for device state, command queue and telemetry persistence.

This package provides the storage adapter contract consumed by the core
components and two adapters built on a common base class.
"""

# Base storage
from .base import BaseControlStore

# Adapters
from .file import FileControlStore
from .memory import MemoryControlStore

# Models
from .models import (
    COMMAND_ADAPTER,
    Command,
    CommandBase,
    ConfigCommand,
    DeviceRecord,
    DeviceState,
    FeedCommand,
    FeedingConfig,
    LightCommand,
    PumpCommand,
    SensorReading,
    build_command,
)

__all__ = [
    # Base
    "BaseControlStore",
    # Adapters
    "FileControlStore",
    "MemoryControlStore",
    # Models
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
