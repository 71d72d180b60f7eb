"""Application constants for the polling protocol and feeding schedule.

Centralized constants to ensure consistency between the API layer, the core
components and the device firmware expectations.
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum

# ============================================================================
# Device Identity
# ============================================================================

DEFAULT_DEVICE_ID = "00000000-0000-0000-0000-000000000001"


class CommandType(str, Enum):
    """Command types understood by the aquarium controller firmware."""

    PUMP = "PUMP"
    FEED = "FEED"
    LIGHT = "LIGHT"
    CONFIG = "CONFIG"


FEED_NOW = "NOW"

# ============================================================================
# Protocol Windows
# ============================================================================

# Commands older than this are discarded instead of delivered
COMMAND_STALENESS_WINDOW = timedelta(minutes=10)

# Device counts as online if it polled within this window
LIVENESS_WINDOW = timedelta(seconds=60)

# ============================================================================
# Feeding Defaults
# ============================================================================

DEFAULT_FEEDING_INTERVAL = "4h"
DEFAULT_FEEDING_INTERVAL_DELTA = timedelta(hours=4)
DEFAULT_FEEDING_QUANTITY = 1

# ============================================================================
# Automation
# ============================================================================

AUTO_PUMP_TEMPERATURE_THRESHOLD = 28.0  # degrees Celsius

# ============================================================================
# Sensor History
# ============================================================================

HISTORY_RANGES = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}
DEFAULT_HISTORY_RANGE = "24h"
HISTORY_MAX_ROWS = 500

# ============================================================================
# Storage Retention
# ============================================================================

# Long enough to serve the widest history range
DEFAULT_READING_RETENTION = max(HISTORY_RANGES.values())
DEFAULT_PROCESSED_COMMAND_LIMIT = 500
