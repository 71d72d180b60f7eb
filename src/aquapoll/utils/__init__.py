"""Utility package for general-purpose helpers.

Provides environment configuration and time utilities. Serializers live in
``aquapoll.utils.serializers`` and are imported directly to avoid a cycle
with the storage models.
"""

from .env import (
    get_data_dir,
    get_env_bool,
    get_env_float,
    get_env_int,
    get_env_list,
    get_env_str,
)
from .time import Clock, ensure_aware, to_iso, utcnow

__all__ = [
    # Environment utilities
    "get_data_dir",
    "get_env_bool",
    "get_env_float",
    "get_env_int",
    "get_env_list",
    "get_env_str",
    # Time utilities
    "Clock",
    "ensure_aware",
    "to_iso",
    "utcnow",
]
