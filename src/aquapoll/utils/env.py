"""Environment variable utilities."""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def get_data_dir() -> Path:
    """Get the data directory for the file-backed store.

    Returns:
        Path to the data directory, creating it if needed.

    Priority:
        1. AQUAPOLL_DATA_DIR environment variable
        2. ~/.aquapoll (local development)
    """
    data_dir_override = os.getenv("AQUAPOLL_DATA_DIR")
    if data_dir_override:
        data_dir = Path(data_dir_override)
        data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir

    default_dir = Path.home() / ".aquapoll"
    default_dir.mkdir(parents=True, exist_ok=True)
    return default_dir


def get_env_str(name: str, default: str | None) -> str | None:
    """Get string environment variable, treating blank values as unset.

    Args:
        name: Environment variable name
        default: Default value if not found or blank

    Returns:
        Stripped string value from environment or default
    """
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def get_env_bool(name: str, default: bool) -> bool:
    """Get boolean environment variable.

    Args:
        name: Environment variable name
        default: Default value if not found

    Returns:
        Boolean value from environment or default
    """
    raw = os.getenv(name)
    if raw is None:
        return default

    s = raw.strip()
    if s == "":
        return default

    lowered = s.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False

    try:
        return bool(int(s))
    except ValueError:
        return default


def get_env_float(name: str, default: float) -> float:
    """Get float environment variable.

    Args:
        name: Environment variable name
        default: Default value if not found or invalid

    Returns:
        Float value from environment or default
    """
    raw = os.getenv(name)
    if raw is None:
        return default

    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid float value for {name}: '{raw}'. Using default: {default}")
        return default


def get_env_int(name: str, default: int) -> int:
    """Get integer environment variable.

    Args:
        name: Environment variable name
        default: Default value if not found or invalid

    Returns:
        Integer value from environment or default
    """
    raw = os.getenv(name)
    if raw is None:
        return default

    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer value for {name}: '{raw}'. Using default: {default}")
        return default


def get_env_list(name: str, default: list[str]) -> list[str]:
    """Get a comma-separated list environment variable.

    Blank entries are dropped; an unset or empty variable gives ``default``.
    """
    raw = os.getenv(name)
    if raw is None:
        return list(default)

    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items or list(default)
