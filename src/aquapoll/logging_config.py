"""Logging setup shared by the application and uvicorn.

Call ``configure_logging()`` once at startup and pass
``get_uvicorn_log_config()`` to ``uvicorn.run`` so both write the same
timestamped format.

Environment:
    AQUAPOLL_LOG_LEVEL: level for application and server loggers (INFO)
    AQUAPOLL_VERBOSE_LOGGING: also emit per-request access lines, which are
        otherwise held at WARNING because the controller polls constantly
"""

import logging
import logging.config
from typing import Any, Dict

from .utils.env import get_env_bool, get_env_str

LOG_FORMAT = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_level() -> str:
    """Return the configured level name, upper-cased."""
    return (get_env_str("AQUAPOLL_LOG_LEVEL", "INFO") or "INFO").upper()


def _logger_entry(handler: str, level: str) -> Dict[str, Any]:
    return {"handlers": [handler], "level": level, "propagate": False}


def get_logging_config() -> Dict[str, Any]:
    """Build the ``dictConfig`` mapping for the current environment."""
    level = get_log_level()
    access_level = level if get_env_bool("AQUAPOLL_VERBOSE_LOGGING", False) else "WARNING"
    formatter = {"format": LOG_FORMAT, "datefmt": DATE_FORMAT}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": dict(formatter), "access": dict(formatter)},
        "handlers": {
            "default": {
                "formatter": "default",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
            },
            "access": {
                "formatter": "access",
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "uvicorn": _logger_entry("default", level),
            "uvicorn.error": _logger_entry("default", level),
            "uvicorn.access": _logger_entry("access", access_level),
            "aquapoll": _logger_entry("default", level),
        },
        "root": {"level": level, "handlers": ["default"]},
    }


def configure_logging() -> None:
    """Apply the logging configuration to the running process."""
    logging.config.dictConfig(get_logging_config())


def get_uvicorn_log_config() -> Dict[str, Any]:
    """Return the ``log_config`` mapping for ``uvicorn.run``."""
    return get_logging_config()
