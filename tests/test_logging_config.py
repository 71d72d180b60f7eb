"""Tests for the shared logging configuration."""

import logging

import pytest

from aquapoll.logging_config import (
    DATE_FORMAT,
    LOG_FORMAT,
    configure_logging,
    get_log_level,
    get_logging_config,
    get_uvicorn_log_config,
)


@pytest.fixture(autouse=True)
def clean_logging_env(monkeypatch):
    monkeypatch.delenv("AQUAPOLL_LOG_LEVEL", raising=False)
    monkeypatch.delenv("AQUAPOLL_VERBOSE_LOGGING", raising=False)


@pytest.mark.parametrize("raw, expected", [(None, "INFO"), ("", "INFO"), ("debug", "DEBUG")])
def test_log_level(monkeypatch, raw, expected):
    if raw is not None:
        monkeypatch.setenv("AQUAPOLL_LOG_LEVEL", raw)
    assert get_log_level() == expected


def test_every_logger_shares_the_timestamped_format():
    config = get_logging_config()

    for formatter in config["formatters"].values():
        assert formatter == {"format": LOG_FORMAT, "datefmt": DATE_FORMAT}
    assert set(config["loggers"]) == {"uvicorn", "uvicorn.error", "uvicorn.access", "aquapoll"}
    assert all(entry["propagate"] is False for entry in config["loggers"].values())


def test_level_applies_to_app_and_server(monkeypatch):
    monkeypatch.setenv("AQUAPOLL_LOG_LEVEL", "warning")
    loggers = get_logging_config()["loggers"]

    assert loggers["aquapoll"]["level"] == "WARNING"
    assert loggers["uvicorn.error"]["level"] == "WARNING"


def test_poll_access_lines_need_verbose_mode(monkeypatch):
    assert get_logging_config()["loggers"]["uvicorn.access"]["level"] == "WARNING"

    monkeypatch.setenv("AQUAPOLL_VERBOSE_LOGGING", "yes")
    assert get_logging_config()["loggers"]["uvicorn.access"]["level"] == "INFO"


def test_uvicorn_receives_the_same_config():
    assert get_uvicorn_log_config() == get_logging_config()


def test_configure_logging_installs_handlers(monkeypatch):
    monkeypatch.setenv("AQUAPOLL_LOG_LEVEL", "DEBUG")
    configure_logging()

    app_logger = logging.getLogger("aquapoll")
    assert app_logger.level == logging.DEBUG
    assert app_logger.handlers
    assert logging.getLogger().handlers
