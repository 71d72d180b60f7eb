"""Test configuration ensuring the src package is importable, plus shared fixtures."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

DEVICE_ID = "00000000-0000-0000-0000-000000000001"
START = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FixedClock:
    """Controllable clock returning the same instant until advanced."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def store():
    """In-memory store with the test device already provisioned."""
    from aquapoll.storage import MemoryControlStore

    memory_store = MemoryControlStore()
    memory_store.ensure_device_state(DEVICE_ID)
    return memory_store


@pytest.fixture
def file_store(tmp_path: Path):
    """File store in a temporary directory with the test device provisioned."""
    from aquapoll.storage import FileControlStore

    disk_store = FileControlStore(tmp_path / "devices")
    disk_store.ensure_device_state(DEVICE_ID)
    return disk_store


@pytest.fixture
def queue(store, clock):
    from aquapoll.command_queue import CommandQueue

    return CommandQueue(store, clock)


@pytest.fixture
def control_service(store, clock):
    """ControlService wired to the memory store, auth disabled, auto-pump on."""
    from aquapoll.control_service import ControlService

    return ControlService(
        store=store,
        device_id=DEVICE_ID,
        clock=clock,
        admin_token="",
        pump_threshold=28.0,
        auto_pump=True,
    )
