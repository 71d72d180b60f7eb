"""Tests for the storage adapters."""

import json
import threading
from datetime import timedelta
from pathlib import Path

import pytest
from conftest import DEVICE_ID, START

from aquapoll.constants import CommandType
from aquapoll.errors import DeviceStateNotFoundError, StorageUnavailableError
from aquapoll.storage import DeviceState, FileControlStore, MemoryControlStore


@pytest.fixture(params=["memory", "file"])
def any_store(request, tmp_path: Path):
    """Run a test against both adapters."""
    if request.param == "memory":
        adapter = MemoryControlStore()
    else:
        adapter = FileControlStore(tmp_path / "devices")
    adapter.ensure_device_state(DEVICE_ID)
    return adapter


class TestDeviceState:
    """Device state provisioning and partial updates."""

    def test_provisioned_with_defaults(self, any_store):
        state = any_store.read_device_state(DEVICE_ID)
        assert state == DeviceState(id=DEVICE_ID)
        assert state.pump_active is False
        assert state.feeding_interval == "4h"
        assert state.feeding_quantity == 1
        assert state.last_seen is None

    def test_ensure_is_idempotent(self, any_store):
        any_store.update_device_state(DEVICE_ID, {"brightness": 80})
        any_store.ensure_device_state(DEVICE_ID)
        assert any_store.read_device_state(DEVICE_ID).brightness == 80

    def test_partial_update_keeps_other_fields(self, any_store):
        any_store.update_device_state(DEVICE_ID, {"feeding_interval": "6h"})
        state = any_store.update_device_state(DEVICE_ID, {"pump_active": True, "last_seen": START})

        assert state.pump_active is True
        assert state.feeding_interval == "6h"
        assert state.last_seen == START

    def test_update_rejects_unknown_or_invalid_fields(self, any_store):
        with pytest.raises(ValueError):
            any_store.update_device_state(DEVICE_ID, {"colour": "blue"})
        with pytest.raises(ValueError):
            any_store.update_device_state(DEVICE_ID, {"brightness": 101})
        assert any_store.read_device_state(DEVICE_ID).brightness == 0

    def test_missing_device_raises_not_found(self, any_store):
        with pytest.raises(DeviceStateNotFoundError):
            any_store.read_device_state("unknown")
        with pytest.raises(DeviceStateNotFoundError):
            any_store.update_device_state("unknown", {"pump_active": True})


class TestCommands:
    """Command log operations of the adapter contract."""

    def test_select_does_not_claim(self, any_store):
        inserted = any_store.insert_command(DEVICE_ID, CommandType.PUMP, True, START)

        selected = any_store.select_oldest_unprocessed_command(DEVICE_ID)

        assert selected is not None and selected.id == inserted.id
        assert any_store.select_oldest_unprocessed_command(DEVICE_ID).id == inserted.id

    def test_update_command_marks_single_command(self, any_store):
        first = any_store.insert_command(DEVICE_ID, CommandType.PUMP, True, START)
        second = any_store.insert_command(DEVICE_ID, CommandType.PUMP, False, START)

        any_store.update_command(DEVICE_ID, first.id, START + timedelta(seconds=1))

        pending = any_store.list_commands(DEVICE_ID, unprocessed_only=True)
        assert [c.id for c in pending] == [second.id]

    def test_update_unknown_command_raises_key_error(self, any_store):
        with pytest.raises(KeyError):
            any_store.update_command(DEVICE_ID, "missing", START)

    def test_equal_timestamps_keep_insertion_order(self, any_store):
        first = any_store.insert_command(DEVICE_ID, CommandType.LIGHT, 1, START)
        any_store.insert_command(DEVICE_ID, CommandType.PUMP, True, START)

        claimed = any_store.claim_oldest_unprocessed_command(DEVICE_ID, START)

        assert claimed.id == first.id
        assert claimed.processed is True
        assert claimed.processed_at == START

    def test_claim_is_atomic_under_concurrent_pollers(self, any_store):
        for level in range(20):
            any_store.insert_command(
                DEVICE_ID, CommandType.LIGHT, level, START + timedelta(seconds=level)
            )

        claimed_ids: list[str] = []
        lock = threading.Lock()

        def poller():
            while True:
                command = any_store.claim_oldest_unprocessed_command(DEVICE_ID, START)
                if command is None:
                    return
                with lock:
                    claimed_ids.append(command.id)

        threads = [threading.Thread(target=poller) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(claimed_ids) == 20
        assert len(set(claimed_ids)) == 20

    def test_memory_store_caps_processed_commands(self):
        memory_store = MemoryControlStore(processed_command_limit=3)
        for level in range(6):
            memory_store.insert_command(
                DEVICE_ID, CommandType.LIGHT, level * 10, START + timedelta(seconds=level)
            )
        for _ in range(5):
            memory_store.claim_oldest_unprocessed_command(DEVICE_ID, START)

        remaining = memory_store.list_commands(DEVICE_ID)
        # Newest processed commands survive; the pending one is never pruned
        assert [(c.value, c.processed) for c in remaining] == [
            (20, True),
            (30, True),
            (40, True),
            (50, False),
        ]

    def test_latest_command_of_type(self, any_store):
        any_store.insert_command(DEVICE_ID, CommandType.PUMP, True, START)
        newest = any_store.insert_command(
            DEVICE_ID, CommandType.PUMP, False, START + timedelta(minutes=1)
        )
        any_store.insert_command(DEVICE_ID, CommandType.LIGHT, 5, START + timedelta(minutes=2))

        assert any_store.latest_command_of_type(DEVICE_ID, "PUMP").id == newest.id
        assert any_store.latest_command_of_type(DEVICE_ID, CommandType.FEED) is None


class TestSensorReadings:
    """Telemetry append and windowed retrieval."""

    def test_window_is_ascending_and_limited(self, any_store):
        for minute in (30, 10, 20, 40):
            any_store.insert_sensor_reading(
                DEVICE_ID, 24.0 + minute / 100, None, START + timedelta(minutes=minute)
            )

        window = any_store.list_sensor_readings(DEVICE_ID, START + timedelta(minutes=15), 2)

        assert [r.created_at for r in window] == [
            START + timedelta(minutes=20),
            START + timedelta(minutes=30),
        ]

    def test_latest_reading(self, any_store):
        assert any_store.latest_sensor_reading(DEVICE_ID) is None
        any_store.insert_sensor_reading(DEVICE_ID, 25.0, 80.0, START)
        any_store.insert_sensor_reading(DEVICE_ID, 26.5, None, START + timedelta(seconds=5))

        latest = any_store.latest_sensor_reading(DEVICE_ID)
        assert latest.temperature == 26.5
        assert latest.water_level is None


class TestFileControlStore:
    """File-specific persistence behaviour."""

    def test_state_survives_reopen(self, tmp_path: Path):
        storage_dir = tmp_path / "devices"
        first = FileControlStore(storage_dir)
        first.ensure_device_state(DEVICE_ID)
        first.update_device_state(DEVICE_ID, {"pump_active": True, "last_seen": START})
        command = first.insert_command(DEVICE_ID, CommandType.CONFIG, {"interval": "2h"}, START)

        reopened = FileControlStore(storage_dir)

        state = reopened.read_device_state(DEVICE_ID)
        assert state.pump_active is True
        assert state.last_seen == START
        pending = reopened.list_commands(DEVICE_ID, unprocessed_only=True)
        assert [c.id for c in pending] == [command.id]
        assert pending[0].to_wire() == {
            "type": "CONFIG",
            "value": {"interval": "2h", "quantity": None},
        }

    def test_device_file_layout(self, file_store):
        device_file = file_store.storage_dir / f"{DEVICE_ID}.json"
        data = json.loads(device_file.read_text(encoding="utf-8"))

        assert data["device_id"] == DEVICE_ID
        assert data["record"]["device_state"]["id"] == DEVICE_ID
        assert not device_file.with_suffix(".tmp").exists()

    def test_corrupt_file_raises_storage_unavailable(self, file_store):
        device_file = file_store.storage_dir / f"{DEVICE_ID}.json"
        device_file.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageUnavailableError) as exc_info:
            file_store.read_device_state(DEVICE_ID)
        assert exc_info.value.details["operation"] == "read_device_state"

    def test_old_readings_are_pruned(self, tmp_path: Path):
        disk_store = FileControlStore(tmp_path, reading_retention=timedelta(hours=1))
        disk_store.insert_sensor_reading(DEVICE_ID, 24.0, None, START)
        disk_store.insert_sensor_reading(DEVICE_ID, 25.0, None, START + timedelta(hours=2))

        readings = disk_store.list_sensor_readings(DEVICE_ID, START - timedelta(days=1), 10)
        assert [r.temperature for r in readings] == [25.0]

    def test_processed_commands_are_capped(self, tmp_path: Path):
        disk_store = FileControlStore(tmp_path, processed_command_limit=2)
        for level in range(5):
            disk_store.insert_command(
                DEVICE_ID, CommandType.LIGHT, level, START + timedelta(seconds=level)
            )
        for _ in range(5):
            disk_store.claim_oldest_unprocessed_command(DEVICE_ID, START)

        remaining = disk_store.list_commands(DEVICE_ID)
        assert [c.value for c in remaining] == [3, 4]
