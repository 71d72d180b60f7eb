"""Tests for heartbeat tracking and online classification."""

from datetime import timedelta

from conftest import DEVICE_ID, START

from aquapoll.liveness import LivenessTracker, is_online


def test_is_online_boundaries():
    assert is_online(START - timedelta(seconds=45), START) is True
    assert is_online(START - timedelta(seconds=90), START) is False
    assert is_online(START - timedelta(seconds=60), START) is False
    assert is_online(None, START) is False


def test_heartbeat_updates_last_seen(store, clock):
    tracker = LivenessTracker(store, clock)

    seen = tracker.heartbeat(DEVICE_ID)

    assert seen == clock.now
    assert store.read_device_state(DEVICE_ID).last_seen == clock.now


def test_status_expires_without_new_heartbeats(store, clock):
    tracker = LivenessTracker(store, clock)
    assert tracker.status(DEVICE_ID) == {"esp32_online": False, "last_seen": None}

    tracker.heartbeat(DEVICE_ID)
    clock.advance(seconds=45)
    status = tracker.status(DEVICE_ID)
    assert status["esp32_online"] is True
    assert status["last_seen"] == START.isoformat()

    clock.advance(seconds=45)
    assert tracker.status(DEVICE_ID)["esp32_online"] is False


def test_unprovisioned_device_is_offline(store, clock):
    tracker = LivenessTracker(store, clock)
    assert tracker.status("never-seen") == {"esp32_online": False, "last_seen": None}
