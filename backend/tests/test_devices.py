"""
Tests for the Device Registry

Tests:
- Registration (authoritative replace)
- Heartbeat merge and no-create rule
- Removal idempotence and ownership
- Liveness sweep
- Snapshot projection
"""

import pytest
from pydantic import ValidationError

from roadwatch.devices import DeviceRegistry
from roadwatch.models.device import DeviceStatus


@pytest.fixture
def registry(clock):
    return DeviceRegistry(clock=clock)


class TestRegister:
    """register() inserts or replaces"""

    def test_register_creates_online_entry(self, registry, clock):
        entry = registry.register("d1", {"name": "Patrol 1", "type": "mobile", "battery": 100})

        assert "d1" in registry
        assert entry.status == DeviceStatus.ONLINE
        assert entry.last_seen == clock.now
        assert entry.info == {"name": "Patrol 1", "type": "mobile", "battery": 100}

    def test_register_replaces_previous_info(self, registry):
        registry.register("d1", {"name": "A", "battery": 50})
        registry.register("d1", {"type": "mobile"})

        assert registry.get("d1").info == {"type": "mobile"}
        assert len(registry) == 1

    def test_register_keeps_extra_attributes(self, registry):
        registry.register("d1", {"name": "A", "firmware": "1.2"})

        assert registry.get("d1").info["firmware"] == "1.2"

    def test_register_rejects_invalid_location(self, registry):
        with pytest.raises(ValidationError):
            registry.register("d1", {"location": "somewhere"})

        assert "d1" not in registry

    def test_register_records_connection(self, registry):
        registry.register("d1", {}, connection_id="conn-1")

        assert registry.get("d1").connection_id == "conn-1"


class TestHeartbeat:
    """heartbeat() merges into known devices only"""

    def test_merge_semantics(self, registry):
        registry.register("d1", {"battery": 50, "name": "A"})
        registry.heartbeat("d1", {"battery": 40})

        info = registry.get("d1").info
        assert info == {"battery": 40, "name": "A"}

    def test_heartbeat_refreshes_last_seen(self, registry, clock):
        registry.register("d1", {"name": "A"})
        clock.now += 12
        registry.heartbeat("d1", {})

        assert registry.get("d1").last_seen == clock.now

    def test_heartbeat_cannot_create_device(self, registry):
        changed = registry.heartbeat("ghost", {"battery": 10})

        assert changed is False
        assert "ghost" not in registry
        assert registry.snapshot() == []
        assert registry.total_ignored_heartbeats == 1

    def test_heartbeat_reports_change(self, registry):
        registry.register("d1", {"battery": 50})

        assert registry.heartbeat("d1", {"battery": 50}) is False
        assert registry.heartbeat("d1", {"battery": 45}) is True
        assert registry.heartbeat("d1", {"location": {"latitude": 1.0, "longitude": 2.0}}) is True

    def test_heartbeat_location(self, registry):
        registry.register("d1", {"name": "A"})
        registry.heartbeat("d1", {"location": {"latitude": 24.7, "longitude": 46.6}})

        assert registry.get("d1").info["location"] == {"latitude": 24.7, "longitude": 46.6}


class TestRemove:
    """remove() and remove_if_owned()"""

    def test_remove_is_idempotent(self, registry):
        registry.register("d1", {})

        assert registry.remove("d1") is True
        assert registry.remove("d1") is False
        assert "d1" not in registry

    def test_remove_if_owned(self, registry):
        registry.register("d1", {}, connection_id="conn-1")

        assert registry.remove_if_owned("d1", "conn-2") is False
        assert "d1" in registry
        assert registry.remove_if_owned("d1", "conn-1") is True
        assert "d1" not in registry

    def test_reregistration_transfers_ownership(self, registry):
        registry.register("d1", {}, connection_id="conn-1")
        registry.register("d1", {}, connection_id="conn-2")

        assert registry.remove_if_owned("d1", "conn-1") is False
        assert "d1" in registry


class TestSweep:
    """sweep() evicts stale devices"""

    def test_sweep_removes_stale_and_keeps_fresh(self, registry, clock):
        registry.register("stale", {})
        clock.now += 25
        registry.register("fresh", {})
        clock.now += 10

        changed = registry.sweep(clock.now, timeout_ms=30000)

        assert changed is True
        ids = [d["id"] for d in registry.snapshot()]
        assert ids == ["fresh"]

    def test_sweep_without_stale_devices(self, registry, clock):
        registry.register("d1", {})
        clock.now += 29

        assert registry.sweep() is False
        assert "d1" in registry

    def test_heartbeat_keeps_device_alive(self, registry, clock):
        registry.register("d1", {})
        clock.now += 20
        registry.heartbeat("d1", {"battery": 80})
        clock.now += 20

        assert registry.sweep() is False
        assert registry.total_swept == 0

    def test_sweep_empty_registry(self, registry):
        assert registry.sweep() is False


class TestSnapshot:
    """snapshot() projection"""

    def test_snapshot_fields(self, registry, clock):
        registry.register(
            "d1",
            {"name": "Patrol", "type": "mobile", "battery": 90, "firmware": "x"},
            connection_id="conn-1",
        )

        [summary] = registry.snapshot()
        assert summary == {
            "id": "d1",
            "type": "mobile",
            "name": "Patrol",
            "battery": 90,
            "status": "online",
            "lastSeen": int(clock.now * 1000),
            "location": None,
        }
        assert "connection_id" not in summary
        assert "firmware" not in summary

    def test_snapshot_is_detached(self, registry):
        registry.register("d1", {"name": "A"})

        snapshot = registry.snapshot()
        snapshot[0]["name"] = "changed"

        assert registry.get("d1").info["name"] == "A"

    def test_statistics(self, registry):
        registry.register("d1", {})
        registry.heartbeat("d1", {})
        registry.heartbeat("ghost", {})

        stats = registry.get_statistics()
        assert stats["online"] == 1
        assert stats["totalRegistrations"] == 1
        assert stats["totalHeartbeats"] == 1
        assert stats["ignoredHeartbeats"] == 1
