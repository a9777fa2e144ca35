"""
Device Registry

Tracks connected field devices, their declared attributes and liveness.

- register:  authoritative replace (the only way to create an entry)
- heartbeat: overwrite-if-present merge, ignored for unknown devices
- sweep:     evicts devices that stopped sending heartbeats
"""

import time
from typing import Any, Callable, Dict, List, Optional

from roadwatch.models.device import DeviceEntry, DeviceInfo, DeviceStatus


DEFAULT_TIMEOUT_MS = 30000


class DeviceRegistry:
    """
    Registry of online field devices

    Entries remember the id of the connection that registered them; the
    connection itself is never referenced.

    Usage:
        registry = DeviceRegistry()
        registry.register("UNIT-1234", {"name": "Patrol 1234", "battery": 100})
        registry.heartbeat("UNIT-1234", {"battery": 85})
        changed = registry.sweep()
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        """
        Args:
            clock: Time source (seconds since epoch)
        """
        self._clock = clock
        self._devices: Dict[str, DeviceEntry] = {}

        # Statistics
        self.total_registrations = 0
        self.total_heartbeats = 0
        self.total_ignored_heartbeats = 0
        self.total_swept = 0

    def register(self, device_id: str, info: Optional[Dict[str, Any]] = None,
                 connection_id: Optional[str] = None) -> DeviceEntry:
        """
        Insert or replace a device entry

        Previous attributes are discarded entirely.

        Args:
            device_id: Stable device identity
            info: Declared attributes (name, type, battery, location, ...)
            connection_id: Id of the connection that owns the device
        """
        raw = dict(info or {})
        validated = DeviceInfo.model_validate(raw)
        now = self._clock()

        entry = DeviceEntry(
            id=device_id,
            info=validated.present_fields(raw),
            status=DeviceStatus.ONLINE,
            last_seen=now,
            connection_id=connection_id,
            registered_at=now,
        )
        self._devices[device_id] = entry
        self.total_registrations += 1

        print(f"[REGISTRY] Device registered: {device_id} ({entry.info.get('name', 'unnamed')})")
        return entry

    def heartbeat(self, device_id: str, info: Optional[Dict[str, Any]] = None) -> bool:
        """
        Merge a status update into a known device

        Fields present in `info` overwrite, others persist. Unknown devices
        are ignored; a heartbeat never creates an entry.

        Returns:
            True if the device's attributes or status changed
        """
        entry = self._devices.get(device_id)
        if entry is None:
            self.total_ignored_heartbeats += 1
            return False

        raw = dict(info or {})
        updates = DeviceInfo.model_validate(raw).present_fields(raw)

        changed = entry.status != DeviceStatus.ONLINE or any(
            entry.info.get(k) != v for k, v in updates.items()
        )

        entry.info.update(updates)
        entry.status = DeviceStatus.ONLINE
        entry.last_seen = self._clock()
        self.total_heartbeats += 1

        return changed

    def remove(self, device_id: str) -> bool:
        """
        Delete a device entry (idempotent)

        Returns:
            True if an entry was removed
        """
        entry = self._devices.pop(device_id, None)
        if entry is not None:
            print(f"[REGISTRY] Device removed: {device_id}")
        return entry is not None

    def remove_if_owned(self, device_id: str, connection_id: str) -> bool:
        """
        Remove a device only if `connection_id` still owns it

        A device that re-registered from a newer connection is kept.
        """
        entry = self._devices.get(device_id)
        if entry is None or entry.connection_id != connection_id:
            return False
        return self.remove(device_id)

    def sweep(self, now: Optional[float] = None, timeout_ms: float = DEFAULT_TIMEOUT_MS) -> bool:
        """
        Evict devices whose last heartbeat is older than `timeout_ms`

        Args:
            now: Current time in seconds (default: clock)
            timeout_ms: Liveness window in milliseconds

        Returns:
            True if any entry was evicted
        """
        now = self._clock() if now is None else now
        cutoff = now - timeout_ms / 1000.0

        stale = [device_id for device_id, entry in self._devices.items() if entry.last_seen < cutoff]
        for device_id in stale:
            del self._devices[device_id]
            print(f"[SWEEP] Device timed out: {device_id}")

        self.total_swept += len(stale)
        return bool(stale)

    def snapshot(self) -> List[Dict[str, Any]]:
        """Serialization-safe summaries of all entries (registration order)"""
        return [entry.summary() for entry in self._devices.values()]

    def get(self, device_id: str) -> Optional[DeviceEntry]:
        return self._devices.get(device_id)

    def __contains__(self, device_id: str) -> bool:
        return device_id in self._devices

    def __len__(self) -> int:
        return len(self._devices)

    def get_statistics(self) -> Dict[str, Any]:
        """Get registry statistics"""
        return {
            "online": len(self._devices),
            "totalRegistrations": self.total_registrations,
            "totalHeartbeats": self.total_heartbeats,
            "ignoredHeartbeats": self.total_ignored_heartbeats,
            "totalSwept": self.total_swept,
        }
