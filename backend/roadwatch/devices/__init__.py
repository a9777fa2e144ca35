"""
Field device tracking

Usage:
    from roadwatch.devices import DeviceRegistry

    registry = DeviceRegistry()
    registry.register("UNIT-1234", {"name": "Patrol 1234"}, connection_id="c-1")
"""

from roadwatch.devices.device_registry import DeviceRegistry, DEFAULT_TIMEOUT_MS

__all__ = [
    'DeviceRegistry',
    'DEFAULT_TIMEOUT_MS',
]
