"""
RoadWatch Realtime Incident Hub
Backend Application Package

Accepts road-hazard incident reports and field-device lifecycle events over
WebSocket and HTTP, keeps the authoritative in-memory incident log and device
registry, and fans state changes out to connected monitors.
"""

__version__ = "1.0.0"
__author__ = "RoadWatch"
