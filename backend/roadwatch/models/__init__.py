"""
Data models for incidents and field devices.
"""

from .incident import GeoLocation, IncidentImage, IncidentPayload, Incident, IncidentAck
from .device import DeviceStatus, DeviceInfo, DeviceEntry

__all__ = [
    "GeoLocation",
    "IncidentImage",
    "IncidentPayload",
    "Incident",
    "IncidentAck",
    "DeviceStatus",
    "DeviceInfo",
    "DeviceEntry",
]
