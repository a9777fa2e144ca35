"""
Hub services: the shared incident ingestion path and the device liveness
sweeper.
"""

from .ingestion import IncidentIngestionService
from .device_sweeper import DeviceSweeper

__all__ = [
    "IncidentIngestionService",
    "DeviceSweeper",
]
