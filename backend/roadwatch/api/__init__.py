"""
API Routes Package

This module exports all FastAPI routers for the incident hub.
"""

from .incident_routes import router as incident_router
from .device_routes import router as device_router

__all__ = [
    "incident_router",
    "device_router",
]
