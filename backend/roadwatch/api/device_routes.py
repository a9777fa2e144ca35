"""
Device Routes

Endpoints:
- GET /api/devices - Snapshot of online field devices
"""

from fastapi import APIRouter, Depends

from roadwatch.devices.device_registry import DeviceRegistry
from .dependencies import get_device_registry

router = APIRouter(prefix="/api", tags=["devices"])


@router.get("/devices")
async def list_devices(registry: DeviceRegistry = Depends(get_device_registry)):
    """Get all online field devices"""
    return {
        "success": True,
        "devices": registry.snapshot(),
    }
