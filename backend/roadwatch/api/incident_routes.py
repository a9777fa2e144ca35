"""
Incident Routes - HTTP ingestion gateway

Endpoints:
- POST /api/incidents - Submit an incident (same payload as the WebSocket frame)
- GET /api/incidents - List retained incidents, most recent first
- GET /api/incidents/{id} - Get one incident
- GET /api/stats - Counts by kind and severity
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from roadwatch.config import HubSettings
from roadwatch.devices.device_registry import DeviceRegistry
from roadwatch.incident.incident_store import IncidentStore
from roadwatch.incident.statistics import compute_stats
from roadwatch.models.incident import IncidentAck, IncidentPayload
from roadwatch.services.ingestion import IncidentIngestionService
from .dependencies import (
    get_device_registry,
    get_incident_store,
    get_ingestion_service,
    get_settings,
)

router = APIRouter(prefix="/api", tags=["incidents"])


@router.post("/incidents", response_model=IncidentAck, response_model_exclude_none=True)
async def submit_incident(
    payload: IncidentPayload,
    ingestion: IncidentIngestionService = Depends(get_ingestion_service),
    settings: HubSettings = Depends(get_settings),
):
    """
    Submit an incident report

    The report is recorded even if its image cannot be stored; the response
    reports that through `imageStored`.
    """
    try:
        result = await ingestion.ingest(payload, source="http")
    except Exception as e:
        print(f"[INCIDENT] Error receiving incident: {e}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": settings.incident_failed_message},
        )

    return IncidentAck(
        success=True,
        alertId=result.incident.id,
        message=settings.incident_received_message,
        duplicate=result.duplicate,
        imageStored=result.image_stored if payload.image is not None else None,
    )


@router.get("/incidents")
async def list_incidents(store: IncidentStore = Depends(get_incident_store)):
    """Get all retained incidents"""
    incidents = store.list()
    return {
        "success": True,
        "count": len(incidents),
        "incidents": [i.to_dict() for i in incidents],
    }


@router.get("/incidents/{incident_id}")
async def get_incident(incident_id: str, store: IncidentStore = Depends(get_incident_store)):
    """Get a single incident by identity"""
    incident = store.get(incident_id)
    if incident is None:
        return JSONResponse(
            status_code=404,
            content={"success": False, "error": f"Incident {incident_id} not found"},
        )
    return {"success": True, "incident": incident.to_dict()}


@router.get("/stats")
async def get_stats(
    store: IncidentStore = Depends(get_incident_store),
    registry: DeviceRegistry = Depends(get_device_registry),
):
    """Incident counts by kind and severity, plus the number of online devices"""
    return {
        "success": True,
        "stats": compute_stats(store.list(), registry.snapshot()),
    }
