"""
Route dependencies

Hub components live on `app.state` (one set per application instance) and
are handed to routes through these FastAPI dependencies.
"""

from fastapi import Request

from roadwatch.config import HubSettings
from roadwatch.devices.device_registry import DeviceRegistry
from roadwatch.incident.incident_store import IncidentStore
from roadwatch.services.ingestion import IncidentIngestionService


def get_settings(request: Request) -> HubSettings:
    return request.app.state.settings


def get_incident_store(request: Request) -> IncidentStore:
    return request.app.state.incident_store


def get_device_registry(request: Request) -> DeviceRegistry:
    return request.app.state.device_registry


def get_ingestion_service(request: Request) -> IncidentIngestionService:
    return request.app.state.ingestion
