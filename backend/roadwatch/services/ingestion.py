"""
Incident Ingestion Service

The single path both the WebSocket `incident` frame and `POST /api/incidents`
go through: store the incident, then broadcast it once.
"""

from typing import Any, Dict, Union

from roadwatch.incident.incident_store import IncidentStore, IngestionResult
from roadwatch.models.incident import IncidentPayload
from roadwatch.websocket.emitter import WebSocketEmitter


class IncidentIngestionService:
    """
    Submit incidents and notify connected clients

    Duplicate submissions (same incident identity) are acknowledged but not
    broadcast again.
    """

    def __init__(self, store: IncidentStore, emitter: WebSocketEmitter):
        self.store = store
        self.emitter = emitter

        self.total_broadcasts = 0

    async def ingest(self, payload: Union[IncidentPayload, Dict[str, Any]], source: str = "ws") -> IngestionResult:
        """
        Args:
            payload: Incident payload
            source: "ws" or "http", used for logging only
        """
        result = await self.store.submit(payload)
        if result.duplicate:
            return result

        delivered = await self.emitter.emit_incident(result.incident)
        self.total_broadcasts += 1
        print(f"[INCIDENT] {result.incident.id} via {source} broadcast to {delivered} client(s)")
        return result
