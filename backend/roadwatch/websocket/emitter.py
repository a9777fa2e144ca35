"""
WebSocket Event Emitter

This module provides the WebSocketEmitter class for sending real-time
updates to connected clients. All server→client frames are sent here.

Features:
- Serialize once, fan out to every matching connection
- Audience targeting (all connections vs viewer connections)
- Per-connection send failures are isolated and counted
"""

import asyncio
import time
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from roadwatch.errors import TransportError
from roadwatch.models.incident import Incident
from .connection import Connection
from .events import (
    AckData,
    DevicesUpdateData,
    ErrorData,
    IncidentBroadcastData,
    PongData,
    SyncData,
)


class Audience(str, Enum):
    """Who receives a broadcast"""
    ALL = "all"
    VIEWERS = "viewers"


class WebSocketEmitter:
    """
    Centralized WebSocket frame emitter (broadcast dispatcher)

    Tracks open connections and delivers frames to them. Delivery is
    best-effort: there is no acknowledgement-based retry.
    """

    def __init__(self):
        self._connections: Dict[str, Connection] = {}

        # Statistics
        self._emit_count = 0
        self._error_count = 0
        self._last_emit_time = 0.0

    # ============================================
    # Connection Tracking
    # ============================================

    def add_connection(self, connection: Connection):
        self._connections[connection.id] = connection

    def remove_connection(self, connection: Connection):
        self._connections.pop(connection.id, None)

    def get_connections(self, audience: Audience = Audience.ALL) -> List[Connection]:
        """Open connections matching an audience"""
        connections = [c for c in self._connections.values() if not c.closed]
        if audience == Audience.VIEWERS:
            return [c for c in connections if c.is_viewer]
        return connections

    # ============================================
    # Broadcasts
    # ============================================

    async def broadcast(self, data: BaseModel, audience: Audience = Audience.ALL) -> int:
        """
        Serialize `data` once and send it to every connection in `audience`

        Returns:
            Number of connections the frame was delivered to
        """
        text = data.model_dump_json()
        targets = self.get_connections(audience)
        if not targets:
            return 0

        results = await asyncio.gather(*(self._deliver(c, text) for c in targets))
        return sum(1 for delivered in results if delivered)

    async def emit_incident(self, incident: Incident) -> int:
        """Broadcast a new incident to every connection"""
        return await self.broadcast(IncidentBroadcastData(incident=incident.to_dict()), Audience.ALL)

    async def emit_devices_update(self, devices: List[Dict[str, Any]]) -> int:
        """Broadcast the device snapshot to viewer connections"""
        return await self.broadcast(DevicesUpdateData(devices=devices), Audience.VIEWERS)

    # ============================================
    # Direct Replies
    # ============================================

    async def send_sync(self, connection: Connection, incidents: List[Incident]) -> bool:
        """Send the full incident log to a newly opened connection"""
        return await self._send_to(connection, SyncData(incidents=[i.to_dict() for i in incidents]))

    async def send_devices_snapshot(self, connection: Connection, devices: List[Dict[str, Any]]) -> bool:
        return await self._send_to(connection, DevicesUpdateData(devices=devices))

    async def send_ack(self, connection: Connection, incident_id: str, duplicate: bool = False) -> bool:
        return await self._send_to(connection, AckData(incidentId=incident_id, duplicate=duplicate))

    async def send_pong(self, connection: Connection) -> bool:
        return await self._send_to(connection, PongData())

    async def send_error(self, connection: Connection, message: str) -> bool:
        return await self._send_to(connection, ErrorData(message=message))

    # ============================================
    # Internal Methods
    # ============================================

    async def _send_to(self, connection: Connection, data: BaseModel) -> bool:
        return await self._deliver(connection, data.model_dump_json())

    async def _deliver(self, connection: Connection, text: str) -> bool:
        """
        Internal send with error handling and statistics

        A failed send never propagates to the caller or other recipients.
        """
        try:
            await connection.send_text(text)
        except TransportError as e:
            self._error_count += 1
            print(f"[WS ERROR] Failed to send to {connection.id}: {e.message}")
            return False

        self._emit_count += 1
        self._last_emit_time = time.time()
        return True

    def get_stats(self) -> Dict[str, Any]:
        """Get emitter statistics"""
        return {
            "totalEmits": self._emit_count,
            "errorCount": self._error_count,
            "lastEmitTime": self._last_emit_time,
            "openConnections": len(self.get_connections()),
            "viewerConnections": len(self.get_connections(Audience.VIEWERS)),
        }
