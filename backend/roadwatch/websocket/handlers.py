"""
WebSocket Client Frame Handlers

This module owns the per-connection lifecycle:

    open ──register(role admin/monitor)──▶ viewer
      │
      └───register(any other role)──────▶ field device
    any ──transport close──────────────▶ closed (field device released)

On open the full incident log is sent as a `sync` frame. Frames of one
connection are handled strictly in receipt order.
"""

import time
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from roadwatch.config import HubSettings
from roadwatch.devices.device_registry import DeviceRegistry
from roadwatch.errors import ProtocolError
from roadwatch.incident.incident_store import IncidentStore
from .connection import Connection, ConnectionRole
from .emitter import WebSocketEmitter
from .events import (
    ClientEvent,
    HeartbeatFrame,
    IncidentFrame,
    PingFrame,
    RegisterFrame,
    decode_frame,
)

if TYPE_CHECKING:
    from roadwatch.services.ingestion import IncidentIngestionService


class WebSocketHandlers:
    """
    Persistent-connection manager

    Classifies connections, routes inbound frames and releases field devices
    when their connection closes.
    """

    def __init__(self,
                 emitter: WebSocketEmitter,
                 store: IncidentStore,
                 registry: DeviceRegistry,
                 ingestion: 'IncidentIngestionService',
                 settings: Optional[HubSettings] = None):
        """
        Initialize handlers

        Args:
            emitter: WebSocket emitter instance
            store: Incident store (read for the initial sync)
            registry: Device registry
            ingestion: Shared incident ingestion path
            settings: Hub settings (viewer roles, heartbeat policy)
        """
        self.emitter = emitter
        self.store = store
        self.registry = registry
        self.ingestion = ingestion
        self.settings = settings or HubSettings()

        self._routes: Dict[str, Callable] = {
            ClientEvent.REGISTER.value: self.handle_register,
            ClientEvent.HEARTBEAT.value: self.handle_heartbeat,
            ClientEvent.INCIDENT.value: self.handle_incident,
            ClientEvent.PING.value: self.handle_ping,
        }

        # Statistics
        self.total_connections = 0
        self.total_protocol_errors = 0

    # ============================================
    # Connection Lifecycle
    # ============================================

    async def serve(self, websocket: WebSocket):
        """Run one connection from accept to close"""
        connection = await self.handle_connect(websocket)
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break

                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes")
                await self.handle_message(connection, raw)

        except WebSocketDisconnect:
            pass
        finally:
            await self.handle_disconnect(connection)

    async def handle_connect(self, websocket: WebSocket) -> Connection:
        """
        Accept a connection and send it the current incident log

        Args:
            websocket: Incoming WebSocket
        """
        await websocket.accept()

        client = websocket.client
        remote_addr = f"{client.host}:{client.port}" if client else "unknown"
        connection = Connection(websocket, remote_addr=remote_addr)

        self.emitter.add_connection(connection)
        self.total_connections += 1
        print(f"[WS] Client connected: {connection.id} from {remote_addr}")

        await self.emitter.send_sync(connection, self.store.list())
        return connection

    async def handle_disconnect(self, connection: Connection):
        """
        Forget a closed connection and release its field device

        Args:
            connection: The closed connection
        """
        connection.closed = True
        self.emitter.remove_connection(connection)

        duration = time.time() - connection.connected_at
        print(f"[WS] Client disconnected: {connection.id} ({connection.role.value}, {duration:.1f}s)")

        if connection.is_field and self._release_device(connection):
            await self.emitter.emit_devices_update(self.registry.snapshot())

    def _release_device(self, connection: Connection) -> bool:
        """Remove the device this connection still owns"""
        device_id = connection.device_id
        connection.device_id = None
        if not device_id:
            return False
        return self.registry.remove_if_owned(device_id, connection.id)

    # ============================================
    # Frame Routing
    # ============================================

    async def handle_message(self, connection: Connection, raw: Any):
        """
        Decode and route one inbound frame

        Malformed frames are answered with an `error` frame; the connection
        stays open.
        """
        connection.frames_received += 1
        try:
            frame = decode_frame(raw)
            await self._routes[frame.type](connection, frame)

        except ProtocolError as e:
            self.total_protocol_errors += 1
            print(f"[WS] Protocol error from {connection.id}: {e.message}")
            await self.emitter.send_error(connection, e.message)

        except Exception as e:
            print(f"[WS ERROR] Failed to handle frame from {connection.id}: {e}")
            await self.emitter.send_error(connection, "Internal error while handling frame")

    async def handle_register(self, connection: Connection, frame: RegisterFrame):
        """
        Classify the connection

        Role admin/monitor makes it a viewer; anything else registers a
        field device.
        """
        payload = frame.payload

        if self.settings.is_viewer_role(payload.role):
            released = self._release_device(connection)
            connection.role = ConnectionRole.VIEWER
            print(f"[WS] {connection.id} registered as viewer ({payload.role})")

            await self.emitter.send_devices_snapshot(connection, self.registry.snapshot())
            if released:
                await self.emitter.emit_devices_update(self.registry.snapshot())
            return

        if not payload.id:
            raise ProtocolError("Field device registration requires an 'id'", frame_type=frame.type)

        if connection.device_id and connection.device_id != payload.id:
            self._release_device(connection)

        try:
            self.registry.register(payload.id, payload.device_info(), connection_id=connection.id)
        except ValidationError as e:
            raise ProtocolError(f"Invalid device info: {e.errors()[0].get('msg', '')}", frame_type=frame.type)

        connection.role = ConnectionRole.FIELD
        connection.device_id = payload.id

        await self.emitter.emit_devices_update(self.registry.snapshot())

    async def handle_heartbeat(self, connection: Connection, frame: HeartbeatFrame):
        """Refresh a registered device; heartbeats for unknown ids are ignored"""
        device_id = frame.payload.id
        try:
            changed = self.registry.heartbeat(device_id, frame.payload.status_info())
        except ValidationError as e:
            raise ProtocolError(f"Invalid heartbeat: {e.errors()[0].get('msg', '')}", frame_type=frame.type)

        if device_id not in self.registry:
            return

        if changed or self.settings.broadcast_on_every_heartbeat:
            await self.emitter.emit_devices_update(self.registry.snapshot())

    async def handle_incident(self, connection: Connection, frame: IncidentFrame):
        """Store and broadcast an incident, then acknowledge the sender"""
        result = await self.ingestion.ingest(frame.payload, source="ws")
        await self.emitter.send_ack(connection, result.incident.id, duplicate=result.duplicate)

    async def handle_ping(self, connection: Connection, frame: PingFrame):
        await self.emitter.send_pong(connection)

    # ============================================
    # Utility Methods
    # ============================================

    def get_connected_clients(self) -> Dict[str, Dict[str, Any]]:
        """Get all connected clients"""
        return {c.id: c.to_dict() for c in self.emitter.get_connections()}

    def get_client_count(self) -> int:
        """Get number of connected clients"""
        return len(self.emitter.get_connections())
