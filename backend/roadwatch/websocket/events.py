"""
WebSocket Frame Definitions

Every frame is a JSON object with a `type` discriminator.

Client → Server (`{type, payload}`):
- register   : classify the connection (viewer or field device)
- heartbeat  : field device status update
- incident   : incident report
- ping       : liveness probe

Server → Client (flat `{type, ...}`):
- sync            : full incident log, sent once on connect
- incident        : new incident, broadcast to every connection
- ack             : incident accepted, sender only
- devices_update  : device snapshot, viewer connections only
- pong            : reply to ping, sender only
- error           : rejected frame, sender only
"""

import json
import time
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from roadwatch.errors import ProtocolError
from roadwatch.models.incident import IncidentPayload


# ============================================
# Event Name Constants
# ============================================

class ServerEvent(str, Enum):
    """Frames sent from server to client"""
    SYNC = "sync"
    INCIDENT = "incident"
    ACK = "ack"
    DEVICES_UPDATE = "devices_update"
    PONG = "pong"
    ERROR = "error"


class ClientEvent(str, Enum):
    """Frames received from client"""
    REGISTER = "register"
    HEARTBEAT = "heartbeat"
    INCIDENT = "incident"
    PING = "ping"


# ============================================
# Client → Server Frames
# ============================================

class RegisterPayload(BaseModel):
    """Registration: `role` decides viewer vs field, the rest is device info"""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    role: Optional[str] = None

    def device_info(self) -> Dict[str, Any]:
        return {k: v for k, v in self.model_dump().items() if k not in ("id", "role")}


class HeartbeatPayload(BaseModel):
    """Heartbeat: device id plus the attributes that changed"""
    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)

    def status_info(self) -> Dict[str, Any]:
        return {k: v for k, v in self.model_dump().items() if k != "id"}


class RegisterFrame(BaseModel):
    type: Literal["register"]
    payload: RegisterPayload


class HeartbeatFrame(BaseModel):
    type: Literal["heartbeat"]
    payload: HeartbeatPayload


class IncidentFrame(BaseModel):
    type: Literal["incident"]
    payload: IncidentPayload


class PingFrame(BaseModel):
    type: Literal["ping"]
    payload: Dict[str, Any] = Field(default_factory=dict)


InboundFrame = Annotated[
    Union[RegisterFrame, HeartbeatFrame, IncidentFrame, PingFrame],
    Field(discriminator="type"),
]

_inbound_adapter = TypeAdapter(InboundFrame)


def decode_frame(raw: Union[str, bytes]) -> Union[RegisterFrame, HeartbeatFrame, IncidentFrame, PingFrame]:
    """
    Decode one inbound frame

    A frame without a `payload` key uses its remaining top-level keys as
    the payload.

    Raises:
        ProtocolError: not JSON, not an object, unknown type or invalid payload
    """
    if raw is None:
        raise ProtocolError("Empty frame")

    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise ProtocolError("Frame is not valid UTF-8")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        raise ProtocolError("Frame is not valid JSON")

    if not isinstance(data, dict):
        raise ProtocolError("Frame must be a JSON object")

    frame_type = data.get("type")
    if not isinstance(frame_type, str):
        raise ProtocolError("Frame is missing a 'type'")
    if frame_type not in {e.value for e in ClientEvent}:
        raise ProtocolError(f"Unknown frame type: {frame_type}", frame_type=frame_type)

    if "payload" not in data:
        data = {"type": frame_type, "payload": {k: v for k, v in data.items() if k != "type"}}

    try:
        return _inbound_adapter.validate_python(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != frame_type)
        raise ProtocolError(f"Invalid '{frame_type}' frame: {location} {first.get('msg', '')}".strip(),
                            frame_type=frame_type)


# ============================================
# Server → Client Frames
# ============================================

class SyncData(BaseModel):
    type: Literal["sync"] = "sync"
    incidents: List[Dict[str, Any]]


class IncidentBroadcastData(BaseModel):
    type: Literal["incident"] = "incident"
    incident: Dict[str, Any]


class AckData(BaseModel):
    type: Literal["ack"] = "ack"
    incidentId: str
    duplicate: bool = False


class DevicesUpdateData(BaseModel):
    type: Literal["devices_update"] = "devices_update"
    devices: List[Dict[str, Any]]


class PongData(BaseModel):
    type: Literal["pong"] = "pong"
    ts: int = Field(default_factory=lambda: int(time.time() * 1000))


class ErrorData(BaseModel):
    type: Literal["error"] = "error"
    message: str
