"""
WebSocket Connection

Wraps one accepted WebSocket with the hub's bookkeeping: role, owned device
and connection metadata.
"""

import time
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import WebSocket

from roadwatch.errors import TransportError


class ConnectionRole(str, Enum):
    """Role decided by the first `register` frame"""
    UNCLASSIFIED = "unclassified"
    VIEWER = "viewer"
    FIELD = "field"


class Connection:
    """
    One open bidirectional channel

    Field connections remember the device id they registered so the device
    can be released when the channel closes.
    """

    def __init__(self, websocket: WebSocket, connection_id: Optional[str] = None, remote_addr: str = "unknown"):
        self.websocket = websocket
        self.id = connection_id or f"conn-{uuid.uuid4().hex[:12]}"
        self.remote_addr = remote_addr

        self.role = ConnectionRole.UNCLASSIFIED
        self.device_id: Optional[str] = None
        self.connected_at = time.time()
        self.closed = False

        self.frames_received = 0
        self.frames_sent = 0

    @property
    def is_viewer(self) -> bool:
        return self.role == ConnectionRole.VIEWER

    @property
    def is_field(self) -> bool:
        return self.role == ConnectionRole.FIELD

    async def send_text(self, text: str):
        """
        Send one serialized frame

        Raises:
            TransportError: the connection is closed or the send failed
        """
        if self.closed:
            raise TransportError("Connection is closed", connection_id=self.id)
        try:
            await self.websocket.send_text(text)
        except Exception as e:
            raise TransportError(f"Send failed: {e}", connection_id=self.id) from e
        self.frames_sent += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "deviceId": self.device_id,
            "remoteAddr": self.remote_addr,
            "connectedAt": self.connected_at,
            "framesReceived": self.frames_received,
            "framesSent": self.frames_sent,
        }
