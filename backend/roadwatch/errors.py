"""
Hub Error Taxonomy

ERROR CATEGORIES:
1. ProtocolError  - malformed or unparseable inbound frame.
                    Reply `error` to the sender, connection stays open.
2. IngestionError - incident image could not be decoded or written.
                    The textual incident is still recorded.
3. TransportError - send to one connection failed during a broadcast.
                    Isolated to that connection.

A heartbeat for an unknown device is not an error: only `register` creates
registry entries, so such heartbeats are ignored.
"""

from typing import Optional


class HubError(Exception):
    """Base class for hub errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProtocolError(HubError):
    """Inbound frame does not match any known frame type"""

    def __init__(self, message: str, frame_type: Optional[str] = None):
        super().__init__(message)
        self.frame_type = frame_type


class IngestionError(HubError):
    """Incident image could not be persisted"""

    def __init__(self, message: str, incident_id: Optional[str] = None):
        super().__init__(message)
        self.incident_id = incident_id


class TransportError(HubError):
    """Send to a single connection failed"""

    def __init__(self, message: str, connection_id: Optional[str] = None):
        super().__init__(message)
        self.connection_id = connection_id
