"""
Incident Models

Reported road hazards and the payload shape shared by the WebSocket
`incident` frame and `POST /api/incidents`.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class GeoLocation(BaseModel):
    """Latitude/longitude pair reported by a field device"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    latitude: float
    longitude: float


class IncidentImage(BaseModel):
    """Image attached to an incident report (base64 or data URI)"""
    type: str = "image/jpeg"
    data: str


class IncidentPayload(BaseModel):
    """
    Incident report as sent by a field device

    Kind and severity are reporter-supplied and treated as opaque strings.
    """
    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "incidentId": "INC-1718000000000",
                "type": "accident",
                "message": "Collision detected ahead",
                "location": {"latitude": 24.7136, "longitude": 46.6753},
                "timestamp": "2024-06-10T08:00:00.000Z",
                "severity": "critical",
            }
        },
    )

    incidentId: Optional[str] = None
    type: Optional[str] = None
    message: Optional[str] = None
    location: Optional[GeoLocation] = None
    timestamp: Optional[str] = None
    severity: Optional[str] = None
    image: Optional[IncidentImage] = None


class Incident(BaseModel):
    """
    Retained incident record

    Created once at ingestion and never mutated. `imagePath` references the
    stored image, never the binary.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    type: Optional[str] = None
    message: Optional[str] = None
    location: Optional[GeoLocation] = None
    timestamp: str
    severity: Optional[str] = None
    receivedAt: str
    imagePath: Optional[str] = None

    def to_dict(self) -> dict:
        """Serialization-safe projection (absent fields are omitted)"""
        return self.model_dump(exclude_none=True)


class IncidentAck(BaseModel):
    """Response to an HTTP incident submission"""
    success: bool = True
    alertId: str
    message: str
    duplicate: bool = False
    imageStored: Optional[bool] = None
