"""
Device Models

Registry entries for connected field units.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict

from .incident import GeoLocation


class DeviceStatus(str, Enum):
    """Registry status of a field device"""
    ONLINE = "online"


class DeviceInfo(BaseModel):
    """
    Declared device attributes

    Known attributes are typed; additional keys sent by a device are kept
    as-is. Used both for registration (full replace) and heartbeat
    (overwrite-if-present).
    """
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    type: Optional[str] = None
    battery: Optional[Union[int, float]] = None
    location: Optional[GeoLocation] = None

    def present_fields(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        """Validated values for the keys actually present in `raw`"""
        dumped = self.model_dump()
        return {k: dumped[k] for k in raw if k in dumped}


@dataclass
class DeviceEntry:
    """Live registry entry (owned by DeviceRegistry, never broadcast)"""
    id: str
    info: Dict[str, Any]
    status: DeviceStatus
    last_seen: float
    connection_id: Optional[str] = None
    registered_at: float = field(default=0.0)

    def summary(self) -> Dict[str, Any]:
        """Stable field projection safe to serialize"""
        return {
            "id": self.id,
            "type": self.info.get("type"),
            "name": self.info.get("name"),
            "battery": self.info.get("battery"),
            "status": self.status.value,
            "lastSeen": int(self.last_seen * 1000),
            "location": self.info.get("location"),
        }
