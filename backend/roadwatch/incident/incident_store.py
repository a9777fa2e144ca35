"""
Incident Store

Bounded in-memory log of reported incidents, most recent first.

Features:
- Identity assignment (`INC-<epochMillis>`) for reports without one
- Receipt timestamping
- Optional image persistence (failures degrade the record, never drop it)
- Identity de-duplication (the same report may arrive over WebSocket and HTTP)
- Oldest-first eviction once the log exceeds its capacity
"""

import asyncio
import time
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional, Union

from roadwatch.errors import IngestionError
from roadwatch.models.incident import Incident, IncidentPayload
from .image_storage import ImageStorage


DEFAULT_MAX_INCIDENTS = 1000


def iso_timestamp(ts: float) -> str:
    """ISO-8601 UTC timestamp with millisecond precision"""
    dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class IngestionResult:
    """Outcome of a submission"""
    incident: Incident
    duplicate: bool = False
    image_error: Optional[str] = None

    @property
    def image_stored(self) -> bool:
        return self.incident.imagePath is not None


class IncidentStore:
    """
    Authoritative incident log

    Mutations complete without yielding to the event loop except for the
    image write. An identity is reserved in `_pending` for the duration of
    that write so a concurrent report with the same identity waits for it.

    Usage:
        store = IncidentStore(ImageStorage(image_dir))
        result = await store.submit({"type": "accident", "message": "..."})
        incidents = store.list()
    """

    def __init__(
        self,
        image_storage: Optional[ImageStorage] = None,
        max_incidents: int = DEFAULT_MAX_INCIDENTS,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            image_storage: Where attached images are written (None disables images)
            max_incidents: Retention cap
            clock: Time source (seconds since epoch)
        """
        self.image_storage = image_storage
        self.max_incidents = max_incidents
        self._clock = clock

        self._incidents: Deque[Incident] = deque()
        self._index: Dict[str, Incident] = {}
        self._pending: Dict[str, asyncio.Event] = {}

        self._last_generated_ms = 0
        self._same_ms_counter = 0

        # Statistics
        self.total_received = 0
        self.total_duplicates = 0
        self.total_evicted = 0
        self.total_image_failures = 0

    def _is_taken(self, incident_id: str) -> bool:
        return incident_id in self._index or incident_id in self._pending

    def _generate_id(self) -> str:
        """`INC-<epochMillis>`, suffixed `-<n>` until it is free"""
        millis = int(self._clock() * 1000)
        if millis == self._last_generated_ms:
            self._same_ms_counter += 1
        else:
            self._last_generated_ms = millis
            self._same_ms_counter = 0

        while True:
            if self._same_ms_counter:
                candidate = f"INC-{millis}-{self._same_ms_counter}"
            else:
                candidate = f"INC-{millis}"
            if not self._is_taken(candidate):
                return candidate
            self._same_ms_counter += 1

    async def submit(self, payload: Union[IncidentPayload, Dict[str, Any]]) -> IngestionResult:
        """
        Record an incident report

        Only reporter-supplied identities are de-duplicated; a generated
        identity never collides with a retained or in-flight one.

        Args:
            payload: Validated payload or a raw dict in the same shape

        Returns:
            IngestionResult with the retained (or already-known) incident
        """
        if not isinstance(payload, IncidentPayload):
            payload = IncidentPayload.model_validate(payload)

        if payload.incidentId:
            incident_id = payload.incidentId
            # Same identity still being written: wait for it, then treat as duplicate
            while incident_id in self._pending:
                await self._pending[incident_id].wait()

            existing = self._index.get(incident_id)
            if existing is not None:
                self.total_duplicates += 1
                print(f"[INCIDENT] Duplicate report ignored: {incident_id}")
                return IngestionResult(incident=existing, duplicate=True)
        else:
            incident_id = self._generate_id()

        reserved = asyncio.Event()
        self._pending[incident_id] = reserved
        try:
            image_path, image_error = await self._store_image(incident_id, payload)
            incident = self._record(incident_id, payload, image_path)
        finally:
            self._pending.pop(incident_id, None)
            reserved.set()

        print(f"[INCIDENT] Received {incident.id}: type={incident.type} severity={incident.severity}")
        return IngestionResult(incident=incident, image_error=image_error)

    async def _store_image(self, incident_id: str, payload: IncidentPayload):
        """Write the attached image; failures are logged and returned, never raised"""
        if payload.image is None:
            return None, None
        try:
            if self.image_storage is None:
                raise IngestionError("Image storage is not configured", incident_id=incident_id)
            return await self.image_storage.save_async(incident_id, payload.image), None
        except IngestionError as e:
            self.total_image_failures += 1
            print(f"[INCIDENT] Image not stored for {incident_id}: {e.message}")
            return None, e.message

    def _record(self, incident_id: str, payload: IncidentPayload, image_path: Optional[str]) -> Incident:
        received_at = iso_timestamp(self._clock())
        incident = Incident(
            id=incident_id,
            type=payload.type,
            message=payload.message,
            location=payload.location,
            timestamp=payload.timestamp or received_at,
            severity=payload.severity,
            receivedAt=received_at,
            imagePath=image_path,
        )

        self._incidents.appendleft(incident)
        self._index[incident_id] = incident
        self.total_received += 1
        self._trim()
        return incident

    def _trim(self):
        while len(self._incidents) > self.max_incidents:
            evicted = self._incidents.pop()
            self._index.pop(evicted.id, None)
            self.total_evicted += 1

    def list(self) -> List[Incident]:
        """Retained incidents, most recent first"""
        return list(self._incidents)

    def get(self, incident_id: str) -> Optional[Incident]:
        return self._index.get(incident_id)

    def __len__(self) -> int:
        return len(self._incidents)

    def get_statistics(self) -> Dict[str, Any]:
        """Get store statistics"""
        return {
            "retained": len(self._incidents),
            "maxIncidents": self.max_incidents,
            "totalReceived": self.total_received,
            "totalDuplicates": self.total_duplicates,
            "totalEvicted": self.total_evicted,
            "totalImageFailures": self.total_image_failures,
        }
