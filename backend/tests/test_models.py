"""
Model and Frame Tests

This module tests:
- Incident / device model validation
- Inbound frame decoding
- Outbound frame shapes
"""

import json

import pytest
from pydantic import ValidationError

from roadwatch.errors import ProtocolError
from roadwatch.models import DeviceInfo, Incident, IncidentPayload
from roadwatch.websocket.events import (
    AckData,
    ClientEvent,
    DevicesUpdateData,
    ErrorData,
    HeartbeatFrame,
    IncidentFrame,
    PingFrame,
    PongData,
    RegisterFrame,
    ServerEvent,
    SyncData,
    decode_frame,
)


# ============================================
# Event Name Tests
# ============================================

class TestEventNames:
    """Frame type values are part of the wire protocol"""

    def test_server_events(self):
        assert ServerEvent.SYNC.value == "sync"
        assert ServerEvent.INCIDENT.value == "incident"
        assert ServerEvent.ACK.value == "ack"
        assert ServerEvent.DEVICES_UPDATE.value == "devices_update"
        assert ServerEvent.PONG.value == "pong"
        assert ServerEvent.ERROR.value == "error"

    def test_client_events(self):
        assert {e.value for e in ClientEvent} == {"register", "heartbeat", "incident", "ping"}


# ============================================
# Model Tests
# ============================================

class TestIncidentModels:
    """Test incident model validation"""

    def test_payload_all_optional(self):
        payload = IncidentPayload()
        assert payload.incidentId is None
        assert payload.image is None

    def test_payload_rejects_bad_location(self):
        with pytest.raises(ValidationError):
            IncidentPayload(location="Riyadh")

    def test_payload_ignores_unknown_fields(self):
        payload = IncidentPayload.model_validate({"type": "fire", "speed": 80})
        assert payload.type == "fire"
        assert not hasattr(payload, "speed")

    def test_incident_is_immutable(self):
        incident = Incident(id="INC-1", timestamp="t", receivedAt="t")
        with pytest.raises(ValidationError):
            incident.message = "changed"

    def test_incident_to_dict_omits_absent_fields(self):
        incident = Incident(id="INC-1", type="fire", timestamp="t1", receivedAt="t2")
        assert incident.to_dict() == {
            "id": "INC-1",
            "type": "fire",
            "timestamp": "t1",
            "receivedAt": "t2",
        }


class TestDeviceInfo:
    """Test typed partial updates"""

    def test_present_fields_only(self):
        raw = {"battery": 40}
        assert DeviceInfo.model_validate(raw).present_fields(raw) == {"battery": 40}

    def test_location_validated(self):
        raw = {"location": {"latitude": "24.5", "longitude": 46}}
        info = DeviceInfo.model_validate(raw).present_fields(raw)
        assert info["location"] == {"latitude": 24.5, "longitude": 46.0}

    def test_null_location_allowed(self):
        raw = {"location": None}
        assert DeviceInfo.model_validate(raw).present_fields(raw) == {"location": None}


# ============================================
# Inbound Frame Tests
# ============================================

class TestDecodeFrame:
    """Test inbound frame decoding"""

    def test_register_frame(self):
        frame = decode_frame(json.dumps({
            "type": "register",
            "payload": {"id": "UNIT-1234", "type": "mobile", "name": "Patrol", "battery": 100},
        }))

        assert isinstance(frame, RegisterFrame)
        assert frame.payload.id == "UNIT-1234"
        assert frame.payload.role is None
        assert frame.payload.device_info() == {"type": "mobile", "name": "Patrol", "battery": 100}

    def test_register_viewer_without_id(self):
        frame = decode_frame('{"type": "register", "payload": {"role": "admin"}}')

        assert frame.payload.role == "admin"
        assert frame.payload.id is None

    def test_heartbeat_frame(self):
        frame = decode_frame('{"type": "heartbeat", "payload": {"id": "UNIT-1", "battery": 85, "location": null}}')

        assert isinstance(frame, HeartbeatFrame)
        assert frame.payload.status_info() == {"battery": 85, "location": None}

    def test_heartbeat_requires_id(self):
        with pytest.raises(ProtocolError) as exc_info:
            decode_frame('{"type": "heartbeat", "payload": {"battery": 85}}')

        assert exc_info.value.frame_type == "heartbeat"

    def test_incident_frame(self):
        frame = decode_frame(json.dumps({
            "type": "incident",
            "payload": {"incidentId": "TEST-1", "type": "accident", "severity": "critical"},
        }))

        assert isinstance(frame, IncidentFrame)
        assert frame.payload.incidentId == "TEST-1"
        assert frame.payload.type == "accident"

    def test_ping_without_payload(self):
        assert isinstance(decode_frame('{"type": "ping"}'), PingFrame)

    def test_frame_without_payload_uses_top_level_keys(self):
        frame = decode_frame('{"type": "heartbeat", "id": "UNIT-1", "battery": 50}')

        assert frame.payload.id == "UNIT-1"
        assert frame.payload.status_info() == {"battery": 50}

    def test_bytes_frame(self):
        assert isinstance(decode_frame(b'{"type": "ping"}'), PingFrame)

    @pytest.mark.parametrize("raw", [
        "not json",
        "[1, 2, 3]",
        '{"payload": {}}',
        '{"type": 5}',
        '{"type": "subscribe"}',
        '{"type": "incident", "payload": {"location": "nowhere"}}',
        '{"type": "register", "payload": null}',
        b"\xff\xfe",
        None,
    ])
    def test_malformed_frames(self, raw):
        with pytest.raises(ProtocolError):
            decode_frame(raw)


# ============================================
# Outbound Frame Tests
# ============================================

class TestOutboundFrames:
    """Outbound frames are flat objects with a type"""

    def test_sync(self):
        assert SyncData(incidents=[]).model_dump() == {"type": "sync", "incidents": []}

    def test_ack(self):
        assert AckData(incidentId="INC-1").model_dump() == {"type": "ack", "incidentId": "INC-1", "duplicate": False}

    def test_devices_update(self):
        data = DevicesUpdateData(devices=[{"id": "d1"}]).model_dump()
        assert data["type"] == "devices_update"
        assert data["devices"] == [{"id": "d1"}]

    def test_pong_has_server_time(self):
        data = PongData().model_dump()
        assert data["type"] == "pong"
        assert isinstance(data["ts"], int)
        assert data["ts"] > 0

    def test_error(self):
        assert ErrorData(message="bad").model_dump() == {"type": "error", "message": "bad"}
