"""
WebSocket Package

Real-time communication for the incident hub over plain WebSocket JSON
frames.

Components:
- events: Frame type definitions and decoding
- connection: Per-connection bookkeeping
- emitter: Server→Client frame emission and broadcast
- handlers: Connection lifecycle and Client→Server frame routing

Usage:
    from roadwatch.websocket import WebSocketEmitter, WebSocketHandlers

    emitter = WebSocketEmitter()
    handlers = WebSocketHandlers(emitter, store, registry, ingestion, settings)
"""

from .events import ServerEvent, ClientEvent, decode_frame
from .connection import Connection, ConnectionRole
from .emitter import Audience, WebSocketEmitter
from .handlers import WebSocketHandlers

__all__ = [
    "ServerEvent",
    "ClientEvent",
    "decode_frame",
    "Connection",
    "ConnectionRole",
    "Audience",
    "WebSocketEmitter",
    "WebSocketHandlers",
]
