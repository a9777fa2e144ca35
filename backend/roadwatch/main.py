"""
RoadWatch Realtime Incident Hub
Main FastAPI Application Entry Point

This is the main entry point for the hub server.
It wires the incident store, device registry, WebSocket handlers and the
HTTP ingestion gateway into one FastAPI application.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, WebSocket
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from roadwatch import __version__
from roadwatch.api import device_router, incident_router
from roadwatch.api.middleware import BodySizeLimitMiddleware
from roadwatch.config import HubSettings
from roadwatch.devices import DeviceRegistry
from roadwatch.incident import ImageStorage, IncidentStore
from roadwatch.services import DeviceSweeper, IncidentIngestionService
from roadwatch.websocket import WebSocketEmitter, WebSocketHandlers


def create_app(settings: Optional[HubSettings] = None) -> FastAPI:
    """
    Build a hub application with its own store, registry and connections

    Args:
        settings: Hub settings (default: loaded from config files and env)
    """
    settings = settings or HubSettings.from_config()

    settings.image_dir.mkdir(parents=True, exist_ok=True)
    image_storage = ImageStorage(settings.image_dir, settings.image_url_prefix)
    store = IncidentStore(image_storage, max_incidents=settings.max_incidents)
    registry = DeviceRegistry()

    emitter = WebSocketEmitter()
    ingestion = IncidentIngestionService(store, emitter)
    handlers = WebSocketHandlers(emitter, store, registry, ingestion, settings)
    sweeper = DeviceSweeper(
        registry,
        emitter,
        interval=settings.sweep_interval_seconds,
        timeout=settings.device_timeout_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events - startup and shutdown"""
        print("=" * 60)
        print("[STARTUP] RoadWatch Realtime Incident Hub")
        print("=" * 60)

        await sweeper.start()

        print(f"[SERVER] Ready at http://{settings.host}:{settings.port}")
        print(f"[WS] WebSocket ready at ws://{settings.host}:{settings.port}{settings.ws_path}")
        print(f"[IMAGES] Incident images stored in {settings.image_dir}")
        print("=" * 60)

        yield

        print("[SHUTDOWN] Shutting down...")
        await sweeper.stop()
        print("[SHUTDOWN] Complete")

    app = FastAPI(
        title="RoadWatch Incident Hub API",
        description="Realtime road-hazard incident hub for field devices and monitors",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.incident_store = store
    app.state.device_registry = registry
    app.state.emitter = emitter
    app.state.ingestion = ingestion
    app.state.ws_handlers = handlers
    app.state.sweeper = sweeper
    app.state.started_at = time.time()

    # CORS Configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Body size bound (Content-Length and streamed bytes)
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)

    # ============================================
    # Error Handlers
    # ============================================

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = errors[0].get("msg", "invalid value") if errors else "invalid value"
        location = ".".join(str(p) for p in errors[0].get("loc", ())) if errors else ""
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": f"Invalid request: {location} {detail}".strip()},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        print(f"[ERROR] Unhandled error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error"},
        )

    # ============================================
    # Include API Routers
    # ============================================

    # Incident routes: /api/incidents, /api/stats
    app.include_router(incident_router)

    # Device routes: /api/devices
    app.include_router(device_router)

    # Stored incident images
    app.mount(
        settings.image_url_prefix,
        StaticFiles(directory=str(settings.image_dir)),
        name="incident-images",
    )

    # ============================================
    # WebSocket Endpoint
    # ============================================

    async def incidents_socket(websocket: WebSocket):
        await handlers.serve(websocket)

    app.add_api_websocket_route(settings.ws_path, incidents_socket, name="incidents_socket")

    # ============================================
    # Root Endpoints
    # ============================================

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint - API information"""
        return {
            "name": "RoadWatch Realtime Incident Hub",
            "version": __version__,
            "status": "operational",
            "documentation": "/docs",
            "websocket": settings.ws_path,
            "endpoints": {
                "incidents": "/api/incidents",
                "devices": "/api/devices",
                "stats": "/api/stats",
                "images": settings.image_url_prefix,
            },
        }

    @app.get("/health", tags=["health"])
    async def health_check():
        """Health check endpoint"""
        now = time.time()
        return {
            "status": "healthy",
            "timestamp": now,
            "uptime": now - app.state.started_at,
            "websocket": {
                "connected_clients": handlers.get_client_count(),
                "status": "ready",
            },
            "sweeper": sweeper.get_statistics(),
        }

    @app.get("/ws/stats", tags=["websocket"])
    async def websocket_stats():
        """Get WebSocket statistics"""
        return {
            "emitter": emitter.get_stats(),
            "clients": {
                "count": handlers.get_client_count(),
                "connected": list(handlers.get_connected_clients().values()),
            },
            "incidents": store.get_statistics(),
            "devices": registry.get_statistics(),
            "timestamp": time.time(),
        }

    return app


app = create_app()


def run():
    """Start the hub with uvicorn"""
    import uvicorn

    settings = app.state.settings
    uvicorn.run(
        "roadwatch.main:app",
        host=settings.host,
        port=settings.port,
        log_level="info",
    )


# ============================================
# Entry Point
# ============================================

if __name__ == "__main__":
    run()
