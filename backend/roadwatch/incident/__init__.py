"""
Incident ingestion

Components:
- ImageStorage: Writes attached images under the incident image directory
- IncidentStore: Bounded, most-recent-first incident log
- compute_stats: Per-kind and per-severity counts

Usage:
    from roadwatch.incident import ImageStorage, IncidentStore

    store = IncidentStore(ImageStorage(image_dir), max_incidents=1000)
    result = await store.submit(payload)
"""

from roadwatch.incident.image_storage import (
    ImageStorage,
    decode_image_data,
    extension_for,
    safe_filename_stem,
)
from roadwatch.incident.incident_store import (
    IncidentStore,
    IngestionResult,
    iso_timestamp,
)
from roadwatch.incident.statistics import compute_stats, KIND_COUNTERS

__all__ = [
    'ImageStorage',
    'decode_image_data',
    'extension_for',
    'safe_filename_stem',
    'IncidentStore',
    'IngestionResult',
    'iso_timestamp',
    'compute_stats',
    'KIND_COUNTERS',
]
