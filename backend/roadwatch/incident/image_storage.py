"""
Incident Image Storage

Persists images attached to incident reports under a dedicated directory.
File names are derived from the incident identity, so two incidents never
write to the same file.
"""

import asyncio
import base64
import binascii
import hashlib
import re
from pathlib import Path

from roadwatch.errors import IngestionError
from roadwatch.models.incident import IncidentImage


_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_DATA_URI = re.compile(r"^data:[^;,]*(;base64)?,", re.IGNORECASE)


def extension_for(mime_type: str) -> str:
    """png for image/png, jpg for everything else"""
    return "png" if (mime_type or "").lower() == "image/png" else "jpg"


def safe_filename_stem(incident_id: str) -> str:
    """
    File name stem for an incident identity

    Identities that are not already filename-safe are sanitised and suffixed
    with a short digest of the raw id so distinct identities stay distinct.
    """
    stem = _UNSAFE_CHARS.sub("_", incident_id)
    if stem != incident_id or stem.startswith("."):
        digest = hashlib.sha1(incident_id.encode("utf-8")).hexdigest()[:8]
        stem = f"{stem.lstrip('.') or 'incident'}-{digest}"
    return stem


def decode_image_data(data: str) -> bytes:
    """
    Decode base64 image data, with or without a data-URI prefix

    Raises:
        IngestionError: data is empty or not valid base64
    """
    if not isinstance(data, str) or not data.strip():
        raise IngestionError("Image data is empty")

    encoded = _DATA_URI.sub("", data.strip(), count=1)
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise IngestionError(f"Image data is not valid base64: {e}")

    if not raw:
        raise IngestionError("Image data is empty")
    return raw


class ImageStorage:
    """
    Write incident images to disk

    Usage:
        storage = ImageStorage(Path("data/incident-images"), "/incident-images")
        path = await storage.save_async("INC-1", IncidentImage(type="image/png", data=...))
        # -> "/incident-images/INC-1.png"
    """

    def __init__(self, image_dir: Path, url_prefix: str = "/incident-images"):
        """
        Args:
            image_dir: Directory the images are written to
            url_prefix: Public prefix recorded in `Incident.imagePath`
        """
        self.image_dir = Path(image_dir)
        self.url_prefix = url_prefix.rstrip("/")

        self.total_saved = 0
        self.total_failed = 0

    def save(self, incident_id: str, image: IncidentImage) -> str:
        """
        Decode and write an image, returning its public relative path

        Raises:
            IngestionError: decoding or writing failed
        """
        try:
            raw = decode_image_data(image.data)
            filename = f"{safe_filename_stem(incident_id)}.{extension_for(image.type)}"

            self.image_dir.mkdir(parents=True, exist_ok=True)
            (self.image_dir / filename).write_bytes(raw)
        except IngestionError as e:
            self.total_failed += 1
            e.incident_id = incident_id
            raise
        except OSError as e:
            self.total_failed += 1
            raise IngestionError(f"Failed to write image: {e}", incident_id=incident_id)

        self.total_saved += 1
        return f"{self.url_prefix}/{filename}"

    async def save_async(self, incident_id: str, image: IncidentImage) -> str:
        """Run `save` off the event loop"""
        return await asyncio.to_thread(self.save, incident_id, image)

    def get_statistics(self) -> dict:
        return {
            "imageDir": str(self.image_dir),
            "saved": self.total_saved,
            "failed": self.total_failed,
        }
