# =============================================================================
# haccp_core/reports/images.py
# Fetch and re-encode traceability photos for embedding in PDFs
# =============================================================================

from __future__ import annotations
import base64
import binascii
import io
from typing import Optional

import requests
from PIL import Image, UnidentifiedImageError

from haccp_core.errors import ImageEmbedError
from haccp_core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FETCH_TIMEOUT = 10.0
JPEG_QUALITY = 85
# Photos are shown a few centimetres wide; larger ones are scaled down
MAX_EMBED_PIXELS = 1200


def decode_data_url(source: str) -> bytes:
    """Raw bytes of a `data:<mime>;base64,<payload>` URL."""
    header, _, payload = source.partition(",")
    if not header.startswith("data:") or not payload:
        raise ImageEmbedError("Malformed data URL", source=source)
    if ";base64" not in header:
        raise ImageEmbedError("Only base64 data URLs are supported", source=source)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageEmbedError(f"Invalid base64 payload: {e}", source=source)


def fetch_image_bytes(
    source: str,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> bytes:
    """Bytes behind a photo reference (data URL or http(s) URL)."""
    if source.startswith("data:"):
        return decode_data_url(source)

    if not source.startswith(("http://", "https://")):
        raise ImageEmbedError("Unsupported photo reference", source=source)

    getter = session.get if session is not None else requests.get
    try:
        response = getter(source, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ImageEmbedError(f"Could not download photo: {e}", source=source)
    return response.content


def to_jpeg(raw: bytes, max_pixels: int = MAX_EMBED_PIXELS) -> bytes:
    """Re-encode any Pillow-readable image as an RGB JPEG."""
    try:
        with Image.open(io.BytesIO(raw)) as image:
            image = image.convert("RGB")
            image.thumbnail((max_pixels, max_pixels))
            output = io.BytesIO()
            image.save(output, format="JPEG", quality=JPEG_QUALITY)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageEmbedError(f"Unreadable image: {e}")
    return output.getvalue()


def load_embeddable_image(
    source: str,
    timeout: float = DEFAULT_FETCH_TIMEOUT,
    session: Optional[requests.Session] = None,
) -> bytes:
    """
    JPEG bytes ready for the PDF.

    Raises:
        ImageEmbedError: fetch, decode or re-encode failed
    """
    raw = fetch_image_bytes(source, timeout=timeout, session=session)
    jpeg = to_jpeg(raw)
    logger.debug(f"Embedded photo ({len(raw)} -> {len(jpeg)} bytes)")
    return jpeg
