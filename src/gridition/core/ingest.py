"""Input ingestion helpers."""

from __future__ import annotations

import base64
import binascii
import logging
from io import BytesIO
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from gridition.core.errors import InvalidInput

logger = logging.getLogger(__name__)


def load_image(source: Union[str, Path, bytes]) -> Image.Image:
    """Decode the source image from a path, raw bytes or a ``data:`` URI.

    Text-only ``*.xbase64`` files (plain or ``data:`` prefixed base64) are
    decoded in memory, which keeps sample assets binary-free.
    """

    if isinstance(source, bytes):
        payload = source
        origin = "<bytes>"
    elif isinstance(source, str) and source.startswith("data:"):
        payload = decode_base64_text(source)
        origin = "<data uri>"
    else:
        path = Path(source)
        if not path.is_file():
            raise InvalidInput(f"Input not found: {path}")
        if path.suffix == ".xbase64":
            payload = decode_base64_text(path.read_text(encoding="utf-8"))
        else:
            payload = path.read_bytes()
        origin = str(path)

    try:
        image = Image.open(BytesIO(payload))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidInput(f"Cannot decode image {origin}: {exc}") from exc

    if image.width <= 0 or image.height <= 0:
        image.close()
        raise InvalidInput(f"Image {origin} has zero area")
    logger.info("Loaded %s (%dx%d, mode %s)", origin, image.width, image.height, image.mode)
    return image


def decode_base64_text(raw_text: str) -> bytes:
    """Decode base64 text, optionally wrapped in a ``data:<mime>;base64,`` header."""

    cleaned = "".join(raw_text.split())
    payload = cleaned
    if cleaned.startswith("data:") and "," in cleaned:
        _, payload = cleaned.split(",", 1)
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidInput(f"Invalid base64 image payload: {exc}") from exc
