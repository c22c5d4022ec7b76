"""Pillow surface helpers: acquisition, flattening and PNG buffers."""

from __future__ import annotations

from contextlib import contextmanager
from io import BytesIO
from typing import Any, Iterator, Tuple

from PIL import Image, UnidentifiedImageError

from gridition.core.errors import EncodeFailure, InvalidInput, RenderTargetUnavailable

WHITE: Tuple[int, int, int] = (255, 255, 255)


def parse_color(value: Any) -> Tuple[int, int, int]:
    """Parse ``#RRGGBB`` / ``RRGGBB`` or an RGB triple."""
    if isinstance(value, (list, tuple)):
        if len(value) != 3:
            raise InvalidInput(f"Invalid colour: {value!r}")
        r, g, b = (int(channel) for channel in value)
    else:
        s = str(value).strip().lstrip("#")
        if len(s) != 6:
            raise InvalidInput(f"Invalid colour: {value!r}")
        try:
            r, g, b = int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16)
        except ValueError as exc:
            raise InvalidInput(f"Invalid colour: {value!r}") from exc
    if not all(0 <= channel <= 255 for channel in (r, g, b)):
        raise InvalidInput(f"Colour channel out of range: {value!r}")
    return r, g, b


def new_surface(size: Tuple[int, int], background: Tuple[int, int, int] = WHITE) -> Image.Image:
    """Allocate an opaque RGB canvas filled with ``background``."""
    width, height = size
    if width <= 0 or height <= 0:
        raise RenderTargetUnavailable(f"Cannot allocate a {width}x{height} surface")
    try:
        return Image.new("RGB", (width, height), color=background)
    except (ValueError, MemoryError) as exc:
        raise RenderTargetUnavailable(f"Cannot allocate a {width}x{height} surface: {exc}") from exc


@contextmanager
def surface(size: Tuple[int, int], background: Tuple[int, int, int] = WHITE) -> Iterator[Image.Image]:
    """Scoped :func:`new_surface`; the canvas is closed on every exit path."""
    canvas = new_surface(size, background)
    try:
        yield canvas
    finally:
        canvas.close()


def flatten(image: Image.Image, background: Tuple[int, int, int] = WHITE) -> Image.Image:
    """Return an RGB copy with any transparency composited onto ``background``."""
    has_alpha = image.mode in ("RGBA", "LA", "PA") or (
        image.mode == "P" and "transparency" in image.info
    )
    if not has_alpha:
        return image.convert("RGB")
    rgba = image.convert("RGBA")
    try:
        flat = Image.new("RGB", rgba.size, color=background)
        flat.paste(rgba, (0, 0), rgba)
    finally:
        rgba.close()
    return flat


def encode_png(image: Image.Image) -> bytes:
    """Serialize ``image`` as PNG; raise :class:`EncodeFailure` on empty output."""
    buffer = BytesIO()
    try:
        image.save(buffer, format="PNG")
    except (OSError, ValueError) as exc:
        raise EncodeFailure(f"PNG encoding failed: {exc}") from exc
    data = buffer.getvalue()
    if not data:
        raise EncodeFailure("PNG encoding produced no output")
    return data


def decode_png(data: bytes) -> Image.Image:
    """Decode an encoded buffer into a fully loaded image."""
    if not data:
        raise InvalidInput("Empty image buffer")
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidInput(f"Cannot decode image buffer: {exc}") from exc
    return image
