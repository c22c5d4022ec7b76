"""Error taxonomy shared by the slicer, compositor and pipeline."""

from __future__ import annotations


class GriditionError(Exception):
    """Base class for every failure reported by the slicing core."""


class InvalidInput(GriditionError, ValueError):
    """Zero-area image, unsupported grid shape or an unusable parameter."""


class ShapeMismatch(GriditionError, ValueError):
    """Cell sequence does not match the requested grid shape."""


class RenderTargetUnavailable(GriditionError, RuntimeError):
    """No drawable surface could be allocated."""


class EncodeFailure(GriditionError, RuntimeError):
    """Raster to buffer serialization produced no usable output."""
