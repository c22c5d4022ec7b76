"""Rebuild the feed appearance from sliced cells.

Each cell loses its leading margin and is drawn at ``col * base_width``; the
next cell to the right then covers the trailing margin.  What remains is what
the feed shows once its own gutter hides the duplicated pixels.
"""

from __future__ import annotations

import logging
from typing import Any, List, Sequence, Tuple, Union

from PIL import Image

from gridition.core.errors import InvalidInput, ShapeMismatch
from gridition.core.grid import COLS, Cell, GridShape, grid_position
from gridition.core.raster import WHITE, decode_png, encode_png, new_surface
from gridition.core.slicer import DEFAULT_MARGIN_PX, expected_cell_width, margins_for_column

logger = logging.getLogger(__name__)

CellLike = Union[Cell, bytes]


def _check_order(cells: Sequence[CellLike]) -> None:
    for index, cell in enumerate(cells):
        if isinstance(cell, Cell) and (cell.row, cell.col) != grid_position(index):
            raise ShapeMismatch(
                f"Cell at position {index} is row {cell.row}, col {cell.col}; "
                f"expected row-major order"
            )


def _check_sizes(images: List[Image.Image], margin: int) -> Tuple[int, int]:
    """Validate widths/heights and return the base cell size."""
    base_w = images[0].width - margin
    base_h = images[0].height
    if base_w <= 0:
        raise ShapeMismatch(f"Cell width {images[0].width} leaves no room for margin {margin}")
    for index, image in enumerate(images):
        _, col = grid_position(index)
        expected = expected_cell_width(base_w, col, margin)
        if image.width != expected:
            raise ShapeMismatch(f"Cell {index} is {image.width} px wide, expected {expected}")
        if image.height != base_h:
            raise ShapeMismatch(f"Cell {index} is {image.height} px tall, expected {base_h}")
    return base_w, base_h


def composite(
    cells: Sequence[CellLike],
    shape: Any,
    margin: int = DEFAULT_MARGIN_PX,
    background: Tuple[int, int, int] = WHITE,
) -> Image.Image:
    """Compose cells into one preview raster; the caller owns the result."""
    grid = GridShape.parse(shape)
    if margin < 0:
        raise InvalidInput(f"Margin must be >= 0, got {margin}")
    if len(cells) != grid.cell_count:
        raise ShapeMismatch(
            f"Grid {grid.value} needs {grid.cell_count} cells, got {len(cells)}"
        )
    _check_order(cells)

    images: List[Image.Image] = []
    try:
        for cell in cells:
            images.append(decode_png(cell.data if isinstance(cell, Cell) else cell))
        base_w, base_h = _check_sizes(images, margin)

        canvas = new_surface((base_w * COLS, base_h * grid.rows), background)
        try:
            # Row-major paste order: a cell's trailing margin is overdrawn by its right neighbour.
            for index, image in enumerate(images):
                row, col = grid_position(index)
                left_m, _ = margins_for_column(col, margin)
                region = image.crop((left_m, 0, image.width, base_h))
                try:
                    canvas.paste(region, (col * base_w, row * base_h))
                finally:
                    region.close()
        except Exception:
            canvas.close()
            raise
    finally:
        for image in images:
            image.close()

    logger.info("Composited %d cells into %dx%d preview", len(cells), canvas.width, canvas.height)
    return canvas


def render_preview(
    cells: Sequence[CellLike],
    shape: Any,
    margin: int = DEFAULT_MARGIN_PX,
    background: Tuple[int, int, int] = WHITE,
) -> bytes:
    """Encoded PNG preview buffer."""
    canvas = composite(cells, shape, margin, background)
    try:
        return encode_png(canvas)
    finally:
        canvas.close()
