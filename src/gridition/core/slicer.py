"""Split an image into feed cells with horizontal overlap margins.

The destination feed draws a fixed gutter between neighbouring posts, so each
cell carries ``margin`` extra pixels borrowed from its neighbour on every
interior side.  Edge columns get the margin on one side only; no vertical
margin is added because the gutter only repeats across a row.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from PIL import Image

from gridition.core.errors import InvalidInput
from gridition.core.grid import COLS, Cell, CellSequence, GridShape, parse_ratio
from gridition.core.raster import WHITE, encode_png, flatten, surface

logger = logging.getLogger(__name__)

DEFAULT_MARGIN_PX = 16

Box = Tuple[int, int, int, int]


@dataclass(frozen=True)
class SliceSettings:
    """Slicing strategy: overlap margin, optional crop ratio, fill colour."""

    margin: int = DEFAULT_MARGIN_PX
    crop_ratio: Optional[Tuple[int, int]] = None
    background: Tuple[int, int, int] = WHITE
    workers: int = 1

    def __post_init__(self) -> None:
        if isinstance(self.margin, bool) or not isinstance(self.margin, int):
            raise InvalidInput(f"Margin must be an integer pixel count: {self.margin!r}")
        if self.margin < 0:
            raise InvalidInput(f"Margin must be >= 0, got {self.margin}")
        if self.workers < 1:
            raise InvalidInput(f"Workers must be >= 1, got {self.workers}")
        if self.crop_ratio is not None:
            object.__setattr__(self, "crop_ratio", parse_ratio(self.crop_ratio))


@dataclass(frozen=True)
class CellGeometry:
    index: int
    row: int
    col: int
    left_margin: int
    right_margin: int
    source_box: Box

    @property
    def size(self) -> Tuple[int, int]:
        left, upper, right, lower = self.source_box
        return right - left, lower - upper


def margins_for_column(col: int, margin: int) -> Tuple[int, int]:
    """Left and right margin for a column; edge columns lose their outer side."""
    left = margin if col > 0 else 0
    right = margin if col < COLS - 1 else 0
    return left, right


def expected_cell_width(base_width: int, col: int, margin: int) -> int:
    left, right = margins_for_column(col, margin)
    return base_width + left + right


def base_cell_size(width: int, height: int, shape: GridShape) -> Tuple[int, int]:
    if width <= 0 or height <= 0:
        raise InvalidInput(f"Image has zero area: {width}x{height}")
    base_w = width // COLS
    base_h = height // shape.rows
    if base_w == 0 or base_h == 0:
        raise InvalidInput(
            f"Image {width}x{height} is too small for a {shape.value} grid"
        )
    return base_w, base_h


def plan_cells(width: int, height: int, shape: GridShape, margin: int) -> List[CellGeometry]:
    """Source rectangles for every cell in row-major order (unclamped)."""
    base_w, base_h = base_cell_size(width, height, shape)
    plan: List[CellGeometry] = []
    for row in range(shape.rows):
        for col in range(COLS):
            left_m, right_m = margins_for_column(col, margin)
            x0 = col * base_w - left_m
            y0 = row * base_h
            box = (x0, y0, x0 + base_w + left_m + right_m, y0 + base_h)
            plan.append(
                CellGeometry(
                    index=row * COLS + col,
                    row=row,
                    col=col,
                    left_margin=left_m,
                    right_margin=right_m,
                    source_box=box,
                )
            )
    return plan


def clamp_box(box: Box, width: int, height: int) -> Box:
    left, upper, right, lower = box
    return max(left, 0), max(upper, 0), min(right, width), min(lower, height)


def crop_to_ratio(image: Image.Image, shape: GridShape, ratio: Tuple[int, int]) -> Image.Image:
    """Centre-crop so each base cell of ``shape`` has the ``ratio`` aspect."""
    rw, rh = ratio
    target = (COLS * rw) / (shape.rows * rh)
    w, h = image.size
    if w / h > target:
        new_w = max(1, int(round(h * target)))
        left = (w - new_w) // 2
        box = (left, 0, left + new_w, h)
    else:
        new_h = max(1, int(round(w / target)))
        upper = (h - new_h) // 2
        box = (0, upper, w, upper + new_h)
    logger.info(
        "Cropping source %dx%d to %dx%d for %d:%d cells",
        w,
        h,
        box[2] - box[0],
        box[3] - box[1],
        rw,
        rh,
    )
    return image.crop(box)


def render_cell(source: Image.Image, geometry: CellGeometry, background: Tuple[int, int, int] = WHITE) -> Cell:
    """Draw one cell, filling any area outside the source with ``background``."""
    left, upper, right, lower = geometry.source_box
    clamped = clamp_box(geometry.source_box, source.width, source.height)
    with surface(geometry.size, background) as canvas:
        if clamped[2] > clamped[0] and clamped[3] > clamped[1]:
            region = source.crop(clamped)
            try:
                canvas.paste(region, (clamped[0] - left, clamped[1] - upper))
            finally:
                region.close()
        if clamped != geometry.source_box:
            logger.debug("Cell %d read clamped to %s", geometry.index, clamped)
        data = encode_png(canvas)
        width, height = canvas.size
    logger.debug(
        "Cell %d (row %d, col %d): source %s -> %dx%d",
        geometry.index,
        geometry.row,
        geometry.col,
        geometry.source_box,
        width,
        height,
    )
    return Cell(
        index=geometry.index,
        row=geometry.row,
        col=geometry.col,
        width=width,
        height=height,
        left_margin=geometry.left_margin,
        right_margin=geometry.right_margin,
        data=data,
    )


def prepare_source(image: Image.Image, shape: GridShape, settings: SliceSettings) -> Image.Image:
    """Flattened (and optionally cropped) copy of ``image``; the input is untouched."""
    if image.width <= 0 or image.height <= 0:
        raise InvalidInput(f"Image has zero area: {image.width}x{image.height}")
    source = flatten(image, settings.background)
    if settings.crop_ratio is None:
        return source
    try:
        return crop_to_ratio(source, shape, settings.crop_ratio)
    finally:
        source.close()


def slice_image(image: Image.Image, shape: Any, settings: Optional[SliceSettings] = None) -> CellSequence:
    """Slice ``image`` into ``rows * 3`` cells in upload (row-major) order."""
    grid = GridShape.parse(shape)
    settings = settings or SliceSettings()
    source = prepare_source(image, grid, settings)
    try:
        plan = plan_cells(source.width, source.height, grid, settings.margin)
        logger.info(
            "Slicing %dx%d image into %s grid (margin %d px, %d cells)",
            source.width,
            source.height,
            grid.value,
            settings.margin,
            len(plan),
        )
        if settings.workers > 1:
            with ThreadPoolExecutor(max_workers=min(settings.workers, len(plan))) as pool:
                cells = list(pool.map(lambda g: render_cell(source, g, settings.background), plan))
        else:
            cells = [render_cell(source, geometry, settings.background) for geometry in plan]
    finally:
        source.close()
    return CellSequence(grid, cells)
