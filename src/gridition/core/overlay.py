"""Debug overlay marking the duplicated margin strips of each cell."""

from __future__ import annotations

from typing import List, Tuple

from PIL import Image, ImageDraw

from gridition.core.grid import Cell, CellSequence
from gridition.core.raster import decode_png, encode_png

LEFT_TINT: Tuple[int, int, int, int] = (255, 0, 0, 77)
RIGHT_TINT: Tuple[int, int, int, int] = (0, 0, 255, 77)


def mark_margins(cell: Cell) -> bytes:
    """PNG copy of ``cell`` with its left margin red and right margin blue."""
    with decode_png(cell.data) as decoded, decoded.convert("RGBA") as base:
        with Image.new("RGBA", base.size, (0, 0, 0, 0)) as tint:
            draw = ImageDraw.Draw(tint)
            if cell.left_margin:
                draw.rectangle((0, 0, cell.left_margin - 1, cell.height - 1), fill=LEFT_TINT)
            if cell.right_margin:
                draw.rectangle(
                    (cell.width - cell.right_margin, 0, cell.width - 1, cell.height - 1),
                    fill=RIGHT_TINT,
                )
            with Image.alpha_composite(base, tint) as marked, marked.convert("RGB") as flat:
                return encode_png(flat)


def overlay_cells(cells: CellSequence) -> List[bytes]:
    return [mark_margins(cell) for cell in cells]
