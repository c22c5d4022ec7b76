"""ZIP packaging helper."""

from __future__ import annotations

from pathlib import Path
from typing import List
from zipfile import ZIP_DEFLATED, ZipFile

from gridition.core.grid import CellSequence

MANIFEST_NAME = "ORDER.txt"
PREVIEW_NAME = "preview.png"


def cell_filename(shape_value: str, index: int) -> str:
    return f"grid-{shape_value}-{index + 1}.png"


def build_manifest(cells: CellSequence) -> str:
    """Human-readable upload order, one line per cell."""
    lines: List[str] = [f"Grid {cells.shape.value} ({len(cells)} posts)", ""]
    for cell in cells:
        lines.append(f"{cell_filename(cells.shape.value, cell.index)}: {cell.label}")
    return "\n".join(lines) + "\n"


def make_zip(cells: CellSequence, preview_png: bytes, zip_path: Path) -> Path:
    """Bundle cells, the preview and the ordering manifest into one archive."""
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    with ZipFile(zip_path, "w", compression=ZIP_DEFLATED) as archive:
        for cell in cells:
            archive.writestr(cell_filename(cells.shape.value, cell.index), cell.data)
        archive.writestr(PREVIEW_NAME, preview_png)
        archive.writestr(MANIFEST_NAME, build_manifest(cells))
    return zip_path
