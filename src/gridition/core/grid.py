"""Grid shapes, cells and the upload order presented to the user."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List, Optional, Sequence, Tuple

from gridition.core.errors import InvalidInput

COLS = 3


class GridShape(str, Enum):
    """Supported feed layouts: three columns and one to three rows."""

    ONE_ROW = "3x1"
    TWO_ROWS = "3x2"
    THREE_ROWS = "3x3"

    @property
    def rows(self) -> int:
        return int(self.value.split("x", 1)[1])

    @property
    def cols(self) -> int:
        return COLS

    @property
    def cell_count(self) -> int:
        return self.rows * COLS

    @classmethod
    def parse(cls, value: Any) -> "GridShape":
        """Accept ``3x2``, ``2x3``, ``2`` or an existing member."""
        if isinstance(value, GridShape):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            rows = value
        else:
            cleaned = str(value).lower().replace(" ", "").replace("×", "x")
            if cleaned.isdigit():
                rows = int(cleaned)
            else:
                parts = cleaned.split("x")
                if len(parts) != 2 or not all(p.isdigit() for p in parts):
                    raise InvalidInput(f"Unsupported grid shape: {value!r}")
                first, second = int(parts[0]), int(parts[1])
                if first == COLS:
                    rows = second
                elif second == COLS:
                    rows = first
                else:
                    raise InvalidInput(f"Grid must have {COLS} columns: {value!r}")
        for member in cls:
            if member.rows == rows:
                return member
        raise InvalidInput(f"Unsupported row count {rows}; expected 1, 2 or 3")


def grid_position(index: int) -> Tuple[int, int]:
    """Row-major ``(row, col)`` for a zero-based upload index."""
    return divmod(index, COLS)


def position_label(index: int) -> str:
    """Upload instruction shown next to the cell at ``index``."""
    row, col = grid_position(index)
    return f"{row + 1}행 {col + 1}열 ({index + 1}번째 업로드)"


def parse_ratio(value: Any) -> Optional[Tuple[int, int]]:
    """Parse ``4:5`` / ``4x5`` / ``(4, 5)`` into a positive integer pair."""
    if value is None or value == "":
        return None
    if isinstance(value, (list, tuple)):
        parts = list(value)
    else:
        cleaned = str(value).replace(" ", "").replace("x", ":").replace("/", ":")
        parts = cleaned.split(":")
    if len(parts) != 2:
        raise InvalidInput(f"Invalid aspect ratio: {value!r}")
    try:
        w, h = int(parts[0]), int(parts[1])
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"Invalid aspect ratio: {value!r}") from exc
    if w <= 0 or h <= 0:
        raise InvalidInput(f"Aspect ratio must be positive: {value!r}")
    return w, h


@dataclass(frozen=True)
class Cell:
    """One exported tile, stored as a PNG buffer."""

    index: int
    row: int
    col: int
    width: int
    height: int
    left_margin: int
    right_margin: int
    data: bytes

    @property
    def label(self) -> str:
        return position_label(self.index)

    @property
    def base_width(self) -> int:
        return self.width - self.left_margin - self.right_margin


class CellSequence(Sequence[Cell]):
    """Immutable row-major sequence of cells; order is the upload order."""

    def __init__(self, shape: GridShape, cells: Sequence[Cell]) -> None:
        self._shape = shape
        self._cells: Tuple[Cell, ...] = tuple(cells)

    @property
    def shape(self) -> GridShape:
        return self._shape

    def __getitem__(self, index):  # type: ignore[override]
        return self._cells[index]

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells)

    def __repr__(self) -> str:
        return f"CellSequence(shape={self._shape.value!r}, cells={len(self._cells)})"

    def buffers(self) -> List[bytes]:
        """Encoded PNG buffers in upload order."""
        return [cell.data for cell in self._cells]

    def labels(self) -> List[str]:
        return [cell.label for cell in self._cells]
