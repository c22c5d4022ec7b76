"""QA report comparing the sliced output with its source."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
from PIL import Image

from gridition.core.grid import COLS, CellSequence
from gridition.core.raster import decode_png
from gridition.core.slicer import base_cell_size, expected_cell_width

logger = logging.getLogger(__name__)


def reference_mosaic(source: Image.Image, cells: CellSequence) -> np.ndarray:
    """Top-left region of the prepared RGB source the feed grid should show."""
    grid = cells.shape
    base_w, base_h = base_cell_size(source.width, source.height, grid)
    return np.asarray(source)[: base_h * grid.rows, : base_w * COLS]


def build_report(
    identifier: str,
    cells: CellSequence,
    preview_png: bytes,
    source: Image.Image,
    margin: int,
) -> Dict[str, Any]:
    grid = cells.shape
    base_w, base_h = base_cell_size(source.width, source.height, grid)

    entries: List[Dict[str, Any]] = []
    widths_ok = True
    for cell in cells:
        expected = expected_cell_width(base_w, cell.col, margin)
        widths_ok = widths_ok and cell.width == expected and cell.height == base_h
        entries.append(
            {
                "index": cell.index,
                "row": cell.row,
                "col": cell.col,
                "width": cell.width,
                "height": cell.height,
                "expected_width": expected,
                "label": cell.label,
            }
        )

    expected_size = [base_w * COLS, base_h * grid.rows]
    with decode_png(preview_png) as preview:
        preview_size = [preview.width, preview.height]
        mean_diff = max_diff = None
        if preview_size == expected_size:
            actual = np.asarray(preview.convert("RGB")).astype(np.int16)
            reference = reference_mosaic(source, cells).astype(np.int16)
            diff = np.abs(actual - reference)
            mean_diff = round(float(diff.mean()), 4)
            max_diff = int(diff.max())

    status = "ok" if widths_ok and preview_size == expected_size else "mismatch"
    if status != "ok":
        logger.warning("QA mismatch for %s", identifier)
    return {
        "id": identifier,
        "grid": grid.value,
        "margin_px": margin,
        "cells": entries,
        "preview_size": preview_size,
        "expected_preview_size": expected_size,
        "mean_abs_diff": mean_diff,
        "max_abs_diff": max_diff,
        "status": status,
    }


def run(
    identifier: str,
    cells: CellSequence,
    preview_png: bytes,
    source: Image.Image,
    margin: int,
    out: Path,
) -> Path:
    """Write ``QA.json`` into ``out``."""
    report = build_report(identifier, cells, preview_png, source, margin)
    qa_path = out / "QA.json"
    qa_path.write_text(json.dumps(report, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("QA %s -> %s", report["status"], qa_path)
    return qa_path
