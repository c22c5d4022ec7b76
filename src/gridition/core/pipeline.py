"""Orchestrator for the slicing pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from PIL import Image

from gridition.core import ingest, overlay, pack, qa
from gridition.core.config import normalize_config, slice_settings
from gridition.core.grid import CellSequence, GridShape
from gridition.core.preview import render_preview
from gridition.core.slicer import SliceSettings, prepare_source, slice_image
from gridition.utils.io import ensure_dirs, write_bytes, write_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SliceResult:
    """Cells in upload order plus the encoded preview."""

    cells: CellSequence
    preview_png: bytes


def process_image(
    image: Image.Image,
    shape: Any,
    settings: Optional[SliceSettings] = None,
) -> SliceResult:
    """Slice ``image`` and compose its preview; nothing partial is returned."""
    grid = GridShape.parse(shape)
    settings = settings or SliceSettings()
    cells = slice_image(image, grid, settings)
    preview_png = render_preview(cells, grid, settings.margin, settings.background)
    return SliceResult(cells=cells, preview_png=preview_png)


def run_pipeline(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Execute the pipeline for a single configuration dictionary."""
    cfg = normalize_config(cfg)
    identifier = cfg["id"]
    grid = GridShape.parse(cfg["grid"])
    settings = slice_settings(cfg)
    root = Path(cfg["output_dir"]) / identifier
    out = root / "out"

    logger.info("Pipeline %s: grid %s, margin %d px", identifier, grid.value, settings.margin)
    image = ingest.load_image(cfg["source"])
    try:
        result = process_image(image, grid, settings)
        reference = prepare_source(image, grid, settings)
    finally:
        image.close()

    try:
        debug_dir = out / "debug"
        ensure_dirs([out] + ([debug_dir] if cfg["debug_overlay"] else []))

        cell_paths: List[Path] = []
        for cell in result.cells:
            path = out / pack.cell_filename(grid.value, cell.index)
            write_bytes(path, cell.data)
            cell_paths.append(path)
        preview_path = write_bytes(out / pack.PREVIEW_NAME, result.preview_png)
        write_text(out / pack.MANIFEST_NAME, pack.build_manifest(result.cells))

        debug_paths: List[Path] = []
        if cfg["debug_overlay"]:
            for cell, data in zip(result.cells, overlay.overlay_cells(result.cells)):
                debug_paths.append(write_bytes(debug_dir / f"debug-{cell.index + 1}.png", data))

        qa_json = qa.run(identifier, result.cells, result.preview_png, reference, settings.margin, out)
    finally:
        reference.close()

    zip_path = pack.make_zip(result.cells, result.preview_png, root / f"gridition_{identifier}.zip")
    logger.info("Pipeline %s finished -> %s", identifier, zip_path)

    return {
        "id": identifier,
        "time": datetime.now().isoformat(timespec="seconds"),
        "grid": grid.value,
        "cells": [str(path) for path in cell_paths],
        "order": result.cells.labels(),
        "preview": str(preview_path),
        "debug": [str(path) for path in debug_paths],
        "zip": str(zip_path),
        "qa": str(qa_json),
    }
