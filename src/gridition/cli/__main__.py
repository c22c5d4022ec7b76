"""Typer-based CLI for the gridition pipeline."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich import print

from gridition.core.config import load_config
from gridition.core.errors import GriditionError
from gridition.core.grid import GridShape, position_label
from gridition.core.pipeline import run_pipeline

app = typer.Typer(add_completion=False, help="Split one image into a seamless 3-column feed grid.")

logger = logging.getLogger("gridition")


def _setup_logging(verbose: bool) -> None:
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="[%(levelname)s] %(message)s",
            stream=sys.stdout,
        )
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _report(cfg: Dict[str, Any]) -> None:
    try:
        result = run_pipeline(cfg)
    except GriditionError as exc:
        print(f"[red]Error:[/] {exc}")
        raise typer.Exit(code=1)
    print("[green]OK[/] →", json.dumps(result, ensure_ascii=False, indent=2))


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")) -> None:
    _setup_logging(verbose)


@app.command()
def make(config: Path = typer.Argument(..., exists=True, help="YAML config path")) -> None:
    """Run the full slice/preview/pack cycle for one config."""
    try:
        cfg = load_config(config)
    except GriditionError as exc:
        print(f"[red]Error:[/] {exc}")
        raise typer.Exit(code=1)
    _report(cfg)


@app.command()
def split(
    image: Path = typer.Argument(..., exists=True, dir_okay=False, help="Source image"),
    grid: str = typer.Option("3x2", help="Grid shape: 3x1, 3x2 or 3x3"),
    margin: int = typer.Option(16, help="Overlap margin in pixels"),
    crop_ratio: Optional[str] = typer.Option(None, help="Centre-crop so cells have this ratio, e.g. 4:5"),
    background: str = typer.Option("#FFFFFF", help="Fill colour for transparent pixels and reads past the image edge"),
    output: Path = typer.Option(Path("build"), help="Output root directory"),
    name: Optional[str] = typer.Option(None, "--id", help="Output folder name (default: image stem)"),
    workers: int = typer.Option(1, help="Threads used to render cells"),
    debug_overlay: bool = typer.Option(False, help="Also write cells with tinted margins"),
) -> None:
    """Slice a single image without a config file."""
    _report(
        {
            "id": name or image.stem,
            "source": str(image),
            "grid": grid,
            "margin_px": margin,
            "crop_ratio": crop_ratio,
            "background": background,
            "output_dir": str(output),
            "workers": workers,
            "debug_overlay": debug_overlay,
        }
    )


@app.command()
def order(grid: str = typer.Argument("3x2", help="Grid shape")) -> None:
    """Print the upload order for a grid shape."""
    try:
        shape = GridShape.parse(grid)
    except GriditionError as exc:
        print(f"[red]Error:[/] {exc}")
        raise typer.Exit(code=1)
    for index in range(shape.cell_count):
        print(f"{index + 1:>2}. {position_label(index)}")


if __name__ == "__main__":
    try:
        app()
    except Exception:  # pragma: no cover - top-level CLI guard
        logger.exception("gridition failed")
        raise
