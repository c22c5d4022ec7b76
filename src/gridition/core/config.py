"""YAML configuration loading and validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Union

import yaml

from gridition.core.errors import InvalidInput
from gridition.core.grid import GridShape, parse_ratio
from gridition.core.raster import parse_color
from gridition.core.slicer import DEFAULT_MARGIN_PX, SliceSettings

DEFAULT_CONFIG: Dict[str, Any] = {
    "grid": "3x2",
    "margin_px": DEFAULT_MARGIN_PX,
    "crop_ratio": None,
    "background": "#FFFFFF",
    "workers": 1,
    "debug_overlay": False,
    "output_dir": "build",
}


def _as_int(cfg: Dict[str, Any], key: str, minimum: int) -> int:
    value = cfg[key]
    if isinstance(value, bool):
        raise InvalidInput(f"{key} must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"{key} must be an integer, got {value!r}") from exc
    if number < minimum:
        raise InvalidInput(f"{key} must be >= {minimum}, got {number}")
    return number


def normalize_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Merge defaults into ``raw`` and validate every known key."""
    if not isinstance(raw, dict):
        raise InvalidInput("Config must be a mapping")
    cfg = {**DEFAULT_CONFIG, **{k: v for k, v in raw.items() if v is not None}}

    identifier = str(cfg.get("id", "")).strip()
    if not identifier or "/" in identifier or "\\" in identifier or identifier in (".", ".."):
        raise InvalidInput(f"Config id must be a plain folder name, got {cfg.get('id')!r}")
    cfg["id"] = identifier
    if not cfg.get("source"):
        raise InvalidInput("Config needs a 'source' image")

    cfg["grid"] = GridShape.parse(cfg["grid"]).value
    cfg["margin_px"] = _as_int(cfg, "margin_px", 0)
    cfg["workers"] = _as_int(cfg, "workers", 1)
    ratio = parse_ratio(cfg["crop_ratio"])
    cfg["crop_ratio"] = f"{ratio[0]}:{ratio[1]}" if ratio else None
    parse_color(cfg["background"])
    cfg["debug_overlay"] = bool(cfg["debug_overlay"])
    return cfg


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise InvalidInput(f"Invalid YAML in {path}: {exc}") from exc
    cfg = normalize_config(raw or {})
    source = Path(str(cfg["source"]))
    if not source.is_absolute() and not str(cfg["source"]).startswith("data:"):
        cfg["source"] = str(Path(path).parent / source)
    return cfg


def slice_settings(cfg: Dict[str, Any]) -> SliceSettings:
    return SliceSettings(
        margin=int(cfg["margin_px"]),
        crop_ratio=parse_ratio(cfg.get("crop_ratio")),
        background=parse_color(cfg["background"]),
        workers=int(cfg["workers"]),
    )
