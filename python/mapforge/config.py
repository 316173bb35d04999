# python/mapforge/config.py
# Map renderer configuration parsing: JSON files, mappings and keyword overrides
# RELEVANT FILES: python/mapforge/renderer.py, python/mapforge/cli.py, tests/test_config.py
from __future__ import annotations

import copy
import json
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import InvalidConfiguration
from .seasons import Season, parse_season

ConfigSource = Union["MapRendererConfig", Mapping[str, Any], str, Path, None]

MIN_SCALE = 0.1

DEFAULT_BOOKMARKS: Dict[str, Tuple[float, float]] = {
    "0x0": (0.0, 0.0),
    "pyr": (18886.0, -24346.0),
    "fairhaven": (17126.0, -32986.0),
    "yrkanis": (4720.0, -3435.0),
    "zorai": (8643.0, -2868.0),
    "nexus": (8960.0, -7120.0),
    "marauder": (10560.0, -8080.0),
}

# Continents whose layout needs a wider streaming radius than the viewport implies
DEFAULT_VISION_OVERRIDES: Dict[str, float] = {"tryker_island": 1000.0}

_EDGE_CLASSES: Dict[str, int] = {
    "block": 0,
    "surmountable": 1,
    "link": 2,
    "waterline": 3,
    "exterior": 4,
    "exteriordoor": 5,
}


def _normalize_key(value: Any) -> str:
    return "".join(c for c in str(value).strip().lower() if c not in {"-", "_", " ", "."})


def _to_bool(value: Any, label: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    key = _normalize_key(value)
    if key in {"1", "true", "yes", "on"}:
        return True
    if key in {"0", "false", "no", "off"}:
        return False
    raise InvalidConfiguration(f"{label} must be a boolean, got {value!r}")


def _to_rgba(value: Any, label: str) -> Tuple[int, int, int, int]:
    if isinstance(value, (list, tuple)) and len(value) in (3, 4):
        vals = [int(v) for v in value]
        if len(vals) == 3:
            vals.append(255)
        return (vals[0], vals[1], vals[2], vals[3])
    raise InvalidConfiguration(f"{label} must be a sequence of 3 or 4 integers")


def _to_float3(value: Any, label: str) -> Tuple[float, float, float]:
    if isinstance(value, str):
        value = [v for v in value.split(",") if v.strip()]
    if isinstance(value, (list, tuple)) and len(value) in (2, 3):
        try:
            vals = [float(v) for v in value]
        except (TypeError, ValueError):
            raise InvalidConfiguration(f"{label} must contain numbers, got {value!r}") from None
        if len(vals) == 2:
            vals.append(0.0)
        return (vals[0], vals[1], vals[2])
    raise InvalidConfiguration(f"{label} must be 'x,y[,z]' or a sequence of 2 or 3 numbers")


def parse_scale(value: Any) -> float:
    """Pixels per world unit from a number or a ``"px:m"`` ratio.

    Raises:
        InvalidConfiguration: when the value is malformed, zero or negative.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        scale = float(value)
    else:
        text = str(value).strip()
        try:
            if ":" in text:
                px, _, metres = text.partition(":")
                scale = float(px) / float(metres)
            else:
                scale = float(text)
        except (ValueError, ZeroDivisionError):
            raise InvalidConfiguration(f"Invalid scale {value!r}; expected 'px:m' such as '1:1' or '2:1'") from None
    if not scale > 0.0:
        raise InvalidConfiguration(f"scale must be positive, got {value!r}")
    if scale < MIN_SCALE:
        warnings.warn(f"scale {scale} is below {MIN_SCALE}; clamping", RuntimeWarning)
        scale = MIN_SCALE
    return scale


def parse_edge_classes(value: Any) -> List[int]:
    """Collision edge classes from ids or names, e.g. ``"0,2"`` or ``["block", "link"]``."""
    if isinstance(value, str):
        value = [v for v in value.split(",") if v.strip()]
    if not isinstance(value, Sequence):
        raise InvalidConfiguration("collision_filter must be a list of edge classes")
    out: List[int] = []
    for item in value:
        key = _normalize_key(item)
        if key in _EDGE_CLASSES:
            out.append(_EDGE_CLASSES[key])
            continue
        try:
            out.append(int(key))
        except ValueError:
            raise InvalidConfiguration(f"Unknown collision edge class: {item!r}") from None
    return sorted(set(out))


@dataclass
class MapRendererConfig:
    search_paths: List[str] = field(default_factory=list)
    font_name: str = "ryzom.ttf"
    output_dir: str = "."
    background_color: Tuple[int, int, int, int] = (255, 0, 255, 255)
    maps: List[str] = field(default_factory=list)
    scale: float = 1.0
    padding: float = 0.0
    hide_vegetation: bool = False
    fxaa: bool = False
    inverse_z: bool = False
    use_light: bool = False
    tile_near: Optional[float] = None
    vision: Optional[float] = None
    season: Season = Season.SPRING
    draw_grid: bool = False
    draw_grid_names: bool = False
    collision_filter: Optional[List[int]] = None
    view_center: Tuple[float, float, float] = (18886.0, -24346.0, 400.0)
    frame_limit: int = 0
    world_file: Optional[str] = None
    vision_overrides: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_VISION_OVERRIDES))
    bookmarks: Dict[str, Tuple[float, float]] = field(default_factory=lambda: dict(DEFAULT_BOOKMARKS))

    def copy(self) -> "MapRendererConfig":
        return copy.deepcopy(self)

    @property
    def tile_near_locked(self) -> bool:
        return self.tile_near is not None

    def to_dict(self) -> dict:
        return {
            "search_paths": list(self.search_paths),
            "font_name": self.font_name,
            "output_dir": self.output_dir,
            "background_color": list(self.background_color),
            "maps": list(self.maps),
            "scale": self.scale,
            "padding": self.padding,
            "hide_vegetation": self.hide_vegetation,
            "fxaa": self.fxaa,
            "inverse_z": self.inverse_z,
            "use_light": self.use_light,
            "tile_near": self.tile_near,
            "vision": self.vision,
            "season": self.season.value,
            "draw_grid": self.draw_grid,
            "draw_grid_names": self.draw_grid_names,
            "collision_filter": list(self.collision_filter) if self.collision_filter is not None else None,
            "view_center": list(self.view_center),
            "frame_limit": self.frame_limit,
            "world_file": self.world_file,
            "vision_overrides": dict(self.vision_overrides),
            "bookmarks": {k: list(v) for k, v in self.bookmarks.items()},
        }

    def validate(self) -> None:
        if not self.scale > 0.0:
            raise InvalidConfiguration(f"scale must be positive, got {self.scale}")
        if self.padding < 0.0:
            raise InvalidConfiguration("padding must be non-negative")
        if self.tile_near is not None and self.tile_near < 0.0:
            raise InvalidConfiguration("tile_near must be non-negative")
        if self.vision is not None and self.vision <= 0.0:
            raise InvalidConfiguration("vision must be positive")
        if self.frame_limit < 0:
            raise InvalidConfiguration("frame_limit must be non-negative")
        if any(c < 0 or c > 255 for c in self.background_color):
            raise InvalidConfiguration("background_color channels must be within [0, 255]")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], default: Optional["MapRendererConfig"] = None) -> "MapRendererConfig":
        base = copy.deepcopy(default) if default is not None else cls()
        if "search_paths" in data:
            paths = data["search_paths"]
            base.search_paths = [str(paths)] if isinstance(paths, (str, Path)) else [str(p) for p in paths]
        if "font_name" in data:
            base.font_name = str(data["font_name"])
        if "output_dir" in data or "outdir" in data:
            base.output_dir = str(data.get("output_dir", data.get("outdir")))
        if "background_color" in data:
            base.background_color = _to_rgba(data["background_color"], "background_color")
        if "maps" in data:
            maps = data["maps"]
            base.maps = [m for m in str(maps).split(",") if m] if isinstance(maps, str) else [str(m) for m in maps]
        if "scale" in data:
            base.scale = parse_scale(data["scale"])
        if "padding" in data:
            base.padding = float(data["padding"])
        for key in ("hide_vegetation", "fxaa", "inverse_z", "use_light", "draw_grid", "draw_grid_names"):
            if key in data:
                setattr(base, key, _to_bool(data[key], key))
        if "tile_near" in data:
            base.tile_near = None if data["tile_near"] is None else float(data["tile_near"])
        if "vision" in data:
            base.vision = None if data["vision"] is None else float(data["vision"])
        if "season" in data:
            base.season = parse_season(data["season"])
        if "collision_filter" in data:
            value = data["collision_filter"]
            base.collision_filter = None if value is None else parse_edge_classes(value)
        if "view_center" in data:
            base.view_center = _to_float3(data["view_center"], "view_center")
        if "frame_limit" in data:
            base.frame_limit = int(data["frame_limit"])
        if "world_file" in data:
            base.world_file = None if data["world_file"] is None else str(data["world_file"])
        if "vision_overrides" in data:
            base.vision_overrides.update({str(k).lower(): float(v) for k, v in dict(data["vision_overrides"]).items()})
        if "bookmarks" in data:
            for name, pos in dict(data["bookmarks"]).items():
                x, y, _ = _to_float3(pos, f"bookmarks.{name}")
                base.bookmarks[str(name).lower()] = (x, y)
        return base


def load_map_config(config: ConfigSource = None, overrides: Optional[Mapping[str, Any]] = None) -> MapRendererConfig:
    if isinstance(config, MapRendererConfig):
        cfg = config.copy()
    elif isinstance(config, Mapping):
        cfg = MapRendererConfig.from_mapping(config)
    elif isinstance(config, (str, Path)):
        cfg = MapRendererConfig.from_mapping(_load_from_path(Path(config)))
    elif config is None:
        cfg = MapRendererConfig()
    else:
        raise TypeError("config must be MapRendererConfig, mapping, path, or None")

    if overrides:
        cfg = MapRendererConfig.from_mapping({k: v for k, v in overrides.items() if v is not None}, cfg)
    cfg.validate()
    return cfg


def _load_from_path(path: Path) -> Mapping[str, Any]:
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix in {".json", ""}:
        return json.loads(text)
    raise InvalidConfiguration(f"Unsupported map renderer config file format: {path}")
