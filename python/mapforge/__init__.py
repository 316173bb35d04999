# python/mapforge/__init__.py
# Orthographic map renderer core for streamed open-world terrain.
# Continent lookup, zone/decor streaming, tiled screenshots and seasonal assets.
# RELEVANT FILES:python/mapforge/renderer.py,python/mapforge/compositor.py,python/mapforge/streaming.py

from __future__ import annotations

from .compositor import RasterRegion, TiledCompositor, TiledRender, plan_cells, safe_vision_radius  # noqa: F401
from .config import MapRendererConfig, load_map_config, parse_scale  # noqa: F401
from .context import RenderContext  # noqa: F401
from .continents import ContinentDescriptor, ContinentRegistry, ContinentSelection, load_world  # noqa: F401
from .errors import (  # noqa: F401
    CancelledOperation,
    InvalidConfiguration,
    InvalidCoordinate,
    LoadResult,
    MapForgeError,
    ResourceNotFound,
)
from .renderer import MapRenderer  # noqa: F401
from .seasons import Season, SeasonResolver, parse_season  # noqa: F401
from .streaming import StreamingDelta, StreamingManager  # noqa: F401
from .view import StepOutcome, ViewController  # noqa: F401
from .zones import TILE_SIZE, Rect, ZoneTileKey  # noqa: F401

__version__ = "0.3.0"

__all__ = [
    "CancelledOperation",
    "ContinentDescriptor",
    "ContinentRegistry",
    "ContinentSelection",
    "InvalidConfiguration",
    "InvalidCoordinate",
    "LoadResult",
    "MapForgeError",
    "MapRenderer",
    "MapRendererConfig",
    "RasterRegion",
    "Rect",
    "RenderContext",
    "ResourceNotFound",
    "Season",
    "SeasonResolver",
    "StepOutcome",
    "StreamingDelta",
    "StreamingManager",
    "TILE_SIZE",
    "TiledCompositor",
    "TiledRender",
    "ViewController",
    "ZoneTileKey",
    "load_map_config",
    "load_world",
    "parse_scale",
    "parse_season",
    "plan_cells",
    "safe_vision_radius",
]
