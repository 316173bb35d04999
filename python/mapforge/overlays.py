# python/mapforge/overlays.py
# Debug overlays drawn over a frame: zone grid with names and collision borders
# RELEVANT FILES: python/mapforge/frame.py, python/mapforge/engine.py, tests/test_overlays.py
from __future__ import annotations

import math
from enum import IntEnum
from typing import Dict, Iterable, List, Optional, Tuple

from .engine import RGBA, Driver, Landscape, Vec3
from .zones import TILE_SIZE

GRID_COLOR: RGBA = (255, 255, 255, 255)
LABEL_COLOR: RGBA = (255, 255, 255, 255)
# Lines are lifted above the terrain so the depth test keeps them
OVERLAY_Z = 200.0
DEFAULT_EDGE_FILTER = (0, 2)


class EdgeClass(IntEnum):
    BLOCK = 0
    SURMOUNTABLE = 1
    LINK = 2
    WATERLINE = 3
    EXTERIOR = 4
    EXTERIOR_DOOR = 5


EDGE_COLORS: Dict[int, RGBA] = {
    EdgeClass.BLOCK: (255, 0, 0, 255),
    EdgeClass.SURMOUNTABLE: (0, 255, 0, 255),
    EdgeClass.LINK: (255, 255, 0, 255),
    EdgeClass.WATERLINE: (0, 0, 255, 255),
    EdgeClass.EXTERIOR: (255, 0, 255, 255),
    EdgeClass.EXTERIOR_DOOR: (127, 127, 127, 255),
}
UNKNOWN_EDGE_COLOR: RGBA = (255, 100, 100, 255)


def edge_color(edge_class: int) -> RGBA:
    return EDGE_COLORS.get(int(edge_class), UNKNOWN_EDGE_COLOR)


def view_box(center: Vec3, world_width: float, world_height: float) -> Tuple[float, float, float, float]:
    hw, hh = world_width / 2.0, world_height / 2.0
    return (center[0] - hw, center[1] - hh, center[0] + hw, center[1] + hh)


def grid_lines(center: Vec3, world_width: float, world_height: float) -> List[Tuple[Vec3, Vec3]]:
    """Tile boundary segments covering the view box, one tile of margin on each side."""
    x0, y0, x1, y1 = view_box(center, world_width, world_height)
    gx0 = math.floor(x0 / TILE_SIZE) * TILE_SIZE
    gy0 = math.floor(y0 / TILE_SIZE) * TILE_SIZE
    gx1 = math.ceil(x1 / TILE_SIZE) * TILE_SIZE
    gy1 = math.ceil(y1 / TILE_SIZE) * TILE_SIZE
    z = OVERLAY_Z
    lines: List[Tuple[Vec3, Vec3]] = []
    x = gx0
    while x <= gx1:
        lines.append(((x, gy0, z), (x, gy1, z)))
        x += TILE_SIZE
    y = gy0
    while y <= gy1:
        lines.append(((gx0, y, z), (gx1, y, z)))
        y += TILE_SIZE
    return lines


def grid_labels(center: Vec3, world_width: float, world_height: float, landscape: Landscape) -> List[Tuple[Vec3, str]]:
    x0, y0, x1, y1 = view_box(center, world_width, world_height)
    labels: List[Tuple[Vec3, str]] = []
    y = math.floor(y0 / TILE_SIZE) * TILE_SIZE
    while y < y1:
        x = math.floor(x0 / TILE_SIZE) * TILE_SIZE
        while x < x1:
            # Sample the middle of the tile
            name = landscape.zone_name_at(x + TILE_SIZE / 2.0, y + TILE_SIZE / 2.0)
            if name:
                labels.append(((x + TILE_SIZE / 2.0, y + TILE_SIZE / 2.0, center[2]), name))
            x += TILE_SIZE
        y += TILE_SIZE
    return labels


def draw_grid(driver: Driver, landscape: Landscape, center: Vec3, world_width: float, world_height: float, names: bool = False) -> int:
    lines = grid_lines(center, world_width, world_height)
    for p0, p1 in lines:
        driver.draw_line(p0, p1, GRID_COLOR)
    if names and driver.has_capability("text"):
        for pos, text in grid_labels(center, world_width, world_height, landscape):
            driver.draw_text(pos, text, LABEL_COLOR)
    return len(lines)


def filter_borders(borders: Iterable[Tuple[Vec3, Vec3, int]], edge_filter: Optional[Iterable[int]] = None):
    allowed = set(DEFAULT_EDGE_FILTER if edge_filter is None else edge_filter)
    return [(p0, p1, cls) for p0, p1, cls in borders if int(cls) in allowed]


def draw_collision(driver: Driver, collision, center: Vec3, world_width: float, world_height: float,
                   edge_filter: Optional[Iterable[int]] = None) -> int:
    edges = filter_borders(collision.borders_in_box(view_box(center, world_width, world_height)), edge_filter)
    for p0, p1, cls in edges:
        driver.draw_line(p0, p1, edge_color(cls))
    return len(edges)
