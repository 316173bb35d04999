# python/mapforge/zones.py
# Zone tile addressing on the fixed 160-unit terrain grid and world rectangles
# RELEVANT FILES: python/mapforge/continents.py, python/mapforge/streaming.py, tests/test_zones.py
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterator, Tuple

TILE_SIZE = 160
# Column letters run AA..ZZ, rows 0..255
MAX_COLUMNS = 26 * 26
MAX_ROWS = 256
ZONE_MAX_X = MAX_COLUMNS * TILE_SIZE
ZONE_MAX_Y = MAX_ROWS * TILE_SIZE

_ZONE_NAME_RE = re.compile(r"^\s*(\d+)_([A-Za-z]{2})\s*$")


@dataclass(frozen=True, order=True)
class ZoneTileKey:
    """One 160x160 terrain tile.

    ``row`` grows southwards (world y decreases), ``column`` grows eastwards.
    The canonical name is ``"{row}_{letters}"`` where the column is written
    with two base-26 letters, e.g. ``153_DL``.
    """

    row: int
    column: int

    def __post_init__(self) -> None:
        if not (0 <= self.column < MAX_COLUMNS):
            raise ValueError(f"zone column must be within [0, {MAX_COLUMNS}), got {self.column}")
        if self.row < 0:
            raise ValueError(f"zone row must be non-negative, got {self.row}")

    @classmethod
    def from_world(cls, x: float, y: float) -> "ZoneTileKey":
        return cls(row=-int(math.floor(y / TILE_SIZE)), column=int(math.floor(x / TILE_SIZE)))

    @classmethod
    def parse(cls, name: str) -> "ZoneTileKey":
        match = _ZONE_NAME_RE.match(str(name))
        if match is None:
            raise ValueError(f"Invalid zone name: {name!r}")
        letters = match.group(2).upper()
        column = (ord(letters[0]) - ord("A")) * 26 + (ord(letters[1]) - ord("A"))
        return cls(row=int(match.group(1)), column=column)

    @property
    def name(self) -> str:
        return f"{self.row}_{self.letters}"

    @property
    def letters(self) -> str:
        return chr(ord("A") + self.column // 26) + chr(ord("A") + self.column % 26)

    def to_world_origin(self) -> Tuple[float, float]:
        """Lower-left corner of the tile in world units."""
        return (float(self.column * TILE_SIZE), float(-self.row * TILE_SIZE))

    def contains(self, x: float, y: float) -> bool:
        ox, oy = self.to_world_origin()
        return ox <= x < ox + TILE_SIZE and oy <= y < oy + TILE_SIZE

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Rect:
    """Axis-aligned world rectangle, min corner inclusive."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def normalized(cls, x0: float, y0: float, x1: float, y1: float) -> "Rect":
        return cls(min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1))

    @classmethod
    def from_zone_range(cls, zone_min: str, zone_max: str) -> "Rect":
        """Bounds covered by two zone names, inclusive of the last tile."""
        x0, y0 = ZoneTileKey.parse(zone_min).to_world_origin()
        x1, y1 = ZoneTileKey.parse(zone_max).to_world_origin()
        rect = cls.normalized(x0, y0, x1, y1)
        return cls(rect.min_x, rect.min_y, rect.max_x + TILE_SIZE, rect.max_y + TILE_SIZE)

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.min_x + self.max_x) * 0.5, (self.min_y + self.max_y) * 0.5)

    def contains(self, x: float, y: float) -> bool:
        """Strict interior test; points on the border are outside."""
        return self.min_x < x < self.max_x and self.min_y < y < self.max_y

    def intersects(self, other: "Rect") -> bool:
        return self.min_x < other.max_x and other.min_x < self.max_x and self.min_y < other.max_y and other.min_y < self.max_y

    def padded(self, padding: float) -> "Rect":
        return Rect(self.min_x - padding, self.min_y - padding, self.max_x + padding, self.max_y + padding)

    def tiles(self) -> Iterator[ZoneTileKey]:
        """Every tile overlapping the rectangle."""
        c0 = max(0, int(math.floor(self.min_x / TILE_SIZE)))
        c1 = min(MAX_COLUMNS - 1, int(math.ceil(self.max_x / TILE_SIZE)) - 1)
        r0 = max(0, -int(math.ceil(self.max_y / TILE_SIZE)) + 1)
        r1 = -int(math.floor(self.min_y / TILE_SIZE))
        for row in range(r0, r1 + 1):
            for column in range(c0, c1 + 1):
                yield ZoneTileKey(row=row, column=column)

    def to_tuple(self) -> Tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)


def clamp_to_world(x: float, y: float) -> Tuple[float, float]:
    return (min(max(x, 0.0), float(ZONE_MAX_X)), min(max(y, -float(ZONE_MAX_Y)), 0.0))
