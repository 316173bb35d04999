# python/mapforge/errors.py
# Exception taxonomy and explicit load results shared by the map renderer core
# RELEVANT FILES: python/mapforge/streaming.py, python/mapforge/compositor.py, tests/test_streaming.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


class MapForgeError(Exception):
    """Base class for every error raised by mapforge."""


class ResourceNotFound(MapForgeError, FileNotFoundError):
    """A continent sheet, instance group or collision file could not be located."""


class InvalidCoordinate(MapForgeError):
    """A world point lies outside every known continent."""


class InvalidConfiguration(MapForgeError, ValueError):
    """A scale, padding or region is unusable and was rejected before any engine call."""


class CancelledOperation(MapForgeError):
    """Raised on request when a tiled render was aborted before completion."""

    def __init__(self, cells_rendered: int, cells_total: int):
        super().__init__(f"tiled render cancelled after {cells_rendered}/{cells_total} cells")
        self.cells_rendered = cells_rendered
        self.cells_total = cells_total


@dataclass
class LoadResult:
    """Outcome of a continent load.

    A failed load carries the error instead of raising it so the caller can
    keep the previous continent active.
    """

    ok: bool
    name: Optional[str] = None
    error: Optional[MapForgeError] = None
    warnings: List[str] = field(default_factory=list)
    collision_available: bool = False

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def failure(cls, error: MapForgeError, name: Optional[str] = None) -> "LoadResult":
        return cls(ok=False, name=name, error=error)
