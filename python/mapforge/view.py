# python/mapforge/view.py
# Reference-point controller that drives continent switches as the view moves
# RELEVANT FILES: python/mapforge/continents.py, python/mapforge/renderer.py, tests/test_view.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from .continents import ContinentRegistry, ContinentSelection
from .errors import InvalidCoordinate, LoadResult, MapForgeError
from .streaming import StreamingManager
from .zones import clamp_to_world

logger = logging.getLogger(__name__)


class StepOutcome(Enum):
    INSIDE = "inside"
    SAME_CONTINENT = "same-continent"
    SWITCHED = "switched"
    REFUSED = "refused"
    UNRESOLVED = "unresolved"


@dataclass
class StepResult:
    outcome: StepOutcome
    continent: Optional[str] = None
    error: Optional[MapForgeError] = None


class ViewController:
    """Owns the reference point and asks for a continent switch when it leaves the active one.

    ``load`` performs the switch; the renderer passes its own loader so the
    map name and region follow the new continent.
    """

    def __init__(
        self,
        registry: ContinentRegistry,
        manager: StreamingManager,
        position: Tuple[float, float, float] = (0.0, 0.0, 0.0),
        *,
        padding: float = 0.0,
        bookmarks: Optional[Dict[str, Tuple[float, float]]] = None,
        load: Optional[Callable[[ContinentSelection], LoadResult]] = None,
    ):
        self.registry = registry
        self.manager = manager
        self.padding = float(padding)
        self.bookmarks = {k.lower(): v for k, v in (bookmarks or {}).items()}
        self._load = load if load is not None else manager.load_continent
        x, y = clamp_to_world(position[0], position[1])
        self.position = (x, y, float(position[2]))

    def move_to(self, x: float, y: float, z: Optional[float] = None) -> Tuple[float, float, float]:
        cx, cy = clamp_to_world(float(x), float(y))
        self.position = (cx, cy, self.position[2] if z is None else float(z))
        return self.position

    def pan(self, dx: float, dy: float) -> Tuple[float, float, float]:
        return self.move_to(self.position[0] + dx, self.position[1] + dy)

    def raise_by(self, dz: float) -> Tuple[float, float, float]:
        x, y, z = self.position
        self.position = (x, y, z + dz)
        return self.position

    def goto(self, bookmark: str) -> Tuple[float, float, float]:
        key = bookmark.lower()
        if key not in self.bookmarks:
            raise KeyError(f"unknown bookmark {bookmark!r}; known: {', '.join(sorted(self.bookmarks))}")
        x, y = self.bookmarks[key]
        return self.move_to(x, y)

    def reset(self) -> Tuple[float, float, float]:
        """Move back to the centre of the active continent."""
        active = self.manager.active
        if active is None:
            return self.position
        x, y = active.bounds.center
        return self.move_to(x, y)

    def step(self) -> StepResult:
        x, y, _ = self.position
        active = self.manager.active
        if active is not None and active.bounds.padded(self.padding).contains(x, y):
            return StepResult(StepOutcome.INSIDE, active.name)

        location = self.registry.resolve(x, y)
        if location is None:
            error = InvalidCoordinate(f"no continent contains ({x:.1f}, {y:.1f})")
            logger.debug(str(error))
            return StepResult(StepOutcome.UNRESOLVED, active.name if active else None, error)

        if active is not None and active.name == location.continent_name:
            return StepResult(StepOutcome.SAME_CONTINENT, active.name)

        result = self._load(ContinentSelection(continent=location.continent_name, map_name=location.continent_name))
        if not result.ok:
            current = self.manager.active
            return StepResult(StepOutcome.REFUSED, current.name if current else None, result.error)
        logger.info(f"View entered continent '{location.continent_name}'")
        return StepResult(StepOutcome.SWITCHED, location.continent_name)
