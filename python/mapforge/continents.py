# python/mapforge/continents.py
# Continent registry: coordinate resolution, name lookup and descriptor loading
# RELEVANT FILES: python/mapforge/zones.py, python/mapforge/streaming.py, tests/test_continents.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import InvalidConfiguration, ResourceNotFound
from .zones import Rect

logger = logging.getLogger(__name__)

RGBA = Tuple[int, int, int, int]


def _to_rect(value: Any, label: str) -> Rect:
    if isinstance(value, Mapping):
        keys = ("min_x", "min_y", "max_x", "max_y")
        if not all(k in value for k in keys):
            raise InvalidConfiguration(f"{label} requires {', '.join(keys)}")
        return Rect.normalized(*(float(value[k]) for k in keys))
    if isinstance(value, (list, tuple)) and len(value) == 4:
        return Rect.normalized(*(float(v) for v in value))
    raise InvalidConfiguration(f"{label} must be four numbers or a min/max mapping")


def _to_rgba(value: Any, label: str) -> RGBA:
    if isinstance(value, (list, tuple)) and len(value) in (3, 4):
        vals = [int(v) for v in value] + ([255] if len(value) == 3 else [])
        if any(v < 0 or v > 255 for v in vals):
            raise InvalidConfiguration(f"{label} channels must be within [0, 255]")
        return (vals[0], vals[1], vals[2], vals[3])
    raise InvalidConfiguration(f"{label} must be a sequence of 3 or 4 integers")


@dataclass(frozen=True)
class ContinentLocation:
    continent_name: str
    selection_name: str
    bounds: Rect


@dataclass(frozen=True)
class WorldMap:
    """In-game sub-map drawn inside a continent."""

    name: str
    continent: str
    bitmap: str
    bounds: Rect

    @property
    def output_name(self) -> str:
        return PurePosixPath(self.bitmap).stem if self.bitmap else self.name


@dataclass(frozen=True)
class Lighting:
    direction: Tuple[float, float, float] = (0.5, 0.5, -0.7)
    ambient: RGBA = (60, 60, 60, 255)
    diffuse: RGBA = (255, 255, 255, 255)
    specular: RGBA = (255, 255, 255, 255)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Lighting":
        base = cls()
        direction = data.get("direction", base.direction)
        if not (isinstance(direction, (list, tuple)) and len(direction) == 3):
            raise InvalidConfiguration("lighting.direction must be three floats")
        return cls(
            direction=(float(direction[0]), float(direction[1]), float(direction[2])),
            ambient=_to_rgba(data.get("ambient", base.ambient), "lighting.ambient"),
            diffuse=_to_rgba(data.get("diffuse", base.diffuse), "lighting.diffuse"),
            specular=_to_rgba(data.get("specular", base.specular), "lighting.specular"),
        )


@dataclass(frozen=True)
class TerrainBanks:
    small_bank: str = ""
    far_bank: str = ""
    coarse_mesh: str = ""
    micro_veget: str = ""
    landscape_ig: str = ""


@dataclass(frozen=True)
class VillageDecor:
    name: str
    parent: str = ""


@dataclass(frozen=True)
class OutpostZone:
    zone: str
    ruins: bool = True


@dataclass(frozen=True)
class CollisionPaths:
    retriever_bank: str
    global_retriever: str


@dataclass(frozen=True)
class ContinentDescriptor:
    name: str
    selection_name: str
    zone_min: str
    zone_max: str
    bounds: Rect
    banks: TerrainBanks = field(default_factory=TerrainBanks)
    villages: Tuple[VillageDecor, ...] = ()
    outposts: Tuple[OutpostZone, ...] = ()
    lighting: Lighting = field(default_factory=Lighting)
    collision: Optional[CollisionPaths] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], selection_name: str = "") -> "ContinentDescriptor":
        try:
            name = str(data["name"])
            zone_min = str(data["zone_min"])
            zone_max = str(data["zone_max"])
        except KeyError as exc:
            raise InvalidConfiguration(f"continent sheet is missing {exc.args[0]!r}") from None
        try:
            bounds = Rect.from_zone_range(zone_min, zone_max)
        except ValueError as exc:
            raise InvalidConfiguration(f"continent {name!r}: {exc}") from None

        banks = TerrainBanks(
            small_bank=str(data.get("small_bank", "")),
            far_bank=str(data.get("far_bank", "")),
            coarse_mesh=str(data.get("coarse_mesh", "")),
            micro_veget=str(data.get("micro_veget", "")),
            landscape_ig=str(data.get("landscape_ig", "")),
        )
        villages = tuple(
            VillageDecor(name=str(v["name"]), parent=str(v.get("parent", ""))) if isinstance(v, Mapping) else VillageDecor(name=str(v))
            for v in data.get("villages", ())
        )
        outposts = tuple(
            OutpostZone(zone=str(o["zone"]).lower(), ruins=bool(o.get("ruins", True))) if isinstance(o, Mapping) else OutpostZone(zone=str(o).lower())
            for o in data.get("outposts", ())
        )
        collision = None
        coll = data.get("collision")
        if isinstance(coll, Mapping) and coll.get("retriever_bank") and coll.get("global_retriever"):
            collision = CollisionPaths(str(coll["retriever_bank"]), str(coll["global_retriever"]))

        return cls(
            name=name,
            selection_name=str(data.get("selection_name", selection_name or name)),
            zone_min=zone_min,
            zone_max=zone_max,
            bounds=bounds,
            banks=banks,
            villages=villages,
            outposts=outposts,
            lighting=Lighting.from_mapping(data.get("lighting", {})),
            collision=collision,
        )


@dataclass(frozen=True)
class ContinentSelection:
    """What a name lookup settled on: the continent to load and what to render."""

    continent: str
    map_name: str
    bounds: Optional[Rect] = None

    def render_bounds(self, descriptor: ContinentDescriptor) -> Rect:
        return self.bounds if self.bounds is not None else descriptor.bounds


class ContinentRegistry:
    """Maps world coordinates and names onto continent descriptors.

    Args:
        assets: Asset registry providing the world sheet and continent sheets.
    """

    def __init__(self, assets) -> None:
        self._assets = assets
        sheet = assets.world_sheet() or {}
        self._locations: List[ContinentLocation] = [
            ContinentLocation(
                continent_name=str(entry["name"]),
                selection_name=str(entry.get("selection_name", entry["name"])),
                bounds=_to_rect(entry["bounds"], f"continent {entry['name']!r} bounds"),
            )
            for entry in sheet.get("continents", ())
        ]
        self._maps: List[WorldMap] = [
            WorldMap(
                name=str(entry["name"]),
                continent=str(entry.get("continent", "")),
                bitmap=str(entry.get("bitmap", "")),
                bounds=_to_rect(entry["bounds"], f"map {entry['name']!r} bounds"),
            )
            for entry in sheet.get("maps", ())
        ]
        self._descriptors: Dict[str, ContinentDescriptor] = {}
        logger.debug(f"Continent registry: {len(self._locations)} continents, {len(self._maps)} maps")

    @property
    def locations(self) -> Sequence[ContinentLocation]:
        return tuple(self._locations)

    @property
    def maps(self) -> Sequence[WorldMap]:
        return tuple(self._maps)

    def resolve(self, x: float, y: float) -> Optional[ContinentLocation]:
        for loc in self._locations:
            if loc.bounds.contains(x, y):
                return loc
        return None

    def _location_for_selection(self, selection_name: str) -> Optional[ContinentLocation]:
        key = selection_name.lower()
        for loc in self._locations:
            if loc.selection_name.lower() == key:
                return loc
        return None

    def find(self, name: str) -> Optional[ContinentSelection]:
        key = str(name).strip().lower()
        if not key:
            return None

        for world_map in self._maps:
            if world_map.name.lower() == key:
                loc = self._location_for_selection(world_map.continent)
                continent = loc.continent_name if loc is not None else world_map.continent
                bounds = world_map.bounds
                if loc is not None and not bounds.intersects(loc.bounds):
                    # Sub-map drawn outside its continent: render the continent's zone range instead
                    logger.info(f"Map '{world_map.name}' lies outside continent '{continent}', using zone bounds")
                    bounds = None
                return ContinentSelection(continent=continent, map_name=world_map.output_name, bounds=bounds)

        for loc in self._locations:
            if loc.continent_name.lower() == key:
                return ContinentSelection(continent=loc.continent_name, map_name=loc.continent_name)

        loc = self._location_for_selection(key)
        if loc is not None:
            return ContinentSelection(continent=loc.continent_name, map_name=str(name))

        # Sheets that exist without a world entry can still be loaded by name
        if self._assets.continent_sheet(key) is not None:
            return ContinentSelection(continent=key, map_name=key)
        return None

    def descriptor(self, name: str) -> Optional[ContinentDescriptor]:
        key = name.lower()
        cached = self._descriptors.get(key)
        if cached is not None:
            return cached
        sheet = self._assets.continent_sheet(key)
        if sheet is None:
            logger.info(f"Continent sheet '{key}.continent' not found")
            return None
        loc = next((entry for entry in self._locations if entry.continent_name.lower() == key), None)
        descriptor = ContinentDescriptor.from_mapping(sheet, selection_name=loc.selection_name if loc else key)
        self._descriptors[key] = descriptor
        return descriptor

    def require(self, name: str) -> ContinentDescriptor:
        descriptor = self.descriptor(name)
        if descriptor is None:
            raise ResourceNotFound(f"continent descriptor not found: {name!r}")
        return descriptor

    def continent_names(self) -> List[str]:
        return [loc.continent_name for loc in self._locations]

    def map_names(self) -> List[str]:
        return [m.name for m in self._maps]

    def list_continents(self) -> List[Tuple[str, List[str]]]:
        rows = []
        for loc in self._locations:
            sel = loc.selection_name.lower()
            rows.append((loc.continent_name, [m.name for m in self._maps if m.continent.lower() == sel]))
        return rows

    def list_maps(self) -> List[Tuple[str, str, Rect, str]]:
        """``(name, bitmap, bounds, continent)`` rows, ``"-"`` when no continent owns the map."""
        rows = []
        for world_map in self._maps:
            if world_map.name.lower() == "world":
                continue
            loc = self._location_for_selection(world_map.continent)
            rows.append((world_map.name, world_map.bitmap, world_map.bounds, loc.continent_name if loc else "-"))
        return rows


class WorldFile:
    """JSON-backed world description.

    Provides the sheet half of :class:`mapforge.engine.AssetRegistry`; the
    headless engine builds on it.
    """

    def __init__(self, data: Mapping[str, Any]):
        self._data = dict(data)
        self._sheets = {str(k).lower(): v for k, v in dict(data.get("continent_sheets", {})).items()}

    def world_sheet(self) -> Mapping[str, Any]:
        return {"continents": list(self._data.get("continents", ())), "maps": list(self._data.get("maps", ()))}

    def continent_sheet(self, name: str) -> Optional[Mapping[str, Any]]:
        return self._sheets.get(name.lower())

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._data)


def load_world(path: Union[str, Path]) -> WorldFile:
    path = Path(path)
    if not path.exists():
        raise ResourceNotFound(f"world file not found: {path}")
    if path.suffix.lower() not in {".json", ""}:
        raise InvalidConfiguration(f"Unsupported world file format: {path}")
    return WorldFile(json.loads(path.read_text(encoding="utf-8")))
