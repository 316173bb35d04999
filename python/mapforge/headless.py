# python/mapforge/headless.py
# Deterministic numpy engine implementing every engine protocol without a display
# RELEVANT FILES: python/mapforge/engine.py, python/mapforge/context.py, tests/conftest.py
"""Headless reference engine.

Used for dry runs and by the test suite. Terrain is "rendered" by writing,
for every pixel over a resident tile, the absolute world pixel index the
pixel samples:

* R = ix & 0xFF, G = iy & 0xFF
* B = (ix >> 8) & 0x0F | ((iy >> 8) & 0x0F) << 4

where ``ix = floor(x / pixel_size)`` and ``iy = floor(-y / pixel_size)``.
Pixels over non-resident tiles keep the clear colour. Stitched rasters can
therefore be checked for seams by decoding the pixel indices
(:func:`decode_world_pixels`).
"""
from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union

import numpy as np

from .context import RenderContext
from .continents import WorldFile, load_world
from .engine import RGBA, Frustum, Vec3, Viewport
from .errors import ResourceNotFound
from .zones import TILE_SIZE, Rect, ZoneTileKey

logger = logging.getLogger(__name__)


def encode_world_pixels(ix: np.ndarray, iy: np.ndarray) -> np.ndarray:
    out = np.empty(ix.shape + (4,), dtype=np.uint8)
    out[..., 0] = ix & 0xFF
    out[..., 1] = iy & 0xFF
    out[..., 2] = ((ix >> 8) & 0x0F) | (((iy >> 8) & 0x0F) << 4)
    out[..., 3] = 255
    return out


def decode_world_pixels(rgba: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Inverse of the terrain encoding, modulo 4096 on each axis."""
    r = rgba[..., 0].astype(np.int64)
    g = rgba[..., 1].astype(np.int64)
    b = rgba[..., 2].astype(np.int64)
    return r | ((b & 0x0F) << 8), g | ((b >> 4) << 8)


class HeadlessCamera:
    def __init__(self, frustum: Frustum):
        self._matrix = np.identity(4, dtype=np.float64)
        self._frustum = frustum

    def get_matrix(self) -> np.ndarray:
        return self._matrix.copy()

    def set_matrix(self, matrix: np.ndarray) -> None:
        self._matrix = np.array(matrix, dtype=np.float64, copy=True)

    def get_frustum(self) -> Frustum:
        return self._frustum

    def set_frustum(self, frustum: Frustum) -> None:
        self._frustum = frustum

    @property
    def position(self) -> Vec3:
        x, y, z = self._matrix[:3, 3]
        return (float(x), float(y), float(z))


class HeadlessDriver:
    def __init__(self, width: int = 200, height: int = 200, abort_predicate: Optional[Callable[["HeadlessDriver"], bool]] = None,
                 capabilities: Iterable[str] = ("text",)):
        self.width = int(width)
        self.height = int(height)
        self.buffer = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        self.abort_predicate = abort_predicate
        self.abort = False
        self.color_mask = True
        self.capabilities = set(capabilities)
        self.lines: List[Tuple[Vec3, Vec3, RGBA]] = []
        self.labels: List[Tuple[Vec3, str]] = []
        self.reads = 0
        self.flushes = 0
        self.swaps = 0
        self.fxaa_passes = 0

    def window_size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def clear(self, color: RGBA) -> None:
        if self.color_mask:
            self.buffer[...] = np.asarray(color, dtype=np.uint8)
        self.lines.clear()
        self.labels.clear()

    def set_color_mask(self, enabled: bool) -> None:
        self.color_mask = bool(enabled)

    def draw_fullscreen_quad(self, zfunc: str) -> None:
        pass

    def draw_line(self, p0: Vec3, p1: Vec3, color: RGBA) -> None:
        self.lines.append((p0, p1, color))

    def draw_text(self, position: Vec3, text: str, color: RGBA) -> None:
        self.labels.append((position, text))

    def apply_fxaa(self) -> None:
        self.fxaa_passes += 1

    def flush(self) -> None:
        self.flushes += 1

    def read_pixels(self) -> np.ndarray:
        self.reads += 1
        return self.buffer.copy()

    def swap_buffers(self) -> None:
        self.swaps += 1

    def abort_requested(self) -> bool:
        if self.abort_predicate is not None and self.abort_predicate(self):
            self.abort = True
        return self.abort

    def reset_abort(self) -> None:
        self.abort = False

    def has_capability(self, name: str) -> bool:
        return name in self.capabilities


class HeadlessLandscape:
    """Tile loader that keeps every tile within the vision radius resident.

    ``banks`` maps a small-bank name to the zone rectangle it provides; a bank
    missing from the map provides no tiles.
    """

    def __init__(self, banks: Optional[Mapping[str, Rect]] = None):
        self.banks = dict(banks or {})
        self.loaded: Set[ZoneTileKey] = set()
        self.available: Optional[Rect] = None
        self.tile_near = 50.0
        self.threshold = 0.001
        self.refine_center_auto = True
        self.refine_center: Optional[Vec3] = None
        self.static_light: Optional[Tuple[RGBA, RGBA, float]] = None
        self.zfunc = "lessequal"
        self.far_bank = ""
        self.tile_postfix = ""
        self.vegetable_postfix = ""
        self.vegetable_texture = ""
        self.lighting_updates = 0
        self.refreshes = 0

    def load_bank_files(self, small_bank: str, far_bank: str) -> None:
        if small_bank and small_bank not in self.banks:
            raise ResourceNotFound(f"terrain bank not found: {small_bank}")
        self.available = self.banks.get(small_bank)
        self.far_bank = far_bank

    def postfix_tile_filename(self, postfix: str) -> None:
        self.tile_postfix = postfix

    def postfix_tile_vegetable_desc(self, postfix: str) -> None:
        self.vegetable_postfix = postfix

    def load_vegetable_texture(self, name: str) -> None:
        self.vegetable_texture = name

    def wanted(self, center: Vec3, radius: float) -> Set[ZoneTileKey]:
        if self.available is None:
            return set()
        cx, cy = center[0], center[1]
        box = Rect(cx - radius, cy - radius, cx + radius, cy + radius)
        out = set()
        for key in box.tiles():
            ox, oy = key.to_world_origin()
            if not (self.available.min_x <= ox < self.available.max_x and self.available.min_y <= oy < self.available.max_y):
                continue
            # Distance from the centre to the closest point of the tile
            dx = max(ox - cx, 0.0, cx - (ox + TILE_SIZE))
            dy = max(oy - cy, 0.0, cy - (oy + TILE_SIZE))
            if math.hypot(dx, dy) <= radius:
                out.add(key)
        return out

    def refresh_zones_around(self, center: Vec3, radius: float) -> Tuple[List[str], List[str]]:
        self.refreshes += 1
        wanted = self.wanted(center, radius)
        added = sorted(wanted - self.loaded)
        removed = sorted(self.loaded - wanted)
        self.loaded = wanted
        return [k.name for k in added], [k.name for k in removed]

    def remove_all_zones(self) -> None:
        self.loaded.clear()

    def zone_name_at(self, x: float, y: float) -> Optional[str]:
        key = ZoneTileKey.from_world(x, y) if x >= 0 and y <= 0 else None
        return key.name if key is not None and key in self.loaded else None

    def set_refine_center_user(self, center: Vec3) -> None:
        self.refine_center = center

    def setup_static_light(self, diffuse: RGBA, ambient: RGBA, multiply: float) -> None:
        self.static_light = (diffuse, ambient, multiply)

    def update_lighting_all(self) -> None:
        self.lighting_updates += 1

    def set_zfunc(self, zfunc: str) -> None:
        self.zfunc = zfunc


class HeadlessScene:
    def __init__(self, driver: HeadlessDriver, landscape: HeadlessLandscape):
        self.driver = driver
        self.landscape = landscape
        self.camera = HeadlessCamera(Frustum.ortho(driver.width, driver.height))
        self.viewport = Viewport()
        self.time = 0.0
        self.renders = 0
        self.elements: Dict[str, bool] = {}
        self.coarse_mesh_texture = ""
        self.groups: List["HeadlessInstanceGroup"] = []

    def get_viewport(self) -> Viewport:
        return self.viewport

    def set_viewport(self, viewport: Viewport) -> None:
        self.viewport = viewport

    def animate(self, time: float) -> None:
        self.time = float(time)

    def enable_element_render(self, element: str, enabled: bool) -> None:
        self.elements[element] = bool(enabled)

    def set_coarse_mesh_texture(self, name: str) -> None:
        self.coarse_mesh_texture = name

    def render(self) -> None:
        self.renders += 1
        driver = self.driver
        if not driver.color_mask or not self.elements.get("landscape", True) or not self.landscape.loaded:
            return
        frustum = self.camera.get_frustum()
        cx, cy, _ = self.camera.position
        px = frustum.width / driver.width
        py = frustum.height / driver.height
        wx = cx + frustum.left + (np.arange(driver.width) + 0.5) * px
        wy = cy + frustum.top - (np.arange(driver.height) + 0.5) * py
        ix = np.floor(wx / px).astype(np.int64)
        iy = np.floor(-wy / py).astype(np.int64)
        cols = np.floor(wx / TILE_SIZE).astype(np.int64)
        rows = -np.floor(wy / TILE_SIZE).astype(np.int64)
        resident = {(k.row, k.column) for k in self.landscape.loaded}
        col_grid, row_grid = np.meshgrid(cols, rows)
        mask = np.zeros(col_grid.shape, dtype=bool)
        for row in np.unique(rows):
            for col in np.unique(cols):
                if (int(row), int(col)) in resident:
                    mask |= (row_grid == row) & (col_grid == col)
        ix_grid, iy_grid = np.meshgrid(ix, iy)
        pixels = encode_world_pixels(ix_grid, iy_grid)
        driver.buffer[mask] = pixels[mask]


@dataclass(eq=False)
class HeadlessInstanceGroup:
    name: str
    instances: List[Tuple[str, str, Vec3]] = field(default_factory=list)
    capabilities: Set[str] = field(default_factory=set)
    position: Vec3 = (0.0, 0.0, 0.0)
    in_scene: bool = False
    cluster_forced: bool = False
    dist_max: Dict[int, float] = field(default_factory=dict)
    coarse_mesh_dist: Dict[int, float] = field(default_factory=dict)
    shape_dist_max: Dict[int, float] = field(default_factory=dict)

    def num_instances(self) -> int:
        return len(self.instances)

    def instance_name(self, index: int) -> str:
        return self.instances[index][0]

    def shape_name(self, index: int) -> str:
        return self.instances[index][1]

    def instance_position(self, index: int) -> Vec3:
        return self.instances[index][2]

    def set_position(self, position: Vec3) -> None:
        self.position = tuple(position)

    def set_dist_max(self, index: int, distance: float) -> None:
        self.dist_max[index] = distance

    def set_coarse_mesh_dist(self, index: int, distance: float) -> None:
        self.coarse_mesh_dist[index] = distance

    def set_shape_dist_max(self, index: int, distance: float) -> None:
        self.shape_dist_max[index] = distance

    def force_cluster_visibility(self) -> None:
        self.cluster_forced = True

    def add_to_scene(self, scene: HeadlessScene) -> None:
        self.in_scene = True
        scene.groups.append(self)

    def remove_from_scene(self, scene: HeadlessScene) -> None:
        self.in_scene = False
        if self in scene.groups:
            scene.groups.remove(self)

    def has_capability(self, name: str) -> bool:
        return name in self.capabilities


def _make_group(name: str, entry: Mapping[str, Any]) -> HeadlessInstanceGroup:
    instances = []
    for item in entry.get("instances", ()):
        pos = tuple(float(v) for v in item.get("position", (0.0, 0.0, 0.0)))
        instances.append((str(item["name"]), str(item.get("shape", item["name"])), pos))
    return HeadlessInstanceGroup(name=name, instances=instances, capabilities=set(entry.get("capabilities", ())))


class HeadlessZoneGroups:
    def __init__(self, assets: "HeadlessAssets"):
        self.assets = assets
        self.scene: Optional[HeadlessScene] = None
        self.season: Optional[str] = None
        self.resident: Dict[str, HeadlessInstanceGroup] = {}

    @property
    def initialized(self) -> bool:
        return self.scene is not None

    def init(self, scene: HeadlessScene, landscape_ig: str, season: str) -> None:
        self.scene = scene
        self.season = season

    def reset(self) -> None:
        for group in self.resident.values():
            if self.scene is not None:
                group.remove_from_scene(self.scene)
        self.resident.clear()
        self.scene = None

    def load_zones(self, names: Sequence[str]) -> None:
        if self.scene is None:
            return
        for name in names:
            entry = self.assets.zone_group_entry(name)
            if entry is None:
                continue
            group = _make_group(name, entry)
            group.add_to_scene(self.scene)
            self.resident[name.lower()] = group

    def unload_zones(self, names: Sequence[str]) -> None:
        for name in names:
            group = self.resident.pop(name.lower(), None)
            if group is not None and self.scene is not None:
                group.remove_from_scene(self.scene)

    def get(self, name: str) -> Optional[HeadlessInstanceGroup]:
        return self.resident.get(name.lower())


class HeadlessCollision:
    def __init__(self, borders: Sequence[Tuple[Vec3, Vec3, int]]):
        self.borders = list(borders)
        self.refresh_centers: List[Vec3] = []
        self.released = False

    def refresh_around(self, center: Vec3, radius: float) -> None:
        self.refresh_centers.append(center)

    def borders_in_box(self, box: Tuple[float, float, float, float]) -> List[Tuple[Vec3, Vec3, int]]:
        x0, y0, x1, y1 = box

        def inside(p: Vec3) -> bool:
            return x0 <= p[0] <= x1 and y0 <= p[1] <= y1

        return [b for b in self.borders if inside(b[0]) or inside(b[1])]

    def release(self) -> None:
        self.released = True


class HeadlessAssets(WorldFile):
    """World file plus instance groups, zone groups, collision data and a file list.

    Extra top-level keys understood on top of :class:`WorldFile`:

    * ``instance_groups``: ``{filename: {"instances": [...], "capabilities": [...]}}``
    * ``zone_groups``: the same, keyed by zone name
    * ``collision``: ``{retriever_bank: {"borders": [[x0, y0, x1, y1, class], ...]}}``
    * ``files``: other filenames that exist (global retrievers, landscape IG lists)

    Small banks named by a continent sheet always exist.
    """

    def __init__(self, data: Mapping[str, Any]):
        super().__init__(data)
        self._igs = {str(k).lower(): v for k, v in dict(data.get("instance_groups", {})).items()}
        self._zone_igs = {str(k).lower(): v for k, v in dict(data.get("zone_groups", {})).items()}
        self._collision = {str(k).lower(): v for k, v in dict(data.get("collision", {})).items()}
        self._files = {str(f).lower() for f in data.get("files", ())}
        self._banks = {name.lower() for name in self.bank_regions()}
        self.created: List[HeadlessInstanceGroup] = []

    def exists(self, filename: str) -> bool:
        key = filename.lower()
        return key in self._files or key in self._banks or key in self._igs or key in self._collision

    def create_instance_group(self, filename: str) -> Optional[HeadlessInstanceGroup]:
        entry = self._igs.get(filename.lower())
        if entry is None:
            return None
        group = _make_group(filename, entry)
        self.created.append(group)
        return group

    def zone_group_entry(self, name: str) -> Optional[Mapping[str, Any]]:
        return self._zone_igs.get(name.lower())

    def create_collision(self, retriever_bank: str, global_retriever: str) -> HeadlessCollision:
        entry = self._collision.get(retriever_bank.lower())
        if entry is None or not self.exists(global_retriever):
            raise ResourceNotFound(f"collision data not found: {retriever_bank}, {global_retriever}")
        borders = []
        for x0, y0, x1, y1, cls in entry.get("borders", ()):
            borders.append(((float(x0), float(y0), 0.0), (float(x1), float(y1), 0.0), int(cls)))
        return HeadlessCollision(borders)

    def bank_regions(self) -> Dict[str, Rect]:
        regions = {}
        for sheet in self._sheets.values():
            bank = sheet.get("small_bank")
            if bank and sheet.get("zone_min") and sheet.get("zone_max"):
                regions[str(bank)] = Rect.from_zone_range(str(sheet["zone_min"]), str(sheet["zone_max"]))
        return regions


def create_headless_context(
    world: Union[Mapping[str, Any], WorldFile, str, Path],
    window: Tuple[int, int] = (200, 200),
    abort_predicate: Optional[Callable[[HeadlessDriver], bool]] = None,
) -> RenderContext:
    """Build a RenderContext backed by the headless engine."""
    if isinstance(world, (str, Path)):
        world = load_world(world)
    data = world.to_dict() if isinstance(world, WorldFile) else copy.deepcopy(dict(world))
    assets = HeadlessAssets(data)
    driver = HeadlessDriver(window[0], window[1], abort_predicate=abort_predicate)
    landscape = HeadlessLandscape(assets.bank_regions())
    scene = HeadlessScene(driver, landscape)
    logger.debug(f"Headless context {window[0]}x{window[1]} with {len(landscape.banks)} terrain banks")
    return RenderContext(
        driver=driver,
        scene=scene,
        landscape=landscape,
        zone_groups=HeadlessZoneGroups(assets),
        assets=assets,
    )
