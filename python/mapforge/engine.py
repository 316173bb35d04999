# python/mapforge/engine.py
# Protocols for the external 3D engine collaborators reached by the core
# RELEVANT FILES: python/mapforge/context.py, python/mapforge/headless.py, python/mapforge/streaming.py
"""Engine interfaces.

The renderer core never rasterizes, parses terrain banks or loads collision
data itself. Everything goes through the protocols below; any backend that
implements them can drive the core. Optional behaviour is probed with
``has_capability(name)`` instead of type checks.

Well-known capability names:

* ``"cluster_instances"`` on :class:`InstanceGroup`: the group carries
  cluster instances that must be forced visible from their parent.
* ``"text"`` on :class:`Driver`: ``draw_text`` is available.
* ``"fxaa"`` on :class:`Driver`: ``apply_fxaa`` is available.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

import numpy as np

Vec3 = Tuple[float, float, float]
RGBA = Tuple[int, int, int, int]


@dataclass(frozen=True)
class Frustum:
    left: float
    right: float
    bottom: float
    top: float
    near: float
    far: float
    perspective: bool = False

    @classmethod
    def ortho(cls, width: float, height: float, near: float = -10000.0, far: float = 10000.0) -> "Frustum":
        return cls(-width / 2.0, width / 2.0, -height / 2.0, height / 2.0, near, far, False)

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom


@dataclass(frozen=True)
class Viewport:
    """Normalized viewport rectangle."""

    x: float = 0.0
    y: float = 0.0
    width: float = 1.0
    height: float = 1.0


def top_down_matrix(x: float, y: float, z: float) -> np.ndarray:
    """Camera matrix looking straight down (-Z) from ``(x, y, z)``."""
    mat = np.identity(4, dtype=np.float64)
    # Rotation of -pi/2 around X maps the camera forward axis onto world -Z
    mat[:3, :3] = np.array([[1.0, 0.0, 0.0], [0.0, 0.0, 1.0], [0.0, -1.0, 0.0]])
    mat[:3, 3] = (x, y, z)
    return mat


class Camera(Protocol):
    def get_matrix(self) -> np.ndarray: ...

    def set_matrix(self, matrix: np.ndarray) -> None: ...

    def get_frustum(self) -> Frustum: ...

    def set_frustum(self, frustum: Frustum) -> None: ...


class Scene(Protocol):
    camera: Camera

    def get_viewport(self) -> Viewport: ...

    def set_viewport(self, viewport: Viewport) -> None: ...

    def animate(self, time: float) -> None: ...

    def render(self) -> None: ...

    def enable_element_render(self, element: str, enabled: bool) -> None: ...

    def set_coarse_mesh_texture(self, name: str) -> None: ...


class Driver(Protocol):
    def window_size(self) -> Tuple[int, int]: ...

    def clear(self, color: RGBA) -> None: ...

    def set_color_mask(self, enabled: bool) -> None: ...

    def draw_fullscreen_quad(self, zfunc: str) -> None: ...

    def draw_line(self, p0: Vec3, p1: Vec3, color: RGBA) -> None: ...

    def draw_text(self, position: Vec3, text: str, color: RGBA) -> None: ...

    def apply_fxaa(self) -> None: ...

    def flush(self) -> None: ...

    def read_pixels(self) -> np.ndarray:
        """Return the back buffer as an ``(height, width, 4)`` uint8 array, row 0 at the top."""
        ...

    def swap_buffers(self) -> None: ...

    def abort_requested(self) -> bool: ...

    def reset_abort(self) -> None:
        """Clear a pending abort request once the operation it cancelled has stopped."""
        ...

    def has_capability(self, name: str) -> bool: ...


class Landscape(Protocol):
    tile_near: float
    threshold: float
    refine_center_auto: bool

    def load_bank_files(self, small_bank: str, far_bank: str) -> None: ...

    def postfix_tile_filename(self, postfix: str) -> None: ...

    def postfix_tile_vegetable_desc(self, postfix: str) -> None: ...

    def load_vegetable_texture(self, name: str) -> None: ...

    def refresh_zones_around(self, center: Vec3, radius: float) -> Tuple[List[str], List[str]]:
        """Blocking refresh; returns ``(added, removed)`` zone names."""
        ...

    def remove_all_zones(self) -> None: ...

    def zone_name_at(self, x: float, y: float) -> Optional[str]: ...

    def set_refine_center_user(self, center: Vec3) -> None: ...

    def setup_static_light(self, diffuse: RGBA, ambient: RGBA, multiply: float) -> None: ...

    def update_lighting_all(self) -> None: ...

    def set_zfunc(self, zfunc: str) -> None: ...


class InstanceGroup(Protocol):
    def num_instances(self) -> int: ...

    def instance_name(self, index: int) -> str: ...

    def shape_name(self, index: int) -> str: ...

    def instance_position(self, index: int) -> Vec3: ...

    def set_position(self, position: Vec3) -> None: ...

    def set_dist_max(self, index: int, distance: float) -> None: ...

    def set_coarse_mesh_dist(self, index: int, distance: float) -> None: ...

    def set_shape_dist_max(self, index: int, distance: float) -> None: ...

    def force_cluster_visibility(self) -> None: ...

    def add_to_scene(self, scene: Scene) -> None: ...

    def remove_from_scene(self, scene: Scene) -> None: ...

    def has_capability(self, name: str) -> bool: ...


class ZoneGroups(Protocol):
    """Per-tile landscape instance groups, keyed by zone name."""

    def init(self, scene: Scene, landscape_ig: str, season: str) -> None: ...

    def reset(self) -> None: ...

    def load_zones(self, names: Sequence[str]) -> None: ...

    def unload_zones(self, names: Sequence[str]) -> None: ...

    def get(self, name: str) -> Optional[InstanceGroup]: ...


class CollisionDataset(Protocol):
    def refresh_around(self, center: Vec3, radius: float) -> None: ...

    def borders_in_box(self, box: Tuple[float, float, float, float]) -> List[Tuple[Vec3, Vec3, int]]:
        """Border edges ``(p0, p1, edge_class)`` inside ``(min_x, min_y, max_x, max_y)``."""
        ...

    def release(self) -> None: ...


class AssetRegistry(Protocol):
    def world_sheet(self) -> Mapping[str, Any]:
        """``{"continents": [...], "maps": [...]}`` entries, see :mod:`mapforge.continents`."""
        ...

    def continent_sheet(self, name: str) -> Optional[Mapping[str, Any]]: ...

    def create_instance_group(self, filename: str) -> Optional[InstanceGroup]: ...

    def exists(self, filename: str) -> bool: ...

    def create_collision(self, retriever_bank: str, global_retriever: str) -> CollisionDataset: ...


def collect(values: Iterable[str]) -> List[str]:
    """Materialize loader deltas; engines may hand back generators."""
    return [str(v) for v in values]
