# python/mapforge/compositor.py
# Tiled screenshot compositor: stitches viewport-sized renders into one raster
# RELEVANT FILES: python/mapforge/frame.py, python/mapforge/output.py, tests/test_compositor.py
"""Tiled screenshot compositor.

A continent is usually far larger than the window. The compositor walks a
grid of viewport-sized cells across the target region, renders each cell with
an orthographic top-down camera and copies the readback into one output
buffer. Camera placement and blit offsets are derived from the fixed region
origin for every cell, so adjacent cells meet without gaps or overlap.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import numpy as np

from .context import RenderContext
from .engine import Frustum, Viewport, top_down_matrix
from .errors import CancelledOperation, InvalidConfiguration
from .frame import FrameRenderer
from .zones import TILE_SIZE, Rect

logger = logging.getLogger(__name__)

REFINE_THRESHOLD = 0.00005
VISION_MARGIN_TILES = 4
ORTHO_NEAR = -10000.0
ORTHO_FAR = 10000.0


@dataclass(frozen=True)
class RasterRegion:
    bounds: Rect
    scale: float

    def __post_init__(self) -> None:
        if not (isinstance(self.scale, (int, float)) and self.scale > 0.0 and math.isfinite(self.scale)):
            raise InvalidConfiguration(f"scale must be a positive number, got {self.scale!r}")
        if not (self.bounds.width > 0.0 and self.bounds.height > 0.0):
            raise InvalidConfiguration(f"region is empty: {self.bounds.to_tuple()}")
        if self.width_px < 1 or self.height_px < 1:
            raise InvalidConfiguration(
                f"region {self.bounds.width}x{self.bounds.height} at scale {self.scale} is smaller than one pixel"
            )

    @classmethod
    def for_bounds(cls, bounds: Rect, scale: float, padding: float = 0.0) -> "RasterRegion":
        if padding < 0.0:
            raise InvalidConfiguration("padding must be non-negative")
        return cls(bounds=bounds.padded(padding) if padding else bounds, scale=float(scale))

    @property
    def width_px(self) -> int:
        return int(math.floor(self.bounds.width * self.scale))

    @property
    def height_px(self) -> int:
        return int(math.floor(self.bounds.height * self.scale))


@dataclass(frozen=True)
class Cell:
    """One grid cell; ``left``/``top`` are pixel offsets into the output raster."""

    column: int
    row: int
    left: int
    top: int
    width: int
    height: int

    def world_center(self, region: RasterRegion, viewport: Tuple[int, int]) -> Tuple[float, float]:
        """Centre of the viewport-sized footprint anchored at the cell origin."""
        vw, vh = viewport
        x = region.bounds.min_x + (self.left + vw / 2.0) / region.scale
        y = region.bounds.max_y - (self.top + vh / 2.0) / region.scale
        return (x, y)


def plan_cells(region: RasterRegion, viewport: Tuple[int, int]) -> List[Cell]:
    """Row-major cells covering the raster; the last row and column are clipped to it."""
    vw, vh = int(viewport[0]), int(viewport[1])
    if vw <= 0 or vh <= 0:
        raise InvalidConfiguration(f"viewport must be non-empty, got {vw}x{vh}")
    width, height = region.width_px, region.height_px
    cells = []
    for row, top in enumerate(range(0, height, vh)):
        for column, left in enumerate(range(0, width, vw)):
            cells.append(Cell(column, row, left, top, min(vw, width - left), min(vh, height - top)))
    return cells


def safe_vision_radius(viewport: Tuple[int, int], scale: float, margin_tiles: int = VISION_MARGIN_TILES) -> float:
    """Streaming radius that keeps a whole cell plus margin resident."""
    half_extent = max(viewport[0], viewport[1]) / scale / 2.0
    return math.ceil(half_extent / TILE_SIZE) * TILE_SIZE + margin_tiles * TILE_SIZE


@dataclass(frozen=True)
class CompositorState:
    camera_matrix: np.ndarray
    frustum: Frustum
    viewport: Viewport
    tile_near: float
    threshold: float
    refine_center_auto: bool
    vision: float

    @classmethod
    def capture(cls, context: RenderContext, frame: FrameRenderer) -> "CompositorState":
        landscape = context.landscape
        return cls(
            camera_matrix=np.array(context.camera.get_matrix(), copy=True),
            frustum=context.camera.get_frustum(),
            viewport=context.scene.get_viewport(),
            tile_near=landscape.tile_near,
            threshold=landscape.threshold,
            refine_center_auto=landscape.refine_center_auto,
            vision=frame.vision,
        )

    def restore(self, context: RenderContext, frame: FrameRenderer) -> None:
        context.camera.set_matrix(self.camera_matrix)
        context.camera.set_frustum(self.frustum)
        context.scene.set_viewport(self.viewport)
        context.landscape.tile_near = self.tile_near
        context.landscape.threshold = self.threshold
        context.landscape.refine_center_auto = self.refine_center_auto
        frame.vision = self.vision

    def matches(self, other: "CompositorState") -> bool:
        return (
            np.array_equal(self.camera_matrix, other.camera_matrix)
            and self.frustum == other.frustum
            and self.viewport == other.viewport
            and self.tile_near == other.tile_near
            and self.threshold == other.threshold
            and self.refine_center_auto == other.refine_center_auto
            and self.vision == other.vision
        )


@dataclass
class TiledRender:
    image: np.ndarray
    cells_total: int
    cells_rendered: int
    cancelled: bool = False

    @property
    def complete(self) -> bool:
        return not self.cancelled and self.cells_rendered == self.cells_total

    def raise_if_cancelled(self) -> "TiledRender":
        if self.cancelled:
            raise CancelledOperation(self.cells_rendered, self.cells_total)
        return self


class TiledCompositor:
    """Renders a RasterRegion cell by cell.

    Args:
        context: Engine handles.
        frame: Frame pipeline run for every cell.
        tile_near: Fixed tile-near distance; ``None`` derives it from the vision radius.
        vision_overrides: Minimum vision radius per continent name.
        fill: Initial value of every output byte, kept by cells that are never rendered.
    """

    def __init__(
        self,
        context: RenderContext,
        frame: FrameRenderer,
        *,
        tile_near: Optional[float] = None,
        vision_overrides: Optional[Dict[str, float]] = None,
        fill: int = 0,
    ):
        self.context = context
        self.frame = frame
        self.tile_near = tile_near
        self.vision_overrides = {k.lower(): float(v) for k, v in (vision_overrides or {}).items()}
        self.fill = int(fill)

    def _vision_for(self, viewport: Tuple[int, int], scale: float) -> float:
        vision = safe_vision_radius(viewport, scale)
        active = self.frame.manager.active
        if active is not None:
            vision = max(vision, self.vision_overrides.get(active.name.lower(), 0.0))
        return vision

    def render(self, region: RasterRegion, center_z: float = 0.0) -> TiledRender:
        ctx = self.context
        viewport = ctx.window_size()
        cells = plan_cells(region, viewport)
        image = np.full((region.height_px, region.width_px, 4), self.fill, dtype=np.uint8)

        state = CompositorState.capture(ctx, self.frame)
        rendered = 0
        cancelled = False
        try:
            vision = self._vision_for(viewport, region.scale)
            self.frame.vision = vision
            ctx.landscape.tile_near = self.tile_near if self.tile_near is not None else vision / 2.0
            ctx.landscape.refine_center_auto = False
            ctx.landscape.threshold = REFINE_THRESHOLD
            ctx.camera.set_frustum(
                Frustum.ortho(viewport[0] / region.scale, viewport[1] / region.scale, ORTHO_NEAR, ORTHO_FAR)
            )
            ctx.scene.set_viewport(Viewport())
            logger.info(
                f"Tiled render {region.width_px}x{region.height_px} px at scale {region.scale}: "
                f"{len(cells)} cells, vision {vision:.0f}"
            )

            for cell in cells:
                if ctx.driver.abort_requested():
                    cancelled = True
                    logger.info(f"Tiled render aborted at cell ({cell.column}, {cell.row})")
                    break
                x, y = cell.world_center(region, viewport)
                center = (x, y, center_z)
                ctx.camera.set_matrix(top_down_matrix(x, y, center_z))
                ctx.scene.animate(0.0)
                self.frame.render(center)
                ctx.driver.flush()
                self._blit(image, ctx.driver.read_pixels(), cell)
                ctx.driver.swap_buffers()
                rendered += 1
        finally:
            state.restore(ctx, self.frame)
            ctx.driver.reset_abort()

        return TiledRender(image=image, cells_total=len(cells), cells_rendered=rendered, cancelled=cancelled)

    @staticmethod
    def _blit(image: np.ndarray, buffer: np.ndarray, cell: Cell) -> None:
        buf = np.asarray(buffer)
        if buf.ndim != 3 or buf.shape[0] < cell.height or buf.shape[1] < cell.width:
            raise RuntimeError(f"readback of shape {buf.shape} cannot fill a {cell.width}x{cell.height} cell")
        src = buf[: cell.height, : cell.width]
        if src.shape[2] == 3:
            image[cell.top : cell.top + cell.height, cell.left : cell.left + cell.width, :3] = src
            image[cell.top : cell.top + cell.height, cell.left : cell.left + cell.width, 3] = 255
        else:
            image[cell.top : cell.top + cell.height, cell.left : cell.left + cell.width] = src[..., :4]
