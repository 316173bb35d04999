# python/mapforge/renderer.py
# High-level map renderer: continent loading, tiled renders, frame stepping and batch export
# RELEVANT FILES: python/mapforge/streaming.py, python/mapforge/compositor.py, python/mapforge/view.py, python/mapforge/cli.py
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .compositor import RasterRegion, TiledCompositor, TiledRender
from .config import ConfigSource, load_map_config, parse_edge_classes
from .context import RenderContext
from .continents import ContinentRegistry, ContinentSelection
from .engine import Frustum, top_down_matrix
from .errors import LoadResult, ResourceNotFound
from .frame import FrameRenderer, FrameSettings
from .output import find_new_file, save_png
from .seasons import Season, SeasonResolver
from .streaming import StreamingManager
from .view import StepResult, ViewController
from .zones import Rect

logger = logging.getLogger(__name__)


class MapRenderer:
    """Orthographic map renderer over a streamed terrain.

    Args:
        context: Engine handles the renderer drives.
        config: Renderer configuration (instance, mapping, JSON path or None).
        registry: Continent registry; built from ``context.assets`` when omitted.
    """

    def __init__(self, context: RenderContext, config: ConfigSource = None, registry: Optional[ContinentRegistry] = None):
        self.context = context
        self.config = load_map_config(config)
        self.registry = registry if registry is not None else ContinentRegistry(context.assets)
        self.seasons = SeasonResolver(self.config.season)
        self.manager = StreamingManager(
            context,
            self.registry,
            self.seasons,
            hide_vegetation=self.config.hide_vegetation,
            use_light=self.config.use_light,
        )
        self.frame = FrameRenderer(context, self.manager, FrameSettings.from_config(self.config, context.window_size()))
        self.compositor = TiledCompositor(
            context,
            self.frame,
            tile_near=self.config.tile_near,
            vision_overrides=self.config.vision_overrides,
        )
        self.view = ViewController(
            self.registry,
            self.manager,
            self.config.view_center,
            padding=self.config.padding,
            bookmarks=self.config.bookmarks,
            load=self._load_selection,
        )
        self.map_name: Optional[str] = None
        self.bounds: Optional[Rect] = None
        if self.config.tile_near is not None:
            context.landscape.tile_near = self.config.tile_near
        self._start = time.perf_counter()

    # ------------------------------------------------------------------
    # Continents
    # ------------------------------------------------------------------
    def load_continent(self, name: str) -> LoadResult:
        selection = self.registry.find(name)
        if selection is None:
            logger.info(f"No map or continent named '{name}'")
            return LoadResult.failure(ResourceNotFound(f"no map or continent named {name!r}"), name)
        return self._load_selection(selection)

    def _load_selection(self, selection: ContinentSelection) -> LoadResult:
        result = self.manager.load_continent(selection)
        if result.ok:
            self.map_name = selection.map_name
            self.bounds = selection.render_bounds(self.manager.active)
        return result

    def unload_continent(self) -> None:
        self.manager.unload_continent()
        self.map_name = None
        self.bounds = None

    def list_continents(self) -> List[Tuple[str, List[str]]]:
        return self.registry.list_continents()

    def list_maps(self) -> List[Tuple[str, str, Rect, str]]:
        return self.registry.list_maps()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def region(self, scale: Optional[float] = None) -> RasterRegion:
        if self.bounds is None:
            raise RuntimeError("no continent loaded; call load_continent() first")
        return RasterRegion.for_bounds(self.bounds, self.config.scale if scale is None else scale, self.config.padding)

    def render_tiled_screenshot(self, region: Optional[RasterRegion] = None) -> TiledRender:
        return self.compositor.render(region if region is not None else self.region(), center_z=self.view.position[2])

    def save_render(self, render: TiledRender, name: Optional[str] = None) -> Path:
        stem = name or self.map_name or "map"
        return save_png(find_new_file(Path(self.config.output_dir) / f"{stem}.png"), render.image)

    def auto_render(self, names: Optional[Iterable[str]] = None) -> List[Path]:
        """Load, render and save each named map in turn.

        Names that fail to load are skipped; an abort stops the batch and
        nothing is written for the aborted map.
        """
        targets = list(names) if names is not None else list(self.config.maps)
        written: List[Path] = []
        for name in targets:
            result = self.load_continent(name)
            if not result.ok:
                logger.warning(f"Skipping '{name}': {result.error}")
                continue
            try:
                render = self.render_tiled_screenshot()
                if render.cancelled:
                    logger.info(f"Auto render aborted during '{name}'")
                    break
                written.append(self.save_render(render))
            finally:
                self.unload_continent()
        return written

    def step_frame(self) -> StepResult:
        result = self.view.step()
        width, height = self.context.window_size()
        scale = self.config.scale
        x, y, z = self.view.position
        camera = self.context.camera
        camera.set_frustum(Frustum.ortho(width / scale, height / scale))
        camera.set_matrix(top_down_matrix(x, y, z))
        self.context.scene.animate(time.perf_counter() - self._start)
        self.frame.render(self.view.position)
        return result

    def run_interactive(self, frames: Optional[int] = None) -> int:
        limit = self.config.frame_limit if frames is None else int(frames)
        count = 0
        driver = self.context.driver
        while not driver.abort_requested() and (limit <= 0 or count < limit):
            self.step_frame()
            driver.swap_buffers()
            count += 1
        logger.info(f"Interactive loop stopped after {count} frames")
        return count

    def single_screenshot(self, path) -> Path:
        self.step_frame()
        self.context.driver.flush()
        pixels = self.context.driver.read_pixels()
        return save_png(find_new_file(path), pixels)

    # ------------------------------------------------------------------
    # Toggles
    # ------------------------------------------------------------------
    def set_season(self, tag) -> Season:
        season = self.manager.change_season(tag)
        logger.info(f"Season set to '{season.value}'")
        return season

    def cycle_season(self) -> Season:
        return self.set_season(self.seasons.season.next())

    def toggle_hide_vegetation(self) -> bool:
        self.manager.set_hide_vegetation(not self.manager.hide_vegetation)
        return self.manager.hide_vegetation

    def set_collision_filter(self, edge_classes) -> None:
        self.frame.settings.collision_filter = None if edge_classes is None else parse_edge_classes(edge_classes)

    def adjust_vision(self, delta: float) -> float:
        self.frame.vision = max(0.0, self.frame.vision + delta)
        return self.frame.vision
