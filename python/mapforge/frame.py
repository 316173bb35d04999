# python/mapforge/frame.py
# Per-frame pipeline: streaming refresh, scene passes and overlays
# RELEVANT FILES: python/mapforge/streaming.py, python/mapforge/overlays.py, python/mapforge/compositor.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .context import RenderContext
from .engine import Vec3
from .overlays import draw_collision, draw_grid
from .streaming import StreamingDelta, StreamingManager

logger = logging.getLogger(__name__)


@dataclass
class FrameSettings:
    background_color: Tuple[int, int, int, int] = (255, 0, 255, 255)
    inverse_z: bool = False
    fxaa: bool = False
    draw_grid: bool = False
    draw_grid_names: bool = False
    # None keeps the collision overlay off
    collision_filter: Optional[List[int]] = None
    vision: float = 500.0

    @classmethod
    def from_config(cls, config, window_size: Tuple[int, int]) -> "FrameSettings":
        vision = config.vision
        if vision is None:
            vision = (max(window_size) + 160) / 2.0
        return cls(
            background_color=tuple(config.background_color),
            inverse_z=config.inverse_z,
            fxaa=config.fxaa,
            draw_grid=config.draw_grid,
            draw_grid_names=config.draw_grid_names,
            collision_filter=list(config.collision_filter) if config.collision_filter is not None else None,
            vision=float(vision),
        )


class FrameRenderer:
    """Renders one frame at a reference point through the engine."""

    def __init__(self, context: RenderContext, manager: StreamingManager, settings: Optional[FrameSettings] = None):
        self.context = context
        self.manager = manager
        self.settings = settings if settings is not None else FrameSettings()
        self.frames = 0

    @property
    def vision(self) -> float:
        return self.settings.vision

    @vision.setter
    def vision(self, value: float) -> None:
        self.settings.vision = float(value)

    def render(self, center: Vec3) -> StreamingDelta:
        ctx = self.context
        driver = ctx.driver
        settings = self.settings

        delta = self.manager.refresh(center, settings.vision)

        ctx.landscape.set_zfunc("lessequal")
        driver.clear(settings.background_color)
        ctx.scene.render()

        if settings.inverse_z:
            # Depth-only pass that keeps the farthest landscape, then vegetation on top
            driver.set_color_mask(False)
            ctx.landscape.set_zfunc("greaterequal")
            ctx.scene.render()
            driver.draw_fullscreen_quad("less")
            driver.set_color_mask(True)
            ctx.landscape.set_zfunc("lessequal")
            ctx.scene.enable_element_render("water", False)
            ctx.scene.enable_element_render("landscape", False)
            ctx.scene.render()
            ctx.scene.enable_element_render("water", True)
            ctx.scene.enable_element_render("landscape", True)

        if settings.fxaa and driver.has_capability("fxaa"):
            driver.apply_fxaa()

        self._draw_overlays(center)
        self.frames += 1
        return delta

    def _draw_overlays(self, center: Vec3) -> None:
        settings = self.settings
        if not settings.draw_grid and settings.collision_filter is None:
            return
        frustum = self.context.camera.get_frustum()
        if settings.draw_grid:
            draw_grid(self.context.driver, self.context.landscape, center, frustum.width, frustum.height,
                      names=settings.draw_grid_names)
        if settings.collision_filter is not None and self.manager.collision is not None:
            draw_collision(self.context.driver, self.manager.collision, center, frustum.width, frustum.height,
                           settings.collision_filter)
