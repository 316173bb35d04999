# python/mapforge/context.py
# Explicit render context bundling the engine handles used by the core
# RELEVANT FILES: python/mapforge/engine.py, python/mapforge/renderer.py, python/mapforge/headless.py
from __future__ import annotations

from dataclasses import dataclass

from .engine import AssetRegistry, Driver, Landscape, Scene, ZoneGroups


@dataclass
class RenderContext:
    """Engine handles shared by the streaming manager, compositor and view controller.

    One context per renderer; nothing in mapforge keeps global engine state.
    """

    driver: Driver
    scene: Scene
    landscape: Landscape
    zone_groups: ZoneGroups
    assets: AssetRegistry

    @property
    def camera(self):
        return self.scene.camera

    def window_size(self):
        width, height = self.driver.window_size()
        if width <= 0 or height <= 0:
            raise RuntimeError(f"driver reported an empty window: {width}x{height}")
        return int(width), int(height)
