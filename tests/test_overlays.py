# tests/test_overlays.py
# Tests the zone grid and collision border overlays, and the frame passes that draw them.
# RELEVANT FILES:python/mapforge/overlays.py,python/mapforge/frame.py

import pytest

from mapforge.continents import ContinentSelection
from mapforge.frame import FrameRenderer, FrameSettings
from mapforge.headless import HeadlessCollision
from mapforge.overlays import (
    EDGE_COLORS,
    UNKNOWN_EDGE_COLOR,
    EdgeClass,
    draw_collision,
    draw_grid,
    edge_color,
    filter_borders,
    grid_lines,
)


def test_grid_lines_follow_tile_boundaries():
    lines = grid_lines((80.0, -80.0, 0.0), 160.0, 160.0)
    xs = sorted({p0[0] for p0, p1 in lines if p0[0] == p1[0]})
    ys = sorted({p0[1] for p0, p1 in lines if p0[1] == p1[1]})
    assert xs == [0.0, 160.0]
    assert ys == [-160.0, 0.0]


def test_grid_lines_cover_partial_tiles():
    lines = grid_lines((200.0, -100.0, 0.0), 100.0, 100.0)
    xs = sorted({p0[0] for p0, p1 in lines if p0[0] == p1[0]})
    assert xs == [0.0, 160.0, 320.0]


def test_edge_colors():
    assert edge_color(EdgeClass.BLOCK) == (255, 0, 0, 255)
    assert edge_color(EdgeClass.LINK) == (255, 255, 0, 255)
    assert edge_color(42) == UNKNOWN_EDGE_COLOR
    assert len(EDGE_COLORS) == 6


def test_filter_defaults_to_block_and_link():
    borders = [((0, 0, 0), (1, 0, 0), c) for c in range(6)]
    assert [c for _, _, c in filter_borders(borders)] == [0, 2]
    assert [c for _, _, c in filter_borders(borders, [3, 5])] == [3, 5]


def test_draw_collision_uses_view_box(context):
    collision = HeadlessCollision(
        [((10.0, -10.0, 0.0), (50.0, -10.0, 0.0), 0), ((900.0, -900.0, 0.0), (950.0, -900.0, 0.0), 0)]
    )
    drawn = draw_collision(context.driver, collision, (100.0, -100.0, 0.0), 200.0, 200.0)
    assert drawn == 1
    assert context.driver.lines[0][2] == (255, 0, 0, 255)


def test_grid_names_only_for_resident_tiles(context, manager):
    manager.load_continent(ContinentSelection("fyros", "fyros"))
    manager.refresh((100.0, -100.0, 0.0), 10.0)
    draw_grid(context.driver, context.landscape, (160.0, -160.0, 0.0), 320.0, 320.0, names=True)
    assert [text for _, text in context.driver.labels] == ["1_AA"]


def test_grid_names_need_text_capability(context, manager):
    context.driver.capabilities.discard("text")
    manager.load_continent(ContinentSelection("fyros", "fyros"))
    manager.refresh((100.0, -100.0, 0.0), 10.0)
    draw_grid(context.driver, context.landscape, (160.0, -160.0, 0.0), 320.0, 320.0, names=True)
    assert context.driver.labels == []
    assert context.driver.lines


class TestFrameRenderer:
    def _frame(self, context, manager, **kwargs):
        manager.load_continent(ContinentSelection("fyros", "fyros"))
        return FrameRenderer(context, manager, FrameSettings(vision=100.0, **kwargs))

    def test_plain_frame_streams_and_renders(self, context, manager):
        frame = self._frame(context, manager)
        delta = frame.render((100.0, -100.0, 0.0))
        assert len(delta.added) == 4
        assert context.scene.renders == 1
        assert context.landscape.zfunc == "lessequal"
        assert context.driver.lines == []
        assert frame.frames == 1

    def test_inverse_z_adds_passes_and_restores_state(self, context, manager):
        frame = self._frame(context, manager, inverse_z=True)
        frame.render((100.0, -100.0, 0.0))
        assert context.scene.renders == 3
        assert context.driver.color_mask is True
        assert context.landscape.zfunc == "lessequal"
        assert context.scene.elements == {"water": True, "landscape": True}

    def test_fxaa_requires_capability(self, context, manager):
        frame = self._frame(context, manager, fxaa=True)
        frame.render((100.0, -100.0, 0.0))
        assert context.driver.fxaa_passes == 0
        context.driver.capabilities.add("fxaa")
        frame.render((100.0, -100.0, 0.0))
        assert context.driver.fxaa_passes == 1

    def test_collision_overlay(self, context, manager):
        frame = self._frame(context, manager, collision_filter=[0, 1])
        frame.render((100.0, -100.0, 0.0))
        colors = sorted(line[2] for line in context.driver.lines)
        assert colors == [(0, 255, 0, 255), (255, 0, 0, 255)]

    def test_collision_overlay_disabled_without_dataset(self, context, manager):
        with pytest.warns(RuntimeWarning):
            manager.load_continent(ContinentSelection("zorai", "zorai"))
        frame = FrameRenderer(context, manager, FrameSettings(vision=100.0, collision_filter=[0]))
        frame.render((600.0, -100.0, 0.0))
        assert context.driver.lines == []

    def test_vision_from_config_defaults_to_window(self):
        from mapforge.config import MapRendererConfig

        settings = FrameSettings.from_config(MapRendererConfig(), (1024, 768))
        assert settings.vision == pytest.approx((1024 + 160) / 2.0)
        assert FrameSettings.from_config(MapRendererConfig(vision=300.0), (1024, 768)).vision == 300.0
