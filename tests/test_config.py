# tests/test_config.py
# Tests map renderer configuration parsing, validation and scale strings.
# RELEVANT FILES: python/mapforge/config.py, python/mapforge/cli.py

from __future__ import annotations

import json
from pathlib import Path

import pytest

from mapforge.config import (
    DEFAULT_BOOKMARKS,
    MapRendererConfig,
    load_map_config,
    parse_edge_classes,
    parse_scale,
)
from mapforge.errors import InvalidConfiguration
from mapforge.seasons import Season


class TestParseScale:
    @pytest.mark.parametrize("value, expected", [("1:1", 1.0), ("2:1", 2.0), ("1:2", 0.5), (3, 3.0), ("0.25", 0.25)])
    def test_valid(self, value, expected) -> None:
        assert parse_scale(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["abc", "1:0", "0:1", "-1:1", 0, "1:x"])
    def test_invalid(self, value) -> None:
        with pytest.raises(InvalidConfiguration):
            parse_scale(value)

    def test_small_scale_clamped(self) -> None:
        with pytest.warns(RuntimeWarning):
            assert parse_scale("1:20") == pytest.approx(0.1)


def test_defaults() -> None:
    cfg = load_map_config()
    assert cfg.scale == 1.0
    assert cfg.background_color == (255, 0, 255, 255)
    assert cfg.season is Season.SPRING
    assert cfg.collision_filter is None
    assert not cfg.tile_near_locked
    assert cfg.vision_overrides["tryker_island"] == 1000.0
    assert cfg.bookmarks == DEFAULT_BOOKMARKS


def test_from_mapping_normalizes_values() -> None:
    cfg = load_map_config(
        {
            "scale": "2:1",
            "season": "Winter",
            "hide_vegetation": "yes",
            "collision_filter": "block,link",
            "view_center": "4720,-3435",
            "maps": "pyr,zorai",
            "background_color": [0, 0, 0],
            "bookmarks": {"Home": [10, -10]},
        }
    )
    assert cfg.scale == 2.0
    assert cfg.season is Season.WINTER
    assert cfg.hide_vegetation is True
    assert cfg.collision_filter == [0, 2]
    assert cfg.view_center == (4720.0, -3435.0, 0.0)
    assert cfg.maps == ["pyr", "zorai"]
    assert cfg.background_color == (0, 0, 0, 255)
    assert cfg.bookmarks["home"] == (10.0, -10.0)
    assert "pyr" in cfg.bookmarks


def test_load_from_json_with_overrides(tmp_path: Path) -> None:
    path = tmp_path / "map.json"
    path.write_text(json.dumps({"scale": 2, "output_dir": "out", "fxaa": True}), encoding="utf-8")
    cfg = load_map_config(path, overrides={"output_dir": "elsewhere", "vision": None, "tile_near": 30})
    assert cfg.scale == 2.0
    assert cfg.fxaa is True
    assert cfg.output_dir == "elsewhere"
    assert cfg.vision is None
    assert cfg.tile_near == 30.0 and cfg.tile_near_locked


def test_instance_is_copied() -> None:
    original = MapRendererConfig(scale=3.0)
    cfg = load_map_config(original)
    cfg.maps.append("x")
    assert original.maps == []


def test_to_dict_roundtrips() -> None:
    cfg = load_map_config({"season": "au", "collision_filter": [2, 0]})
    again = load_map_config(cfg.to_dict())
    assert again == cfg


@pytest.mark.parametrize(
    "data",
    [{"padding": -1}, {"frame_limit": -5}, {"vision": 0}, {"background_color": [300, 0, 0]}, {"hide_vegetation": "maybe"}],
)
def test_invalid_values_rejected(data) -> None:
    with pytest.raises(InvalidConfiguration):
        load_map_config(data)


def test_unsupported_inputs(tmp_path: Path) -> None:
    with pytest.raises(TypeError):
        load_map_config(42)  # type: ignore[arg-type]
    path = tmp_path / "cfg.yaml"
    path.write_text("scale: 1", encoding="utf-8")
    with pytest.raises(InvalidConfiguration):
        load_map_config(path)


def test_parse_edge_classes() -> None:
    assert parse_edge_classes([0, "2", "Exterior-Door"]) == [0, 2, 5]
    with pytest.raises(InvalidConfiguration):
        parse_edge_classes("teleport")
