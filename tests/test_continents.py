# tests/test_continents.py
# Tests continent resolution by coordinates, name lookup order and descriptor parsing.
# RELEVANT FILES:python/mapforge/continents.py,tests/conftest.py

import json

import pytest

from mapforge.continents import ContinentDescriptor, ContinentRegistry, WorldFile, load_world
from mapforge.errors import InvalidConfiguration, ResourceNotFound
from mapforge.zones import Rect


class TestResolve:
    def test_inside_bounds(self, registry):
        loc = registry.resolve(100.0, -100.0)
        assert loc is not None
        assert loc.continent_name == "fyros"
        assert registry.resolve(600.0, -200.0).continent_name == "zorai"

    def test_world_sheet_bounds_extend_past_zone_range(self, registry):
        assert registry.resolve(100.0, -350.0).continent_name == "fyros"

    def test_outside_every_continent(self, registry):
        assert registry.resolve(400.0, -100.0) is None
        assert registry.resolve(5000.0, -5000.0) is None

    def test_border_is_outside(self, registry):
        assert registry.resolve(480.0, -100.0) is None
        assert registry.resolve(320.0, -100.0) is None


class TestFind:
    def test_sub_map_name_uses_map_bounds_and_bitmap_name(self, registry):
        sel = registry.find("pyr")
        assert sel.continent == "fyros"
        assert sel.map_name == "pyr_map"
        assert sel.bounds == Rect(0.0, -160.0, 160.0, 0.0)

    def test_sub_map_wins_over_continent_name(self, registry):
        sel = registry.find("zorai")
        assert sel.continent == "zorai"
        assert sel.map_name == "zorai_city"
        assert sel.bounds == Rect(480.0, -160.0, 640.0, 0.0)

    def test_continent_name_falls_back_to_zone_bounds(self, registry):
        sel = registry.find("FYROS")
        assert sel.continent == "fyros"
        assert sel.map_name == "fyros"
        assert sel.bounds is None
        assert sel.render_bounds(registry.descriptor("fyros")) == Rect(0.0, -320.0, 320.0, 0.0)

    def test_sub_map_outside_continent_falls_back_to_zone_bounds(self, world):
        from mapforge.headless import HeadlessAssets

        world["maps"].append(
            {"name": "faraway", "continent": "Desert", "bitmap": "faraway.tga", "bounds": [5000, -5160, 5160, -5000]}
        )
        registry = ContinentRegistry(HeadlessAssets(world))
        sel = registry.find("faraway")
        assert sel.continent == "fyros"
        assert sel.map_name == "faraway"
        assert sel.bounds is None
        assert sel.render_bounds(registry.descriptor("fyros")) == Rect(0.0, -320.0, 320.0, 0.0)

    def test_sub_map_continent_name_is_an_alias_not_a_map(self, registry):
        # "Jungle" owns two maps; the alias loads the whole continent
        sel = registry.find("Jungle")
        assert sel.continent == "zorai"
        assert sel.bounds is None

    def test_selection_alias(self, registry):
        sel = registry.find("jungle")
        assert sel.continent == "zorai"
        assert sel.bounds is None

    def test_unknown_name(self, registry):
        assert registry.find("atlantis") is None
        assert registry.find("  ") is None

    def test_known_continent_without_sheet_still_resolves(self, registry):
        sel = registry.find("ghost")
        assert sel is not None and sel.continent == "ghost"
        assert registry.descriptor("ghost") is None
        with pytest.raises(ResourceNotFound):
            registry.require("ghost")


class TestDescriptor:
    def test_parsed_from_sheet(self, registry):
        desc = registry.descriptor("fyros")
        assert desc.selection_name == "Desert"
        assert desc.bounds == Rect(0.0, -320.0, 320.0, 0.0)
        assert desc.banks.far_bank == "fyros.farbank"
        assert [v.name for v in desc.villages] == ["pyr_village", "missing_village"]
        assert desc.villages[0].parent == "pyr"
        assert desc.outposts[0].zone == "1_ab"
        assert desc.lighting.ambient == (40, 40, 40, 255)
        assert desc.collision.retriever_bank == "fyros.rbank"

    def test_descriptor_is_cached(self, registry):
        assert registry.descriptor("fyros") is registry.descriptor("FYROS")

    def test_bad_zone_name_is_invalid_configuration(self):
        with pytest.raises(InvalidConfiguration):
            ContinentDescriptor.from_mapping({"name": "x", "zone_min": "1_AA", "zone_max": "bogus"})

    def test_missing_key_is_invalid_configuration(self):
        with pytest.raises(InvalidConfiguration):
            ContinentDescriptor.from_mapping({"name": "x", "zone_min": "1_AA"})


class TestListing:
    def test_list_continents(self, registry):
        rows = dict(registry.list_continents())
        assert rows["fyros"] == ["pyr"]
        assert rows["zorai"] == ["jungle_map", "zorai"]
        assert rows["ghost"] == []

    def test_list_maps_skips_world_and_marks_orphans(self, registry):
        rows = {name: (bitmap, continent) for name, bitmap, _, continent in registry.list_maps()}
        assert "world" not in rows
        assert rows["pyr"] == ("pyr_map.tga", "fyros")
        assert rows["lost"] == ("", "-")

    def test_names(self, registry):
        assert registry.continent_names() == ["fyros", "zorai", "ghost"]
        assert "world" in registry.map_names()


def test_load_world_from_json(tmp_path, world):
    path = tmp_path / "w.json"
    path.write_text(json.dumps(world), encoding="utf-8")
    wf = load_world(path)
    assert isinstance(wf, WorldFile)
    registry = ContinentRegistry(wf)
    assert registry.resolve(100.0, -100.0).continent_name == "fyros"


def test_load_world_missing_file(tmp_path):
    with pytest.raises(ResourceNotFound):
        load_world(tmp_path / "nope.json")
