# tests/test_seasons.py
# Tests season tag parsing, fallback and seasonal filename suffixes.
# RELEVANT FILES:python/mapforge/seasons.py

import pytest

from mapforge.continents import TerrainBanks
from mapforge.seasons import Season, SeasonResolver, parse_season, suffixed


@pytest.mark.parametrize(
    "tag, expected",
    [("sp", Season.SPRING), ("summer", Season.SUMMER), ("AUTUMN", Season.AUTUMN), ("wi", Season.WINTER)],
)
def test_parse_uses_first_two_characters(tag, expected):
    assert parse_season(tag) is expected


def test_invalid_tag_falls_back_to_spring(caplog):
    with caplog.at_level("INFO", logger="mapforge.seasons"):
        assert parse_season("fall") is Season.SPRING
    assert "falling back" in caplog.text
    assert parse_season(None) is Season.SPRING


def test_cycle_order():
    order = [Season.SPRING]
    for _ in range(4):
        order.append(order[-1].next())
    assert [s.value for s in order] == ["sp", "su", "au", "wi", "sp"]


def test_suffixed():
    assert suffixed("fyros.farbank", Season.SUMMER) == "fyros_su.farbank"
    assert suffixed("data/coarse.tga", Season.WINTER) == "data/coarse_wi.tga"
    assert suffixed("noext", Season.AUTUMN) == "noext_au"
    assert suffixed("", Season.AUTUMN) == ""


def test_variant_keeps_small_bank_shared():
    resolver = SeasonResolver("au")
    variant = resolver.variant(
        TerrainBanks(small_bank="a.smallbank", far_bank="a.farbank", coarse_mesh="c.tga", micro_veget="m.tga")
    )
    assert variant.small_bank == "a.smallbank"
    assert variant.far_bank == "a_au.farbank"
    assert variant.coarse_mesh == "c_au.tga"
    assert variant.micro_veget == "m_au.tga"
    assert variant.tile_postfix == variant.vegetable_postfix == "_au"


def test_resolver_set_and_cycle():
    resolver = SeasonResolver()
    assert resolver.season is Season.SPRING
    assert resolver.set("wi") is Season.WINTER
    assert resolver.cycle() is Season.SPRING
