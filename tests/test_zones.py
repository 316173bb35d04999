# tests/test_zones.py
# Tests zone tile addressing: naming, world origins and rectangle helpers.
# RELEVANT FILES:python/mapforge/zones.py

import pytest

from mapforge.zones import TILE_SIZE, ZONE_MAX_X, ZONE_MAX_Y, Rect, ZoneTileKey, clamp_to_world


class TestZoneTileKey:
    @pytest.mark.parametrize(
        "point",
        [(0.0, -0.5), (159.9, -160.0), (160.0, -1.0), (4720.0, -3435.0), (18886.0, -24346.0), (ZONE_MAX_X - 1, -ZONE_MAX_Y + 1)],
    )
    def test_origin_contains_point(self, point):
        key = ZoneTileKey.from_world(*point)
        ox, oy = key.to_world_origin()
        assert ox <= point[0] < ox + TILE_SIZE
        assert oy <= point[1] < oy + TILE_SIZE
        assert key.contains(*point)

    def test_canonical_name(self):
        key = ZoneTileKey.from_world(18886.0, -24346.0)
        assert key.column == 118
        assert key.row == 153
        assert key.name == "153_EO"
        assert str(key) == "153_EO"

    def test_parse_is_case_insensitive(self):
        assert ZoneTileKey.parse("153_dl") == ZoneTileKey.parse("153_DL")
        assert ZoneTileKey.parse(" 153_DL ").name == "153_DL"

    def test_parse_letters_base26(self):
        assert ZoneTileKey.parse("1_AA").column == 0
        assert ZoneTileKey.parse("1_AZ").column == 25
        assert ZoneTileKey.parse("1_BA").column == 26
        assert ZoneTileKey.parse("1_ZZ").column == 26 * 26 - 1

    def test_name_roundtrip(self):
        key = ZoneTileKey(row=42, column=77)
        assert ZoneTileKey.parse(key.name) == key

    @pytest.mark.parametrize("name", ["", "AA_1", "12-AB", "12_A", "12_ABC", "x_AB"])
    def test_parse_rejects_malformed(self, name):
        with pytest.raises(ValueError):
            ZoneTileKey.parse(name)

    def test_rejects_out_of_range_column(self):
        with pytest.raises(ValueError):
            ZoneTileKey(row=0, column=26 * 26)

    def test_tile_edges_belong_to_the_next_tile(self):
        assert ZoneTileKey.from_world(160.0, -10.0).column == 1
        assert ZoneTileKey.from_world(10.0, -160.0).row == 1
        assert ZoneTileKey.from_world(10.0, -160.001).row == 2


class TestRect:
    def test_from_zone_range_includes_last_tile(self):
        rect = Rect.from_zone_range("1_AA", "2_AB")
        assert rect.to_tuple() == (0.0, -320.0, 320.0, 0.0)

    def test_from_zone_range_order_independent(self):
        assert Rect.from_zone_range("2_AB", "1_AA") == Rect.from_zone_range("1_AA", "2_AB")

    def test_contains_is_strict(self):
        rect = Rect(0.0, -320.0, 320.0, 0.0)
        assert rect.contains(100.0, -100.0)
        assert not rect.contains(0.0, -100.0)
        assert not rect.contains(100.0, 0.0)
        assert not rect.contains(400.0, -100.0)

    def test_intersects_needs_shared_area(self):
        rect = Rect(0.0, -320.0, 320.0, 0.0)
        assert rect.intersects(Rect(300.0, -10.0, 500.0, 50.0))
        assert not rect.intersects(Rect(320.0, -320.0, 480.0, 0.0))
        assert not rect.intersects(Rect(5000.0, -5160.0, 5160.0, -5000.0))

    def test_padded_and_center(self):
        rect = Rect(0.0, -320.0, 320.0, 0.0).padded(10.0)
        assert rect.to_tuple() == (-10.0, -330.0, 330.0, 10.0)
        assert rect.center == pytest.approx((160.0, -160.0))

    def test_tiles_cover_rectangle(self):
        names = sorted(k.name for k in Rect(0.0, -320.0, 320.0, 0.0).tiles())
        assert names == ["1_AA", "1_AB", "2_AA", "2_AB"]


def test_clamp_to_world():
    assert clamp_to_world(-50.0, 10.0) == (0.0, 0.0)
    assert clamp_to_world(ZONE_MAX_X + 5.0, -ZONE_MAX_Y - 5.0) == (float(ZONE_MAX_X), -float(ZONE_MAX_Y))
    assert clamp_to_world(100.0, -100.0) == (100.0, -100.0)
