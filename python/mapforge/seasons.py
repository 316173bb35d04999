# python/mapforge/seasons.py
# Season enumeration and seasonal asset-name resolution
# RELEVANT FILES: python/mapforge/streaming.py, python/mapforge/renderer.py, tests/test_seasons.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath

from .continents import TerrainBanks

logger = logging.getLogger(__name__)


class Season(str, Enum):
    SPRING = "sp"
    SUMMER = "su"
    AUTUMN = "au"
    WINTER = "wi"

    @property
    def postfix(self) -> str:
        return "_" + self.value

    def next(self) -> "Season":
        order = list(Season)
        return order[(order.index(self) + 1) % len(order)]


def parse_season(tag) -> Season:
    """Season from its tag; only the first two characters are significant.

    Unknown tags fall back to spring.
    """
    if isinstance(tag, Season):
        return tag
    key = str(tag or "").strip().lower()[:2]
    for season in Season:
        if season.value == key:
            return season
    logger.info(f"Invalid season '{tag}', falling back to '{Season.SPRING.value}'")
    return Season.SPRING


def suffixed(filename: str, season: Season) -> str:
    """``name.ext`` becomes ``name_<tag>.ext``; directories are kept."""
    if not filename:
        return filename
    path = PurePosixPath(filename)
    name = f"{path.stem}{season.postfix}{path.suffix}"
    return str(path.with_name(name)) if str(path.parent) not in ("", ".") else name


@dataclass(frozen=True)
class SeasonVariant:
    season: Season
    small_bank: str
    far_bank: str
    coarse_mesh: str
    micro_veget: str
    tile_postfix: str
    vegetable_postfix: str


class SeasonResolver:
    def __init__(self, season="sp"):
        self.season = parse_season(season)

    def set(self, tag) -> Season:
        self.season = parse_season(tag)
        return self.season

    def cycle(self) -> Season:
        self.season = self.season.next()
        return self.season

    def variant(self, banks: TerrainBanks) -> SeasonVariant:
        # The small bank is shared by every season
        return SeasonVariant(
            season=self.season,
            small_bank=banks.small_bank,
            far_bank=suffixed(banks.far_bank, self.season),
            coarse_mesh=suffixed(banks.coarse_mesh, self.season),
            micro_veget=suffixed(banks.micro_veget, self.season),
            tile_postfix=self.season.postfix,
            vegetable_postfix=self.season.postfix,
        )
