# python/mapforge/decor.py
# Decor attachments (villages, outpost ruins) and the instance visibility policy
# RELEVANT FILES: python/mapforge/streaming.py, python/mapforge/engine.py, tests/test_decor.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .engine import InstanceGroup
from .zones import ZoneTileKey

VEGETATION_MARKER = ".plant"
OUTPOST_INSTANCE_PREFIX = "bat_zc_"
OUTPOST_RUINS_IG = "gen_bt_ruines.ig"

FAR_COARSE_MESH_DIST = 100000.0


class DecorKind(Enum):
    CONTINENT = "continent"
    TILE = "tile"


@dataclass
class DecorAttachment:
    """A named group bound to the continent or to one zone tile.

    ``groups`` holds the materialized engine handles; it is empty while the
    binding exists but its tile is not resident.
    """

    name: str
    kind: DecorKind
    tile: Optional[ZoneTileKey] = None
    parent: str = ""
    groups: List[InstanceGroup] = field(default_factory=list)

    @property
    def materialized(self) -> bool:
        return bool(self.groups)


def is_vegetation(instance_name: str) -> bool:
    return VEGETATION_MARKER in instance_name.lower()


def apply_distance_policy(group: InstanceGroup, hide_vegetation: bool) -> None:
    """Set per-instance draw distances so nothing is culled in a top-down view."""
    if group.has_capability("cluster_instances"):
        group.force_cluster_visibility()
    for index in range(group.num_instances()):
        group.set_shape_dist_max(index, -1.0)
        if hide_vegetation and is_vegetation(group.instance_name(index)):
            group.set_dist_max(index, 0.0)
            group.set_coarse_mesh_dist(index, 0.0)
        else:
            group.set_dist_max(index, -1.0)
            group.set_coarse_mesh_dist(index, FAR_COARSE_MESH_DIST)


def outpost_anchors(zone_group: InstanceGroup) -> List[int]:
    return [
        i for i in range(zone_group.num_instances())
        if zone_group.instance_name(i).lower().startswith(OUTPOST_INSTANCE_PREFIX)
    ]
