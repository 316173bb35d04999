# Ensure `import mapforge` works from a fresh clone by putting repo/python on sys.path,
# and provide a small headless world shared by the test modules.
import copy
import json
import sys
from pathlib import Path

import pytest


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _ensure_python_path():
    pkg_dir = _repo_root() / "python"
    if str(pkg_dir) not in sys.path:
        sys.path.insert(0, str(pkg_dir))


_ensure_python_path()

# Two 2x2-tile continents side by side plus a continent with no sheet.
#   fyros: tiles 1_AA 1_AB 2_AA 2_AB -> x [0, 320), y [-320, 0)
#   zorai: tiles 1_AD 1_AE 2_AD 2_AE -> x [480, 800), y [-320, 0)
WORLD = {
    "continents": [
        {"name": "fyros", "selection_name": "Desert", "bounds": [0, -400, 320, 0]},
        {"name": "zorai", "selection_name": "Jungle", "bounds": [480, -320, 800, 0]},
        {"name": "ghost", "selection_name": "Haunted", "bounds": [1000, -320, 1320, 0]},
    ],
    "maps": [
        {"name": "pyr", "continent": "Desert", "bitmap": "pyr_map.tga", "bounds": [0, -160, 160, 0]},
        {"name": "jungle_map", "continent": "Jungle", "bitmap": "zorai.tga", "bounds": [480, -320, 800, 0]},
        {"name": "zorai", "continent": "Jungle", "bitmap": "zorai_city.tga", "bounds": [480, -160, 640, 0]},
        {"name": "world", "continent": "", "bitmap": "world.tga", "bounds": [0, -40960, 108160, 0]},
        {"name": "lost", "continent": "Nowhere", "bitmap": "", "bounds": [2000, -160, 2160, 0]},
    ],
    "continent_sheets": {
        "fyros": {
            "name": "fyros",
            "zone_min": "1_AA",
            "zone_max": "2_AB",
            "small_bank": "fyros.smallbank",
            "far_bank": "fyros.farbank",
            "coarse_mesh": "fyros_coarse.tga",
            "micro_veget": "microveget.tga",
            "landscape_ig": "landscape_ig.txt",
            "lighting": {"direction": [0.3, 0.3, -0.9], "ambient": [40, 40, 40], "diffuse": [250, 240, 230]},
            "villages": [{"name": "pyr_village", "parent": "pyr"}, {"name": "missing_village"}],
            "outposts": [{"zone": "1_AB"}],
            "collision": {"retriever_bank": "fyros.rbank", "global_retriever": "fyros.gr"},
        },
        "zorai": {
            "name": "zorai",
            "zone_min": "1_AD",
            "zone_max": "2_AE",
            "small_bank": "zorai.smallbank",
            "far_bank": "zorai.farbank",
            "coarse_mesh": "zorai_coarse.tga",
            "micro_veget": "microveget.tga",
            "landscape_ig": "zorai_ig.txt",
            "collision": {"retriever_bank": "zorai.rbank", "global_retriever": "zorai.gr"},
        },
    },
    "files": ["landscape_ig.txt", "fyros.gr"],
    "instance_groups": {
        "pyr_village.ig": {
            "instances": [{"name": "house"}, {"name": "tree01.plant"}],
            "capabilities": ["cluster_instances"],
        },
        "gen_bt_ruines.ig": {"instances": [{"name": "ruin_wall"}]},
    },
    "zone_groups": {
        "1_AA": {"instances": [{"name": "rock"}]},
        "1_AB": {
            "instances": [
                {"name": "bat_zc_01", "position": [200, -100, 5]},
                {"name": "bush.plant"},
                {"name": "bat_zc_02", "position": [260, -40, 5]},
            ]
        },
    },
    "collision": {
        "fyros.rbank": {
            "borders": [
                [10, -10, 50, -10, 0],
                [10, -20, 50, -20, 1],
                [10, -30, 50, -30, 2],
                [300, -300, 310, -300, 0],
            ]
        }
    },
}


@pytest.fixture
def world():
    return copy.deepcopy(WORLD)


@pytest.fixture
def world_file(tmp_path, world):
    path = tmp_path / "world.json"
    path.write_text(json.dumps(world), encoding="utf-8")
    return path


@pytest.fixture
def context(world):
    from mapforge.headless import create_headless_context

    return create_headless_context(world, window=(200, 200))


@pytest.fixture
def registry(context):
    from mapforge.continents import ContinentRegistry

    return ContinentRegistry(context.assets)


@pytest.fixture
def manager(context, registry):
    from mapforge.streaming import StreamingManager

    return StreamingManager(context, registry)


@pytest.fixture
def renderer(context, tmp_path):
    from mapforge.renderer import MapRenderer

    return MapRenderer(context, {"output_dir": str(tmp_path / "maps"), "view_center": [100, -100, 400]})
