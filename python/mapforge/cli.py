#!/usr/bin/env python3
"""
Map renderer command line

Loads a world description, then lists, renders or screenshots continents
through the headless engine.

Usage:
    python -m mapforge.cli --world world.json --list-continents
    python -m mapforge.cli --world world.json --render pyr,fairhaven --scale 2:1 --outdir maps

RELEVANT FILES: python/mapforge/renderer.py, python/mapforge/config.py, python/mapforge/headless.py
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional, Sequence

from .config import load_map_config
from .errors import MapForgeError
from .headless import create_headless_context
from .renderer import MapRenderer


def _parse_window(value: str) -> tuple:
    try:
        w, h = (int(v) for v in value.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"window must be WIDTHxHEIGHT, got {value!r}") from None
    if w <= 0 or h <= 0:
        raise argparse.ArgumentTypeError("window dimensions must be positive")
    return (w, h)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Render orthographic continent maps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--world", help="JSON world description (overrides world_file)")
    parser.add_argument("--window", type=_parse_window, default=(1024, 1024), help="Viewport size, e.g. 1024x768")
    parser.add_argument("--outdir", help="Output directory for rendered maps")
    parser.add_argument("--scale", help="Pixels per world unit as 'px:m', e.g. 2:1")
    parser.add_argument("--season", help="Season tag: sp, su, au or wi")
    parser.add_argument("--vision", type=float, help="Streaming radius in world units")
    parser.add_argument("--tilenear", type=float, help="Lock the landscape tile-near distance")
    parser.add_argument("--pos", help="Reference point 'x,y[,z]'")
    parser.add_argument("--inverse-z", action="store_true", help="Add the inverse depth pass")
    parser.add_argument("--no-trees", action="store_true", help="Hide vegetation instances")
    parser.add_argument("--fxaa", action="store_true", help="Apply FXAA when the driver supports it")
    parser.add_argument("--grid", action="store_true", help="Draw the zone grid")
    parser.add_argument("--grid-names", action="store_true", help="Label grid cells with zone names")
    parser.add_argument(
        "--pacs",
        nargs="?",
        const="0,1,2,3,4,5",
        help="Collision edge classes to draw, e.g. 0,2; bare --pacs draws every class",
    )
    parser.add_argument("--list-maps", action="store_true", help="List in-game maps and exit")
    parser.add_argument("--list-continents", action="store_true", help="List continents and exit")
    parser.add_argument("--render", help="Comma separated map or continent names to render")
    parser.add_argument("--render-maps", action="store_true", help="Render every in-game map")
    parser.add_argument("--render-continents", action="store_true", help="Render every continent")
    parser.add_argument("--auto-render", action="store_true", help="Render the maps listed in the config")
    parser.add_argument("--screenshot", help="Render one frame at --pos and save it here")
    parser.add_argument("--perf", type=int, metavar="FRAMES", help="Step this many interactive frames and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _overrides(args: Any) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "output_dir": args.outdir,
        "scale": args.scale,
        "season": args.season,
        "vision": args.vision,
        "tile_near": args.tilenear,
        "view_center": args.pos,
        "world_file": args.world,
        "collision_filter": args.pacs,
    }
    for flag, key in (("inverse_z", "inverse_z"), ("no_trees", "hide_vegetation"), ("fxaa", "fxaa"),
                      ("grid", "draw_grid"), ("grid_names", "draw_grid_names")):
        if getattr(args, flag):
            out[key] = True
    return out


def _targets(args: Any, renderer: MapRenderer) -> Optional[List[str]]:
    if args.render:
        return [name for name in args.render.split(",") if name]
    if args.render_maps:
        return [name for name in renderer.registry.map_names() if name.lower() != "world"]
    if args.render_continents:
        return renderer.registry.continent_names()
    if args.auto_render:
        return list(renderer.config.maps)
    return None


def run(args: Any) -> int:
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    try:
        config = load_map_config(args.config, _overrides(args))
    except (MapForgeError, ValueError, OSError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    if not config.world_file:
        print("No world description given; use --world or world_file in the config", file=sys.stderr)
        return 2

    renderer = MapRenderer(create_headless_context(config.world_file, window=args.window), config)

    if args.list_maps:
        for name, bitmap, bounds, continent in renderer.list_maps():
            print(f"{name:<24} {bitmap:<24} ({bounds.min_x:.0f}, {bounds.min_y:.0f}) "
                  f"({bounds.max_x:.0f}, {bounds.max_y:.0f}) {continent}")
        return 0
    if args.list_continents:
        for continent, maps in renderer.list_continents():
            print(f"{continent}: {', '.join(maps) if maps else '-'}")
        return 0

    targets = _targets(args, renderer)
    if targets is not None:
        written = renderer.auto_render(targets)
        for path in written:
            print(path)
        return 0 if len(written) == len(targets) else 1

    if args.screenshot:
        print(renderer.single_screenshot(args.screenshot))
        return 0

    # The headless driver never raises an abort, so the loop needs a bound
    renderer.run_interactive(args.perf if args.perf is not None else (config.frame_limit or 1))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    return run(build_parser().parse_args(argv))


if __name__ == "__main__":
    sys.exit(main())
