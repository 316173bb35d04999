# python/mapforge/streaming.py
# Zone and decor streaming: applies terrain loader deltas and owns continent lifetime
# RELEVANT FILES: python/mapforge/decor.py, python/mapforge/continents.py, python/mapforge/seasons.py, tests/test_streaming.py
"""Streaming manager.

The terrain loader decides which tiles are resident; this module only applies
the ``(added, removed)`` deltas it reports and keeps zone instance groups,
decor and collision data consistent with them. It is the only writer of the
active continent and of the streaming window.
"""
from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import List, Optional, Set, Tuple

from .context import RenderContext
from .continents import ContinentDescriptor, ContinentRegistry, ContinentSelection
from .decor import (
    OUTPOST_RUINS_IG,
    DecorAttachment,
    DecorKind,
    apply_distance_policy,
    outpost_anchors,
)
from .engine import CollisionDataset, Vec3, collect
from .errors import InvalidConfiguration, LoadResult, MapForgeError, ResourceNotFound
from .seasons import Season, SeasonResolver
from .zones import ZoneTileKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamingDelta:
    added: Tuple[ZoneTileKey, ...] = ()
    removed: Tuple[ZoneTileKey, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.added and not self.removed


@dataclass
class StreamingWindow:
    tiles: Set[ZoneTileKey] = field(default_factory=set)
    center: Optional[Vec3] = None
    radius: float = 0.0

    def snapshot(self) -> Tuple[frozenset, Optional[Vec3], float]:
        return (frozenset(self.tiles), self.center, self.radius)


def _ig_filename(name: str) -> str:
    return name if PurePosixPath(name).suffix else name + ".ig"


class StreamingManager:
    """Owns the active continent, its streaming window and its decor.

    Args:
        context: Engine handles.
        registry: Continent registry used to load descriptors.
        seasons: Resolver selecting the season variant of terrain banks.
        hide_vegetation: Cull instances flagged as vegetation.
        use_light: Run the full landscape lighting update after each refresh.
    """

    def __init__(
        self,
        context: RenderContext,
        registry: ContinentRegistry,
        seasons: Optional[SeasonResolver] = None,
        *,
        hide_vegetation: bool = False,
        use_light: bool = False,
    ):
        self.context = context
        self.registry = registry
        self.seasons = seasons if seasons is not None else SeasonResolver()
        self.hide_vegetation = hide_vegetation
        self.use_light = use_light
        self.active: Optional[ContinentDescriptor] = None
        self.selection: Optional[ContinentSelection] = None
        self.window = StreamingWindow()
        self.decor: List[DecorAttachment] = []
        self.collision: Optional[CollisionDataset] = None

    @property
    def collision_available(self) -> bool:
        return self.collision is not None

    # ------------------------------------------------------------------
    # Continent lifetime
    # ------------------------------------------------------------------
    def load_continent(self, selection: ContinentSelection) -> LoadResult:
        try:
            descriptor = self.registry.require(selection.continent)
            for outpost in descriptor.outposts:
                ZoneTileKey.parse(outpost.zone)
        except ValueError as exc:
            error = exc if isinstance(exc, MapForgeError) else InvalidConfiguration(str(exc))
            logger.info(f"Continent '{selection.continent}' rejected: {error}")
            return LoadResult.failure(error, selection.continent)
        except MapForgeError as exc:
            logger.info(f"Continent '{selection.continent}' not loaded: {exc}")
            return LoadResult.failure(exc, selection.continent)

        small_bank = descriptor.banks.small_bank
        if small_bank and not self.context.assets.exists(small_bank):
            error = ResourceNotFound(f"terrain bank not found for '{descriptor.name}': {small_bank}")
            logger.info(f"Continent '{descriptor.name}' not loaded: {error}")
            return LoadResult.failure(error, descriptor.name)

        previous = self.selection
        self.unload_continent()
        self.active = descriptor
        self.selection = selection
        logger.info(f"Loading continent '{descriptor.name}' as map '{selection.map_name}'")

        result = LoadResult(ok=True, name=descriptor.name)
        self._attach_villages(descriptor)
        self.decor.extend(
            DecorAttachment(name=OUTPOST_RUINS_IG, kind=DecorKind.TILE, tile=ZoneTileKey.parse(outpost.zone))
            for outpost in descriptor.outposts
            if outpost.ruins
        )
        message = self._load_collision(descriptor)
        if message:
            result.warnings.append(message)
        result.collision_available = self.collision_available
        try:
            self._load_terrain()
        except (OSError, MapForgeError) as exc:
            error = exc if isinstance(exc, MapForgeError) else ResourceNotFound(str(exc))
            logger.warning(f"Terrain failed to load for '{descriptor.name}': {error}")
            self.unload_continent()
            if previous is not None:
                restored = self.load_continent(previous)
                if not restored.ok:
                    logger.warning(f"Previous continent '{previous.continent}' could not be restored: {restored.error}")
            return LoadResult.failure(error, descriptor.name)
        return result

    def unload_continent(self) -> None:
        scene = self.context.scene
        for attachment in self.decor:
            for group in attachment.groups:
                group.remove_from_scene(scene)
            attachment.groups.clear()
        self.decor.clear()
        if self.collision is not None:
            self.collision.release()
            self.collision = None
        self.context.zone_groups.reset()
        self.context.landscape.remove_all_zones()
        self.window = StreamingWindow()
        if self.active is not None:
            logger.info(f"Unloaded continent '{self.active.name}'")
        self.active = None
        self.selection = None

    def change_season(self, tag) -> Season:
        season = self.seasons.set(tag)
        if self.active is not None:
            self._load_terrain()
        return season

    def _attach_villages(self, descriptor: ContinentDescriptor) -> None:
        for village in descriptor.villages:
            group = self.context.assets.create_instance_group(_ig_filename(village.name))
            if group is None:
                logger.warning(f"Village instance group '{village.name}' not found, skipped")
                continue
            group.add_to_scene(self.context.scene)
            apply_distance_policy(group, self.hide_vegetation)
            self.decor.append(
                DecorAttachment(name=village.name, kind=DecorKind.CONTINENT, parent=village.parent, groups=[group])
            )

    def _load_collision(self, descriptor: ContinentDescriptor) -> Optional[str]:
        paths = descriptor.collision
        if paths is None:
            logger.info(f"Continent '{descriptor.name}' declares no collision data")
            return None
        assets = self.context.assets
        missing = [p for p in (paths.retriever_bank, paths.global_retriever) if not assets.exists(p)]
        if missing:
            message = f"Collision data unavailable for '{descriptor.name}' ({', '.join(missing)}); collision overlay disabled"
        else:
            try:
                self.collision = assets.create_collision(paths.retriever_bank, paths.global_retriever)
                return None
            except (FileNotFoundError, OSError) as exc:
                message = f"Collision data failed to load for '{descriptor.name}': {exc}; collision overlay disabled"
        warnings.warn(message, RuntimeWarning)
        return message

    def _load_terrain(self) -> None:
        """(Re)load the season variant of the active continent's terrain banks.

        Resident tiles are dropped; the next refresh streams them back in.
        Decor bindings survive, their materialized groups do not.
        """
        ctx = self.context
        descriptor = self.active
        ctx.zone_groups.reset()
        ctx.landscape.remove_all_zones()
        for attachment in self.decor:
            if attachment.kind is DecorKind.TILE:
                self._detach(attachment)
        self.window = StreamingWindow()

        variant = self.seasons.variant(descriptor.banks)
        if variant.coarse_mesh:
            ctx.scene.set_coarse_mesh_texture(variant.coarse_mesh)
        ctx.landscape.load_bank_files(variant.small_bank, variant.far_bank)
        ctx.landscape.postfix_tile_filename(variant.tile_postfix)
        ctx.landscape.postfix_tile_vegetable_desc(variant.vegetable_postfix)
        if variant.micro_veget:
            ctx.landscape.load_vegetable_texture(variant.micro_veget)

        landscape_ig = descriptor.banks.landscape_ig
        if landscape_ig and ctx.assets.exists(landscape_ig):
            ctx.zone_groups.init(ctx.scene, landscape_ig, variant.season.value)
        else:
            logger.info(f"Landscape instance groups not found for '{descriptor.name}': {landscape_ig!r}")
        logger.debug(f"Terrain banks loaded for '{descriptor.name}', season '{variant.season.value}'")

    # ------------------------------------------------------------------
    # Per-frame streaming
    # ------------------------------------------------------------------
    def refresh(self, center: Vec3, radius: float) -> StreamingDelta:
        if self.active is None:
            return StreamingDelta()
        ctx = self.context
        if self.collision is not None:
            self.collision.refresh_around(center, radius)

        added_names, removed_names = ctx.landscape.refresh_zones_around(center, radius)
        removed = tuple(ZoneTileKey.parse(n) for n in collect(removed_names))
        added = tuple(ZoneTileKey.parse(n) for n in collect(added_names))

        if removed:
            self._tiles_removed(removed)
        if added:
            self._tiles_added(added)
        self.window.center = center
        self.window.radius = radius

        lighting = self.active.lighting
        ctx.landscape.set_refine_center_user(center)
        ctx.landscape.setup_static_light(lighting.diffuse, lighting.ambient, 1.0)
        if self.use_light:
            ctx.landscape.update_lighting_all()

        delta = StreamingDelta(added=added, removed=removed)
        if not delta.empty:
            logger.debug(f"Streaming delta at {center[:2]}: +{len(added)} -{len(removed)} ({len(self.window.tiles)} resident)")
        return delta

    def _tiles_removed(self, keys: Tuple[ZoneTileKey, ...]) -> None:
        self.context.zone_groups.unload_zones([k.name for k in keys])
        gone = set(keys)
        for attachment in self.decor:
            if attachment.kind is DecorKind.TILE and attachment.tile in gone:
                self._detach(attachment)
        self.window.tiles.difference_update(gone)

    def _tiles_added(self, keys: Tuple[ZoneTileKey, ...]) -> None:
        ctx = self.context
        ctx.zone_groups.load_zones([k.name for k in keys])
        self.window.tiles.update(keys)
        for key in keys:
            zone_group = ctx.zone_groups.get(key.name)
            if zone_group is None:
                continue
            apply_distance_policy(zone_group, self.hide_vegetation)
            for attachment in self.decor:
                if attachment.kind is DecorKind.TILE and attachment.tile == key and not attachment.materialized:
                    self._materialize(attachment, zone_group)

    def _materialize(self, attachment: DecorAttachment, zone_group) -> None:
        ctx = self.context
        for index in outpost_anchors(zone_group):
            group = ctx.assets.create_instance_group(attachment.name)
            if group is None:
                logger.warning(f"Decor instance group '{attachment.name}' not found for tile {attachment.tile}")
                return
            group.set_position(zone_group.instance_position(index))
            group.add_to_scene(ctx.scene)
            apply_distance_policy(group, self.hide_vegetation)
            attachment.groups.append(group)

    def _detach(self, attachment: DecorAttachment) -> None:
        for group in attachment.groups:
            group.remove_from_scene(self.context.scene)
        attachment.groups.clear()

    def set_hide_vegetation(self, hide: bool) -> None:
        self.hide_vegetation = bool(hide)
        for key in self.window.tiles:
            zone_group = self.context.zone_groups.get(key.name)
            if zone_group is not None:
                apply_distance_policy(zone_group, self.hide_vegetation)
        for attachment in self.decor:
            for group in attachment.groups:
                apply_distance_policy(group, self.hide_vegetation)
