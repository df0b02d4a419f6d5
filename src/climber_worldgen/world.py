"""Streaming world: keeps a bounded slice of the endless course resident.

Each tick the world tops itself up above the camera and recycles whatever
fell too far below the player. Platforms live in a fixed arena of slots
sized from the window bound; recycling overwrites a slot in place and moves
it to the top of the placement order, so platform objects are created once
and never freed during play.

Usage:
    world = StreamingWorld(CONFIGS["default"], seed=42)
    for frame in frames:
        world.tick(camera_top, player_x, player_y)
        draw(world.platforms, world.satellites)
"""

import logging
import random
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List, Optional, Union

from .config import GameConfig, ResolvedConfig, resolve_config
from .coplacement import EntityCoPlacer
from .difficulty import DifficultyCurve
from .entities import (
    Anchor,
    EntityCategory,
    Lifecycle,
    Material,
    Platform,
    SatelliteEntity,
    SizeClass,
)
from .kinematics import height_meters, max_horizontal_reach
from .placement import PlacementSolver

logger = logging.getLogger(__name__)


@dataclass
class TickReport:
    """What one tick changed."""
    spawned: int = 0
    recycled: int = 0
    culled: int = 0


class StreamingWorld:
    """Owns the generator state: RNG, anchor, platform arena and satellites.

    The only writer of platforms, satellites and the anchor. Consumers read
    ``platforms``, ``satellites`` and ``anchor`` and report collisions back
    through ``collect``, ``apply_traction`` and ``activate_checkpoint``.
    """

    def __init__(
        self,
        config: Union[GameConfig, ResolvedConfig, None] = None,
        seed: Optional[int] = None,
    ):
        if isinstance(config, ResolvedConfig):
            self.resolved = config
        else:
            self.resolved = resolve_config(config)
        self.seed = seed
        self.rng = random.Random(seed)

        self.curve = DifficultyCurve(self.resolved.difficulty, self.resolved.spawns, self.resolved.world)
        self.solver = PlacementSolver(self.resolved.world, self.rng)
        self.co_placer = EntityCoPlacer(self.resolved.spawns, self.resolved.world, self.rng)

        self._slots = [Platform(i) for i in range(self.resolved.max_live_platforms)]
        self._free: Deque[int] = deque()
        self._order: Deque[int] = deque()  # Slot indices in placement order, bottom first
        self.satellites: List[SatelliteEntity] = []
        self.anchor = Anchor(0.0, 0.0, 0.0)
        self.current_checkpoint: Optional[SatelliteEntity] = None
        self.player = (0.0, 0.0)
        self._sequence = 0
        # Called with each stale platform, still tagged RECYCLABLE, before it is re-placed
        self.recycle_listeners: List[Callable[[Platform], None]] = []

        self.reset()

    @property
    def config(self) -> GameConfig:
        return self.resolved.config

    @property
    def capacity(self) -> int:
        return len(self._slots)

    @property
    def platforms(self) -> List[Platform]:
        """Live platforms ordered by placement."""
        return [self._slots[i] for i in self._order]

    @property
    def stats(self):
        return self.solver.stats

    def reset(self, seed: Optional[int] = None) -> None:
        """Clear the world and lay a fresh starter run.

        The RNG keeps its state unless a seed is given, so a restart produces
        a new course while a seeded reset reproduces one exactly.
        """
        if seed is not None:
            self.seed = seed
            self.rng.seed(seed)

        self._free = deque(range(self.capacity))
        self._order.clear()
        for platform in self._slots:
            platform.sequence = -1
        self.satellites = []
        self.current_checkpoint = None
        self.player = (self.resolved.world.world_width / 2, self.resolved.world.base_y)
        self._sequence = 0
        self.co_placer.reset()
        self.solver.stats.reset()

        self._lay_starters()
        for _ in range(self.resolved.world.initial_platforms):
            self._spawn()

        logger.info(
            "World reset (seed=%s): %d platforms, %d satellites, anchor y=%.0f",
            self.seed, len(self._order), len(self.satellites), self.anchor.y,
        )

    def _lay_starters(self) -> None:
        w = self.resolved.world
        count = w.starter_count
        first = w.margin_x + w.starter_width / 2
        last = w.world_width - w.margin_x - w.starter_width / 2
        step = (last - first) / (count - 1) if count > 1 else 0.0

        top: Optional[Platform] = None
        for i in range(count):
            x = first + i * step if count > 1 else w.world_width / 2
            y = w.base_y - (i % 2) * w.starter_step_y
            platform = self._slots[self._acquire_slot()]
            platform.assign(self._next_sequence(), x, y, w.starter_width, w.platform_height,
                            SizeClass.MEDIUM, Material.DIRT)
            platform.is_starter = True
            platform.gap = platform.reach = 0.0
            platform.strategy = None
            self._order.append(platform.slot)
            if top is None or platform.y < top.y:
                top = platform

        self.anchor = Anchor(top.x, top.y, top.width)

    def _next_sequence(self) -> int:
        sequence = self._sequence
        self._sequence += 1
        return sequence

    def _acquire_slot(self) -> int:
        if self._free:
            return self._free.popleft()
        # Arena exhausted: steal the lowest platform outside the player's band
        _, player_y = self.player
        band = self.resolved.world.keep_below
        candidates = [i for i in self._order if abs(self._slots[i].y - player_y) > band]
        lowest = max(candidates or self._order, key=lambda i: self._slots[i].y)
        self._order.remove(lowest)
        logger.warning(
            "Platform arena full (%d slots); recycling slot %d early", self.capacity, lowest
        )
        return lowest

    def _spawn(self, slot: Optional[int] = None) -> Platform:
        """Generate one platform above the anchor and advance the anchor.

        Fills a free slot, or overwrites `slot` when recycling.
        """
        resolved = self.resolved
        world = resolved.world
        rng = self.rng

        profile = self.curve.profile(world.base_y - self.anchor.y)
        size = profile.sample_size(rng)
        material = profile.sample_material(rng)
        width = self.curve.footprint_width(size, profile)
        gap = rng.randint(resolved.gap_min, resolved.gap_max)
        reach = max_horizontal_reach(resolved.movement, gap, world.reach_samples, world.reach_floor)

        placement = self.solver.solve(
            self.anchor, reach, width, next_width=self.curve.max_width(profile)
        )

        if slot is None:
            slot = self._acquire_slot()
        platform = self._slots[slot]
        sequence = self._next_sequence()
        platform.assign(sequence, placement.x, self.anchor.y - gap, width, world.platform_height,
                        size, material)
        platform.is_starter = False
        platform.gap = gap
        platform.reach = reach
        platform.strategy = placement.strategy.value
        platform.prev_x = self.anchor.x
        platform.prev_width = self.anchor.width
        self._order.append(slot)

        prev = self.anchor
        self.anchor = Anchor(platform.x, platform.y, platform.width)
        self.satellites.extend(
            self.co_placer.co_place(prev, self.anchor, gap, reach, profile, self.satellites, sequence)
        )
        return platform

    def recycle(self, platform: Platform) -> Platform:
        """Re-roll and re-place a stale platform at the top of the world.

        Same object, same slot; only its contents and order position change.
        Each of `recycle_listeners` sees the platform tagged RECYCLABLE at its
        old position first.
        """
        if self._slots[platform.slot] is not platform or platform.slot not in self._order:
            raise ValueError(f"{platform!r} is not live in this world")
        platform.lifecycle = Lifecycle.RECYCLABLE
        for listener in self.recycle_listeners:
            listener(platform)
        self._order.remove(platform.slot)
        return self._spawn(slot=platform.slot)

    def spawn_line(self, camera_top: float) -> float:
        return camera_top - self.resolved.world.spawn_ahead

    def despawn_line(self, player_y: float) -> float:
        return player_y + self.resolved.world.keep_below

    def tick(
        self,
        camera_top: float,
        player_x: float,
        player_y: float,
        fresh: bool = False,
    ) -> TickReport:
        """Advance the streaming window for one frame.

        The arena is sized for a camera within `screen_height` of the player.
        A camera far ahead exhausts it; slots are then stolen from platforms
        outside `keep_below` of the player, so the footing around the player
        stays live while the path between them thins out.

        Args:
            camera_top: y of the top edge of the visible window.
            player_x, player_y: Player position.
            fresh: Reset the world before streaming (new run).
        """
        if fresh:
            self.reset()
        self.player = (player_x, player_y)
        report = TickReport()

        # Each spawn lifts the anchor by at least gap_min, so this terminates
        spawn_line = self.spawn_line(camera_top)
        while self.anchor.y > spawn_line:
            self._spawn()
            report.spawned += 1

        despawn_line = self.despawn_line(player_y)
        stale = [self._slots[i] for i in self._order if self._slots[i].y > despawn_line]
        for platform in stale:
            platform.lifecycle = Lifecycle.RECYCLABLE
        for platform in stale:
            self.recycle(platform)
        report.recycled = len(stale)

        kept = [
            s for s in self.satellites
            if s.y <= despawn_line or s is self.current_checkpoint
        ]
        report.culled = len(self.satellites) - len(kept)
        self.satellites = kept

        if report.recycled:
            logger.debug("Recycled %d platforms below y=%.0f", report.recycled, despawn_line)
        return report

    def collect(self, entity: SatelliteEntity) -> Optional[Dict[str, Any]]:
        """Consume a collectible or hazard; returns its payload.

        Returns None if the entity was already consumed or is not live.
        """
        if entity.consumed or not any(s is entity for s in self.satellites):
            return None
        if entity.category is EntityCategory.CHECKPOINT:
            raise ValueError("Checkpoints are activated, not collected")
        entity.consumed = True
        self.satellites = [s for s in self.satellites if s is not entity]
        return dict(entity.payload)

    def apply_traction(self, platform: Platform) -> bool:
        """Give a platform baseline-material footing until it is recycled."""
        return platform.apply_traction()

    def activate_checkpoint(self, entity: SatelliteEntity) -> bool:
        """Mark a checkpoint active and make it the respawn point.

        Returns False if it was already active.
        """
        if entity.category is not EntityCategory.CHECKPOINT:
            raise ValueError(f"Not a checkpoint: {entity.category.value}")
        if entity.active:
            return False
        entity.active = True
        self.current_checkpoint = entity
        logger.debug("Checkpoint activated at %sm", entity.payload.get("height_meters"))
        return True

    def height_climbed(self) -> int:
        """Meters from the starter run to the anchor."""
        return height_meters(self.anchor.y, self.resolved.world.base_y)

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data view of the world for rendering, HUD or debugging."""
        return {
            "anchor": {"x": self.anchor.x, "y": self.anchor.y, "width": self.anchor.width},
            "height_meters": self.height_climbed(),
            "platforms": [p.to_dict() for p in self.platforms],
            "satellites": [s.to_dict() for s in self.satellites],
            "checkpoint": self.current_checkpoint.to_dict() if self.current_checkpoint else None,
            "stats": self.stats.to_dict(),
        }
