"""Co-placement of satellite entities around each new platform.

Every generated platform gets a chance to spawn coins, health packs,
traction boots and hazards in the air between it and the previous one.
Each category has its own zone table: coins favour risky spots off the
jump path, health packs and boots sit where a cautious climber passes, and
hazards hang on the far side of the jump.

Checkpoints are not rolled. The first platform past each height milestone
gets one on top of it.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from .config import SpawnConfig, WorldConfig
from .difficulty import DifficultyProfile
from .entities import Anchor, EntityCategory, SatelliteEntity
from .kinematics import height_meters

logger = logging.getLogger(__name__)


class ZoneKind(Enum):
    SIDE_OF_PATH = "side_of_path"  # Off the jump midpoint by a fraction of reach
    DESTINATION_SIDE = "destination_side"  # From the take-off toward the landing side
    BETWEEN_JITTERED = "between_jittered"  # Between both anchors
    EDGE_NEAR = "edge_near"  # Just off the take-off platform, low in the gap
    ABOVE_DESTINATION = "above_destination"  # Hovering over the landing platform


@dataclass(frozen=True)
class ZoneSpec:
    """Where one zone puts an entity.

    lateral is a px range, except for SIDE_OF_PATH where it is a fraction
    of the reach budget. band is the fraction of the gap climbed above the
    take-off platform.
    """
    kind: ZoneKind
    lateral: Tuple[float, float]
    band: Tuple[float, float] = (0.0, 0.0)
    clearance: float = 40.0  # ABOVE_DESTINATION only


@dataclass(frozen=True)
class CategoryRule:
    category: EntityCategory
    zones: Tuple[ZoneSpec, ...]
    separation: float  # Min vertical distance to a live entity of the same category
    ceiling: float  # Never higher than this fraction of the gap
    away_from_destination: bool = False


COIN_ZONES = (
    ZoneSpec(ZoneKind.SIDE_OF_PATH, lateral=(0.4, 0.8), band=(0.4, 0.7)),
    ZoneSpec(ZoneKind.DESTINATION_SIDE, lateral=(40.0, 80.0), band=(0.6, 0.8)),
    ZoneSpec(ZoneKind.BETWEEN_JITTERED, lateral=(-30.0, 30.0), band=(0.3, 0.6)),
)

SUPPORT_ZONES = (
    ZoneSpec(ZoneKind.EDGE_NEAR, lateral=(30.0, 60.0), band=(0.3, 0.5)),
    ZoneSpec(ZoneKind.BETWEEN_JITTERED, lateral=(-20.0, 20.0), band=(0.2, 0.4)),
    ZoneSpec(ZoneKind.ABOVE_DESTINATION, lateral=(20.0, 50.0), clearance=40.0),
)

HAZARD_ZONES = (
    ZoneSpec(ZoneKind.SIDE_OF_PATH, lateral=(0.4, 0.8), band=(0.4, 0.7)),
)


class EntityCoPlacer:
    """Places satellites relative to consecutive anchors.

    Stateless apart from the checkpoint milestone counter, which reset()
    rewinds.
    """

    def __init__(self, spawns: SpawnConfig, world: WorldConfig, rng: random.Random):
        self.spawns = spawns
        self.world = world
        self.rng = rng
        self.rules = (
            CategoryRule(EntityCategory.COIN, COIN_ZONES, spawns.coin_separation, 0.9),
            CategoryRule(EntityCategory.HEALTH_PACK, SUPPORT_ZONES, spawns.health_separation, 0.7),
            CategoryRule(EntityCategory.BOOT, SUPPORT_ZONES, spawns.boot_separation, 0.7),
            CategoryRule(EntityCategory.HAZARD, HAZARD_ZONES, spawns.hazard_separation, 0.9,
                         away_from_destination=True),
        )
        self.last_milestone = 0

    def reset(self) -> None:
        self.last_milestone = 0

    def density(self, category: EntityCategory, profile: DifficultyProfile) -> float:
        return {
            EntityCategory.COIN: profile.collectible_density,
            EntityCategory.HEALTH_PACK: profile.heal_density,
            EntityCategory.BOOT: profile.traction_density,
            EntityCategory.HAZARD: profile.hazard_density,
        }[category]

    def payload(self, category: EntityCategory) -> Dict[str, int]:
        s = self.spawns
        return {
            EntityCategory.COIN: {"score": s.coin_points},
            EntityCategory.HEALTH_PACK: {"heal": s.health_heal},
            EntityCategory.BOOT: {"traction": s.boot_count},
            EntityCategory.HAZARD: {"damage": s.hazard_damage},
        }[category]

    def lateral_bounds(self) -> Tuple[float, float]:
        pad = self.spawns.entity_padding
        return self.world.margin_x + pad, self.world.world_width - self.world.margin_x - pad

    def zone_position(
        self,
        spec: ZoneSpec,
        prev: Anchor,
        new: Anchor,
        gap: float,
        reach: float,
        side: Optional[int] = None,
    ) -> Tuple[float, float]:
        """Raw (unclamped) position for a zone.

        Args:
            side: -1 or +1 to force the lateral side; random when None.
        """
        rng = self.rng
        direction = 1 if new.x > prev.x else -1
        mid_x = (prev.x + new.x) / 2

        if spec.kind is ZoneKind.SIDE_OF_PATH:
            if side is None:
                side = rng.choice((-1, 1))
            x = mid_x + side * reach * rng.uniform(*spec.lateral)
            y = prev.y - gap * rng.uniform(*spec.band)
        elif spec.kind is ZoneKind.DESTINATION_SIDE:
            x = prev.x + direction * rng.uniform(*spec.lateral)
            y = prev.y - gap * rng.uniform(*spec.band)
        elif spec.kind is ZoneKind.BETWEEN_JITTERED:
            x = mid_x + rng.uniform(*spec.lateral)
            y = prev.y - gap * rng.uniform(*spec.band)
        elif spec.kind is ZoneKind.EDGE_NEAR:
            if side is None:
                side = rng.choice((-1, 1))
            x = prev.x + side * rng.uniform(*spec.lateral)
            y = prev.y - gap * rng.uniform(*spec.band)
        else:
            x = new.x + direction * rng.uniform(*spec.lateral)
            y = new.y - spec.clearance
        return x, y

    def clamp(self, x: float, y: float, prev: Anchor, gap: float, ceiling: float) -> Tuple[float, float]:
        """Keep an entity between the walls and below the reachable ceiling."""
        left, right = self.lateral_bounds()
        return min(max(x, left), right), max(y, prev.y - gap * ceiling)

    def too_close(
        self,
        category: EntityCategory,
        y: float,
        separation: float,
        live_entities: Iterable[SatelliteEntity],
    ) -> bool:
        return any(
            e.category is category and not e.consumed and abs(e.y - y) < separation
            for e in live_entities
        )

    def checkpoint_for(self, new: Anchor, sequence: int = -1) -> Optional[SatelliteEntity]:
        """Checkpoint on top of `new` if it is the first platform past a milestone."""
        interval = self.spawns.checkpoint_interval_meters
        meters = height_meters(new.y, self.world.base_y)
        milestone = (meters // interval) * interval
        if milestone <= self.last_milestone:
            return None
        self.last_milestone = milestone
        y = new.y - self.world.platform_height / 2 - self.spawns.checkpoint_size / 2
        logger.debug("Checkpoint at %dm (x=%.0f, y=%.0f)", meters, new.x, y)
        return SatelliteEntity(
            x=new.x,
            y=y,
            category=EntityCategory.CHECKPOINT,
            payload={"height_meters": meters},
            platform_sequence=sequence,
        )

    def co_place(
        self,
        prev_anchor: Anchor,
        new_anchor: Anchor,
        gap: float,
        reach: float,
        profile: DifficultyProfile,
        live_entities: List[SatelliteEntity],
        sequence: int = -1,
    ) -> List[SatelliteEntity]:
        """Roll every category for one new platform.

        Args:
            prev_anchor: Take-off platform.
            new_anchor: Landing platform just placed.
            gap: Vertical gap between them (px).
            reach: ReachBudget used to place the landing platform.
            profile: Difficulty at the landing platform's height.
            live_entities: Satellites already in the world, for separation.
            sequence: Placement id of the landing platform.

        Returns:
            New satellites; the caller owns adding them to the world.
        """
        placed: List[SatelliteEntity] = []

        checkpoint = self.checkpoint_for(new_anchor, sequence)
        if checkpoint is not None:
            placed.append(checkpoint)

        direction = 1 if new_anchor.x > prev_anchor.x else -1
        for rule in self.rules:
            if self.rng.random() >= self.density(rule.category, profile):
                continue
            spec = rule.zones[self.rng.randrange(len(rule.zones))]
            side = -direction if rule.away_from_destination else None
            x, y = self.zone_position(spec, prev_anchor, new_anchor, gap, reach, side)
            x, y = self.clamp(x, y, prev_anchor, gap, rule.ceiling)
            if self.too_close(rule.category, y, rule.separation, list(live_entities) + placed):
                continue
            placed.append(SatelliteEntity(
                x=x,
                y=y,
                category=rule.category,
                payload=self.payload(rule.category),
                platform_sequence=sequence,
                zone=spec.kind.value,
            ))
        return placed
