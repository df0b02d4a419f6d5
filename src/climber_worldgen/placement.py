"""Placement solver: where the next platform goes, horizontally.

Given the anchor (previous platform), a reach budget and both footprints,
picks an x that is reachable, does not sit over the previous platform, and
keeps the new platform inside the walls. When the strict constraint set is
infeasible it degrades instead of failing:

1. Strict: sample inside the LEFT or RIGHT zone around the exclusion band,
   avoiding spots that would leave the next platform nowhere to go
2. Emergency: same, with the reach expanded once (default 15%)
3. Fallback: the separation point nearest the reachable interval, clamped
4. Midpoint: the interval is empty; use its midpoint clamped to the walls

Every degraded placement is logged and counted in PlacementStats so that
tuning regressions show up as a rising fallback rate.
"""

import logging
import random
from dataclasses import dataclass, asdict
from enum import Enum
from typing import List, Optional, Tuple

from .config import WorldConfig
from .entities import Anchor

logger = logging.getLogger(__name__)


class ZoneSide(Enum):
    LEFT = "left"
    RIGHT = "right"


class PlacementStrategy(Enum):
    STRICT = "strict"
    EMERGENCY = "emergency"
    FALLBACK = "fallback"
    MIDPOINT = "midpoint"

    @property
    def degraded(self) -> bool:
        return self in (PlacementStrategy.FALLBACK, PlacementStrategy.MIDPOINT)


@dataclass(frozen=True)
class Zone:
    """A candidate sub-interval for the new platform's center."""
    side: ZoneSide
    start: float
    end: float

    @property
    def width(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class Placement:
    """Result of one solve: the x plus how it was found."""
    x: float
    strategy: PlacementStrategy
    side: Optional[ZoneSide]
    min_separation: float
    interval: Tuple[float, float]


@dataclass
class PlacementStats:
    """Counters for tuning. Degraded placements are never surfaced to the player."""
    strict: int = 0
    emergency: int = 0
    fallback: int = 0
    midpoint: int = 0

    @property
    def total(self) -> int:
        return self.strict + self.emergency + self.fallback + self.midpoint

    @property
    def fallback_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.fallback + self.midpoint) / self.total

    def record(self, strategy: PlacementStrategy) -> None:
        setattr(self, strategy.value, getattr(self, strategy.value) + 1)

    def reset(self) -> None:
        self.strict = self.emergency = self.fallback = self.midpoint = 0

    def to_dict(self) -> dict:
        return {**asdict(self), "total": self.total, "fallback_rate": self.fallback_rate}


def overlap_fraction(x_a: float, width_a: float, x_b: float, width_b: float) -> float:
    """Horizontal overlap of two footprints as a fraction of the narrower one."""
    left = max(x_a - width_a / 2, x_b - width_b / 2)
    right = min(x_a + width_a / 2, x_b + width_b / 2)
    return max(0.0, right - left) / min(width_a, width_b)


def edge_distance(x_a: float, width_a: float, x_b: float, width_b: float) -> float:
    """Horizontal air travel between facing edges (0 when footprints overlap)."""
    return max(0.0, abs(x_b - x_a) - (width_a + width_b) / 2)


class PlacementSolver:
    """Computes reachable, non-overlapping, in-bounds x positions.

    Owns no world state; randomness comes from the world's shared generator.
    """

    def __init__(self, world: WorldConfig, rng: random.Random):
        self.world = world
        self.rng = rng
        self.stats = PlacementStats()

    def separation_buffer(self, prev_width: float, new_width: float) -> float:
        """Extra clearance beyond touching edges; shrinks as footprints grow."""
        w = self.world
        scaled = w.separation_buffer_max * w.separation_reference_width / (prev_width + new_width)
        return min(w.separation_buffer_max, max(w.separation_buffer_min, scaled))

    def min_separation(self, prev_width: float, new_width: float) -> float:
        """Minimum center-to-center distance between consecutive platforms."""
        allowance = self.world.max_overlap_fraction * min(prev_width, new_width)
        return (prev_width + new_width) / 2 + self.separation_buffer(prev_width, new_width) - allowance

    def lateral_bounds(self, new_width: float) -> Tuple[float, float]:
        """Range of centers that keeps the new platform off the walls."""
        w = self.world
        return w.margin_x + new_width / 2, w.world_width - w.margin_x - new_width / 2

    def reachable_interval(
        self,
        anchor_x: float,
        reach: float,
        new_width: float,
        prev_width: float,
        expansion: float = 0.0,
    ) -> Tuple[float, float]:
        """Centers reachable from the anchor, intersected with the lateral bounds.

        May be empty (lo > hi) when the anchor hugs a wall.
        """
        budget = reach * self.world.reach_safety * (1 + expansion)
        if self.world.edge_to_edge_reach:
            budget += (prev_width + new_width) / 2
        left, right = self.lateral_bounds(new_width)
        return max(left, anchor_x - budget), min(right, anchor_x + budget)

    def candidate_zones(
        self, anchor_x: float, interval: Tuple[float, float], min_sep: float
    ) -> List[Zone]:
        """Subtract the exclusion band around the anchor from the interval."""
        lo, hi = interval
        zones = []
        left = Zone(ZoneSide.LEFT, lo, min(hi, anchor_x - min_sep))
        if left.width >= self.world.min_zone_width:
            zones.append(left)
        right = Zone(ZoneSide.RIGHT, max(lo, anchor_x + min_sep), hi)
        if right.width >= self.world.min_zone_width:
            zones.append(right)
        return zones

    def stranded_band(self, new_width: float, next_width: float) -> Tuple[float, float]:
        """Centers from which a next_width platform would have no zone at all.

        Empty (lo >= hi) when every position in the shaft leaves room.
        """
        min_sep = self.min_separation(new_width, next_width)
        left, right = self.lateral_bounds(next_width)
        slack = self.world.min_zone_width
        return right - slack - min_sep, left + slack + min_sep

    def trim_stranded(self, zones: List[Zone], new_width: float, next_width: float) -> List[Zone]:
        """Cut the stranded band out of each zone.

        Returns the zones unchanged if nothing usable would remain.
        """
        lo, hi = self.stranded_band(new_width, next_width)
        if lo >= hi:
            return zones
        trimmed = []
        for zone in zones:
            for start, end in ((zone.start, min(zone.end, lo)), (max(zone.start, hi), zone.end)):
                if end - start >= self.world.min_zone_width:
                    trimmed.append(Zone(zone.side, start, end))
        return trimmed or zones

    def _sample(self, zones: List[Zone]) -> Tuple[ZoneSide, float]:
        """Pick a side uniformly, then a point uniformly over that side's zones."""
        sides = []
        for zone in zones:
            if zone.side not in sides:
                sides.append(zone.side)
        side = sides[0] if len(sides) == 1 else sides[self.rng.randrange(len(sides))]
        pieces = [z for z in zones if z.side is side]

        u = self.rng.uniform(0.0, sum(p.width for p in pieces))
        for piece in pieces:
            if u <= piece.width:
                return side, piece.start + u
            u -= piece.width
        return side, pieces[-1].end

    def solve(
        self,
        anchor: Anchor,
        reach: float,
        new_width: float,
        prev_width: Optional[float] = None,
        next_width: Optional[float] = None,
    ) -> Placement:
        """Find an x for a platform of new_width placed above the anchor.

        Always returns a finite x; degraded results are tagged, logged and
        counted rather than raised.

        Args:
            anchor: Previous platform's reference point.
            reach: ReachBudget for the sampled gap.
            new_width: Footprint width of the platform being placed.
            prev_width: Footprint width of the anchor platform. Defaults to
                the anchor's recorded width.
            next_width: Widest platform that may follow this one. When given,
                positions that would strand it are avoided where possible.
        """
        if prev_width is None:
            prev_width = anchor.width
        min_sep = self.min_separation(prev_width, new_width)

        interval = self.reachable_interval(anchor.x, reach, new_width, prev_width)
        zones = self.candidate_zones(anchor.x, interval, min_sep)
        strategy = PlacementStrategy.STRICT

        if not zones:
            interval = self.reachable_interval(
                anchor.x, reach, new_width, prev_width, expansion=self.world.emergency_reach
            )
            zones = self.candidate_zones(anchor.x, interval, min_sep)
            strategy = PlacementStrategy.EMERGENCY

        if zones:
            if next_width is not None:
                zones = self.trim_stranded(zones, new_width, next_width)
            side, x = self._sample(zones)
            placement = Placement(
                x=x,
                strategy=strategy,
                side=side,
                min_separation=min_sep,
                interval=interval,
            )
        else:
            placement = self._fallback(anchor.x, interval, min_sep, new_width)
            logger.debug(
                "Degraded placement (%s) at x=%.1f: anchor=%.1f reach=%.1f widths=%.0f/%.0f",
                placement.strategy.value, placement.x, anchor.x, reach, prev_width, new_width,
            )

        self.stats.record(placement.strategy)
        return placement

    def place(
        self,
        anchor: Anchor,
        reach: float,
        new_width: float,
        prev_width: Optional[float] = None,
        next_width: Optional[float] = None,
    ) -> float:
        """Convenience wrapper around solve() returning only x."""
        return self.solve(anchor, reach, new_width, prev_width, next_width).x

    def _fallback(
        self,
        anchor_x: float,
        interval: Tuple[float, float],
        min_sep: float,
        new_width: float,
    ) -> Placement:
        lo, hi = interval
        if lo > hi:
            left, right = self.lateral_bounds(new_width)
            mid = (lo + hi) / 2
            x = min(max(mid, left), right) if left <= right else self.world.world_width / 2
            return Placement(x, PlacementStrategy.MIDPOINT, None, min_sep, interval)

        def distance(point: float) -> float:
            return max(lo - point, 0.0, point - hi)

        options = [(ZoneSide.LEFT, anchor_x - min_sep), (ZoneSide.RIGHT, anchor_x + min_sep)]
        # Ties go to the side facing the open middle of the shaft
        center = self.world.world_width / 2
        preferred = ZoneSide.RIGHT if anchor_x < center else ZoneSide.LEFT
        side, point = min(options, key=lambda o: (distance(o[1]), o[0] is not preferred))
        x = min(max(point, lo), hi)
        return Placement(x, PlacementStrategy.FALLBACK, side, min_sep, interval)
