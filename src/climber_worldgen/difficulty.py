"""Height-dependent difficulty curve.

Maps height climbed (px above the starter run) to distributions over
platform size and material and to spawn densities for satellites:

- Early band: large, dirt platforms scaled up for easy footing
- Mid band: linear blend toward small sizes and stone, ice appears
- Late band: small and shrinking, ice-dominated, more hazards; traction
  boots become more likely to compensate for the ice
"""

import random
from dataclasses import dataclass
from typing import Sequence, Tuple, TypeVar

from .config import DifficultyConfig, SpawnConfig, WorldConfig
from .entities import SizeClass, Material, SIZE_ORDER, MATERIAL_ORDER

T = TypeVar("T")

Weights = Tuple[float, float, float]


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def _lerp_weights(a: Weights, b: Weights, t: float) -> Weights:
    return tuple(_lerp(x, y, t) for x, y in zip(a, b))


def _ice_share(materials: Weights) -> float:
    return materials[2] / sum(materials)


def weighted_choice(weights: Sequence[float], categories: Sequence[T], rng: random.Random) -> T:
    """Pick a category by walking cumulative weights in fixed order.

    Weights need not sum to one; they are normalized. The last category
    absorbs floating-point shortfall so a choice is always made.
    """
    total = sum(weights)
    u = rng.random() * total
    cumulative = 0.0
    for weight, category in zip(weights, categories):
        cumulative += weight
        if cumulative >= u and weight > 0:
            return category
    for weight, category in zip(reversed(weights), reversed(categories)):
        if weight > 0:
            return category
    return categories[-1]


@dataclass(frozen=True)
class DifficultyProfile:
    """Distributions and densities in effect at one height."""
    height: float
    size_weights: Weights  # (small, medium, large)
    size_scale: float
    material_weights: Weights  # (dirt, stone, ice)
    hazard_density: float
    collectible_density: float
    heal_density: float
    traction_density: float

    def sample_size(self, rng: random.Random) -> SizeClass:
        return weighted_choice(self.size_weights, SIZE_ORDER, rng)

    def sample_material(self, rng: random.Random) -> Material:
        return weighted_choice(self.material_weights, MATERIAL_ORDER, rng)


class DifficultyCurve:
    """Pure function of height climbed -> DifficultyProfile."""

    def __init__(
        self,
        difficulty: DifficultyConfig,
        spawns: SpawnConfig,
        world: WorldConfig,
    ):
        self.difficulty = difficulty
        self.spawns = spawns
        self.world = world

    def band(self, height: float) -> str:
        if height < self.difficulty.early_height:
            return "early"
        if height < self.difficulty.late_height:
            return "mid"
        return "late"

    def profile(self, height: float) -> DifficultyProfile:
        d = self.difficulty
        height = max(0.0, height)
        band = self.band(height)

        if band == "early":
            sizes = d.early_size_weights
            scale = d.early_size_scale
            materials = d.early_material_weights
            hazard = d.early_hazard_density
        elif band == "mid":
            t = (height - d.early_height) / (d.late_height - d.early_height)
            sizes = _lerp_weights(d.early_size_weights, d.mid_size_weights, t)
            scale = _lerp(d.early_size_scale, 1.0, t)
            materials = _lerp_weights(d.early_material_weights, d.mid_material_weights, t)
            hazard = _lerp(d.early_hazard_density, d.mid_hazard_density, t)
        else:
            above = height - d.late_height
            t = min(1.0, above / d.late_ramp)
            sizes = _lerp_weights(d.mid_size_weights, d.late_size_weights, t)
            scale = max(d.min_size_scale, 1.0 - d.late_size_scale_step * above)
            materials = _lerp_weights(d.mid_material_weights, d.late_material_weights, t)
            # Slippery footing amplifies hazard density
            hazard = _lerp(d.mid_hazard_density, d.late_hazard_density, t) * (1 + _ice_share(materials))
            hazard = min(d.max_hazard_density, hazard)

        ice_share = _ice_share(materials)
        return DifficultyProfile(
            height=height,
            size_weights=tuple(sizes),
            size_scale=scale,
            material_weights=tuple(materials),
            hazard_density=hazard,
            collectible_density=self.spawns.coin_chance,
            heal_density=self.spawns.health_chance,
            traction_density=min(1.0, self.spawns.boot_chance + self.spawns.boot_ice_bonus * ice_share),
        )

    def footprint_width(self, size_class: SizeClass, profile: DifficultyProfile) -> float:
        """Scaled width for a size class, never below the minimum playable width."""
        base = self.world.platform_widths[size_class.value]
        return max(self.world.min_platform_width, base * profile.size_scale)

    def max_width(self, profile: DifficultyProfile) -> float:
        """Widest footprint the profile can still produce."""
        return max(
            self.footprint_width(size, profile)
            for w, size in zip(profile.size_weights, SIZE_ORDER)
            if w > 0
        )

    def expected_width(self, height: float) -> float:
        """Mean footprint width at a height under the size distribution."""
        profile = self.profile(height)
        total = sum(profile.size_weights)
        return sum(
            w / total * self.footprint_width(size, profile)
            for w, size in zip(profile.size_weights, SIZE_ORDER)
        )
