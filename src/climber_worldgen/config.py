"""Configuration system for the climbing world generator.

MovementProfile describes what the player can physically do. The generator
never mutates it; it only reads it to bound gaps and horizontal offsets.

This design separates:
- Movement constants (what the player controller exposes) - MovementProfile
- World layout and streaming (how much world stays resident) - WorldConfig
- Difficulty tuning (how the course changes with height) - DifficultyConfig
- Satellite spawning (coins, health packs, boots, hazards) - SpawnConfig

Derived values (jump height, gap bounds, window size) are computed once by
``resolve_config`` into a frozen ResolvedConfig instead of being recomputed on
every placement.
"""

import json
import math
import random
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Tuple, Dict, Any, ClassVar, Optional, Union

from .kinematics import max_jump_height, gap_range, safe_drop


@dataclass
class MovementProfile:
    """Player movement constants consulted by the generator.

    Values default to the shipped game's tuning. Units are pixels and
    seconds; gravity points down the screen (y grows downward).
    """

    gravity: float = 1000.0  # px/s^2
    takeoff_speed: float = 640.0  # Vertical speed at takeoff from a standing jump (px/s)
    run_up_reduction: float = 0.35  # Fraction of vertical speed lost at full run-up
    max_speed: float = 380.0  # Horizontal speed cap (px/s)
    side_impulse_cap: float = 180.0  # Extra horizontal speed a jump can add (px/s)
    move_speed: float = 240.0  # Base horizontal run speed (px/s)

    # === SAMPLING RANGES (used by ConstrainedSampler) ===

    GRAVITY_RANGE: ClassVar[Tuple[float, float]] = (700.0, 1400.0)
    TAKEOFF_SPEED_RANGE: ClassVar[Tuple[float, float]] = (520.0, 760.0)
    RUN_UP_REDUCTION_RANGE: ClassVar[Tuple[float, float]] = (0.2, 0.5)
    MAX_SPEED_RANGE: ClassVar[Tuple[float, float]] = (300.0, 460.0)
    SIDE_IMPULSE_RANGE: ClassVar[Tuple[float, float]] = (120.0, 240.0)
    MOVE_SPEED_RANGE: ClassVar[Tuple[float, float]] = (180.0, 300.0)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, float]) -> "MovementProfile":
        """Create from dictionary, falling back to defaults for missing keys."""
        defaults = cls()
        return cls(
            gravity=d.get("gravity", defaults.gravity),
            takeoff_speed=d.get("takeoff_speed", defaults.takeoff_speed),
            run_up_reduction=d.get("run_up_reduction", defaults.run_up_reduction),
            max_speed=d.get("max_speed", defaults.max_speed),
            side_impulse_cap=d.get("side_impulse_cap", defaults.side_impulse_cap),
            move_speed=d.get("move_speed", defaults.move_speed),
        )


@dataclass
class WorldConfig:
    """World geometry, streaming window and placement tuning."""

    world_width: float = 480.0
    screen_height: float = 800.0
    margin_x: float = 48.0  # Wall margin on both sides
    base_y: float = 680.0  # y of the starter run; height climbed is measured from here

    # Streaming
    spawn_ahead: float = 1200.0  # Content kept above the camera top
    keep_below: float = 1800.0  # Content kept below the player
    initial_platforms: int = 20  # Platforms generated by reset() after the starter run

    # Starter run: flat, generous platforms zig-zagging by starter_step_y
    starter_count: int = 6
    starter_width: float = 120.0
    starter_step_y: float = 40.0

    # Footprints (small, medium, large)
    platform_widths: Tuple[float, float, float] = (80.0, 120.0, 160.0)
    platform_height: float = 18.0
    min_platform_width: float = 64.0

    # Jump band as fractions of the standing jump height
    gap_low_fraction: float = 0.55
    gap_high_fraction: float = 0.85

    # Reachability model
    reach_samples: int = 10  # Run-up fractions sampled between 0 and 1
    reach_floor: float = 36.0
    reach_safety: float = 0.95  # Shrink so near-maximum jumps are never mandatory
    emergency_reach: float = 0.15  # Extra reach allowed once when no zone survives
    # Reach measured between facing platform edges. False measures it between
    # centers (|dx| <= reach * reach_safety); with the default widths that mode
    # degrades well over 5% of placements to fallback.
    edge_to_edge_reach: bool = True

    # Separation between consecutive platforms
    max_overlap_fraction: float = 0.0
    separation_buffer_min: float = 20.0
    separation_buffer_max: float = 40.0
    separation_reference_width: float = 160.0  # Width sum at which the buffer is largest
    min_zone_width: float = 10.0

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["platform_widths"] = list(self.platform_widths)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WorldConfig":
        known = {k: v for k, v in d.items() if k in cls.__dataclass_fields__}
        if "platform_widths" in known:
            known["platform_widths"] = tuple(known["platform_widths"])
        return cls(**known)


@dataclass
class DifficultyConfig:
    """Height-dependent difficulty curve parameters.

    Heights are pixels climbed above WorldConfig.base_y. Weight triples are
    ordered (small, medium, large) for sizes and (dirt, stone, ice) for
    materials.
    """

    early_height: float = 2500.0  # End of the early band (250 m)
    late_height: float = 7500.0  # Start of the late band (750 m)
    late_ramp: float = 7500.0  # Height over which the late band reaches its targets

    early_size_weights: Tuple[float, float, float] = (0.15, 0.35, 0.50)
    mid_size_weights: Tuple[float, float, float] = (0.40, 0.40, 0.20)
    late_size_weights: Tuple[float, float, float] = (0.60, 0.30, 0.10)

    early_size_scale: float = 1.05
    late_size_scale_step: float = 0.00002  # Scale lost per px above late_height
    min_size_scale: float = 0.8

    early_material_weights: Tuple[float, float, float] = (0.90, 0.10, 0.00)
    mid_material_weights: Tuple[float, float, float] = (0.30, 0.60, 0.10)
    late_material_weights: Tuple[float, float, float] = (0.15, 0.25, 0.60)

    early_hazard_density: float = 0.05
    mid_hazard_density: float = 0.20
    late_hazard_density: float = 0.35
    max_hazard_density: float = 0.6

    # Difficulty bands for preset construction
    EARLY_HEIGHT_RANGE: ClassVar[Tuple[float, float]] = (1000.0, 4000.0)
    LATE_HEIGHT_RANGE: ClassVar[Tuple[float, float]] = (5000.0, 12000.0)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        for key, value in d.items():
            if isinstance(value, tuple):
                d[key] = list(value)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DifficultyConfig":
        known = {}
        for key, value in d.items():
            if key not in cls.__dataclass_fields__:
                continue
            known[key] = tuple(value) if isinstance(value, list) else value
        return cls(**known)

    @classmethod
    def sample(cls, rng: Optional[random.Random] = None) -> "DifficultyConfig":
        """Sample band boundaries, keeping the default weight tables."""
        rng = rng or random.Random()
        return cls(
            early_height=rng.uniform(*cls.EARLY_HEIGHT_RANGE),
            late_height=rng.uniform(*cls.LATE_HEIGHT_RANGE),
        )


@dataclass
class SpawnConfig:
    """Satellite entity spawning (chances are per platform, independent)."""

    coin_chance: float = 0.7
    coin_points: int = 50
    coin_separation: float = 120.0

    health_chance: float = 0.25
    health_heal: int = 25
    health_separation: float = 200.0

    boot_chance: float = 0.08
    boot_count: int = 1  # Traction items granted per boot
    boot_separation: float = 300.0
    boot_ice_bonus: float = 0.35  # Added to boot chance per unit of ice weight

    hazard_damage: int = 10
    hazard_separation: float = 160.0

    checkpoint_interval_meters: int = 250
    checkpoint_size: float = 32.0

    entity_padding: float = 30.0  # Lateral clearance from the wall margin

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpawnConfig":
        known = {k: v for k, v in d.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass
class GameConfig:
    """Complete generator configuration combining all parameter groups."""
    movement: MovementProfile = field(default_factory=MovementProfile)
    world: WorldConfig = field(default_factory=WorldConfig)
    difficulty: DifficultyConfig = field(default_factory=DifficultyConfig)
    spawns: SpawnConfig = field(default_factory=SpawnConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to nested dictionary."""
        return {
            "movement": self.movement.to_dict(),
            "world": self.world.to_dict(),
            "difficulty": self.difficulty.to_dict(),
            "spawns": self.spawns.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GameConfig":
        return cls(
            movement=MovementProfile.from_dict(d.get("movement", {})),
            world=WorldConfig.from_dict(d.get("world", {})),
            difficulty=DifficultyConfig.from_dict(d.get("difficulty", {})),
            spawns=SpawnConfig.from_dict(d.get("spawns", {})),
        )


@dataclass(frozen=True)
class ResolvedConfig:
    """A validated GameConfig plus every value derived from it.

    Built once by ``resolve_config``; the generator reads derived values from
    here rather than recomputing them per placement.
    """
    config: GameConfig
    max_jump_height: float
    gap_min: int
    gap_max: int
    safe_drop: int
    left_bound: float  # margin_x
    right_bound: float  # world_width - margin_x
    max_live_platforms: int

    @property
    def movement(self) -> MovementProfile:
        return self.config.movement

    @property
    def world(self) -> WorldConfig:
        return self.config.world

    @property
    def difficulty(self) -> DifficultyConfig:
        return self.config.difficulty

    @property
    def spawns(self) -> SpawnConfig:
        return self.config.spawns


def window_bound(world: WorldConfig, gap_min: float, gap_max: float) -> int:
    """Upper bound on live platforms for a streaming window.

    Live platforms span from the despawn line below the player up to one gap
    past the spawn-ahead line, spaced at least gap_min apart, plus the
    starter run.
    """
    span = world.keep_below + world.screen_height + world.spawn_ahead + 2 * gap_max
    return world.starter_count + math.ceil(span / gap_min) + 1


def resolve_config(config: Optional[GameConfig] = None) -> ResolvedConfig:
    """Validate a config and compute its derived values.

    Raises:
        ConfigurationError: if any hard constraint is violated.
    """
    from .constraints import ParameterConstraints, ConfigurationError

    config = config or GameConfig()
    result = ParameterConstraints.validate_config(config)
    if not result.valid:
        raise ConfigurationError(result.errors)

    world = config.world
    height = max_jump_height(config.movement)
    gap_min, gap_max = gap_range(config.movement, world.gap_low_fraction, world.gap_high_fraction)
    return ResolvedConfig(
        config=config,
        max_jump_height=height,
        gap_min=gap_min,
        gap_max=gap_max,
        safe_drop=safe_drop(config.movement),
        left_bound=world.margin_x,
        right_bound=world.world_width - world.margin_x,
        max_live_platforms=window_bound(world, gap_min, gap_max),
    )


def load_config(path: Union[str, Path]) -> GameConfig:
    """Load a GameConfig from a JSON file. Missing keys keep their defaults."""
    with open(path) as f:
        return GameConfig.from_dict(json.load(f))


def save_config(config: GameConfig, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(config.to_dict(), f, indent=2)
    return path


# Predefined configurations for testing/demo
CONFIGS = {
    # Shipped game tuning
    "default": GameConfig(),

    # Generous: bigger platforms for longer, dirt until late
    "relaxed": GameConfig(
        difficulty=DifficultyConfig(early_height=4000.0, late_height=12000.0),
        spawns=SpawnConfig(health_chance=0.4, boot_chance=0.15),
    ),

    # Steep: difficulty ramps quickly, few heals
    "steep": GameConfig(
        difficulty=DifficultyConfig(early_height=1000.0, late_height=4000.0, late_ramp=4000.0),
        spawns=SpawnConfig(coin_chance=0.5, health_chance=0.15),
    ),

    # Floaty: low gravity, long airtime, wider reach
    "floaty": GameConfig(movement=MovementProfile(
        gravity=750.0,
        takeoff_speed=560.0,
        run_up_reduction=0.3,
    )),

    # Wide: a wider shaft with a larger spawn-ahead margin
    "wide": GameConfig(world=WorldConfig(
        world_width=720.0,
        spawn_ahead=1600.0,
    )),
}
