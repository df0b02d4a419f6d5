"""Parameter constraints and validation for generator configs.

Configuration problems are programmer errors, so they are caught once at
startup instead of being tolerated mid-run:
1. Validating individual parameter ranges
2. Checking cross-parameter consistency (e.g., spawn-ahead must exceed a gap)
3. Providing constraint-aware sampling of movement profiles

Key insight: a "valid" config means the generator can always place the next
platform and the window stays bounded. Difficulty is a separate dimension.
"""

import math
import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .config import MovementProfile, WorldConfig, DifficultyConfig, SpawnConfig, GameConfig
from .kinematics import max_horizontal_reach, gap_range


@dataclass
class ConstraintViolation:
    """Describes a constraint violation."""
    param: str
    message: str
    severity: str  # "error" = rejected at startup, "warning" = allowed but suspicious


@dataclass
class ConstraintResult:
    """Result of constraint validation."""
    valid: bool
    violations: List[ConstraintViolation]

    def __bool__(self) -> bool:
        return self.valid

    @property
    def errors(self) -> List[ConstraintViolation]:
        return [v for v in self.violations if v.severity == "error"]

    @property
    def warnings(self) -> List[ConstraintViolation]:
        return [v for v in self.violations if v.severity == "warning"]


class ConfigurationError(ValueError):
    """Raised when a config violates a hard constraint."""

    def __init__(self, violations: List[ConstraintViolation]):
        self.violations = list(violations)
        details = "; ".join(f"{v.param}: {v.message}" for v in self.violations)
        super().__init__(f"Invalid configuration: {details}")


def _result(violations: List[ConstraintViolation]) -> ConstraintResult:
    errors = [v for v in violations if v.severity == "error"]
    return ConstraintResult(valid=len(errors) == 0, violations=violations)


def _check_weights(
    name: str, weights: Tuple[float, ...], violations: List[ConstraintViolation]
) -> None:
    if len(weights) != 3:
        violations.append(ConstraintViolation(name, f"Expected 3 weights, got {len(weights)}", "error"))
    elif any(w < 0 for w in weights) or sum(weights) <= 0:
        violations.append(ConstraintViolation(
            name, f"Weights {tuple(weights)} must be non-negative with a positive total", "error"
        ))


def _check_probability(name: str, value: float, violations: List[ConstraintViolation]) -> None:
    if not (0.0 <= value <= 1.0):
        violations.append(ConstraintViolation(name, f"{name} {value} outside [0, 1]", "error"))


class ParameterConstraints:
    """Defines and checks constraints on generator parameters.

    - Hard constraints: must hold or the generator refuses to start
    - Soft constraints: warnings for tunings that degrade placement quality
    """

    # Hazard density above this is flagged as very high
    HAZARD_DENSITY_WARN = 0.5

    @classmethod
    def validate_movement(cls, movement: MovementProfile) -> ConstraintResult:
        """Every movement constant must be strictly positive."""
        violations = []

        for name in ("gravity", "takeoff_speed", "run_up_reduction",
                     "max_speed", "side_impulse_cap", "move_speed"):
            value = getattr(movement, name)
            if not (isinstance(value, (int, float)) and math.isfinite(value) and value > 0):
                violations.append(ConstraintViolation(
                    name, f"{name} {value} must be a finite value > 0", "error"
                ))

        if movement.run_up_reduction >= 1.0:
            violations.append(ConstraintViolation(
                "run_up_reduction",
                f"Run-up reduction {movement.run_up_reduction} >= 1 removes all lift",
                "error",
            ))

        return _result(violations)

    @classmethod
    def validate_world(cls, world: WorldConfig, movement: MovementProfile) -> ConstraintResult:
        """Validate world geometry and streaming against movement capabilities."""
        violations = []

        for name in ("world_width", "screen_height", "platform_height",
                     "min_platform_width", "keep_below", "spawn_ahead"):
            if getattr(world, name) <= 0:
                violations.append(ConstraintViolation(
                    name, f"{name} {getattr(world, name)} must be > 0", "error"
                ))

        if world.margin_x < 0:
            violations.append(ConstraintViolation("margin_x", f"Margin {world.margin_x} < 0", "error"))

        if len(world.platform_widths) != 3 or any(w <= 0 for w in world.platform_widths):
            violations.append(ConstraintViolation(
                "platform_widths", f"Need three positive widths, got {tuple(world.platform_widths)}", "error"
            ))

        playable = world.world_width - 2 * world.margin_x
        widest = max(list(world.platform_widths) + [world.starter_width, world.min_platform_width])
        if playable < widest:
            violations.append(ConstraintViolation(
                "margin_x",
                f"Playable width {playable} cannot fit a {widest} px platform",
                "error",
            ))

        if not (0 < world.gap_low_fraction <= world.gap_high_fraction < 1):
            violations.append(ConstraintViolation(
                "gap_high_fraction",
                f"Gap band ({world.gap_low_fraction}, {world.gap_high_fraction}) must satisfy 0 < low <= high < 1",
                "error",
            ))

        if not (0 < world.reach_safety <= 1):
            violations.append(ConstraintViolation(
                "reach_safety", f"Reach safety {world.reach_safety} outside (0, 1]", "error"
            ))
        if world.reach_samples < 1:
            violations.append(ConstraintViolation(
                "reach_samples", f"Need at least one run-up sample, got {world.reach_samples}", "error"
            ))
        if not (0 <= world.max_overlap_fraction < 1):
            violations.append(ConstraintViolation(
                "max_overlap_fraction", f"Overlap fraction {world.max_overlap_fraction} outside [0, 1)", "error"
            ))
        if world.separation_buffer_min > world.separation_buffer_max:
            violations.append(ConstraintViolation(
                "separation_buffer_min", "Separation buffer min exceeds max", "error"
            ))
        if world.starter_count < 1:
            violations.append(ConstraintViolation(
                "starter_count", "Need at least one starter platform to anchor generation", "error"
            ))

        # Starvation guard: one tick must never need an unbounded number of spawns
        movement_ok = cls.validate_movement(movement).valid
        if movement_ok and 0 < world.gap_low_fraction <= world.gap_high_fraction < 1 and world.reach_samples >= 1:
            gap_min, gap_max = gap_range(movement, world.gap_low_fraction, world.gap_high_fraction)
            if world.spawn_ahead <= gap_max:
                violations.append(ConstraintViolation(
                    "spawn_ahead",
                    f"Spawn-ahead {world.spawn_ahead} must exceed the largest gap {gap_max}",
                    "error",
                ))
            if gap_min <= world.platform_height:
                violations.append(ConstraintViolation(
                    "gap_low_fraction",
                    f"Smallest gap {gap_min} does not clear a {world.platform_height} px platform",
                    "error",
                ))
            elif max_horizontal_reach(movement, gap_max, world.reach_samples, 0.0) < world.reach_floor:
                violations.append(ConstraintViolation(
                    "reach_floor",
                    f"Largest gap {gap_max} is only reachable through the {world.reach_floor} px floor",
                    "warning",
                ))

        return _result(violations)

    @classmethod
    def validate_difficulty(cls, difficulty: DifficultyConfig) -> ConstraintResult:
        """Validate band boundaries and weight tables."""
        violations = []

        if not (0 <= difficulty.early_height < difficulty.late_height):
            violations.append(ConstraintViolation(
                "early_height",
                f"Bands need 0 <= early ({difficulty.early_height}) < late ({difficulty.late_height})",
                "error",
            ))
        if difficulty.late_ramp <= 0:
            violations.append(ConstraintViolation("late_ramp", "Late ramp must be > 0", "error"))

        for name in ("early_size_weights", "mid_size_weights", "late_size_weights",
                     "early_material_weights", "mid_material_weights", "late_material_weights"):
            _check_weights(name, getattr(difficulty, name), violations)

        if difficulty.early_size_scale < 1.0:
            violations.append(ConstraintViolation(
                "early_size_scale", "Early platforms should not be smaller than nominal", "warning"
            ))
        if not (0 < difficulty.min_size_scale <= 1.0):
            violations.append(ConstraintViolation(
                "min_size_scale", f"Minimum scale {difficulty.min_size_scale} outside (0, 1]", "error"
            ))

        for name in ("early_hazard_density", "mid_hazard_density",
                     "late_hazard_density", "max_hazard_density"):
            _check_probability(name, getattr(difficulty, name), violations)

        if difficulty.max_hazard_density > cls.HAZARD_DENSITY_WARN:
            violations.append(ConstraintViolation(
                "max_hazard_density",
                f"Hazard density cap {difficulty.max_hazard_density} is very high",
                "warning",
            ))

        return _result(violations)

    @classmethod
    def validate_spawns(cls, spawns: SpawnConfig) -> ConstraintResult:
        violations = []
        for name in ("coin_chance", "health_chance", "boot_chance"):
            _check_probability(name, getattr(spawns, name), violations)
        if spawns.checkpoint_interval_meters <= 0:
            violations.append(ConstraintViolation(
                "checkpoint_interval_meters", "Checkpoint interval must be > 0", "error"
            ))
        return _result(violations)

    @classmethod
    def validate_config(cls, config: GameConfig) -> ConstraintResult:
        """Validate full generator config."""
        all_violations = []

        all_violations.extend(cls.validate_movement(config.movement).violations)
        all_violations.extend(cls.validate_world(config.world, config.movement).violations)
        all_violations.extend(cls.validate_difficulty(config.difficulty).violations)
        all_violations.extend(cls.validate_spawns(config.spawns).violations)

        # Cross-group: the widest early platform must still fit between the walls
        world = config.world
        widest = max(world.platform_widths) * max(config.difficulty.early_size_scale, 1.0)
        if world.world_width - 2 * world.margin_x < widest:
            all_violations.append(ConstraintViolation(
                "early_size_scale",
                f"Scaled platform width {widest:.0f} exceeds the playable width",
                "error",
            ))

        return _result(all_violations)


class ConstrainedSampler:
    """Samples movement profiles and configs that pass validation.

    Strategies:
    1. Sample movement constants inside their ClassVar ranges
    2. Derive a spawn-ahead distance that clears the largest gap
    3. Rejection sampling for edge cases
    """

    def __init__(self, max_attempts: int = 100, rng: Optional[random.Random] = None):
        self.max_attempts = max_attempts
        self.rng = rng or random.Random()

    def sample_movement(self) -> MovementProfile:
        """Sample a valid movement profile."""
        rng = self.rng
        for _ in range(self.max_attempts):
            movement = MovementProfile(
                gravity=rng.uniform(*MovementProfile.GRAVITY_RANGE),
                takeoff_speed=rng.uniform(*MovementProfile.TAKEOFF_SPEED_RANGE),
                run_up_reduction=rng.uniform(*MovementProfile.RUN_UP_REDUCTION_RANGE),
                max_speed=rng.uniform(*MovementProfile.MAX_SPEED_RANGE),
                side_impulse_cap=rng.uniform(*MovementProfile.SIDE_IMPULSE_RANGE),
                move_speed=rng.uniform(*MovementProfile.MOVE_SPEED_RANGE),
            )
            if ParameterConstraints.validate_movement(movement):
                return movement
        raise ValueError(f"No valid movement profile after {self.max_attempts} attempts")

    def sample_config(self, world: Optional[WorldConfig] = None) -> GameConfig:
        """Sample a complete valid config.

        Raises:
            ConfigurationError: if the sampled config still fails validation.
        """
        movement = self.sample_movement()
        world = world or WorldConfig()
        _, gap_max = gap_range(movement, world.gap_low_fraction, world.gap_high_fraction)
        if world.spawn_ahead <= gap_max:
            world = WorldConfig(**{**world.__dict__, "spawn_ahead": gap_max * 4.0})

        config = GameConfig(
            movement=movement,
            world=world,
            difficulty=DifficultyConfig.sample(self.rng),
        )

        result = ParameterConstraints.validate_config(config)
        if not result.valid:
            raise ConfigurationError(result.errors)
        return config
