"""climber-worldgen: procedural world generation for an endless vertical climber.

Builds an unbounded tower of platforms one jump at a time and streams it in
and out of memory as the player ascends. Gaps and horizontal offsets come
from the player's own movement constants, so every generated jump is
reachable; platform size, material, hazards and pickups follow a
height-dependent difficulty curve. A pymunk bridge mirrors the live world
for collision handling.
"""

from .config import (
    MovementProfile,
    WorldConfig,
    DifficultyConfig,
    SpawnConfig,
    GameConfig,
    ResolvedConfig,
    CONFIGS,
    resolve_config,
    load_config,
    save_config,
)
from .constraints import (
    ParameterConstraints,
    ConstrainedSampler,
    ConstraintResult,
    ConstraintViolation,
    ConfigurationError,
)
from .kinematics import max_jump_height, gap_range, max_horizontal_reach, fall_damage
from .entities import Platform, SatelliteEntity, Anchor, Material, SizeClass, EntityCategory
from .difficulty import DifficultyCurve, DifficultyProfile
from .placement import PlacementSolver, PlacementStrategy, PlacementStats
from .coplacement import EntityCoPlacer, ZoneKind
from .world import StreamingWorld
from .physics import PhysicsBridge

__all__ = [
    "MovementProfile",
    "WorldConfig",
    "DifficultyConfig",
    "SpawnConfig",
    "GameConfig",
    "ResolvedConfig",
    "CONFIGS",
    "resolve_config",
    "load_config",
    "save_config",
    "ParameterConstraints",
    "ConstrainedSampler",
    "ConstraintResult",
    "ConstraintViolation",
    "ConfigurationError",
    "max_jump_height",
    "gap_range",
    "max_horizontal_reach",
    "fall_damage",
    "Platform",
    "SatelliteEntity",
    "Anchor",
    "Material",
    "SizeClass",
    "EntityCategory",
    "DifficultyCurve",
    "DifficultyProfile",
    "PlacementSolver",
    "PlacementStrategy",
    "PlacementStats",
    "EntityCoPlacer",
    "ZoneKind",
    "StreamingWorld",
    "PhysicsBridge",
]
