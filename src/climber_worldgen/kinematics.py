"""Reachability model derived from the player's movement constants.

All functions are pure and read a MovementProfile without mutating it.
Gravity points down the screen; a jump is a constant-gravity parabola whose
takeoff speed drops as the player builds run-up, trading height for
horizontal speed.
"""

import math
from typing import Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .config import MovementProfile


def max_jump_height(profile: "MovementProfile") -> float:
    """Ceiling on vertical displacement from a standing jump: v0^2 / 2g."""
    return profile.takeoff_speed ** 2 / (2 * profile.gravity)


def gap_range(
    profile: "MovementProfile",
    low_fraction: float = 0.55,
    high_fraction: float = 0.85,
) -> Tuple[int, int]:
    """Valid vertical gap band between consecutive platforms.

    Gaps under 55% of the jump height feel trivial; above 85% there is no
    execution margin left. The band is a difficulty knob, not a physical limit.
    """
    height = max_jump_height(profile)
    return math.floor(low_fraction * height), math.floor(high_fraction * height)


def flight_time(vy: float, gravity: float, gap: float) -> float:
    """Time until a jump launched at vy comes back down to `gap` above takeoff.

    Returns NaN when vy cannot clear the gap at all.
    """
    disc = vy * vy - 2 * gravity * gap
    if disc < 0:
        return math.nan
    return (vy + math.sqrt(disc)) / gravity


def max_horizontal_reach(
    profile: "MovementProfile",
    gap: float,
    samples: int = 10,
    floor: float = 36.0,
) -> float:
    """Largest horizontal displacement achievable while climbing `gap`.

    Samples run-up fraction r in [0, 1]. More run-up means more horizontal
    speed but less vertical speed, so the best r depends on the gap and
    must be recomputed per gap.

    Args:
        profile: Movement constants.
        gap: Vertical distance to climb (px, positive).
        samples: Number of steps between r=0 and r=1.
        floor: Minimum returned reach, so degenerate gaps never yield zero.
    """
    best = 0.0
    for i in range(samples + 1):
        r = i / samples
        vy = profile.takeoff_speed * (1 - profile.run_up_reduction * r)
        t = flight_time(vy, profile.gravity, gap)
        if math.isnan(t):
            continue
        vx = min(profile.max_speed, r * (profile.move_speed + profile.side_impulse_cap))
        best = max(best, vx * t)
    return max(best, floor)


def safe_drop(profile: "MovementProfile") -> int:
    """Largest fall (px) that deals no damage: 5% past the jump height."""
    return round(max_jump_height(profile) * 1.05)


def fall_damage(
    drop: float,
    profile: "MovementProfile",
    damage_multiplier: float = 1.0,
    damage_per_50px: float = 12.0,
) -> int:
    """Landing damage for a fall of `drop` px onto a platform.

    The platform material's damage multiplier scales the base damage.
    """
    excess = max(0.0, drop - safe_drop(profile))
    return round(excess / 50 * damage_per_50px * damage_multiplier)


def height_meters(y: float, base_y: float) -> int:
    """Height climbed above the starter run, in whole meters (10 px each)."""
    return max(0, math.floor((base_y - y) / 10))
