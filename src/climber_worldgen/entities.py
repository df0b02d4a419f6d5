"""World entities: platforms, satellite entities, materials and the anchor.

Entities only carry geometry and flags. Collision is the physics
collaborator's job (see physics.py for the pymunk mirror); the streaming
world is the only writer of these objects.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple, Dict, Any, Optional


class SizeClass(Enum):
    """Platform footprint class. Order matters for weighted selection."""
    SMALL = 0
    MEDIUM = 1
    LARGE = 2


class Material(Enum):
    """Platform surface: (friction, fall-damage multiplier).

    Order matters for weighted selection: baseline first, slippery last.
    """
    DIRT = ("dirt", 1.2, 0.7)
    STONE = ("stone", 0.9, 1.0)
    ICE = ("ice", 0.4, 1.3)

    def __init__(self, label: str, friction: float, damage_multiplier: float):
        self.label = label
        self.friction = friction
        self.damage_multiplier = damage_multiplier

    @property
    def is_slippery(self) -> bool:
        return self.friction < 0.7


SIZE_ORDER: Tuple[SizeClass, ...] = (SizeClass.SMALL, SizeClass.MEDIUM, SizeClass.LARGE)
MATERIAL_ORDER: Tuple[Material, ...] = (Material.DIRT, Material.STONE, Material.ICE)

# Material a traction item turns a platform into
TRACTION_MATERIAL = Material.DIRT


class Lifecycle(Enum):
    RESIDENT = "resident"
    RECYCLABLE = "recyclable"


class EntityCategory(Enum):
    COIN = "coin"
    HEALTH_PACK = "health_pack"
    BOOT = "boot"
    HAZARD = "hazard"
    CHECKPOINT = "checkpoint"


@dataclass
class Anchor:
    """Current top of the world: reference point of the last placed platform."""
    x: float
    y: float
    width: float

    @property
    def position(self) -> Tuple[float, float]:
        return self.x, self.y


class Platform:
    """A platform slot in the world's arena.

    The object is created once per slot and overwritten in place whenever
    the world recycles it, so consumers can keep references across ticks.
    """

    def __init__(self, slot: int):
        self.slot = slot
        self.sequence = -1  # Placement order id; -1 until first placed
        self.x = 0.0
        self.y = 0.0
        self.width = 0.0
        self.height = 0.0
        self.size_class = SizeClass.MEDIUM
        self.material = Material.DIRT
        self.friction = Material.DIRT.friction
        self.damage_multiplier = Material.DIRT.damage_multiplier
        self.modified = False
        self.lifecycle = Lifecycle.RESIDENT
        self.is_starter = False

        # How this platform was placed (for tuning and invariant checks)
        self.gap = 0.0
        self.reach = 0.0
        self.strategy: Optional[str] = None
        self.prev_x = 0.0
        self.prev_width = 0.0

    def assign(
        self,
        sequence: int,
        x: float,
        y: float,
        width: float,
        height: float,
        size_class: SizeClass,
        material: Material,
    ) -> None:
        """Overwrite this slot's geometry and surface, clearing transient state."""
        self.sequence = sequence
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.size_class = size_class
        self.material = material
        self.friction = material.friction
        self.damage_multiplier = material.damage_multiplier
        self.modified = False
        self.lifecycle = Lifecycle.RESIDENT

    def apply_traction(self) -> bool:
        """Override the surface with the baseline material until recycled.

        Returns False if the platform was already modified.
        """
        if self.modified:
            return False
        self.friction = TRACTION_MATERIAL.friction
        self.damage_multiplier = TRACTION_MATERIAL.damage_multiplier
        self.modified = True
        return True

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Get (left, top, right, bottom) bounds in screen coordinates."""
        half_w = self.width / 2
        half_h = self.height / 2
        return (
            self.x - half_w,
            self.y - half_h,
            self.x + half_w,
            self.y + half_h,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "slot": self.slot,
            "sequence": self.sequence,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "size_class": self.size_class.name.lower(),
            "material": self.material.label,
            "friction": self.friction,
            "damage_multiplier": self.damage_multiplier,
            "modified": self.modified,
        }

    def __repr__(self) -> str:
        return (
            f"Platform(slot={self.slot}, seq={self.sequence}, x={self.x:.1f}, "
            f"y={self.y:.1f}, w={self.width:.0f}, {self.material.label})"
        )


@dataclass(eq=False)
class SatelliteEntity:
    """Collectible, hazard or checkpoint co-placed with a platform.

    Compared by identity: two coins at the same spot are still two coins.
    """
    x: float
    y: float
    category: EntityCategory
    payload: Dict[str, Any] = field(default_factory=dict)
    platform_sequence: int = -1
    zone: Optional[str] = None  # Placement zone tag
    consumed: bool = False
    active: bool = False  # Checkpoints only: touched by the player

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "category": self.category.value,
            "payload": dict(self.payload),
            "platform_sequence": self.platform_sequence,
            "zone": self.zone,
            "active": self.active,
        }
