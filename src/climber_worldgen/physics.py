"""pymunk mirror of the streaming world for the collision collaborator.

The generator itself never touches physics. PhysicsBridge reads the world's
live platforms and satellites and keeps a pymunk.Space in step with them:
platforms become static boxes with their material's friction, satellites
become sensor boxes. Only slots whose contents changed are rebuilt.

Coordinates are screen pixels with y growing downward, so gravity is
positive.
"""

import logging
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

import pymunk

from .entities import EntityCategory, Platform, SatelliteEntity

if TYPE_CHECKING:
    from .world import StreamingWorld

logger = logging.getLogger(__name__)


# Collision types for different entity categories
COLLISION_PLAYER = 1
COLLISION_PLATFORM = 2
COLLISION_SATELLITE = 3

# Sensor footprint per satellite category (width, height)
SATELLITE_SIZES = {
    EntityCategory.COIN: (20.0, 20.0),
    EntityCategory.HEALTH_PACK: (24.0, 24.0),
    EntityCategory.BOOT: (24.0, 24.0),
    EntityCategory.HAZARD: (28.0, 28.0),
}


class PhysicsBridge:
    """Keeps a pymunk.Space in sync with a StreamingWorld.

    Typical frame:
        world.tick(camera_top, player_x, player_y)
        bridge.sync()
        bridge.step(1 / 60)
        for entity, payload in bridge.resolve_contacts():
            ...
    """

    def __init__(self, world: "StreamingWorld", gravity: Optional[float] = None):
        self.world = world
        self.space = pymunk.Space()
        if gravity is None:
            gravity = world.resolved.movement.gravity
        self.space.gravity = (0, gravity)

        self._platform_shapes: Dict[int, pymunk.Shape] = {}  # slot -> shape
        self._platform_keys: Dict[int, Tuple[int, float]] = {}  # slot -> (sequence, friction)
        self._satellite_shapes: Dict[SatelliteEntity, pymunk.Shape] = {}
        self._shape_entities: Dict[pymunk.Shape, object] = {}

        self._grounded_bodies: set[pymunk.Body] = set()
        self._standing_on: Dict[pymunk.Body, Platform] = {}
        self._touched: List[SatelliteEntity] = []

        self._setup_collision_handlers()

    def _setup_collision_handlers(self) -> None:
        self.space.on_collision(
            collision_type_a=COLLISION_PLAYER,
            collision_type_b=COLLISION_PLATFORM,
            begin=self._player_platform_begin,
            separate=self._player_platform_separate,
        )
        self.space.on_collision(
            collision_type_a=COLLISION_PLAYER,
            collision_type_b=COLLISION_SATELLITE,
            begin=self._player_satellite_begin,
        )

    def _player_platform_begin(
        self, arbiter: pymunk.Arbiter, _space: pymunk.Space, _data
    ) -> None:
        player_shape, platform_shape = arbiter.shapes
        # y grows downward: landing from above pushes the player up (-y)
        normal = arbiter.contact_point_set.normal
        if normal.y > 0.5:
            self._grounded_bodies.add(player_shape.body)
            platform = self._shape_entities.get(platform_shape)
            if platform is not None:
                self._standing_on[player_shape.body] = platform
        arbiter.process_collision = True

    def _player_platform_separate(
        self, arbiter: pymunk.Arbiter, _space: pymunk.Space, _data
    ) -> None:
        body = arbiter.shapes[0].body
        self._grounded_bodies.discard(body)
        self._standing_on.pop(body, None)

    def _player_satellite_begin(
        self, arbiter: pymunk.Arbiter, _space: pymunk.Space, _data
    ) -> None:
        entity = self._shape_entities.get(arbiter.shapes[1])
        if entity is not None and entity not in self._touched:
            self._touched.append(entity)
        arbiter.process_collision = False

    def _make_box(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        collision_type: int,
        friction: float = 0.0,
        sensor: bool = False,
    ) -> pymunk.Shape:
        body = self.space.static_body
        half_w, half_h = width / 2, height / 2
        vertices = [
            (-half_w, -half_h),
            (half_w, -half_h),
            (half_w, half_h),
            (-half_w, half_h),
        ]
        shape = pymunk.Poly(body, vertices, transform=pymunk.Transform.translation(x, y))
        shape.collision_type = collision_type
        shape.friction = friction
        shape.sensor = sensor
        self.space.add(shape)
        return shape

    def _remove(self, shape: pymunk.Shape) -> None:
        self.space.remove(shape)
        self._shape_entities.pop(shape, None)

    def sync(self) -> Tuple[int, int]:
        """Rebuild shapes for changed slots and new or removed satellites.

        Returns:
            (platform shapes rebuilt, satellite shapes added)
        """
        rebuilt = 0
        live = {p.slot: p for p in self.world.platforms}

        for slot in list(self._platform_shapes):
            if slot not in live:
                self._remove(self._platform_shapes.pop(slot))
                del self._platform_keys[slot]

        for slot, platform in live.items():
            key = (platform.sequence, platform.friction)
            if self._platform_keys.get(slot) == key:
                continue
            if slot in self._platform_shapes:
                self._remove(self._platform_shapes.pop(slot))
            shape = self._make_box(
                platform.x, platform.y, platform.width, platform.height,
                COLLISION_PLATFORM, friction=platform.friction,
            )
            self._platform_shapes[slot] = shape
            self._platform_keys[slot] = key
            self._shape_entities[shape] = platform
            rebuilt += 1

        current = set(self.world.satellites)
        for entity in list(self._satellite_shapes):
            if entity not in current:
                self._remove(self._satellite_shapes.pop(entity))

        added = 0
        for entity in self.world.satellites:
            if entity in self._satellite_shapes:
                continue
            if entity.category is EntityCategory.CHECKPOINT:
                size = self.world.resolved.spawns.checkpoint_size
                width, height = size, size
            else:
                width, height = SATELLITE_SIZES[entity.category]
            shape = self._make_box(entity.x, entity.y, width, height, COLLISION_SATELLITE, sensor=True)
            self._satellite_shapes[entity] = shape
            self._shape_entities[shape] = entity
            added += 1

        if rebuilt or added:
            logger.debug("Physics sync: %d platforms rebuilt, %d satellites added", rebuilt, added)
        return rebuilt, added

    def add_player(self, x: float, y: float, radius: float = 14.0, mass: float = 1.0) -> pymunk.Body:
        """Add a dynamic circle standing in for the player controller's body."""
        body = pymunk.Body(mass, pymunk.moment_for_circle(mass, 0, radius))
        body.position = (x, y)
        shape = pymunk.Circle(body, radius)
        shape.collision_type = COLLISION_PLAYER
        shape.friction = 1.0
        self.space.add(body, shape)
        return body

    def step(self, dt: float) -> None:
        """Advance the simulation by dt seconds."""
        substeps = 3
        for _ in range(substeps):
            self.space.step(dt / substeps)

    def is_grounded(self, body: pymunk.Body) -> bool:
        return body in self._grounded_bodies

    def platform_under(self, body: pymunk.Body) -> Optional[Platform]:
        """Platform the body last landed on, if it is still standing on it."""
        return self._standing_on.get(body)

    def resolve_contacts(self) -> List[Tuple[SatelliteEntity, Optional[dict]]]:
        """Report touched satellites back to the world.

        Checkpoints are activated; everything else is collected. Entities the
        world already consumed yield a None payload.
        """
        results = []
        for entity in self._touched:
            if entity.category is EntityCategory.CHECKPOINT:
                self.world.activate_checkpoint(entity)
                results.append((entity, dict(entity.payload)))
            else:
                results.append((entity, self.world.collect(entity)))
        self._touched.clear()
        return results

    def entity_for_shape(self, shape: pymunk.Shape):
        """Platform or satellite a shape mirrors, or None."""
        return self._shape_entities.get(shape)

    def platforms_in_box(self, left: float, top: float, right: float, bottom: float) -> List[Platform]:
        """Live platforms whose shapes intersect a screen-space box."""
        bb = pymunk.BB(left, min(top, bottom), right, max(top, bottom))
        hits = self.space.bb_query(bb, pymunk.ShapeFilter())
        platforms = [
            self._shape_entities[s] for s in hits
            if s.collision_type == COLLISION_PLATFORM and s in self._shape_entities
        ]
        return sorted(platforms, key=lambda p: p.sequence)
