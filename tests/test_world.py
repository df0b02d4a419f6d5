"""Tests for the streaming world."""

import json

import pytest

from climber_worldgen.config import GameConfig, MovementProfile, WorldConfig
from climber_worldgen.constraints import ConfigurationError
from climber_worldgen.entities import EntityCategory, Lifecycle, Material, Platform
from climber_worldgen.placement import edge_distance, overlap_fraction
from climber_worldgen.world import StreamingWorld


def layout(world):
    return [(p.x, p.y, p.material, p.size_class) for p in world.platforms]


def first_of(world, category):
    return next(s for s in world.satellites if s.category is category)


class TestReset:
    def test_starter_run(self, world):
        starters = [p for p in world.platforms if p.is_starter]
        assert len(starters) == 6
        assert [p.x for p in starters] == pytest.approx([108 + i * 52.8 for i in range(6)])
        assert [p.y for p in starters] == [680, 640, 680, 640, 680, 640]
        assert all(p.width == 120 and p.material is Material.DIRT for p in starters)

    def test_anchor_is_topmost_starter_then_generated(self, resolved):
        world = StreamingWorld(resolved.config, seed=1)
        top = world.platforms[-1]
        assert (world.anchor.x, world.anchor.y, world.anchor.width) == (top.x, top.y, top.width)
        assert world.platforms[6].prev_x == pytest.approx(160.8)
        assert world.platforms[6].y == 640 - world.platforms[6].gap

    def test_initial_population(self, world):
        assert len(world.platforms) == 26
        assert [p.sequence for p in world.platforms] == list(range(26))
        assert world.stats.total == 20

    def test_capacity_from_window_bound(self, world):
        assert world.capacity == 45

    def test_seeded_reset_reproduces(self, world, resolved):
        fresh = StreamingWorld(resolved, seed=42)
        world.reset()
        assert layout(world) != layout(fresh)
        world.reset(seed=42)
        assert layout(world) == layout(fresh)

    def test_reset_clears_stats_and_checkpoint(self, world, climb):
        climb(world, 3000)
        world.activate_checkpoint(first_of(world, EntityCategory.CHECKPOINT))
        world.reset()
        assert world.stats.total == 20
        assert world.current_checkpoint is None

    def test_accepts_game_config_or_none(self):
        assert StreamingWorld(seed=1).config == GameConfig()
        assert StreamingWorld(GameConfig(), seed=1).capacity == 45

    def test_invalid_config(self):
        with pytest.raises(ConfigurationError):
            StreamingWorld(GameConfig(movement=MovementProfile(gravity=0.0)))

    def test_reset_is_logged(self, resolved, caplog):
        with caplog.at_level("INFO", logger="climber_worldgen.world"):
            StreamingWorld(resolved, seed=3)
        assert "World reset (seed=3)" in caplog.text


class TestPlacementInvariants:
    def test_consecutive_pairs(self, world, climb, resolved):
        for _ in range(5):
            climb(world, 4000)
            platforms = world.platforms
            for prev, new in zip(platforms, platforms[1:]):
                if new.is_starter:
                    continue
                assert new.prev_x == prev.x
                assert new.prev_width == prev.width
                assert new.y == pytest.approx(prev.y - new.gap)
                assert resolved.gap_min <= new.gap <= resolved.gap_max

                if new.strategy in ("strict", "emergency"):
                    expansion = 1.15 if new.strategy == "emergency" else 1.0
                    assert overlap_fraction(prev.x, prev.width, new.x, new.width) == 0.0
                    assert edge_distance(prev.x, prev.width, new.x, new.width) <= (
                        new.reach * 0.95 * expansion + 1e-6
                    )

    def test_inside_walls(self, world, climb):
        climb(world, 20000)
        for p in world.platforms:
            left, _, right, _ = p.bounds
            assert left >= 48.0 - 1e-9
            assert right <= 432.0 + 1e-9

    def test_fallback_rate(self, world, climb):
        climb(world, 80000)
        assert world.stats.total >= 500
        assert world.stats.fallback_rate < 0.05

    def test_platforms_shrink_with_height(self, world, climb):
        early = sum(p.width for p in world.platforms if not p.is_starter) / 20
        climb(world, 30000)
        late = sum(p.width for p in world.platforms) / len(world.platforms)
        assert late < early


class TestCenterToCenterReach:
    @pytest.fixture
    def center_world(self):
        config = GameConfig(world=WorldConfig(edge_to_edge_reach=False))
        return StreamingWorld(config, seed=42)

    def test_center_distance_within_reach(self, center_world, climb):
        checked = 0
        for _ in range(5):
            climb(center_world, 8000)
            for p in center_world.platforms:
                if p.is_starter or p.strategy not in ("strict", "emergency"):
                    continue
                expansion = 1.15 if p.strategy == "emergency" else 1.0
                assert abs(p.x - p.prev_x) <= p.reach * 0.95 * expansion + 1e-6
                checked += 1
        assert checked > 0

    def test_degrades_more_than_edge_mode(self, center_world, world, climb):
        climb(center_world, 40000)
        climb(world, 40000)
        assert center_world.stats.fallback_rate > 0.05
        assert center_world.stats.fallback_rate > world.stats.fallback_rate


class TestDeterminism:
    def test_same_seed_same_course(self, resolved, climb):
        a = StreamingWorld(resolved, seed=42)
        b = StreamingWorld(resolved, seed=42)
        climb(a, 10000)
        climb(b, 10000)
        assert layout(a) == layout(b)
        assert [(s.x, s.y, s.category) for s in a.satellites] == [
            (s.x, s.y, s.category) for s in b.satellites
        ]

    def test_different_seed_different_course(self, resolved):
        assert layout(StreamingWorld(resolved, seed=1)) != layout(StreamingWorld(resolved, seed=2))


class TestStreaming:
    def test_window_stays_bounded(self, world, caplog):
        base_y = world.resolved.world.base_y
        with caplog.at_level("WARNING", logger="climber_worldgen.world"):
            player_y = base_y
            for _ in range(1000):
                player_y -= 40
                world.tick(player_y - 400, world.anchor.x, player_y)
                assert len(world.platforms) <= world.capacity
        assert "arena full" not in caplog.text

    def test_content_ahead_of_camera(self, world):
        camera_top = -3000.0
        report = world.tick(camera_top, 240.0, camera_top + 400)
        assert report.spawned > 0
        assert world.anchor.y <= world.spawn_line(camera_top)

    def test_camera_far_ahead_keeps_footing(self, world, caplog):
        player_x, player_y = world.player
        band = world.resolved.world.keep_below
        footing = [(p, p.sequence) for p in world.platforms if abs(p.y - player_y) <= band]
        assert any(p.is_starter for p, _ in footing)

        with caplog.at_level("WARNING", logger="climber_worldgen.world"):
            world.tick(-20000.0, player_x, player_y)

        assert "arena full" in caplog.text
        assert len(world.platforms) == world.capacity
        live = world.platforms
        for platform, sequence in footing:
            assert any(p is platform for p in live)
            assert platform.sequence == sequence

    def test_stale_content_removed(self, world, climb):
        climb(world, 12000)
        player_y = world.player[1]
        line = world.despawn_line(player_y)
        assert all(p.y <= line for p in world.platforms)
        assert all(s.y <= line for s in world.satellites)

    def test_slots_reused(self, world, climb):
        slots = {id(p) for p in world.platforms}
        climb(world, 12000)
        assert {id(p) for p in world.platforms} <= set(id(p) for p in world._slots)
        assert len(world._slots) == world.capacity
        assert slots & {id(p) for p in world.platforms}

    def test_checkpoint_every_milestone(self, world):
        seen = {}
        player_y = world.resolved.world.base_y
        for _ in range(200):
            player_y -= 40
            world.tick(player_y - 400, world.anchor.x, player_y)
            for s in world.satellites:
                if s.category is EntityCategory.CHECKPOINT:
                    seen[id(s)] = s
        milestones = sorted(s.payload["height_meters"] // 250 for s in seen.values())
        assert milestones == [1, 2, 3]

    def test_fresh_tick_resets(self, world, climb):
        climb(world, 5000)
        world.tick(240.0, 240.0, 640.0, fresh=True)
        assert world.platforms[0].sequence == 0
        assert len(world.platforms) == 26


class TestRecycle:
    def test_same_object_and_slot(self, world):
        platform = world.platforms[0]
        slot = platform.slot
        old_anchor_y = world.anchor.y
        platform.apply_traction()

        returned = world.recycle(platform)

        assert returned is platform
        assert platform.slot == slot
        assert not platform.modified
        assert not platform.is_starter
        assert world.platforms[-1] is platform
        assert platform.y < old_anchor_y
        assert platform.sequence == 26
        assert len(world.platforms) == 26

    def test_foreign_platform_rejected(self, world):
        with pytest.raises(ValueError):
            world.recycle(Platform(0))

    def test_listeners_see_recyclable_platform(self, world, climb):
        seen = []
        world.recycle_listeners.append(lambda p: seen.append((p, p.lifecycle, p.y)))

        climb(world, 4000)

        assert seen
        assert all(lifecycle is Lifecycle.RECYCLABLE for _, lifecycle, _ in seen)
        # Recycled platforms are re-placed above where they went stale
        assert all(p.y < old_y for p, _, old_y in seen)
        assert all(p.lifecycle is Lifecycle.RESIDENT for p in world.platforms)

    def test_direct_recycle_notifies(self, world):
        platform = world.platforms[0]
        old_y = platform.y
        seen = []
        world.recycle_listeners.append(lambda p: seen.append((p.lifecycle, p.y)))

        world.recycle(platform)

        assert seen == [(Lifecycle.RECYCLABLE, old_y)]
        assert platform.lifecycle is Lifecycle.RESIDENT


class TestInteractions:
    def test_collect(self, world):
        coin = first_of(world, EntityCategory.COIN)
        payload = world.collect(coin)
        assert payload == {"score": 50}
        assert coin.consumed
        assert all(s is not coin for s in world.satellites)
        assert world.collect(coin) is None

    def test_collect_checkpoint_rejected(self, world, climb):
        climb(world, 2000)
        with pytest.raises(ValueError):
            world.collect(first_of(world, EntityCategory.CHECKPOINT))

    def test_apply_traction(self, world):
        platform = world.platforms[10]
        assert world.apply_traction(platform)
        assert platform.friction == Material.DIRT.friction
        assert platform.modified
        assert not world.apply_traction(platform)

    def test_activate_checkpoint(self, world, climb):
        climb(world, 2000)
        checkpoint = first_of(world, EntityCategory.CHECKPOINT)
        assert world.activate_checkpoint(checkpoint)
        assert checkpoint.active
        assert world.current_checkpoint is checkpoint
        assert not world.activate_checkpoint(checkpoint)

    def test_activate_non_checkpoint_rejected(self, world):
        with pytest.raises(ValueError):
            world.activate_checkpoint(first_of(world, EntityCategory.COIN))

    def test_active_checkpoint_survives_culling(self, world, climb):
        climb(world, 2000)
        checkpoint = first_of(world, EntityCategory.CHECKPOINT)
        world.activate_checkpoint(checkpoint)
        climb(world, 8000)
        assert checkpoint.y > world.despawn_line(world.player[1])
        assert any(s is checkpoint for s in world.satellites)


class TestSnapshot:
    def test_contents(self, world):
        snap = world.snapshot()
        assert snap["anchor"]["y"] == world.anchor.y
        assert snap["height_meters"] == world.height_climbed() > 0
        assert len(snap["platforms"]) == 26
        assert len(snap["satellites"]) == len(world.satellites)
        assert snap["checkpoint"] is None
        assert snap["stats"]["total"] == 20

    def test_json_serializable(self, world):
        json.dumps(world.snapshot())
