"""Pytest configuration and shared fixtures."""

import random

import pytest

from climber_worldgen.config import GameConfig, MovementProfile, WorldConfig, resolve_config
from climber_worldgen.world import StreamingWorld


@pytest.fixture
def game_config():
    """Default game configuration."""
    return GameConfig()


@pytest.fixture
def movement():
    """Default movement constants."""
    return MovementProfile()


@pytest.fixture
def world_config():
    return WorldConfig()


@pytest.fixture
def resolved(game_config):
    return resolve_config(game_config)


@pytest.fixture
def rng():
    """Seeded generator for solver and co-placement tests."""
    return random.Random(1234)


@pytest.fixture
def world(resolved):
    """Fresh seeded world for each test."""
    return StreamingWorld(resolved, seed=42)


def _climb(world, height, step=40.0):
    """Drive a world upward from its current player height, camera centred.

    Returns the TickReports in order.
    """
    half_screen = world.resolved.world.screen_height / 2
    reports = []
    player_y = world.player[1]
    for _ in range(int(height // step)):
        player_y -= step
        reports.append(world.tick(player_y - half_screen, world.anchor.x, player_y))
    return reports


@pytest.fixture
def climb():
    """Helper that climbs a world: climb(world, height, step=40.0)."""
    return _climb
