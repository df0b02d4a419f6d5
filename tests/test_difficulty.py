"""Tests for the height-dependent difficulty curve."""

import random
from collections import Counter

import pytest

from climber_worldgen.config import DifficultyConfig, SpawnConfig, WorldConfig
from climber_worldgen.difficulty import DifficultyCurve, weighted_choice
from climber_worldgen.entities import SizeClass, Material


@pytest.fixture
def curve():
    return DifficultyCurve(DifficultyConfig(), SpawnConfig(), WorldConfig())


class TestWeightedChoice:
    def test_single_positive_weight(self, rng):
        for _ in range(50):
            assert weighted_choice((0.0, 1.0, 0.0), "abc", rng) == "b"

    def test_zero_weight_never_chosen(self, rng):
        picks = {weighted_choice((0.5, 0.5, 0.0), "abc", rng) for _ in range(500)}
        assert picks == {"a", "b"}

    def test_unnormalized_weights(self, rng):
        counts = Counter(weighted_choice((3.0, 1.0, 0.0), "abc", rng) for _ in range(4000))
        assert counts["a"] / 4000 == pytest.approx(0.75, abs=0.04)

    def test_deterministic_for_seed(self):
        a = [weighted_choice((0.2, 0.3, 0.5), "abc", random.Random(5)) for _ in range(3)]
        b = [weighted_choice((0.2, 0.3, 0.5), "abc", random.Random(5)) for _ in range(3)]
        assert a == b


class TestBands:
    def test_band_boundaries(self, curve):
        assert curve.band(0) == "early"
        assert curve.band(2499) == "early"
        assert curve.band(2500) == "mid"
        assert curve.band(7499) == "mid"
        assert curve.band(7500) == "late"

    def test_early_profile(self, curve):
        p = curve.profile(0)
        assert p.size_scale > 1.0
        assert p.size_weights[SizeClass.LARGE.value] == max(p.size_weights)
        assert p.material_weights[0] == max(p.material_weights)
        assert p.material_weights[2] == 0.0

    def test_mid_profile_interpolates(self, curve):
        start = curve.profile(2500)
        halfway = curve.profile(5000)
        assert start.size_weights == pytest.approx((0.15, 0.35, 0.5))
        assert halfway.size_weights == pytest.approx((0.275, 0.375, 0.35))
        assert 1.0 < halfway.size_scale < start.size_scale
        assert 0.0 < halfway.material_weights[2] < 0.1

    def test_late_profile(self, curve):
        p = curve.profile(22500)
        assert p.size_weights == pytest.approx((0.6, 0.3, 0.1))
        assert p.size_scale == pytest.approx(0.8)
        assert p.material_weights[2] == max(p.material_weights)

    def test_scale_floored(self, curve):
        assert curve.profile(1_000_000).size_scale == pytest.approx(0.8)

    def test_negative_height_is_early(self, curve):
        assert curve.profile(-500).height == 0.0


class TestDensities:
    def test_hazard_density_grows(self, curve):
        heights = [0, 3000, 6000, 9000, 15000]
        densities = [curve.profile(h).hazard_density for h in heights]
        assert densities == sorted(densities)

    def test_late_hazard_amplified_and_capped(self, curve):
        p = curve.profile(22500)
        # 0.35 * (1 + 0.6 ice share), below the 0.6 cap
        assert p.hazard_density == pytest.approx(0.56)
        steep = DifficultyCurve(DifficultyConfig(max_hazard_density=0.4), SpawnConfig(), WorldConfig())
        assert steep.profile(22500).hazard_density == pytest.approx(0.4)

    def test_traction_tracks_ice(self, curve):
        early = curve.profile(0)
        late = curve.profile(22500)
        assert early.traction_density == pytest.approx(0.08)
        assert late.traction_density == pytest.approx(0.08 + 0.35 * 0.6)

    def test_collectible_and_heal_densities(self, curve):
        p = curve.profile(1000)
        assert p.collectible_density == 0.7
        assert p.heal_density == 0.25


class TestFootprints:
    def test_scaled_width(self, curve):
        p = curve.profile(0)
        assert curve.footprint_width(SizeClass.LARGE, p) == pytest.approx(168.0)

    def test_min_width_floor(self):
        curve = DifficultyCurve(DifficultyConfig(), SpawnConfig(), WorldConfig(min_platform_width=70.0))
        p = curve.profile(22500)
        assert curve.footprint_width(SizeClass.SMALL, p) == 70.0

    def test_max_width(self, curve):
        assert curve.max_width(curve.profile(22500)) == pytest.approx(128.0)

    def test_mean_width_non_increasing(self, curve):
        d = DifficultyConfig()
        heights = [0, d.early_height, d.late_height + 1e-6, 3 * d.late_height]
        widths = [curve.expected_width(h) for h in heights]
        assert widths == sorted(widths, reverse=True)
        assert widths[0] == pytest.approx(140.7)
        assert widths[2] == pytest.approx(112.0)
        assert widths[3] == pytest.approx(80.0)

    def test_sampling_follows_profile(self, curve, rng):
        p = curve.profile(22500)
        sizes = Counter(p.sample_size(rng) for _ in range(3000))
        materials = Counter(p.sample_material(rng) for _ in range(3000))
        assert sizes[SizeClass.SMALL] > sizes[SizeClass.MEDIUM] > sizes[SizeClass.LARGE]
        assert materials[Material.ICE] > materials[Material.STONE] > materials[Material.DIRT]
