"""
Tests for missile guidance, fighter evasion and intercept geometry.

Tests cover:
- G-limited turns (short way round, clamped step)
- Pure pursuit and loss-of-lock jitter
- Beam maneuver heading
- Segment-based intercept checks, including moving targets
- Missile kinematics
"""

import math

import numpy as np
import pytest

from spear.entities import LaunchedBy, Missile, MissileResult, MissileStatus, TargetRef
from spear.evasion import beam_heading, evasive_heading
from spear.guidance import (
    guided_heading,
    jitter_heading,
    limit_turn,
    max_turn_rate,
    pursuit_heading,
)
from spear.intercept import check_intercept, closest_point_on_segment, segment_miss_distance
from spear.vector import Vec2, normalize_angle


def make_missile(launched_by=LaunchedBy.SAM, heading=0.0, velocity=1.0) -> Missile:
    target = TargetRef.FIGHTER if launched_by == LaunchedBy.SAM else TargetRef.SAM
    return Missile(
        id="m-1",
        position=Vec2(0.0, 0.0),
        velocity=velocity,
        heading=heading,
        launched_by=launched_by,
        time_of_launch=0.0,
        target=target,
    )


# =============================================================================
# GUIDANCE TESTS
# =============================================================================

class TestTurnLimit:

    def test_turns_short_way_round(self):
        assert normalize_angle(limit_turn(350.0, 10.0, math.inf, 1.0)) == pytest.approx(10.0)

    def test_step_is_clamped(self):
        rate = math.radians(5.0)
        assert limit_turn(350.0, 10.0, rate, 1.0) == pytest.approx(355.0)
        assert limit_turn(10.0, 350.0, rate, 1.0) == pytest.approx(5.0)

    def test_stationary_turns_freely(self):
        assert max_turn_rate(30.0, 0.0) == math.inf

    def test_turn_rate_from_g_limit(self):
        assert max_turn_rate(30.0, 1029.0) == pytest.approx(30.0 * 9.8 / 1029.0)


class TestPursuit:

    def test_points_at_target(self):
        assert pursuit_heading(Vec2(0.0, 0.0), Vec2(0.0, 10.0)) == pytest.approx(90.0)

    def test_guided_heading_is_g_limited(self):
        heading = guided_heading(0.0, Vec2.zero(), Vec2(0.0, 10.0), velocity_kms=1.029, dt=0.5)
        expected = math.degrees(30.0 * 9.8 / 1029.0 * 0.5)
        assert heading == pytest.approx(expected)

    def test_small_correction_reaches_target_heading(self):
        heading = guided_heading(44.0, Vec2.zero(), Vec2(10.0, 10.0), velocity_kms=1.029, dt=0.5)
        assert heading == pytest.approx(45.0)

    def test_jitter_stays_within_bounds(self):
        rng = np.random.default_rng(0)
        headings = [jitter_heading(100.0, rng) for _ in range(500)]
        assert all(95.0 <= h <= 105.0 for h in headings)
        assert len(set(headings)) > 1


# =============================================================================
# EVASION TESTS
# =============================================================================

class TestEvasion:

    def test_beam_heading(self):
        assert normalize_angle(beam_heading(Vec2(25.0, 0.0), Vec2.zero())) == pytest.approx(270.0)

    def test_evasive_turn_limited_to_six_g(self):
        heading = evasive_heading(180.0, Vec2(25.0, 0.0), Vec2.zero(), velocity_kms=0.3087, dt=0.5)
        step = math.degrees(6.0 * 9.8 / 308.7 * 0.5)
        assert heading == pytest.approx(180.0 + step)


# =============================================================================
# INTERCEPT TESTS
# =============================================================================

class TestSegmentGeometry:

    def test_projection_inside_segment(self):
        p = closest_point_on_segment(Vec2(0.0, 0.0), Vec2(2.0, 0.0), Vec2(1.0, 1.0))
        assert (p.x, p.y) == (1.0, 0.0)

    def test_projection_clamped_to_endpoints(self):
        p = closest_point_on_segment(Vec2(0.0, 0.0), Vec2(2.0, 0.0), Vec2(5.0, 1.0))
        assert (p.x, p.y) == (2.0, 0.0)

    def test_zero_length_segment(self):
        assert segment_miss_distance(Vec2(1.0, 1.0), Vec2(1.0, 1.0), Vec2(4.0, 5.0)) == pytest.approx(5.0)


class TestCheckIntercept:

    def test_pass_within_kill_radius(self):
        missile = make_missile()
        missile.advance(1.0)
        assert check_intercept(missile, Vec2(0.5, 0.01))

    def test_pass_outside_kill_radius(self):
        missile = make_missile()
        missile.advance(1.0)
        assert not check_intercept(missile, Vec2(0.5, 0.03))

    def test_harm_has_larger_radius(self):
        missile = make_missile(LaunchedBy.FIGHTER)
        missile.advance(1.0)
        assert check_intercept(missile, Vec2(0.5, 0.04))

    def test_target_behind_missile_not_hit(self):
        missile = make_missile(LaunchedBy.FIGHTER)
        missile.advance(1.0)
        assert not check_intercept(missile, Vec2(-0.1, 0.0))

    def test_crossing_target_hit_in_relative_frame(self):
        missile = make_missile()
        missile.advance(1.0)

        # Target crosses the missile's path mid-step
        assert check_intercept(missile, Vec2(0.5, 0.3), target_previous=Vec2(0.5, -0.3))
        assert not check_intercept(missile, Vec2(0.5, 0.3))


# =============================================================================
# MISSILE TESTS
# =============================================================================

class TestMissile:

    def test_does_not_alias_launcher_position(self):
        launcher = Vec2(1.0, 2.0)
        missile = Missile(
            id="m-2", position=launcher, velocity=1.0, heading=0.0,
            launched_by=LaunchedBy.SAM, time_of_launch=0.0, target=TargetRef.FIGHTER,
        )
        missile.advance(1.0)
        assert (launcher.x, launcher.y) == (1.0, 2.0)

    def test_advance_along_heading(self):
        missile = make_missile(heading=90.0, velocity=2.0)
        missile.advance(0.5)
        assert missile.position.x == pytest.approx(0.0, abs=1e-12)
        assert missile.position.y == pytest.approx(1.0)
        assert (missile.previous_position.x, missile.previous_position.y) == (0.0, 0.0)

    def test_distance_flown(self):
        missile = make_missile(velocity=1.5)
        assert missile.distance_flown(4.0) == pytest.approx(6.0)

    def test_result_records_impact_only_on_kill(self):
        missile = make_missile()
        missile.advance(1.0)
        assert MissileResult.from_missile(missile).impact_position is None

        missile.status = MissileStatus.KILL
        missile.time_of_impact = 1.0
        result = MissileResult.from_missile(missile)
        assert result.impact_position.x == pytest.approx(1.0)
        assert result.to_dict()["status"] == "kill"
