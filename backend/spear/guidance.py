"""
Missile Guidance - Pure Pursuit with a G-Limit

Both the SAM missile and the HARM use the simplest possible law:
point the nose at where the target IS right now.

    desired_heading = atan2(target.y - missile.y, target.x - missile.x)

TURN-RATE LIMIT:
A missile can't turn instantly. Lateral acceleration a = v * omega,
so the max turn rate at speed v (m/s) under a G-limit is:

    omega_max = (max_g * 9.8) / v        [rad/s]

Each step the heading moves at most omega_max * dt toward the desired
heading, always the SHORT way round (350 -> 10 turns +20, not -340).

LOSS OF LOCK:
When the SAM radar isn't tracking, missiles get no guidance updates.
Their heading wanders by a uniform random perturbation of up to +/-5
degrees per step.
"""

from __future__ import annotations
import math

import numpy as np

from .vector import Vec2, signed_angle_difference

G = 9.8                  # m/s^2
MISSILE_MAX_G = 30.0
JITTER_MAX_DEG = 5.0


def max_turn_rate(max_g: float, speed_ms: float) -> float:
    """Max turn rate (rad/s). A stationary body can turn arbitrarily fast."""
    if speed_ms <= 0:
        return math.inf
    return max_g * G / speed_ms


def limit_turn(current_deg: float, desired_deg: float, turn_rate_rad: float, dt: float) -> float:
    """Turn from `current_deg` toward `desired_deg`, at most turn_rate_rad * dt."""
    diff = signed_angle_difference(desired_deg, current_deg)
    max_step = math.degrees(turn_rate_rad * dt)
    if abs(diff) > max_step:
        return current_deg + math.copysign(max_step, diff)
    return current_deg + diff


def pursuit_heading(position: Vec2, target_position: Vec2) -> float:
    return position.bearing_to(target_position)


def guided_heading(
    heading_deg: float,
    position: Vec2,
    target_position: Vec2,
    velocity_kms: float,
    dt: float,
    max_g: float = MISSILE_MAX_G,
) -> float:
    """Pure pursuit, G-limited at the missile's speed."""
    desired = pursuit_heading(position, target_position)
    rate = max_turn_rate(max_g, velocity_kms * 1000.0)
    return limit_turn(heading_deg, desired, rate, dt)


def jitter_heading(heading_deg: float, rng: np.random.Generator, max_deg: float = JITTER_MAX_DEG) -> float:
    """Unguided drift: uniform perturbation in [-max_deg, max_deg]."""
    return heading_deg + float(rng.uniform(-max_deg, max_deg))
