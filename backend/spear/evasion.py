"""
Evasion - Fighter Beam Maneuver

The classic defense against a pulse radar: turn so the SAM sits off
your wing (perpendicular to the line of sight). The fighter steers toward

    bearing_to_SAM + 90 degrees

at up to 6G. Fighters without the evasive flight path hold heading.
"""

from __future__ import annotations

from .guidance import limit_turn, max_turn_rate
from .vector import Vec2

FIGHTER_MAX_G = 6.0
BEAM_OFFSET_DEG = 90.0


def beam_heading(fighter_position: Vec2, sam_position: Vec2) -> float:
    """Heading that puts the SAM perpendicular to the flight path."""
    return fighter_position.bearing_to(sam_position) + BEAM_OFFSET_DEG


def evasive_heading(
    heading_deg: float,
    fighter_position: Vec2,
    sam_position: Vec2,
    velocity_kms: float,
    dt: float,
    max_g: float = FIGHTER_MAX_G,
) -> float:
    """One step of the G-limited turn toward the beam heading."""
    desired = beam_heading(fighter_position, sam_position)
    rate = max_turn_rate(max_g, velocity_kms * 1000.0)
    return limit_turn(heading_deg, desired, rate, dt)
