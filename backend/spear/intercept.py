"""
Intercept Geometry - Did the Missile Pass Close Enough?

Missiles move hundreds of meters per step; checking only the end-of-step
position would let them fly straight through a target. Instead we look
at the whole segment the missile flew this step:

    previous ----------*---------- current
                       |
                       | miss distance
                       |
                     target

The closest point is the target projected onto the segment, with the
projection parameter clamped to [0, 1], so targets behind the start or
past the end of the step are measured to the nearest endpoint.

A zero-length segment (missile didn't move) degrades to plain distance.

MOVING TARGETS:
The fighter moves too, so the check runs in the target's frame: the
relative segment (missile - target) from the start to the end of the
step, tested against the origin.
"""

from __future__ import annotations
from typing import Optional

from .entities import LaunchedBy, Missile
from .vector import Vec2

# Lethal radius by launcher (km)
KILL_RADIUS = {
    LaunchedBy.SAM: 0.02,
    LaunchedBy.FIGHTER: 0.05,
}


def closest_point_on_segment(start: Vec2, end: Vec2, point: Vec2) -> Vec2:
    segment = end - start
    length_sq = segment.dot(segment)
    if length_sq == 0:
        return start.copy()

    t = (point - start).dot(segment) / length_sq
    t = max(0.0, min(1.0, t))
    return start + segment * t


def segment_miss_distance(start: Vec2, end: Vec2, point: Vec2) -> float:
    """Closest approach of a straight segment to a point."""
    return closest_point_on_segment(start, end, point).distance_to(point)


def kill_radius(launched_by: LaunchedBy) -> float:
    return KILL_RADIUS[launched_by]


def check_intercept(
    missile: Missile,
    target_position: Vec2,
    target_previous: Optional[Vec2] = None,
) -> bool:
    """
    True if this step's flight segment passed within the kill radius.

    With `target_previous`, the segment is taken in the target's frame
    (missile motion minus target motion). For a stationary target that is
    the plain segment against the target's position.
    """
    if target_previous is None:
        target_previous = target_position
    start = missile.previous_position - target_previous
    end = missile.position - target_position
    miss = segment_miss_distance(start, end, Vec2.zero())
    return miss <= kill_radius(missile.launched_by)
