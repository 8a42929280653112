"""
Entities: Missiles in flight.

Missiles fly at constant speed along their heading. Each step:

    position(t+dt) = position(t) + velocity * (cos h, sin h) * dt

Guidance only changes the HEADING (see guidance.py); speed never changes.

A missile never holds a reference to the platform it's chasing. It holds
a TargetRef (SAM or FIGHTER) that the simulator resolves against its own
platform slots whenever it needs the target's position.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .vector import Vec2


class MissileStatus(str, Enum):
    ACTIVE = "active"
    KILL = "kill"
    MISSED = "missed"


class LaunchedBy(str, Enum):
    SAM = "sam"
    FIGHTER = "fighter"


class TargetRef(str, Enum):
    SAM = "sam"
    FIGHTER = "fighter"


@dataclass
class Missile:
    """
    A missile record. Appended to the engagement when launched and never
    removed - only its status changes (active -> kill | missed).
    """
    id: str
    position: Vec2
    velocity: float                     # km/s
    heading: float                      # degrees
    launched_by: LaunchedBy
    time_of_launch: float
    target: TargetRef
    max_range: Optional[float] = None   # km
    status: MissileStatus = MissileStatus.ACTIVE
    time_of_impact: Optional[float] = None
    previous_position: Optional[Vec2] = None

    def __post_init__(self):
        # Never alias the launcher's position object
        self.position = self.position.copy()
        if self.previous_position is None:
            self.previous_position = self.position.copy()

    @property
    def is_active(self) -> bool:
        return self.status == MissileStatus.ACTIVE

    def distance_flown(self, time: float) -> float:
        return self.velocity * (time - self.time_of_launch)

    def advance(self, dt: float) -> None:
        """Move along the heading; remembers where this step started."""
        self.previous_position = self.position.copy()
        self.position = self.position + Vec2.from_heading(self.heading, self.velocity * dt)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "position": self.position.to_dict(),
            "previous_position": self.previous_position.to_dict(),
            "velocity": self.velocity,
            "heading": self.heading,
            "status": self.status.value,
            "launched_by": self.launched_by.value,
            "time_of_launch": self.time_of_launch,
            "time_of_impact": self.time_of_impact,
            "max_range": self.max_range,
            "target": self.target.value,
        }


@dataclass
class MissileResult:
    """Outcome of one missile, as reported in EngagementResult."""
    id: str
    launched_by: LaunchedBy
    launch_time: float
    time_of_impact: Optional[float]
    impact_position: Optional[Vec2]
    status: MissileStatus

    @classmethod
    def from_missile(cls, missile: Missile) -> "MissileResult":
        hit = missile.status == MissileStatus.KILL
        return cls(
            id=missile.id,
            launched_by=missile.launched_by,
            launch_time=missile.time_of_launch,
            time_of_impact=missile.time_of_impact,
            impact_position=missile.position.copy() if hit else None,
            status=missile.status,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "launched_by": self.launched_by.value,
            "launch_time": self.launch_time,
            "time_of_impact": self.time_of_impact,
            "impact_position": self.impact_position.to_dict() if self.impact_position else None,
            "status": self.status.value,
        }
