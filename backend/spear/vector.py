"""
2D Vector Math - Positions on the Engagement Grid

Every platform and missile lives on a flat 2D grid:
- Position: where is it? (x, y) kilometers
- Heading: which way is it pointing? degrees, counter-clockwise from +X

Coordinate system:
- x: East (km)
- y: North (km)
- origin: scenario center unless the grid says otherwise

Headings and azimuths use the math convention atan2(dy, dx), NOT the
compass convention. A heading of 0 points along +X, 90 along +Y.
"""

from __future__ import annotations
import math
from dataclasses import dataclass


@dataclass
class Vec2:
    """A 2D point/vector in kilometers."""
    x: float
    y: float

    def __add__(self, other: Vec2) -> Vec2:
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vec2) -> Vec2:
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vec2:
        return Vec2(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> Vec2:
        return self * scalar

    def __truediv__(self, scalar: float) -> Vec2:
        return Vec2(self.x / scalar, self.y / scalar)

    def __neg__(self) -> Vec2:
        return Vec2(-self.x, -self.y)

    def dot(self, other: Vec2) -> float:
        """Dot product: measures how aligned two vectors are."""
        return self.x * other.x + self.y * other.y

    def magnitude(self) -> float:
        """Length of the vector (Euclidean norm)."""
        return math.hypot(self.x, self.y)

    def distance_to(self, other: Vec2) -> float:
        """Distance between two points."""
        return (self - other).magnitude()

    def bearing_to(self, other: Vec2) -> float:
        """Angle (degrees) of the line from this point to `other`."""
        return math.degrees(math.atan2(other.y - self.y, other.x - self.x))

    def copy(self) -> Vec2:
        """Detached copy - positions are mutated in place during a step."""
        return Vec2(self.x, self.y)

    @classmethod
    def from_heading(cls, heading_deg: float, length: float = 1.0) -> "Vec2":
        """Vector of the given length pointing along a heading."""
        rad = math.radians(heading_deg)
        return cls(length * math.cos(rad), length * math.sin(rad))

    @classmethod
    def zero(cls) -> "Vec2":
        return cls(0.0, 0.0)

    def to_dict(self) -> dict:
        """For JSON serialization."""
        return {"x": self.x, "y": self.y}

    def __repr__(self) -> str:
        return f"Vec2({self.x:.3f}, {self.y:.3f})"


def normalize_angle(angle_deg: float) -> float:
    """Wrap an angle to [0, 360)."""
    return ((angle_deg % 360.0) + 360.0) % 360.0


def signed_angle_difference(target_deg: float, current_deg: float) -> float:
    """
    Shortest signed turn from `current_deg` to `target_deg`, in [-180, 180].

    Positive means turn counter-clockwise (left).
    """
    diff = math.radians(target_deg - current_deg)
    return math.degrees(math.atan2(math.sin(diff), math.cos(diff)))
