"""
QuadTree - Spatial Index for Precipitation Cells

Sampling the rain rate at a point means finding the cells near that point.
With hundreds of cells and thousands of samples per radar sweep, a linear
scan is wasteful. A quadtree partitions the grid into quadrants so a
radius query only visits nodes whose rectangle touches the search circle.

KEY PROPERTIES:

1. BUILD ONCE, QUERY MANY
   Cells are created at scenario init and never move. There is no
   deletion or rebalancing.

2. LAZY SUBDIVISION
   A node holds up to `capacity` items. The next insert splits it into
   four equal children and delegates, trying NE, NW, SE, SW in order.

3. PRUNED RADIUS QUERIES
   A node is skipped when the closest point of its rectangle to the
   query center is farther than the radius.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Generic, List, Optional, TypeVar

from .vector import Vec2

T = TypeVar("T")


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned rectangle given by its center and half-extents."""
    center_x: float
    center_y: float
    half_width: float
    half_height: float

    def contains(self, point: Vec2) -> bool:
        return (
            self.center_x - self.half_width <= point.x <= self.center_x + self.half_width
            and self.center_y - self.half_height <= point.y <= self.center_y + self.half_height
        )

    def intersects_circle(self, center: Vec2, radius: float) -> bool:
        # Closest point on the rectangle to the circle center
        closest_x = max(self.center_x - self.half_width, min(center.x, self.center_x + self.half_width))
        closest_y = max(self.center_y - self.half_height, min(center.y, self.center_y + self.half_height))
        return center.distance_to(Vec2(closest_x, closest_y)) <= radius


@dataclass
class QuadTreeItem(Generic[T]):
    point: Vec2
    data: T


@dataclass
class QuadTree(Generic[T]):
    """
    Point-indexed quadtree over a rectangular region.

    Usage:
        tree = QuadTree(Bounds(0, 0, 50, 50))
        tree.insert(Vec2(3, 4), cell)
        nearby = tree.query_range(Vec2(0, 0), 10.0)
    """
    bounds: Bounds
    capacity: int = 4
    items: List[QuadTreeItem[T]] = field(default_factory=list)

    northeast: Optional["QuadTree[T]"] = field(default=None, init=False)
    northwest: Optional["QuadTree[T]"] = field(default=None, init=False)
    southeast: Optional["QuadTree[T]"] = field(default=None, init=False)
    southwest: Optional["QuadTree[T]"] = field(default=None, init=False)

    @property
    def divided(self) -> bool:
        return self.northeast is not None

    def _children(self) -> List["QuadTree[T]"]:
        if not self.divided:
            return []
        return [self.northeast, self.northwest, self.southeast, self.southwest]

    def insert(self, point: Vec2, data: T) -> bool:
        """
        Insert an item. Returns False if the point lies outside this node.
        """
        if not self.bounds.contains(point):
            return False

        if len(self.items) < self.capacity:
            self.items.append(QuadTreeItem(point, data))
            return True

        if not self.divided:
            self._subdivide()

        return any(child.insert(point, data) for child in self._children())

    def query_range(self, center: Vec2, radius: float) -> List[QuadTreeItem[T]]:
        """All items within `radius` of `center` (inclusive). Unordered."""
        found: List[QuadTreeItem[T]] = []

        if not self.bounds.intersects_circle(center, radius):
            return found

        for item in self.items:
            if item.point.distance_to(center) <= radius:
                found.append(item)

        for child in self._children():
            found.extend(child.query_range(center, radius))

        return found

    def query_all(self) -> List[QuadTreeItem[T]]:
        found = list(self.items)
        for child in self._children():
            found.extend(child.query_all())
        return found

    def __len__(self) -> int:
        return len(self.items) + sum(len(child) for child in self._children())

    def _subdivide(self) -> None:
        b = self.bounds
        hw = b.half_width / 2
        hh = b.half_height / 2

        self.northeast = QuadTree(Bounds(b.center_x + hw, b.center_y + hh, hw, hh), self.capacity)
        self.northwest = QuadTree(Bounds(b.center_x - hw, b.center_y + hh, hw, hh), self.capacity)
        self.southeast = QuadTree(Bounds(b.center_x + hw, b.center_y - hh, hw, hh), self.capacity)
        self.southwest = QuadTree(Bounds(b.center_x - hw, b.center_y - hh, hw, hh), self.capacity)
