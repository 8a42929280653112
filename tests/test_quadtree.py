"""
Tests for the quadtree spatial index.

Tests cover:
- Insertion inside/outside bounds
- Subdivision past capacity
- Radius queries (inclusive boundary, pruning)
"""

import numpy as np
import pytest

from spear.quadtree import Bounds, QuadTree
from spear.vector import Vec2


@pytest.fixture
def tree():
    return QuadTree(Bounds(0.0, 0.0, 50.0, 50.0), capacity=4)


# =============================================================================
# INSERTION TESTS
# =============================================================================

class TestInsert:

    def test_insert_inside_bounds(self, tree):
        assert tree.insert(Vec2(10.0, -5.0), "a") is True
        assert len(tree) == 1

    def test_insert_outside_bounds_rejected(self, tree):
        assert tree.insert(Vec2(60.0, 0.0), "outside") is False
        assert len(tree) == 0

    def test_boundary_point_accepted(self, tree):
        assert tree.insert(Vec2(50.0, -50.0), "corner") is True

    def test_subdivides_past_capacity(self, tree):
        for i in range(5):
            tree.insert(Vec2(i * 5.0 + 1.0, i * 5.0 + 1.0), i)

        assert tree.divided
        assert len(tree.items) == 4
        assert len(tree) == 5

    def test_every_inserted_point_is_retrievable(self, tree):
        rng = np.random.default_rng(3)
        points = [Vec2(float(x), float(y)) for x, y in rng.uniform(-50, 50, size=(200, 2))]
        for i, p in enumerate(points):
            assert tree.insert(p, i)

        assert len(tree) == 200
        assert sorted(item.data for item in tree.query_all()) == list(range(200))


# =============================================================================
# RANGE QUERY TESTS
# =============================================================================

class TestQueryRange:

    def test_returns_only_points_within_radius(self, tree):
        tree.insert(Vec2(1.0, 1.0), "near")
        tree.insert(Vec2(30.0, 30.0), "far")

        found = tree.query_range(Vec2(0.0, 0.0), 5.0)
        assert [item.data for item in found] == ["near"]

    def test_radius_boundary_is_inclusive(self, tree):
        tree.insert(Vec2(3.0, 4.0), "edge")
        found = tree.query_range(Vec2(0.0, 0.0), 5.0)
        assert len(found) == 1

    def test_matches_brute_force(self, tree):
        rng = np.random.default_rng(11)
        points = [Vec2(float(x), float(y)) for x, y in rng.uniform(-50, 50, size=(300, 2))]
        for i, p in enumerate(points):
            tree.insert(p, i)

        center = Vec2(-12.0, 8.0)
        expected = {i for i, p in enumerate(points) if p.distance_to(center) <= 15.0}
        found = {item.data for item in tree.query_range(center, 15.0)}
        assert found == expected

    def test_query_outside_tree_is_empty(self, tree):
        tree.insert(Vec2(0.0, 0.0), "origin")
        assert tree.query_range(Vec2(200.0, 200.0), 10.0) == []

    def test_bounds_circle_intersection(self):
        b = Bounds(0.0, 0.0, 1.0, 1.0)
        assert b.intersects_circle(Vec2(2.0, 0.0), 1.0)
        assert not b.intersects_circle(Vec2(3.0, 3.0), 1.0)

    def test_infinite_radius_returns_everything(self, tree):
        rng = np.random.default_rng(5)
        for i, (x, y) in enumerate(rng.uniform(-50, 50, size=(40, 2))):
            tree.insert(Vec2(float(x), float(y)), i)

        assert len(tree.query_range(Vec2(0.0, 0.0), float("inf"))) == 40
