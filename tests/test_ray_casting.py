"""Tests for the ray casting module."""

import math

import numpy as np
import pytest

from wall_openings.core.models import Obstacle
from wall_openings.core.ray_casting import cast, ray_obstacle_intersection


def create_test_wall(
    x=4.0,
    thickness=0.0,
    identity="W1",
    host_context_id=None,
    half_length=5.0,
    height=3.0,
) -> Obstacle:
    """Create a wall across the x axis at the given x, from z=-1.5 up."""
    return Obstacle(
        identity=identity,
        reference_elevation_id="L1",
        start=np.array([x, -half_length, -1.5]),
        end=np.array([x, half_length, -1.5]),
        thickness=thickness,
        height=height,
        host_context_id=host_context_id,
    )


ORIGIN = np.array([0.0, 0.0, 0.0])
EAST = np.array([1.0, 0.0, 0.0])


class TestRayObstacleIntersection:
    """Tests for ray_obstacle_intersection (single wall)."""

    def test_thin_wall_hit(self):
        result = ray_obstacle_intersection(ORIGIN, EAST, create_test_wall(x=4.0))

        assert result.intersects
        assert result.t_enter == pytest.approx(4.0)
        assert result.t_exit == pytest.approx(4.0)
        np.testing.assert_array_almost_equal(result.entry_point, [4, 0, 0])

    def test_thick_wall_enter_and_exit(self):
        result = ray_obstacle_intersection(ORIGIN, EAST, create_test_wall(x=4.0, thickness=0.2))

        assert result.intersects
        assert result.t_enter == pytest.approx(3.9)
        assert result.t_exit == pytest.approx(4.1)

    def test_ray_pointing_away(self):
        """Wall behind the origin is not hit."""
        result = ray_obstacle_intersection(ORIGIN, -EAST, create_test_wall(x=4.0))
        assert not result.intersects

    def test_ray_parallel_to_thin_wall(self):
        result = ray_obstacle_intersection(ORIGIN, np.array([0, 1, 0]), create_test_wall(x=4.0))
        assert not result.intersects

    def test_ray_parallel_outside_thick_wall(self):
        wall = create_test_wall(x=4.0, thickness=0.2)
        result = ray_obstacle_intersection(ORIGIN, np.array([0, 1, 0]), wall)
        assert not result.intersects

    def test_ray_passes_above_wall(self):
        origin = np.array([0.0, 0.0, 2.0])  # wall top is at z=1.5
        result = ray_obstacle_intersection(origin, EAST, create_test_wall(x=4.0, thickness=0.2))
        assert not result.intersects

    def test_ray_passes_beyond_wall_end(self):
        origin = np.array([0.0, 6.0, 0.0])  # wall spans y in [-5, 5]
        result = ray_obstacle_intersection(origin, EAST, create_test_wall(x=4.0))
        assert not result.intersects

    def test_oblique_ray_through_thin_wall(self):
        wall = Obstacle(
            identity="W1",
            reference_elevation_id="L1",
            start=np.array([0.0, 0.0, -1.5]),
            end=np.array([10.0, 0.0, -1.5]),
        )
        origin = np.array([0.0, -3.0, 0.0])
        direction = np.array([1.0, 1.0, 0.0]) / math.sqrt(2)

        result = ray_obstacle_intersection(origin, direction, wall)

        assert result.intersects
        assert result.t_enter == pytest.approx(3 * math.sqrt(2))
        np.testing.assert_array_almost_equal(result.entry_point, [3, 0, 0])


class TestCast:
    """Tests for cast (all walls, ordered hits)."""

    def test_no_obstacles(self):
        assert cast(ORIGIN, EAST, []) == []

    def test_miss_returns_empty(self):
        assert cast(ORIGIN, -EAST, [create_test_wall(x=4.0)]) == []

    def test_hits_sorted_by_distance(self):
        walls = [
            create_test_wall(x=9.0, identity="far"),
            create_test_wall(x=3.0, identity="near"),
            create_test_wall(x=7.0, identity="mid"),
        ]

        hits = cast(ORIGIN, EAST, walls)

        assert [h.obstacle.identity for h in hits] == ["near", "mid", "far"]
        assert [h.distance for h in hits] == pytest.approx([3.0, 7.0, 9.0])

    def test_thick_wall_yields_two_faces(self):
        wall = create_test_wall(x=4.0, thickness=0.2)

        hits = cast(ORIGIN, EAST, [wall])

        assert len(hits) == 2
        assert all(h.obstacle is wall for h in hits)
        assert [h.distance for h in hits] == pytest.approx([3.9, 4.1])

    def test_origin_inside_wall_yields_exit_only(self):
        origin = np.array([4.0, 0.0, 0.0])
        hits = cast(origin, EAST, [create_test_wall(x=4.0, thickness=0.2)])

        assert len(hits) == 1
        assert hits[0].distance == pytest.approx(0.1)

    def test_not_bounded_by_any_length(self):
        hits = cast(ORIGIN, EAST, [create_test_wall(x=1000.0)])
        assert hits[0].distance == pytest.approx(1000.0)

    def test_direction_is_normalized(self):
        hits = cast(ORIGIN, np.array([5.0, 0.0, 0.0]), [create_test_wall(x=4.0)])
        assert hits[0].distance == pytest.approx(4.0)

    def test_zero_direction_raises(self):
        with pytest.raises(ValueError):
            cast(ORIGIN, np.zeros(3), [create_test_wall()])

    def test_ordering_is_non_decreasing(self):
        """Hits from a mix of thin and thick walls come out ordered."""
        rng = np.random.default_rng(7)
        walls = [
            create_test_wall(
                x=float(x),
                thickness=float(t),
                identity=f"W{i}",
            )
            for i, (x, t) in enumerate(zip(rng.uniform(1, 50, 20), rng.choice([0.0, 0.2, 0.4], 20)))
        ]

        distances = [h.distance for h in cast(ORIGIN, EAST, walls)]

        assert len(distances) >= 20
        assert all(a <= b for a, b in zip(distances, distances[1:]))

    def test_obstacles_not_mutated(self):
        wall = create_test_wall(x=4.0, thickness=0.2)
        start_before = wall.start.copy()

        cast(ORIGIN, EAST, [wall])

        np.testing.assert_array_equal(wall.start, start_before)
        assert wall.thickness == 0.2

    def test_origin_flush_with_entry_face(self):
        """Float noise on a start point lying on the entry face keeps the entry hit."""
        origin = np.array([0.1 * 3, 0.0, 0.0])
        wall = create_test_wall(x=0.4, thickness=0.2)

        hits = cast(origin, EAST, [wall])

        assert len(hits) == 2
        assert hits[0].distance == 0.0
        assert hits[1].distance == pytest.approx(0.2)

    def test_origin_on_thin_wall_plane(self):
        origin = np.array([0.1 * 3, 0.0, 0.0])

        hits = cast(origin, EAST, [create_test_wall(x=0.3)])

        assert len(hits) == 1
        assert hits[0].distance == 0.0
