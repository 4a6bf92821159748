"""Ray casting against walls.

This module finds every point where a ray (a duct or pipe centerline
extended from its start point) crosses the faces of the walls in a scene.
A wall with thickness is treated as a box, so a ray passing through it
registers twice: once on the face it enters and once on the face it leaves.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np

from .geometry import normalize
from .models import HitCandidate, Obstacle


@dataclass
class RayIntersection:
    """Result of a ray-wall intersection test.

    Attributes:
        intersects: Whether the ray hits the wall at some t >= 0.
        t_enter: Parameter where the ray enters the wall (may be negative
            when the ray starts inside the wall).
        t_exit: Parameter where the ray leaves the wall.
        entry_point: origin + t_enter * direction, when intersecting.
    """

    intersects: bool
    t_enter: Optional[float] = None
    t_exit: Optional[float] = None
    entry_point: Optional[np.ndarray] = None


def _to_wall_frame(
    ray_origin: np.ndarray,
    ray_direction: np.ndarray,
    wall: Obstacle,
) -> tuple[np.ndarray, np.ndarray]:
    """Express the ray in the wall's local frame.

    Local axes: u along the baseline, v along the wall normal, w up.
    The baseline start is the local origin.
    """
    base = np.array([wall.start[0], wall.start[1], wall.base_elevation])
    basis = np.array([wall.axis, wall.normal, [0.0, 0.0, 1.0]])
    return basis @ (ray_origin - base), basis @ ray_direction


def _intersect_thin_wall(
    local_origin: np.ndarray,
    local_direction: np.ndarray,
    wall: Obstacle,
    epsilon: float,
) -> Optional[tuple[float, float]]:
    """Intersect with the wall's center plane, bounded by length and height."""
    # Ray parallel to the wall plane never crosses it
    if abs(local_direction[1]) < epsilon:
        return None

    t = -local_origin[1] / local_direction[1]
    if t < -epsilon:
        return None
    t = max(t, 0.0)

    hit = local_origin + t * local_direction
    within_u = -epsilon <= hit[0] <= wall.length + epsilon
    within_w = -epsilon <= hit[2] <= wall.height + epsilon
    if within_u and within_w:
        return t, t
    return None


def _intersect_wall_box(
    local_origin: np.ndarray,
    local_direction: np.ndarray,
    wall: Obstacle,
    epsilon: float,
) -> Optional[tuple[float, float]]:
    """Slab test against the wall box. Returns (t_enter, t_exit)."""
    half = wall.thickness / 2
    bounds = [
        (0.0, wall.length),
        (-half, half),
        (0.0, wall.height),
    ]

    t_near = -np.inf
    t_far = np.inf
    for axis, (lo, hi) in enumerate(bounds):
        o = local_origin[axis]
        d = local_direction[axis]
        if abs(d) < epsilon:
            # Parallel to this slab: must already be between its planes
            if o < lo - epsilon or o > hi + epsilon:
                return None
            continue
        t1 = (lo - o) / d
        t2 = (hi - o) / d
        if t1 > t2:
            t1, t2 = t2, t1
        t_near = max(t_near, t1)
        t_far = min(t_far, t2)
        if t_near > t_far + epsilon:
            return None

    if t_far < 0:
        return None
    return float(t_near), float(t_far)


def ray_obstacle_intersection(
    ray_origin: np.ndarray,
    ray_direction: np.ndarray,
    obstacle: Obstacle,
    epsilon: float = 1e-10,
) -> RayIntersection:
    """Compute detailed ray-wall intersection.

    For walls with thickness > 0, models the wall as a box and returns the
    parameters where the ray enters and leaves it. For walls with
    thickness == 0, uses the thin-plane model where enter and exit coincide.

    Args:
        ray_origin: Starting point of the ray.
        ray_direction: Direction of the ray (should be normalized).
        obstacle: The wall to test against.
        epsilon: Small value for numerical comparisons.

    Returns:
        RayIntersection with details about the intersection.
    """
    ray_origin = np.asarray(ray_origin, dtype=float)
    ray_direction = np.asarray(ray_direction, dtype=float)
    local_origin, local_direction = _to_wall_frame(ray_origin, ray_direction, obstacle)

    if obstacle.thickness <= 0:
        span = _intersect_thin_wall(local_origin, local_direction, obstacle, epsilon)
    else:
        span = _intersect_wall_box(local_origin, local_direction, obstacle, epsilon)

    if span is None:
        return RayIntersection(intersects=False)

    t_enter, t_exit = span
    return RayIntersection(
        intersects=True,
        t_enter=t_enter,
        t_exit=t_exit,
        entry_point=ray_origin + t_enter * ray_direction,
    )


def cast(
    origin: np.ndarray,
    direction: np.ndarray,
    obstacles: Iterable[Obstacle],
    epsilon: float = 1e-10,
) -> list[HitCandidate]:
    """Cast a ray and collect every face hit, closest first.

    The ray is infinite: hits are not bounded by any segment length.
    Each wall contributes its entry face (when in front of the origin) and
    its exit face, so one physical wall usually appears twice.

    Args:
        origin: Starting point of the ray.
        direction: Direction of the ray; normalized here.
        obstacles: Candidate walls visible in the scene.
        epsilon: Small value for numerical comparisons.

    Returns:
        Hit candidates in non-decreasing order of distance. Empty when
        nothing is hit.

    Raises:
        ValueError: If direction is the zero vector.
    """
    origin = np.asarray(origin, dtype=float)
    direction = normalize(direction)

    hits = []
    for obstacle in obstacles:
        result = ray_obstacle_intersection(origin, direction, obstacle, epsilon)
        if not result.intersects:
            continue
        # An origin flush with the entry face still counts as entering
        if result.t_enter >= -epsilon:
            hits.append(HitCandidate(distance=max(result.t_enter, 0.0), obstacle=obstacle))
        if result.t_exit - max(result.t_enter, 0.0) > epsilon:
            hits.append(HitCandidate(distance=result.t_exit, obstacle=obstacle))

    return sorted(hits, key=lambda hit: hit.distance)
