"""Opening placement planner.

This module contains the core algorithm: for every duct or pipe segment it
casts a ray from the segment's start point, keeps the wall hits that lie on
the segment itself, merges repeated hits on one wall and sizes an opening at
each remaining crossing.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, Optional, Sequence

import numpy as np

from .dedup import dedup
from .geometry import normalize, point_along
from .models import (
    ElementKind,
    ElevationId,
    HitCandidate,
    Obstacle,
    PlacementInstruction,
    PlannerSettings,
    Segment,
)
from .ray_casting import cast

logger = logging.getLogger(__name__)

ElevationLookup = Callable[[Obstacle], ElevationId]


def _default_elevation_lookup(obstacle: Obstacle) -> ElevationId:
    return obstacle.reference_elevation_id


def is_plannable(segment: Segment, epsilon: float = 1e-10) -> bool:
    """Whether a segment has usable geometry.

    Segments with a non-positive or non-finite length, or a direction that
    is not a finite non-zero vector, cannot be cast and are skipped.
    """
    if not math.isfinite(segment.length) or segment.length <= 0:
        return False
    direction = np.asarray(segment.direction, dtype=float)
    if direction.shape != (3,) or not np.all(np.isfinite(direction)):
        return False
    if not np.all(np.isfinite(np.asarray(segment.origin, dtype=float))):
        return False
    return float(np.linalg.norm(direction)) > epsilon


def filter_within_length(hits: Iterable[HitCandidate], length: float) -> list[HitCandidate]:
    """Drop hits beyond the physical end of the segment."""
    return [hit for hit in hits if hit.distance <= length]


def opening_size(segment: Segment, settings: Optional[PlannerSettings] = None) -> float:
    """Width (and height) of the opening for a segment.

    Examples:
        >>> seg = Segment.from_endpoints([0, 0, 0], [1, 0, 0], 0.5, ElementKind.PIPE)
        >>> round(opening_size(seg), 6)
        0.55
    """
    if settings is None:
        settings = PlannerSettings()
    return segment.cross_section_size * settings.scale_factor(segment.kind)


def plan_segment(
    segment: Segment,
    obstacles: Sequence[Obstacle],
    elevation_lookup: Optional[ElevationLookup] = None,
    settings: Optional[PlannerSettings] = None,
) -> list[PlacementInstruction]:
    """Plan the openings for a single segment.

    Steps:
    1. Cast a ray from the segment origin along its direction
    2. Keep hits with distance <= segment length
    3. Keep the closest hit per physical wall
    4. Build one instruction per remaining hit

    Args:
        segment: The duct or pipe centerline.
        obstacles: Walls in the scene.
        elevation_lookup: Resolves the level of a wall. Defaults to the
            level stored on the wall.
        settings: Planner parameters.

    Returns:
        Instructions ordered by increasing distance along the segment.
        Empty when the segment is skipped or crosses no wall.
    """
    if settings is None:
        settings = PlannerSettings()
    if elevation_lookup is None:
        elevation_lookup = _default_elevation_lookup

    if not is_plannable(segment, settings.epsilon):
        logger.debug("Skipping segment %s: unusable geometry", segment.element_id)
        return []

    direction = normalize(segment.direction)
    hits = cast(segment.origin, direction, obstacles, settings.epsilon)
    hits = filter_within_length(hits, segment.length)
    hits = dedup(hits)

    size = opening_size(segment, settings)
    instructions = []
    for hit in hits:
        instructions.append(
            PlacementInstruction(
                position=point_along(segment.origin, direction, hit.distance),
                host_obstacle=hit.obstacle,
                reference_elevation_id=elevation_lookup(hit.obstacle),
                opening_width=size,
                opening_height=size,
                source_kind=segment.kind,
                source_element_id=segment.element_id,
                distance=hit.distance,
            )
        )
    return instructions


def plan(
    segments: Iterable[Segment],
    obstacles: Iterable[Obstacle],
    elevation_lookup: Optional[ElevationLookup] = None,
    settings: Optional[PlannerSettings] = None,
) -> list[PlacementInstruction]:
    """Plan openings for every segment.

    Segments are independent, so with ``settings.max_workers > 1`` they are
    planned in a thread pool. Results are always concatenated in segment
    input order, making the output identical to a sequential run.

    Args:
        segments: Duct and pipe centerlines.
        obstacles: Walls in the scene; never modified.
        elevation_lookup: Resolves the level of a wall.
        settings: Planner parameters.

    Returns:
        All placement instructions, grouped by segment in input order.
    """
    if settings is None:
        settings = PlannerSettings()

    segments = list(segments)
    obstacles = list(obstacles)

    def _plan_one(segment: Segment) -> list[PlacementInstruction]:
        return plan_segment(segment, obstacles, elevation_lookup, settings)

    if settings.max_workers > 1 and len(segments) > 1:
        with ThreadPoolExecutor(max_workers=settings.max_workers) as pool:
            per_segment = list(pool.map(_plan_one, segments))
    else:
        per_segment = [_plan_one(segment) for segment in segments]

    instructions = [instruction for batch in per_segment for instruction in batch]
    logger.info(
        "Planned %d openings for %d segments against %d walls",
        len(instructions),
        len(segments),
        len(obstacles),
    )
    return instructions


def plan_by_kind(
    segments: Iterable[Segment],
    obstacles: Iterable[Obstacle],
    elevation_lookup: Optional[ElevationLookup] = None,
    settings: Optional[PlannerSettings] = None,
) -> dict[ElementKind, list[PlacementInstruction]]:
    """Plan openings and group them by the kind of the source element.

    Duct and pipe openings are committed in separate units of work, so the
    executor receives them split.
    """
    grouped: dict[ElementKind, list[PlacementInstruction]] = {kind: [] for kind in ElementKind}
    for instruction in plan(segments, obstacles, elevation_lookup, settings):
        grouped[instruction.source_kind].append(instruction)
    return grouped
