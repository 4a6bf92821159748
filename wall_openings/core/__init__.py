"""Core ray-casting and placement planning components."""

from .models import (
    ElementKind,
    Segment,
    Obstacle,
    HitCandidate,
    PlacementInstruction,
    PlannerSettings,
    Project,
)
from .ray_casting import cast, ray_obstacle_intersection
from .dedup import dedup
from .planner import plan, plan_segment, plan_by_kind, filter_within_length

__all__ = [
    "ElementKind",
    "Segment",
    "Obstacle",
    "HitCandidate",
    "PlacementInstruction",
    "PlannerSettings",
    "Project",
    "cast",
    "ray_obstacle_intersection",
    "dedup",
    "plan",
    "plan_segment",
    "plan_by_kind",
    "filter_within_length",
]
