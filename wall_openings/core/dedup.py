"""Collapse repeated hits on the same physical wall."""

from typing import Iterable

from .models import HitCandidate


def dedup(hits: Iterable[HitCandidate]) -> list[HitCandidate]:
    """Keep the first hit for each physical wall.

    Two hits belong to the same wall when their obstacles share
    ``(identity, host_context_id)``. A ray crossing a thick wall hits both
    its faces, and a wall reached through a link may be reported more than
    once; only one opening is wanted per wall per segment.

    Args:
        hits: Hit candidates, normally ordered by distance.

    Returns:
        Hits in input order with later duplicates removed. For
        distance-ordered input the closest hit of each wall survives.
    """
    seen = set()
    unique = []
    for hit in hits:
        key = hit.obstacle.key
        if key in seen:
            continue
        seen.add(key)
        unique.append(hit)
    return unique
