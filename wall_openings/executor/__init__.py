"""Placement execution against a host document."""

from .document import HostDocument, OpeningInstance, PlacementExecutor, execute
from .runner import RunReport, check_preconditions, clear_project_cache, load_project, run_placement

__all__ = [
    "HostDocument",
    "OpeningInstance",
    "PlacementExecutor",
    "execute",
    "RunReport",
    "check_preconditions",
    "clear_project_cache",
    "load_project",
    "run_placement",
]
