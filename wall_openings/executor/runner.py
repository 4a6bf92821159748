"""Run orchestration: preconditions, planning and execution.

Example:
    ```python
    from wall_openings.executor import load_project, run_placement

    project = load_project("config/sample_project.json")
    report = run_placement(project)
    print(report.to_dict())
    ```
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from ..core.models import ElementKind, FamilySymbol, PlacementInstruction, Project
from ..core.planner import plan_by_kind
from ..errors import MissingOpeningFamilyError, MissingSourceModelError, MissingViewError
from .document import HostDocument, OpeningInstance, PlacementExecutor, execute

logger = logging.getLogger(__name__)

# Cached project to avoid reparsing on repeated calls
_cached_project: Optional[Project] = None
_cached_project_path: Optional[str] = None


def load_project(project_path: Union[str, Path]) -> Project:
    """Load a project description, with caching.

    Args:
        project_path: Path to the project JSON file.

    Returns:
        Project object.
    """
    global _cached_project, _cached_project_path

    project_path_str = str(project_path)
    if _cached_project is not None and _cached_project_path == project_path_str:
        return _cached_project

    _cached_project = Project.from_json_file(project_path)
    _cached_project_path = project_path_str
    return _cached_project


def clear_project_cache() -> None:
    """Clear the cached project.

    Call this if the project file changed and should be reloaded.
    """
    global _cached_project, _cached_project_path
    _cached_project = None
    _cached_project_path = None


@dataclass
class RunReport:
    """Outcome of a placement run.

    Attributes:
        ducts_read: Number of duct segments read from the source model.
        pipes_read: Number of pipe segments read from the source model.
        skipped_ids: Source elements that were not straight segments.
        instructions: Planned openings, by element kind.
        created: Instances created in the host document (empty when only
            planning).
    """

    ducts_read: int
    pipes_read: int
    skipped_ids: list[str] = field(default_factory=list)
    instructions: dict[ElementKind, list[PlacementInstruction]] = field(default_factory=dict)
    created: list[OpeningInstance] = field(default_factory=list)

    @property
    def all_instructions(self) -> list[PlacementInstruction]:
        return self.instructions.get(ElementKind.DUCT, []) + self.instructions.get(
            ElementKind.PIPE, []
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "ducts_read": self.ducts_read,
            "pipes_read": self.pipes_read,
            "skipped": list(self.skipped_ids),
            "duct_openings": len(self.instructions.get(ElementKind.DUCT, [])),
            "pipe_openings": len(self.instructions.get(ElementKind.PIPE, [])),
            "created_ids": [instance.id for instance in self.created],
            "openings": [i.to_dict() for i in self.all_instructions],
        }


def check_preconditions(project: Project) -> FamilySymbol:
    """Verify the run can start.

    Returns:
        The opening family symbol to place.

    Raises:
        MissingSourceModelError: No document matches the source model title.
        MissingOpeningFamilyError: The opening family is not loaded.
        MissingViewError: The target model has no non-template 3D view.
    """
    settings = project.settings
    if project.source is None:
        raise MissingSourceModelError(settings.source_model_title)

    symbol = project.target.find_family(settings.opening_family)
    if symbol is None:
        raise MissingOpeningFamilyError(settings.opening_family)

    if project.target.find_3d_view() is None:
        raise MissingViewError()

    return symbol


def run_placement(
    project: Project,
    document: Optional[HostDocument] = None,
    plan_only: bool = False,
) -> RunReport:
    """Plan openings for all ducts and pipes and create them.

    Args:
        project: Source and target models plus settings.
        document: Host document to modify. A fresh one is built from the
            target model when omitted.
        plan_only: Stop after planning, without touching the document.

    Returns:
        RunReport with planned and created openings.

    Raises:
        PreconditionError: Before any work is done, when the source model,
            the opening family or a 3D view is missing.
        ExecutionError: When creating openings fails; the failing unit of
            work is rolled back.
    """
    symbol = check_preconditions(project)
    source = project.source
    settings = project.settings

    segments = source.ducts + source.pipes
    instructions = plan_by_kind(
        segments,
        project.target.walls,
        elevation_lookup=project.elevation_of,
        settings=settings.planner,
    )

    report = RunReport(
        ducts_read=len(source.ducts),
        pipes_read=len(source.pipes),
        skipped_ids=[s.element_id for s in source.skipped],
        instructions=instructions,
    )
    if plan_only:
        return report

    if document is None:
        document = HostDocument(project.target)
    doc_symbol = document.find_symbol(symbol.family_name)
    if doc_symbol is None:
        raise MissingOpeningFamilyError(symbol.family_name)

    executor = PlacementExecutor(
        document,
        doc_symbol,
        width_parameter=settings.width_parameter,
        height_parameter=settings.height_parameter,
    )
    report.created = execute(
        executor,
        instructions[ElementKind.DUCT],
        instructions[ElementKind.PIPE],
    )
    return report
