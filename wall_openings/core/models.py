"""Data models for wall opening placement."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Hashable, Optional

import numpy as np

from .geometry import distance_between, horizontal_normal, normalize

logger = logging.getLogger(__name__)

ObstacleId = Hashable
ContextId = Hashable
ElevationId = Hashable


class ElementKind(str, Enum):
    """Kind of linear MEP element that produces a segment."""

    DUCT = "duct"
    PIPE = "pipe"


@dataclass(frozen=True, eq=False)
class Segment:
    """A straight duct or pipe centerline.

    Attributes:
        origin: Start point of the centerline (x, y, z).
        direction: Unit vector from the start point toward the end point.
        length: Distance between the two endpoints.
        cross_section_size: Nominal size of the element (diameter).
        kind: Whether the element is a duct or a pipe.
        element_id: Identifier of the source element, if known.
    """

    origin: np.ndarray
    direction: np.ndarray
    length: float
    cross_section_size: float
    kind: ElementKind
    element_id: Optional[str] = None

    @classmethod
    def from_endpoints(
        cls,
        start,
        end,
        cross_section_size: float,
        kind: ElementKind,
        element_id: Optional[str] = None,
    ) -> Segment:
        """Build a segment from its two endpoints.

        Raises:
            ValueError: If the endpoints coincide.
        """
        start = np.asarray(start, dtype=float)
        end = np.asarray(end, dtype=float)
        return cls(
            origin=start,
            direction=normalize(end - start),
            length=distance_between(start, end),
            cross_section_size=float(cross_section_size),
            kind=ElementKind(kind),
            element_id=element_id,
        )

    @property
    def end_point(self) -> np.ndarray:
        return self.origin + self.direction * self.length


@dataclass(eq=False)
class Obstacle:
    """A wall that a segment can penetrate.

    The wall is a vertical box standing on its baseline: it runs from
    ``start`` to ``end``, extends ``thickness / 2`` to each side of the
    baseline and rises ``height`` above it. A zero thickness makes it a
    single vertical rectangle.

    Attributes:
        identity: Element id of the wall in its own model.
        reference_elevation_id: Id of the level the wall is based on.
        start: Baseline start point (the z coordinate is the wall base).
        end: Baseline end point.
        thickness: Wall thickness, 0 for the thin-plane model.
        height: Height of the wall above its base.
        host_context_id: Id of the link instance the wall is seen through,
            None when the wall lives in the host model itself.
    """

    identity: ObstacleId
    reference_elevation_id: ElevationId
    start: np.ndarray
    end: np.ndarray
    thickness: float = 0.0
    height: float = 3.0
    host_context_id: Optional[ContextId] = None

    @property
    def key(self) -> tuple:
        """Physical obstacle identity: ``(identity, host_context_id)``."""
        return (self.identity, self.host_context_id)

    @property
    def length(self) -> float:
        flat_start = np.array([self.start[0], self.start[1], 0.0])
        flat_end = np.array([self.end[0], self.end[1], 0.0])
        return distance_between(flat_start, flat_end)

    @property
    def axis(self) -> np.ndarray:
        """Horizontal unit vector along the baseline."""
        return normalize(
            np.array([self.end[0] - self.start[0], self.end[1] - self.start[1], 0.0])
        )

    @property
    def normal(self) -> np.ndarray:
        """Horizontal unit normal (axis rotated 90 degrees counter-clockwise)."""
        return horizontal_normal(self.axis)

    @property
    def base_elevation(self) -> float:
        return float(self.start[2])

    @property
    def center(self) -> np.ndarray:
        mid = (np.asarray(self.start, dtype=float) + np.asarray(self.end, dtype=float)) / 2
        return np.array([mid[0], mid[1], self.base_elevation + self.height / 2])

    def get_corners(self) -> list[np.ndarray]:
        """Get the eight corners of the wall box.

        The first four are the bottom face and the last four the top face,
        each in order: start-left, end-left, end-right, start-right, where
        "left" is the side the normal points to.
        """
        base = np.array([self.start[0], self.start[1], self.base_elevation])
        along = self.axis * self.length
        side = self.normal * (self.thickness / 2)
        up = np.array([0.0, 0.0, self.height])

        bottom = [
            base + side,
            base + along + side,
            base + along - side,
            base - side,
        ]
        return bottom + [corner + up for corner in bottom]


@dataclass
class Level:
    """A named reference elevation."""

    id: ElevationId
    name: str
    elevation: float = 0.0


@dataclass
class HitCandidate:
    """One raw ray/obstacle intersection.

    Attributes:
        distance: Distance from the ray origin along the ray direction.
        obstacle: The obstacle that was hit.
    """

    distance: float
    obstacle: Obstacle


@dataclass
class PlacementInstruction:
    """A fully resolved opening to create in the host model.

    Attributes:
        position: Insertion point of the opening.
        host_obstacle: Wall that hosts the opening.
        reference_elevation_id: Level the opening is placed on.
        opening_width: Width of the opening.
        opening_height: Height of the opening.
        source_kind: Kind of the element that crosses the wall.
        source_element_id: Id of the duct or pipe, if known.
        distance: Distance from the segment origin to the crossing.
    """

    position: np.ndarray
    host_obstacle: Obstacle
    reference_elevation_id: ElevationId
    opening_width: float
    opening_height: float
    source_kind: ElementKind
    source_element_id: Optional[str] = None
    distance: float = 0.0

    def to_dict(self) -> dict:
        """Convert to a JSON-friendly dictionary."""
        return {
            "position": [float(c) for c in self.position],
            "wall_id": self.host_obstacle.identity,
            "link_id": self.host_obstacle.host_context_id,
            "level_id": self.reference_elevation_id,
            "width": self.opening_width,
            "height": self.opening_height,
            "source_kind": self.source_kind.value,
            "source_element_id": self.source_element_id,
            "distance": self.distance,
        }


DEFAULT_SCALE_FACTORS = {
    ElementKind.DUCT: 1.0,
    ElementKind.PIPE: 1.1,
}


@dataclass
class PlannerSettings:
    """Planner parameters.

    Attributes:
        scale_factors: Opening size multiplier per element kind. Pipes get
            an oversized opening for insulation and clearance.
        max_workers: Number of worker threads; 1 plans sequentially.
        epsilon: Tolerance for parallel rays and degenerate geometry.
    """

    scale_factors: dict[ElementKind, float] = field(
        default_factory=lambda: dict(DEFAULT_SCALE_FACTORS)
    )
    max_workers: int = 1
    epsilon: float = 1e-10

    def scale_factor(self, kind: ElementKind) -> float:
        return self.scale_factors.get(kind, DEFAULT_SCALE_FACTORS[kind])


@dataclass
class FamilySymbol:
    """A loadable opening family type in the target model."""

    family_name: str
    symbol_name: str
    parameters: tuple[str, ...] = ()
    is_active: bool = False


@dataclass
class View:
    """A view in the target model; only non-template 3D views scope ray casts."""

    name: str
    view_type: str = "3d"
    is_template: bool = False


@dataclass
class SkippedElement:
    """A source element that could not be turned into a segment."""

    element_id: str
    kind: ElementKind
    reason: str


@dataclass
class SourceModel:
    """The MEP model that holds ducts and pipes."""

    title: str
    ducts: list[Segment] = field(default_factory=list)
    pipes: list[Segment] = field(default_factory=list)
    skipped: list[SkippedElement] = field(default_factory=list)


@dataclass
class TargetModel:
    """The architectural model that receives the openings."""

    title: str
    walls: list[Obstacle] = field(default_factory=list)
    levels: list[Level] = field(default_factory=list)
    views: list[View] = field(default_factory=list)
    families: list[FamilySymbol] = field(default_factory=list)

    def find_3d_view(self) -> Optional[View]:
        """First non-template 3D view, or None."""
        for view in self.views:
            if view.view_type == "3d" and not view.is_template:
                return view
        return None

    def find_family(self, family_name: str) -> Optional[FamilySymbol]:
        for symbol in self.families:
            if symbol.family_name == family_name:
                return symbol
        return None

    def level_by_id(self, level_id: ElevationId) -> Optional[Level]:
        for level in self.levels:
            if level.id == level_id:
                return level
        return None


@dataclass
class Settings:
    """Run settings.

    Attributes:
        source_model_title: Substring identifying the MEP model by title.
        opening_family: Name of the opening family to place.
        width_parameter: Name of the instance parameter receiving the width.
        height_parameter: Name of the instance parameter receiving the height.
        planner: Planner parameters.
    """

    source_model_title: str = "MEP"
    opening_family: str = "Openings"
    width_parameter: str = "Width"
    height_parameter: str = "Height"
    planner: PlannerSettings = field(default_factory=PlannerSettings)


@dataclass
class Project:
    """Complete description of one placement run.

    Attributes:
        target: The active (architectural) model.
        source: The MEP model, None when no document matches.
        settings: Run settings.
        units: Length units of all coordinates (default "meters").
    """

    target: TargetModel
    source: Optional[SourceModel] = None
    settings: Settings = field(default_factory=Settings)
    units: str = "meters"

    def elevation_of(self, obstacle: Obstacle) -> ElevationId:
        """Level lookup for a wall.

        Returns the id of the level stored on the wall. A level the target
        model does not define is logged and passed through unchanged.
        """
        if self.target.level_by_id(obstacle.reference_elevation_id) is None:
            logger.warning(
                "Wall %s references unknown level %s",
                obstacle.identity,
                obstacle.reference_elevation_id,
            )
        return obstacle.reference_elevation_id

    @classmethod
    def from_json_file(cls, path: str | Path) -> Project:
        """Load a project from a JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> Project:
        """Create a project from a dictionary."""
        settings = _parse_settings(data.get("settings", {}) or {})

        documents = data.get("documents", [])
        if not documents:
            raise ValueError("Project must define at least one document")

        active_docs = [d for d in documents if d.get("active")]
        target_data = active_docs[0] if active_docs else documents[0]
        target = _parse_target(target_data, settings)

        source = None
        for doc in documents:
            if doc is target_data:
                continue
            if settings.source_model_title in doc.get("title", ""):
                source = _parse_source(doc)
                break

        return cls(
            target=target,
            source=source,
            settings=settings,
            units=data.get("units", "meters"),
        )

    def to_dict(self) -> dict:
        """Convert the project back to a dictionary."""
        planner = self.settings.planner
        documents: list[dict[str, Any]] = [
            {
                "title": self.target.title,
                "active": True,
                "levels": [
                    {"id": lv.id, "name": lv.name, "elevation": lv.elevation}
                    for lv in self.target.levels
                ],
                "walls": [self._wall_to_dict(w) for w in self.target.walls],
                "views": [
                    {"name": v.name, "type": v.view_type, "is_template": v.is_template}
                    for v in self.target.views
                ],
                "families": [
                    {
                        "family_name": s.family_name,
                        "symbol_name": s.symbol_name,
                        "parameters": list(s.parameters),
                        "active": s.is_active,
                    }
                    for s in self.target.families
                ],
            }
        ]
        if self.source is not None:
            documents.append(
                {
                    "title": self.source.title,
                    "ducts": [self._segment_to_dict(s) for s in self.source.ducts],
                    "pipes": [self._segment_to_dict(s) for s in self.source.pipes],
                }
            )

        return {
            "units": self.units,
            "settings": {
                "source_model_title": self.settings.source_model_title,
                "opening_family": self.settings.opening_family,
                "width_parameter": self.settings.width_parameter,
                "height_parameter": self.settings.height_parameter,
                "scale_factors": {
                    kind.value: factor for kind, factor in planner.scale_factors.items()
                },
                "max_workers": planner.max_workers,
            },
            "documents": documents,
        }

    @staticmethod
    def _wall_to_dict(wall: Obstacle) -> dict:
        return {
            "id": wall.identity,
            "link_id": wall.host_context_id,
            "level_id": wall.reference_elevation_id,
            "start": [float(c) for c in wall.start],
            "end": [float(c) for c in wall.end],
            "thickness": wall.thickness,
            "height": wall.height,
        }

    @staticmethod
    def _segment_to_dict(segment: Segment) -> dict:
        return {
            "id": segment.element_id,
            "curve": {
                "type": "line",
                "start": [float(c) for c in segment.origin],
                "end": [float(c) for c in segment.end_point],
            },
            "diameter": segment.cross_section_size,
        }


def _parse_settings(data: dict) -> Settings:
    planner = PlannerSettings()
    for kind_name, factor in (data.get("scale_factors") or {}).items():
        planner.scale_factors[ElementKind(kind_name.lower())] = float(factor)
    planner.max_workers = int(data.get("max_workers", planner.max_workers))

    defaults = Settings()
    return Settings(
        source_model_title=data.get("source_model_title", defaults.source_model_title),
        opening_family=data.get("opening_family", defaults.opening_family),
        width_parameter=data.get("width_parameter", defaults.width_parameter),
        height_parameter=data.get("height_parameter", defaults.height_parameter),
        planner=planner,
    )


def _parse_point(value, what: str) -> np.ndarray:
    if value is None or len(value) != 3:
        raise ValueError(f"{what} must be a 3D point [x, y, z]")
    return np.array([float(c) for c in value], dtype=float)


def _parse_target(doc: dict, settings: Settings) -> TargetModel:
    title = doc.get("title", "")

    levels = [
        Level(
            id=lv["id"],
            name=lv.get("name", str(lv["id"])),
            elevation=float(lv.get("elevation", 0.0)),
        )
        for lv in doc.get("levels", [])
    ]

    walls = []
    for w in doc.get("walls", []):
        wall_id = w.get("id")
        if wall_id is None:
            raise ValueError(f"Wall in document '{title}' is missing an id")
        if "level_id" not in w:
            raise ValueError(f"Wall {wall_id} is missing level_id")
        height = float(w.get("height", 3.0))
        if height <= 0:
            raise ValueError(f"Wall {wall_id} must have a positive height")
        start = _parse_point(w.get("start"), f"Wall {wall_id} start")
        end = _parse_point(w.get("end"), f"Wall {wall_id} end")
        if math.hypot(end[0] - start[0], end[1] - start[1]) <= 0:
            raise ValueError(f"Wall {wall_id} has a zero-length baseline")
        walls.append(
            Obstacle(
                identity=wall_id,
                reference_elevation_id=w["level_id"],
                start=start,
                end=end,
                thickness=float(w.get("thickness", 0.0) or 0.0),
                height=height,
                host_context_id=w.get("link_id"),
            )
        )

    views = [
        View(
            name=v.get("name", ""),
            view_type=str(v.get("type", "3d")).lower(),
            is_template=bool(v.get("is_template", False)),
        )
        for v in doc.get("views", [])
    ]

    families = [
        FamilySymbol(
            family_name=f["family_name"],
            symbol_name=f.get("symbol_name", f["family_name"]),
            parameters=tuple(
                f.get("parameters", (settings.width_parameter, settings.height_parameter))
            ),
            is_active=bool(f.get("active", False)),
        )
        for f in doc.get("families", [])
    ]

    return TargetModel(title=title, walls=walls, levels=levels, views=views, families=families)


def _parse_source(doc: dict) -> SourceModel:
    source = SourceModel(title=doc.get("title", ""))
    for kind, key, bucket in (
        (ElementKind.DUCT, "ducts", source.ducts),
        (ElementKind.PIPE, "pipes", source.pipes),
    ):
        for element in doc.get(key, []):
            segment, reason = _parse_segment(element, kind)
            if segment is None:
                element_id = str(element.get("id", "<unknown>"))
                logger.warning("Skipping %s %s: %s", kind.value, element_id, reason)
                source.skipped.append(SkippedElement(element_id, kind, reason))
            else:
                bucket.append(segment)
    return source


def _parse_segment(element: dict, kind: ElementKind) -> tuple[Optional[Segment], str]:
    element_id = element.get("id")
    curve = element.get("curve") or {}
    if curve.get("type", "line") != "line":
        return None, f"unsupported curve type '{curve.get('type')}'"

    size = element.get("diameter")
    if size is None:
        raise ValueError(f"{kind.value.capitalize()} {element_id} is missing diameter")
    size = float(size)
    if not math.isfinite(size) or size <= 0:
        return None, "non-positive diameter"

    start = _parse_point(curve.get("start"), f"{kind.value.capitalize()} {element_id} start")
    end = _parse_point(curve.get("end"), f"{kind.value.capitalize()} {element_id} end")
    try:
        segment = Segment.from_endpoints(start, end, size, kind, element_id)
    except ValueError:
        return None, "zero-length centerline"
    return segment, ""
