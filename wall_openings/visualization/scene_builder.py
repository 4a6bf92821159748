"""Plotly 3D visualization of walls, duct/pipe runs and planned openings.

This module provides functions to create interactive 3D views of a
project, useful for checking where openings will be placed before they
are created in the host model.
"""

from typing import Optional

import numpy as np
import plotly.graph_objects as go

from ..core.models import ElementKind, Obstacle, PlacementInstruction, Project, Segment

# Triangles of a box whose corners follow Obstacle.get_corners() ordering
_BOX_I = [0, 0, 4, 4, 0, 0, 1, 1, 2, 2, 3, 3]
_BOX_J = [1, 2, 5, 6, 1, 5, 2, 6, 3, 7, 0, 4]
_BOX_K = [2, 3, 6, 7, 5, 4, 6, 5, 7, 6, 4, 7]

SEGMENT_COLORS = {
    ElementKind.DUCT: "steelblue",
    ElementKind.PIPE: "darkorange",
}


def create_wall_mesh(wall: Obstacle, color: str = "lightgray", opacity: float = 0.4) -> go.Mesh3d:
    """Create a Plotly mesh for a wall box.

    Args:
        wall: The wall to visualize.
        color: Fill color for the wall.
        opacity: Transparency (0-1).

    Returns:
        Plotly Mesh3d trace.
    """
    corners = wall.get_corners()

    return go.Mesh3d(
        x=[c[0] for c in corners],
        y=[c[1] for c in corners],
        z=[c[2] for c in corners],
        i=_BOX_I,
        j=_BOX_J,
        k=_BOX_K,
        color=color,
        opacity=opacity,
        name=f"Wall {wall.identity}",
        showlegend=True,
    )


def create_segment_line(segment: Segment, width: int = 6) -> go.Scatter3d:
    """Create a line trace for a duct or pipe centerline."""
    start = segment.origin
    end = segment.end_point
    label = segment.element_id or segment.kind.value

    return go.Scatter3d(
        x=[start[0], end[0]],
        y=[start[1], end[1]],
        z=[start[2], end[2]],
        mode="lines",
        line=dict(color=SEGMENT_COLORS[segment.kind], width=width),
        name=f"{segment.kind.value.capitalize()} {label}",
        showlegend=True,
    )


def opening_outline(instruction: PlacementInstruction) -> list[np.ndarray]:
    """Corners of the opening rectangle in its host wall's plane.

    The outline is closed: the first corner is repeated at the end.
    """
    h_axis = instruction.host_obstacle.axis
    v_axis = np.array([0.0, 0.0, 1.0])
    h_half = instruction.opening_width / 2
    v_half = instruction.opening_height / 2
    center = instruction.position

    corners = [
        center - h_half * h_axis - v_half * v_axis,
        center + h_half * h_axis - v_half * v_axis,
        center + h_half * h_axis + v_half * v_axis,
        center - h_half * h_axis + v_half * v_axis,
    ]
    corners.append(corners[0])
    return corners


def create_opening_frame(
    instruction: PlacementInstruction,
    color: str = "red",
    width: int = 4,
) -> go.Scatter3d:
    """Create a line trace outlining a planned opening."""
    corners = opening_outline(instruction)
    wall_id = instruction.host_obstacle.identity

    return go.Scatter3d(
        x=[c[0] for c in corners],
        y=[c[1] for c in corners],
        z=[c[2] for c in corners],
        mode="lines",
        line=dict(color=color, width=width),
        name=f"Opening in {wall_id}",
        showlegend=False,
    )


def create_coordinate_axes(
    origin: tuple[float, float, float] = (0, 0, 0),
    length: float = 1.0,
) -> list[go.Scatter3d]:
    """Create coordinate axis indicators (X=red, Y=green, Z=blue)."""
    ox, oy, oz = origin
    axes = [
        ((length, 0, 0), "red", "X"),
        ((0, length, 0), "green", "Y"),
        ((0, 0, length), "blue", "Z"),
    ]
    return [
        go.Scatter3d(
            x=[ox, ox + dx],
            y=[oy, oy + dy],
            z=[oz, oz + dz],
            mode="lines+text",
            line=dict(color=color, width=4),
            text=["", label],
            textposition="top center",
            name=f"{label} axis",
            showlegend=False,
        )
        for (dx, dy, dz), color, label in axes
    ]


def build_scene(
    project: Project,
    instructions: Optional[list[PlacementInstruction]] = None,
    show_axes: bool = True,
    title: str = "Wall Openings",
) -> go.Figure:
    """Build a complete Plotly 3D scene.

    Args:
        project: Project with walls and (optionally) a source model.
        instructions: Planned openings to outline.
        show_axes: Whether to show coordinate axes.
        title: Plot title.

    Returns:
        Plotly Figure object.
    """
    fig = go.Figure()

    if show_axes:
        for trace in create_coordinate_axes():
            fig.add_trace(trace)

    for wall in project.target.walls:
        fig.add_trace(create_wall_mesh(wall))

    if project.source is not None:
        for segment in project.source.ducts + project.source.pipes:
            fig.add_trace(create_segment_line(segment))

    for instruction in instructions or []:
        fig.add_trace(create_opening_frame(instruction))

    units = project.units
    fig.update_layout(
        title=dict(text=title, x=0.5),
        scene=dict(
            xaxis_title=f"X ({units})",
            yaxis_title=f"Y ({units})",
            zaxis_title=f"Z ({units})",
            aspectmode="data",
            camera=dict(
                eye=dict(x=1.5, y=1.5, z=1.0),
            ),
        ),
        legend=dict(
            yanchor="top",
            y=0.99,
            xanchor="left",
            x=0.01,
        ),
        margin=dict(l=0, r=0, t=40, b=0),
    )

    return fig
