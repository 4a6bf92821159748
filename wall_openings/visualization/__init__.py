"""Plotly 3D visualization module."""

from .scene_builder import build_scene, create_wall_mesh, create_opening_frame

__all__ = [
    "build_scene",
    "create_wall_mesh",
    "create_opening_frame",
]
