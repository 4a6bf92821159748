#!/usr/bin/env python3
"""Example script demonstrating the wall openings planner.

This script shows how to:
1. Load a project description
2. Cast a single ray and inspect the raw hits
3. Plan and create all openings
4. Generate a 3D visualization

Usage:
    python examples/run_planning.py
"""

from pathlib import Path

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from wall_openings.core.dedup import dedup
from wall_openings.core.models import Project
from wall_openings.core.ray_casting import cast
from wall_openings.executor.document import HostDocument
from wall_openings.executor.runner import run_placement
from wall_openings.visualization.scene_builder import build_scene


def main():
    """Run example planning."""
    project_root = Path(__file__).parent.parent
    project_path = project_root / "config" / "sample_project.json"

    print("=" * 60)
    print("Wall Openings Planner - Example")
    print("=" * 60)

    # Load project
    print("\n1. Loading project...")
    project = Project.from_json_file(project_path)
    print(f"   - Target model: {project.target.title} ({len(project.target.walls)} walls)")
    print(f"   - Source model: {project.source.title}")
    print(f"   - Ducts: {len(project.source.ducts)}, pipes: {len(project.source.pipes)}")
    print(f"   - Skipped: {[s.element_id for s in project.source.skipped]}")

    # Single ray
    print("\n2. Casting the first duct...")
    duct = project.source.ducts[0]
    hits = cast(duct.origin, duct.direction, project.target.walls)
    for hit in hits:
        print(f"   - {hit.obstacle.identity} at {hit.distance:.3f}")
    print(f"   - After dedup: {[h.obstacle.identity for h in dedup(hits)]}")

    # Full run
    print("\n3. Planning and creating openings...")
    document = HostDocument(project.target)
    report = run_placement(project, document=document)
    for instruction in report.all_instructions:
        pos = instruction.position
        print(
            f"   - {instruction.source_kind.value} {instruction.source_element_id} -> "
            f"{instruction.host_obstacle.identity} at ({pos[0]:.2f}, {pos[1]:.2f}, {pos[2]:.2f}), "
            f"size {instruction.opening_width:.3f}"
        )
    print(f"   - Instances in document: {len(document.instances)}")

    # Visualization
    print("\n4. Creating visualization...")
    try:
        fig = build_scene(project, report.all_instructions)
        output_path = project_root / "examples" / "openings.html"
        fig.write_html(str(output_path))
        print(f"   - Saved interactive visualization to: {output_path}")
    except Exception as e:
        print(f"   - Visualization skipped (error: {e})")
        print("   - Make sure plotly is installed: pip install plotly")

    print("\n" + "=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
