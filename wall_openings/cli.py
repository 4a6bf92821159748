"""Command-line tool for placing wall openings.

Usage:
    place-openings config/sample_project.json
    place-openings config/sample_project.json --json
    place-openings config/sample_project.json --plan-only --html openings.html

Prints a summary (or a JSON report) of the openings created. Exits with
status 1 when the project file cannot be read or the run cannot start.
"""

import argparse
import json
import logging
import sys
from typing import Optional

from .errors import ExecutionError, PreconditionError
from .executor.runner import load_project, run_placement

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="place-openings",
        description="Place openings where ducts and pipes cross walls",
    )
    parser.add_argument("project", type=str, help="Path to project JSON file")
    parser.add_argument("--json", action="store_true", help="Output JSON format")
    parser.add_argument(
        "--plan-only", action="store_true", help="Plan openings without creating them"
    )
    parser.add_argument("--html", type=str, help="Write a 3D view of the result to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        project = load_project(args.project)
        report = run_placement(project, plan_only=args.plan_only)
    except (PreconditionError, ExecutionError, OSError, ValueError) as e:
        if args.json:
            print(json.dumps({"error": str(e)}))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.html:
        from .visualization.scene_builder import build_scene

        fig = build_scene(project, report.all_instructions)
        fig.write_html(args.html)
        logger.info("Saved 3D view to %s", args.html)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, default=str))
        return 0

    data = report.to_dict()
    print(f"Ducts read: {data['ducts_read']}")
    print(f"Pipes read: {data['pipes_read']}")
    if data["skipped"]:
        print(f"Skipped (not straight): {', '.join(str(s) for s in data['skipped'])}")
    print(f"Duct openings: {data['duct_openings']}")
    print(f"Pipe openings: {data['pipe_openings']}")
    if not args.plan_only:
        print(f"Created instances: {len(data['created_ids'])}")
    for opening in data["openings"]:
        x, y, z = opening["position"]
        print(
            f"  - {opening['source_kind']} {opening['source_element_id']} -> wall "
            f"{opening['wall_id']} at ({x:.3f}, {y:.3f}, {z:.3f}), "
            f"{opening['width']:.3f} x {opening['height']:.3f}"
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
