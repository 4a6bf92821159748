"""Tests for project loading."""

import json
import logging
from pathlib import Path

import numpy as np
import pytest

from wall_openings.core.models import ElementKind, Project

SAMPLE_PROJECT = Path(__file__).parent.parent / "config" / "sample_project.json"


def _base_project_dict() -> dict:
    return {
        "settings": {"source_model_title": "MEP"},
        "documents": [
            {
                "title": "AR",
                "active": True,
                "levels": [{"id": "L1", "name": "Level 1", "elevation": 0.0}],
                "walls": [
                    {
                        "id": "W1",
                        "level_id": "L1",
                        "start": [0, 0, 0],
                        "end": [10, 0, 0],
                        "thickness": 0.3,
                        "height": 3.0,
                    }
                ],
                "views": [{"name": "{3D}", "type": "3d", "is_template": False}],
                "families": [
                    {"family_name": "Openings", "symbol_name": "Rect", "parameters": ["Width", "Height"]}
                ],
            },
            {
                "title": "Building_MEP",
                "ducts": [
                    {"id": "D1", "curve": {"type": "line", "start": [2, -3, 1], "end": [2, 3, 1]}, "diameter": 0.3}
                ],
                "pipes": [],
            },
        ],
    }


class TestProjectFromDict:
    """Tests for Project.from_dict."""

    def test_target_and_source(self):
        project = Project.from_dict(_base_project_dict())

        assert project.target.title == "AR"
        assert project.source.title == "Building_MEP"
        assert len(project.target.walls) == 1
        assert len(project.source.ducts) == 1
        assert project.units == "meters"

    def test_wall_fields(self):
        wall = Project.from_dict(_base_project_dict()).target.walls[0]

        assert wall.identity == "W1"
        assert wall.reference_elevation_id == "L1"
        assert wall.host_context_id is None
        assert wall.thickness == pytest.approx(0.3)
        np.testing.assert_array_almost_equal(wall.end, [10, 0, 0])

    def test_duct_segment(self):
        duct = Project.from_dict(_base_project_dict()).source.ducts[0]

        assert duct.kind is ElementKind.DUCT
        assert duct.length == pytest.approx(6.0)
        assert duct.cross_section_size == pytest.approx(0.3)
        np.testing.assert_array_almost_equal(duct.direction, [0, 1, 0])

    def test_source_matched_by_title_substring(self):
        data = _base_project_dict()
        data["settings"]["source_model_title"] = "HVAC"

        assert Project.from_dict(data).source is None

    def test_active_document_is_target(self):
        data = _base_project_dict()
        data["documents"].reverse()

        project = Project.from_dict(data)

        assert project.target.title == "AR"
        assert project.source.title == "Building_MEP"

    def test_non_line_curve_is_skipped(self):
        data = _base_project_dict()
        data["documents"][1]["pipes"] = [
            {"id": "P9", "curve": {"type": "arc", "start": [0, 0, 0], "end": [1, 1, 0]}, "diameter": 0.05}
        ]

        source = Project.from_dict(data).source

        assert source.pipes == []
        assert [s.element_id for s in source.skipped] == ["P9"]
        assert source.skipped[0].kind is ElementKind.PIPE

    def test_zero_length_is_skipped(self):
        data = _base_project_dict()
        data["documents"][1]["ducts"].append(
            {"id": "D2", "curve": {"type": "line", "start": [1, 1, 1], "end": [1, 1, 1]}, "diameter": 0.3}
        )

        source = Project.from_dict(data).source

        assert [s.element_id for s in source.ducts] == ["D1"]
        assert source.skipped[0].reason == "zero-length centerline"

    def test_missing_diameter_raises(self):
        data = _base_project_dict()
        del data["documents"][1]["ducts"][0]["diameter"]

        with pytest.raises(ValueError, match="D1"):
            Project.from_dict(data)

    def test_missing_level_raises(self):
        data = _base_project_dict()
        del data["documents"][0]["walls"][0]["level_id"]

        with pytest.raises(ValueError, match="W1"):
            Project.from_dict(data)

    def test_no_documents_raises(self):
        with pytest.raises(ValueError):
            Project.from_dict({"documents": []})

    def test_settings_defaults(self):
        settings = Project.from_dict(_base_project_dict()).settings

        assert settings.opening_family == "Openings"
        assert settings.width_parameter == "Width"
        assert settings.planner.scale_factor(ElementKind.DUCT) == pytest.approx(1.0)
        assert settings.planner.scale_factor(ElementKind.PIPE) == pytest.approx(1.1)
        assert settings.planner.max_workers == 1

    def test_settings_overrides(self):
        data = _base_project_dict()
        data["settings"].update(
            {
                "width_parameter": "Ширина",
                "height_parameter": "Высота",
                "scale_factors": {"Pipe": 1.2},
                "max_workers": 4,
            }
        )

        settings = Project.from_dict(data).settings

        assert settings.width_parameter == "Ширина"
        assert settings.height_parameter == "Высота"
        assert settings.planner.scale_factor(ElementKind.PIPE) == pytest.approx(1.2)
        assert settings.planner.scale_factor(ElementKind.DUCT) == pytest.approx(1.0)
        assert settings.planner.max_workers == 4


class TestTargetModelLookups:
    """Tests for view, family and level lookups."""

    def test_template_views_ignored(self):
        data = _base_project_dict()
        data["documents"][0]["views"] = [{"name": "T", "type": "3d", "is_template": True}]

        assert Project.from_dict(data).target.find_3d_view() is None

    def test_plan_views_ignored(self):
        data = _base_project_dict()
        data["documents"][0]["views"] = [{"name": "Level 1", "type": "plan"}]

        assert Project.from_dict(data).target.find_3d_view() is None

    def test_find_family(self):
        target = Project.from_dict(_base_project_dict()).target

        assert target.find_family("Openings").symbol_name == "Rect"
        assert target.find_family("Missing") is None

    def test_elevation_of(self):
        project = Project.from_dict(_base_project_dict())
        wall = project.target.walls[0]

        assert project.elevation_of(wall) == "L1"

        wall.reference_elevation_id = "L-unknown"
        assert project.elevation_of(wall) == "L-unknown"

    def test_unknown_level_is_logged(self, caplog):
        project = Project.from_dict(_base_project_dict())
        wall = project.target.walls[0]
        wall.reference_elevation_id = "NOPE"

        with caplog.at_level(logging.WARNING, logger="wall_openings.core.models"):
            assert project.elevation_of(wall) == "NOPE"

        assert "unknown level NOPE" in caplog.text

    def test_family_parameters_default_to_configured_names(self):
        data = _base_project_dict()
        data["settings"].update({"width_parameter": "B", "height_parameter": "H"})
        del data["documents"][0]["families"][0]["parameters"]

        symbol = Project.from_dict(data).target.find_family("Openings")

        assert symbol.parameters == ("B", "H")


class TestProjectFiles:
    """Tests for loading and saving project files."""

    def test_sample_project_loads(self):
        project = Project.from_json_file(SAMPLE_PROJECT)

        assert project.target.title == "Project1_AR"
        assert project.source.title == "Project1_MEP"
        assert [d.element_id for d in project.source.ducts] == ["D1", "D2"]
        assert [p.element_id for p in project.source.pipes] == ["P1", "P3"]
        assert [s.element_id for s in project.source.skipped] == ["P2"]
        linked = [w for w in project.target.walls if w.host_context_id is not None]
        assert [w.key for w in linked] == [("W10", "LINK-1")]

    def test_to_dict_reloads(self, tmp_path):
        project = Project.from_json_file(SAMPLE_PROJECT)
        path = tmp_path / "project.json"
        path.write_text(json.dumps(project.to_dict()), encoding="utf-8")

        reloaded = Project.from_json_file(path)

        assert [w.key for w in reloaded.target.walls] == [w.key for w in project.target.walls]
        assert [d.length for d in reloaded.source.ducts] == pytest.approx(
            [d.length for d in project.source.ducts]
        )
        assert reloaded.settings.planner.scale_factor(ElementKind.PIPE) == pytest.approx(1.1)
