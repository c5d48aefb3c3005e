"""
Tests for persistence — saved plan files.
"""

import json
from pathlib import Path

import pytest

from lockplan.core.engine.planner import plan_target
from lockplan.core.persistence.plan_file import (
    PlanFileError,
    default_plan_path,
    load_plan,
    save_plan,
)


class TestPlanFile:
    """Tests for plan file persistence."""

    def test_save_and_load(self, tmp_path: Path, load_fixture):
        """Plans roundtrip through save/load."""
        plan = plan_target(load_fixture("external-deps"))
        path = tmp_path / ".lockplan" / "project.json"

        save_plan(plan, path)
        assert path.is_file()

        loaded = load_plan(path)
        assert loaded == plan

    def test_overlay_tree_roundtrip(self, tmp_path: Path, load_fixture):
        plan = plan_target(load_fixture("local-dep-with-ext"))
        path = tmp_path / "plan.json"
        save_plan(plan, path)
        assert load_plan(path).tree == plan.tree

    def test_saved_json_shape(self, tmp_path: Path, load_fixture):
        plan = plan_target(load_fixture("external-deps"))
        path = tmp_path / "plan.json"
        save_plan(plan, path)
        data = json.loads(path.read_text())
        assert data["tree"]["kind"] == "merge"
        assert data["bins"] == {"b-cli": "b/bin/cli.js"}
        assert data["steps"][0] == {
            "op": "mkdir",
            "path": "node_modules",
            "artifact": None,
            "target": None,
            "pre_build": False,
            "replace": False,
        }

    def test_no_temp_files_left(self, tmp_path: Path, load_fixture):
        save_plan(plan_target(load_fixture("external-deps")), tmp_path / "plan.json")
        assert [p.name for p in tmp_path.iterdir()] == ["plan.json"]

    def test_load_missing(self, tmp_path: Path):
        with pytest.raises(PlanFileError):
            load_plan(tmp_path / "nonexistent.json")

    def test_load_corrupt(self, tmp_path: Path):
        path = tmp_path / "corrupt.json"
        path.write_text("not json at all {{{")
        with pytest.raises(PlanFileError):
            load_plan(path)

    def test_load_wrong_shape(self, tmp_path: Path):
        path = tmp_path / "wrong.json"
        path.write_text(json.dumps({"steps": "nope"}))
        with pytest.raises(PlanFileError, match="Corrupt"):
            load_plan(path)


class TestDefaultPlanPath:
    def test_project(self, tmp_path: Path):
        assert default_plan_path(tmp_path) == tmp_path / ".lockplan" / "project.json"

    def test_workspace(self, tmp_path: Path):
        path = default_plan_path(tmp_path, "packages/app", ".plans")
        assert path == tmp_path / ".plans" / "packages__app.json"
