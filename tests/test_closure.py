"""
Tests for closure computation — reachability and required/optional status.
"""

import pytest

from lockplan.core.errors import (
    PlanningLimitExceeded,
    UnknownWorkspace,
    UnresolvedRequiredDependency,
)
from lockplan.core.lockfile.model import parse_lockfile
from lockplan.core.resolution.closure import ClosureBuilder


class TestClosureBuilder:
    """Tests for ClosureBuilder.build."""

    def test_project_closure(self, load_fixture):
        closure = ClosureBuilder(load_fixture("external-deps")).build("")
        assert list(closure.paths) == [
            "",
            "node_modules/a",
            "node_modules/a/node_modules/c",
            "node_modules/b",
            "node_modules/c",
            "node_modules/d",
        ]
        assert "node_modules/unused" not in closure

    def test_missing_optional_dropped(self, load_fixture):
        closure = ClosureBuilder(load_fixture("external-deps")).build("")
        assert [e.name for e in closure.dropped] == ["fsevents"]

    def test_dev_not_followed_without_dev(self, load_fixture):
        closure = ClosureBuilder(load_fixture("external-deps", install_dev=False)).build("")
        assert "node_modules/d" not in closure

    def test_missing_required_fails(self, make_lock, remote):
        lock = make_lock(
            {"node_modules/a": remote("a", dependencies={"ghost": "*"})},
            root={"dependencies": {"a": "*"}},
        )
        with pytest.raises(UnresolvedRequiredDependency) as exc_info:
            ClosureBuilder(parse_lockfile(lock)).build("")
        assert exc_info.value.name == "ghost"
        assert exc_info.value.from_path == "node_modules/a"

    def test_dev_and_peer_missing_fails(self, make_lock):
        lock = make_lock(root={"devDependencies": {"x": "*"}, "peerDependencies": {"x": "*"}})
        with pytest.raises(UnresolvedRequiredDependency) as exc_info:
            ClosureBuilder(parse_lockfile(lock)).build("")
        assert exc_info.value.name == "x"

    def test_optionality_propagates(self, make_lock, remote):
        lock = make_lock(
            {
                "node_modules/opt": remote("opt", dependencies={"child": "*"}),
                "node_modules/child": remote("child", dependencies={"ghost": "*"}),
            },
            root={"optionalDependencies": {"opt": "*"}},
        )
        closure = ClosureBuilder(parse_lockfile(lock)).build("")
        assert closure.paths["node_modules/opt"] is True
        assert closure.paths["node_modules/child"] is True
        # Required edge under an optional parent is dropped, not fatal
        assert [e.name for e in closure.dropped] == ["ghost"]

    def test_first_visit_wins(self, make_lock, remote):
        lock = make_lock(
            {
                "node_modules/a": remote("a", optionalDependencies={"shared": "*"}),
                "node_modules/b": remote("b", dependencies={"shared": "*"}),
                "node_modules/shared": remote("shared"),
            },
            root={"dependencies": {"a": "*", "b": "*"}},
        )
        closure = ClosureBuilder(parse_lockfile(lock)).build("")
        assert closure.paths["node_modules/shared"] is True
        assert "node_modules/shared" in closure.optional_paths

    def test_optional_drop_invariance(self, make_lock, remote):
        packages = {"node_modules/a": remote("a")}
        without = make_lock(packages, root={"dependencies": {"a": "*"}})
        with_missing = make_lock(
            packages,
            root={"dependencies": {"a": "*"}, "optionalDependencies": {"ghost": "*"}},
        )
        first = ClosureBuilder(parse_lockfile(without)).build("")
        second = ClosureBuilder(parse_lockfile(with_missing)).build("")
        assert list(first.paths) == list(second.paths)

    def test_cyclic_packages_terminate(self, make_lock, remote):
        lock = make_lock(
            {
                "node_modules/a": remote("a", dependencies={"b": "*"}),
                "node_modules/b": remote("b", dependencies={"a": "*"}),
            },
            root={"dependencies": {"a": "*"}},
        )
        closure = ClosureBuilder(parse_lockfile(lock)).build("")
        assert list(closure.paths) == ["", "node_modules/a", "node_modules/b"]

    def test_bundled_not_traversed(self, make_lock, remote):
        lock = make_lock(
            {
                "node_modules/a": remote("a", dependencies={"inner": "*"}),
                "node_modules/a/node_modules/inner": {
                    "version": "1.0.0",
                    "inBundle": True,
                    "dependencies": {"ghost": "*"},
                },
            },
            root={"dependencies": {"a": "*"}},
        )
        closure = ClosureBuilder(parse_lockfile(lock)).build("")
        assert "node_modules/a/node_modules/inner" in closure
        assert closure.dropped == []

    def test_link_followed_to_target(self, load_fixture):
        builder = ClosureBuilder(load_fixture("local-dep-with-ext"))
        closure = builder.build("node_modules/L")
        assert list(closure.paths) == ["node_modules/L", "L", "L/node_modules/E"]

    def test_node_limit(self, load_fixture):
        builder = ClosureBuilder(load_fixture("external-deps"), max_nodes=3)
        with pytest.raises(PlanningLimitExceeded):
            builder.build("")

    def test_unknown_root(self, load_fixture):
        with pytest.raises(UnknownWorkspace):
            ClosureBuilder(load_fixture("external-deps")).build("packages/nope")


class TestWorkspaceClosure:
    """A workspace closure excludes unreachable siblings."""

    def test_minimal(self, load_fixture):
        closure = ClosureBuilder(load_fixture("workspaces")).build("packages/lib")
        assert list(closure.paths) == ["packages/lib", "packages/util", "node_modules/tiny"]

    def test_app_closure(self, load_fixture):
        closure = ClosureBuilder(load_fixture("workspaces")).build("packages/app")
        assert set(closure.paths) == {
            "packages/app",
            "packages/lib",
            "packages/util",
            "node_modules/tiny",
            "node_modules/left-pad",
        }
        assert "packages/docs" not in closure
        assert "node_modules/typescript" not in closure

    def test_resolution_from_nested_local(self, load_fixture):
        builder = ClosureBuilder(load_fixture("local-dep-with-ext"))
        resolved, dropped = builder.dependencies("L")
        assert [d.path for d in resolved] == ["L/node_modules/E"]
        assert dropped == []
