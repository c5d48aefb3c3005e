"""
Tests for lockfile parsing — records, filtering, dependency edges.
"""

import json
from pathlib import Path

import pytest

from lockplan.core.errors import MalformedLockfile
from lockplan.core.lockfile.loader import find_lockfile, load_lockfile, read_lockfile
from lockplan.core.lockfile.model import dependency_edges, parse_lockfile
from lockplan.core.models.package import PackageRecord


class TestParseLockfile:
    """Tests for parse_lockfile."""

    def test_fixture_records(self, load_fixture):
        parsed = load_fixture("external-deps")
        assert parsed.name == "ext-app"
        assert parsed.lockfile_version == 3
        assert [r.path for r in parsed.records] == [
            "node_modules/a",
            "node_modules/a/node_modules/c",
            "node_modules/b",
            "node_modules/c",
            "node_modules/d",
            "node_modules/unused",
        ]

    def test_name_inferred_from_path(self, load_fixture):
        parsed = load_fixture("external-deps")
        assert parsed.entries["node_modules/a/node_modules/c"].name == "c"
        assert parsed.entries["node_modules/c"].version == "1.0.0"

    def test_scoped_name_inferred(self, make_lock, remote):
        parsed = parse_lockfile(make_lock({"node_modules/@s/x": remote("@s/x")}))
        assert parsed.entries["node_modules/@s/x"].name == "@s/x"

    def test_root_is_not_a_record(self, load_fixture):
        parsed = load_fixture("external-deps")
        assert "" not in parsed.entries
        assert parsed.get("").name == "ext-app"
        assert parsed.root.dependencies == ["a", "b"]

    def test_dev_entries_filtered_without_dev(self, load_fixture):
        parsed = load_fixture("external-deps", install_dev=False)
        paths = [r.path for r in parsed.records]
        assert "node_modules/d" not in paths
        # Still visible for resolution
        assert "node_modules/d" in parsed.entries

    def test_bundled_entries_filtered(self, make_lock, remote):
        lock = make_lock({
            "node_modules/a": remote("a", bundleDependencies=["inner"]),
            "node_modules/a/node_modules/inner": {"version": "1.0.0", "inBundle": True},
        })
        parsed = parse_lockfile(lock)
        assert [r.path for r in parsed.records] == ["node_modules/a"]
        assert parsed.entries["node_modules/a/node_modules/inner"].bundled is True

    def test_local_package_needs_no_locator(self, load_fixture):
        parsed = load_fixture("local-dep-with-ext")
        local = parsed.entries["L"]
        assert local.is_local
        assert local.resolved is None
        assert local in parsed.records

    def test_link_entry(self, load_fixture):
        parsed = load_fixture("local-dep-with-ext")
        link = parsed.entries["node_modules/L"]
        assert link.link is True
        assert link.resolved == "L"
        assert not link.is_remote

    def test_workspace_globs(self, load_fixture):
        parsed = load_fixture("workspaces")
        assert parsed.workspaces == ["packages/*"]
        assert [r.path for r in parsed.local_packages] == [
            "packages/app", "packages/lib", "packages/util", "packages/docs",
        ]

    def test_yarn_style_workspaces(self, make_lock):
        parsed = parse_lockfile(make_lock(root={"workspaces": {"packages": ["libs/*"]}}))
        assert parsed.workspaces == ["libs/*"]

    def test_string_bin_named_after_package(self, make_lock, remote):
        parsed = parse_lockfile(make_lock({"node_modules/tool": remote("tool", bin="./cli.js")}))
        assert parsed.entries["node_modules/tool"].bins == {"tool": "cli.js"}

    def test_content_hash_carried(self, make_lock):
        parsed = parse_lockfile(make_lock(), content_hash="abc")
        assert parsed.content_hash == "abc"


class TestMalformedLockfile:
    """Structural errors are fatal."""

    def test_not_a_mapping(self):
        with pytest.raises(MalformedLockfile):
            parse_lockfile(["not", "a", "lock"])

    def test_v1_lockfile_rejected(self):
        with pytest.raises(MalformedLockfile, match="lockfile version 2"):
            parse_lockfile({"lockfileVersion": 1, "dependencies": {}})

    def test_packages_not_a_mapping(self):
        with pytest.raises(MalformedLockfile):
            parse_lockfile({"lockfileVersion": 3, "packages": []})

    def test_entry_not_a_mapping(self, make_lock):
        with pytest.raises(MalformedLockfile, match="node_modules/a"):
            parse_lockfile(make_lock({"node_modules/a": "1.0.0"}))

    def test_missing_locator(self, make_lock):
        with pytest.raises(MalformedLockfile, match="no resolved source locator"):
            parse_lockfile(make_lock({"node_modules/a": {"version": "1.0.0"}}))

    def test_missing_locator_ignored_for_filtered_dev(self, make_lock):
        lock = make_lock({"node_modules/a": {"version": "1.0.0", "dev": True}})
        parsed = parse_lockfile(lock, install_dev=False)
        assert parsed.records == []

    def test_link_without_target(self, make_lock):
        with pytest.raises(MalformedLockfile, match="Link entry"):
            parse_lockfile(make_lock({"node_modules/a": {"link": True}}))

    def test_bad_dependency_list(self, make_lock, remote):
        with pytest.raises(MalformedLockfile, match="'dependencies' must be an object"):
            parse_lockfile(make_lock({"node_modules/a": remote("a", dependencies=["b"])}))


class TestDependencyEdges:
    """Tests for dependency_edges ordering and optionality."""

    def _record(self, **fields) -> PackageRecord:
        return PackageRecord(path="node_modules/x", name="x", **fields)

    def test_group_order_and_sorting(self):
        record = self._record(
            dependencies=["zeta", "alpha"],
            dev_dependencies=["mocha"],
            peer_dependencies=["react"],
            optional_dependencies=["fsevents"],
        )
        edges = dependency_edges(record)
        assert [(e.name, e.kind) for e in edges] == [
            ("alpha", "prod"),
            ("zeta", "prod"),
            ("mocha", "dev"),
            ("react", "peer"),
            ("fsevents", "optional"),
        ]

    def test_dev_skipped_without_dev(self):
        record = self._record(dependencies=["a"], dev_dependencies=["b"])
        assert [e.name for e in dependency_edges(record, install_dev=False)] == ["a"]

    def test_peers_optional_by_default(self):
        record = self._record(peer_dependencies=["react"])
        (edge,) = dependency_edges(record)
        assert edge.optional is True

    def test_peers_required_when_asked(self):
        record = self._record(peer_dependencies=["react"])
        (edge,) = dependency_edges(record, peers_required=True)
        assert edge.optional is False

    def test_required_and_optional_kept_once_as_optional(self):
        record = self._record(dependencies=["dup"], optional_dependencies=["dup"])
        edges = dependency_edges(record)
        assert len(edges) == 1
        assert edges[0].optional is True
        assert edges[0].kind == "optional"

    def test_required_and_peer_stays_required(self):
        record = self._record(dev_dependencies=["react"], peer_dependencies=["react"])
        (edge,) = dependency_edges(record)
        assert edge.kind == "dev"
        assert edge.optional is False

    def test_peer_and_optional_is_optional(self):
        record = self._record(peer_dependencies=["x"], optional_dependencies=["x"])
        (edge,) = dependency_edges(record, peers_required=True)
        assert edge.optional is True

    def test_edges_indexed_by_path(self, load_fixture):
        parsed = load_fixture("external-deps")
        assert [e.name for e in parsed.edges_for("")] == ["a", "b", "d", "fsevents"]
        assert [e.name for e in parsed.edges_for("node_modules/b")] == ["c"]
        assert parsed.edges_for("node_modules/nope") == []


class TestLockfileLoader:
    """Tests for reading lockfiles from disk."""

    def test_load(self, tmp_path: Path, fixtures_dir: Path):
        path = tmp_path / "package-lock.json"
        path.write_text((fixtures_dir / "external-deps.json").read_text())
        parsed = load_lockfile(path)
        assert parsed.name == "ext-app"
        assert len(parsed.content_hash) == 64

    def test_hash_follows_content(self, tmp_path: Path, make_lock):
        path = tmp_path / "package-lock.json"
        path.write_text(json.dumps(make_lock(name="one")))
        _, first = read_lockfile(path)
        path.write_text(json.dumps(make_lock(name="two")))
        _, second = read_lockfile(path)
        assert first != second

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(MalformedLockfile, match="not found"):
            load_lockfile(tmp_path / "package-lock.json")

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "package-lock.json"
        path.write_text("{ nope")
        with pytest.raises(MalformedLockfile, match="Invalid JSON"):
            read_lockfile(path)

    def test_find_lockfile(self, tmp_path: Path):
        assert find_lockfile(tmp_path) is None
        (tmp_path / "package-lock.json").write_text("{}")
        assert find_lockfile(tmp_path) == (tmp_path / "package-lock.json").resolve()
