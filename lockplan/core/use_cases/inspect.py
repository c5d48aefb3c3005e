"""
Inspection use cases — name resolution, closures and workspace order.

Read-only queries over one lockfile, used to explain what a plan would
contain without building it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from lockplan.core.config.loader import ConfigError
from lockplan.core.errors import LockplanError
from lockplan.core.models.package import Closure
from lockplan.core.resolution.closure import ClosureBuilder
from lockplan.core.resolution.hierarchy import HierarchyResolver
from lockplan.core.resolution.workspaces import WorkspaceGraph
from lockplan.core.use_cases.project import open_project


@dataclass
class ResolveResult:
    """Where a dependency name lands when required from one path."""

    from_path: str = ""
    name: str = ""
    path: str | None = None
    candidates: list[str] = field(default_factory=list)
    workspace: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "from": self.from_path,
            "name": self.name,
            "path": self.path,
            "workspace": self.workspace,
            "candidates": self.candidates,
        }


@dataclass
class ClosureResult:
    """Closure of the project or of one workspace."""

    target: str = ""
    closure: Closure | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        assert self.closure is not None
        return {
            "target": self.target,
            "roots": self.closure.roots,
            "required": self.closure.required_paths,
            "optional": self.closure.optional_paths,
            "dropped": [e.model_dump(mode="json") for e in self.closure.dropped],
        }


@dataclass
class WorkspacesResult:
    """Workspace listing, or the order/inclusion of one workspace."""

    target: str = ""
    workspaces: dict[str, str] = field(default_factory=dict)   # name -> dir
    declared: list[str] = field(default_factory=list)
    order: list[str] = field(default_factory=list)
    included: list[str] = field(default_factory=list)
    excluded: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "target": self.target,
            "workspaces": self.workspaces,
            "declared": self.declared,
            "order": self.order,
            "included": self.included,
            "excluded": self.excluded,
        }


def resolve_name(
    from_path: str,
    name: str,
    config_path: Path | None = None,
) -> ResolveResult:
    """Resolve ``name`` as node would when required from ``from_path``."""
    result = ResolveResult(from_path=from_path, name=name)
    try:
        parsed = open_project(config_path).parsed
        if parsed.get(from_path) is None:
            result.error = f"No lockfile entry at '{from_path}'"
            return result
        resolver = HierarchyResolver.from_records(parsed.entries.values())
        result.path = resolver.find(from_path, name)
        result.workspace = name in resolver.workspaces
        result.candidates = resolver.candidates(from_path, name)
    except (LockplanError, ConfigError) as e:
        result.error = str(e)
    return result


def compute_closure(
    workspace: str | None = None,
    config_path: Path | None = None,
) -> ClosureResult:
    """Closure of one workspace, or of the project and its declared workspaces."""
    result = ClosureResult()
    try:
        ctx = open_project(config_path)
        graph = WorkspaceGraph(ctx.parsed)
        if workspace:
            result.target = graph.target_dir(workspace)
            roots = [result.target]
        else:
            roots = [""] + [d for d in graph.dirs if graph.is_declared(d)]
        builder = ClosureBuilder(ctx.parsed, max_nodes=ctx.config.max_nodes)
        result.closure = builder.build(roots)
    except (LockplanError, ConfigError) as e:
        result.error = str(e)
    return result


def list_workspaces(
    workspace: str | None = None,
    config_path: Path | None = None,
) -> WorkspacesResult:
    """All workspaces, plus order and inclusion for ``workspace`` if given."""
    result = WorkspacesResult()
    try:
        graph = WorkspaceGraph(open_project(config_path).parsed)
        result.workspaces = dict(graph.all_workspaces)
        result.declared = [d for d in graph.dirs if graph.is_declared(d)]
        if workspace:
            result.target = graph.target_dir(workspace)
            result.order = graph.dependency_order(result.target)
            result.included = graph.included(result.target)
            result.excluded = graph.excluded(result.target)
        else:
            result.order = graph.topological_order()
    except (LockplanError, ConfigError) as e:
        result.error = str(e)
    return result
