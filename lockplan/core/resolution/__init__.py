"""Dependency resolution over the lockfile hierarchy."""

from lockplan.core.resolution.closure import ClosureBuilder
from lockplan.core.resolution.hierarchy import HierarchyResolver
from lockplan.core.resolution.workspaces import WorkspaceGraph

__all__ = ["ClosureBuilder", "HierarchyResolver", "WorkspaceGraph"]
