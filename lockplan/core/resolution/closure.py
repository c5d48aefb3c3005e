"""
Closure builder — every package a root transitively needs.

Traversal is a depth-first walk with an explicit worklist, visiting
children in dependency-list order. The visited set is keyed by hierarchy
path and the first visit wins: a path already seen is never re-traversed,
even if it is later reached through a "more required" chain. A node's
optional/required classification therefore reflects its first visit only.

Optionality propagates downwards: a dependency is optional when its edge
is optional or when any ancestor on the visiting chain was optional. A
missing optional dependency is dropped; a missing required one is fatal.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from lockplan.core.errors import (
    PlanningLimitExceeded,
    UnknownWorkspace,
    UnresolvedRequiredDependency,
)
from lockplan.core.lockfile.model import ParsedLockfile
from lockplan.core.models.config import DEFAULT_MAX_NODES
from lockplan.core.models.package import Closure, DependencyEdge, ResolvedDependency
from lockplan.core.resolution.hierarchy import HierarchyResolver

logger = logging.getLogger(__name__)


class ClosureBuilder:
    """Compute closures over one parsed lockfile."""

    def __init__(
        self,
        parsed: ParsedLockfile,
        resolver: HierarchyResolver | None = None,
        max_nodes: int = DEFAULT_MAX_NODES,
    ) -> None:
        self._parsed = parsed
        self._resolver = resolver or HierarchyResolver.from_records(parsed.entries.values())
        self._max_nodes = max_nodes

    @property
    def resolver(self) -> HierarchyResolver:
        return self._resolver

    def dependencies(
        self,
        path: str,
        optional: bool = False,
    ) -> tuple[list[ResolvedDependency], list[DependencyEdge]]:
        """Bind every dependency of one path, without recursing.

        Args:
            path: The requesting hierarchy path.
            optional: Whether the requester itself sits in an optional chain.

        Returns:
            (resolved dependencies, dropped optional edges)

        Raises:
            UnresolvedRequiredDependency: A required edge has no target.
        """
        record = self._parsed.get(path)
        if record is None or record.bundled:
            # Bundled packages carry their own dependencies inside the archive
            return [], []

        resolved: list[ResolvedDependency] = []
        dropped: list[DependencyEdge] = []

        if record.link and record.resolved:
            target = record.resolved
            if self._parsed.get(target) is not None:
                edge = DependencyEdge(from_path=path, name=record.name)
                resolved.append(ResolvedDependency(edge=edge, path=target, optional=optional))
            else:
                logger.debug("Link '%s' points outside the lockfile: %s", path, target)

        for edge in self._parsed.edges_for(path):
            effective = optional or edge.optional
            target = self._resolver.find(path, edge.name)
            if target is None:
                if not effective:
                    raise UnresolvedRequiredDependency(edge.name, path)
                logger.debug(
                    "Dropping missing optional dependency '%s' of '%s'",
                    edge.name, path or "<root>",
                )
                dropped.append(edge)
                continue
            resolved.append(ResolvedDependency(edge=edge, path=target, optional=effective))

        return resolved, dropped

    def build(self, roots: str | Iterable[str], optional: bool = False) -> Closure:
        """Collect all paths reachable from ``roots``, roots included.

        Args:
            roots: One root path or several. ``""`` is the project root.
            optional: Whether the roots themselves are optional.

        Raises:
            UnresolvedRequiredDependency: A required dependency is missing.
            PlanningLimitExceeded: More than ``max_nodes`` paths reached.
        """
        root_list = [roots] if isinstance(roots, str) else list(roots)
        for root in root_list:
            if self._parsed.get(root) is None:
                raise UnknownWorkspace(root, sorted(self._resolver.workspaces))

        visited: dict[str, bool] = {}
        dropped: list[DependencyEdge] = []
        worklist = [(root, optional) for root in reversed(root_list)]

        while worklist:
            path, is_optional = worklist.pop()
            if path in visited:
                continue
            if len(visited) >= self._max_nodes:
                raise PlanningLimitExceeded(
                    f"Closure exceeds {self._max_nodes} packages from {root_list}"
                )
            visited[path] = is_optional

            children, lost = self.dependencies(path, is_optional)
            dropped.extend(lost)
            for child in reversed(children):
                if child.path not in visited:
                    worklist.append((child.path, child.optional))

        logger.debug(
            "Closure of %s: %d paths (%d optional), %d dropped",
            root_list, len(visited), sum(visited.values()), len(dropped),
        )
        return Closure(roots=root_list, paths=visited, dropped=dropped)
