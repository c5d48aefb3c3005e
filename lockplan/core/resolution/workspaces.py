"""
Workspace graph — dependency order between local packages.

Workspaces are the lockfile entries that do not live in a node_modules
folder. They are keyed by directory in the lockfile but referenced by
package name in dependency lists, so the graph keeps a ``name -> dir``
map and only follows edges whose name is a workspace.
"""

from __future__ import annotations

import fnmatch
import logging

from lockplan.core.errors import CyclicWorkspaceDependency, UnknownWorkspace
from lockplan.core.lockfile.model import ParsedLockfile

logger = logging.getLogger(__name__)


class WorkspaceGraph:
    """Directed graph restricted to edges between workspace members."""

    def __init__(self, parsed: ParsedLockfile) -> None:
        self._parsed = parsed
        self._globs = list(parsed.workspaces)
        self.all_workspaces: dict[str, str] = {
            r.name: r.path for r in parsed.local_packages if r.name
        }
        self._dirs = set(self.all_workspaces.values())
        self._order_cache: dict[str, list[str]] = {}

    @property
    def dirs(self) -> list[str]:
        """Workspace directories in lockfile order."""
        return list(self.all_workspaces.values())

    def is_declared(self, directory: str) -> bool:
        """Whether the root manifest's workspace globs cover this directory.

        Local ``file:`` dependencies show up as workspaces without being
        declared.
        """
        parts = directory.split("/")
        return any(_glob_match(parts, _glob_parts(g)) for g in self._globs)

    def target_dir(self, ref: str) -> str:
        """Accept a workspace directory or package name, return the directory."""
        if ref in self._dirs:
            return ref
        if ref in self.all_workspaces:
            return self.all_workspaces[ref]
        raise UnknownWorkspace(ref, sorted(self.all_workspaces))

    def direct_dependencies(self, directory: str) -> list[str]:
        """Workspace directories this package names in any dependency group."""
        deps = []
        for edge in self._parsed.edges_for(directory):
            if edge.name in self.all_workspaces:
                deps.append(self.all_workspaces[edge.name])
        return deps

    def dependency_order(self, directory: str) -> list[str]:
        """Topological order of this workspace's workspace dependencies.

        Each dependency is listed before its dependents and the workspace
        itself comes last. Duplicates are permitted; use ``included`` for a
        unique list. The root entry (``""``) is accepted but never listed.

        Raises:
            CyclicWorkspaceDependency: If the graph loops back on itself.
        """
        return list(self._order(directory, []))

    def included(self, directory: str) -> list[str]:
        """Minimal set of workspaces needed to build ``directory``."""
        seen: set[str] = set()
        unique = []
        for d in self.dependency_order(directory):
            if d not in seen:
                seen.add(d)
                unique.append(d)
        return unique

    def excluded(self, directory: str) -> list[str]:
        """Workspaces that ``directory`` does not need."""
        included = set(self.included(directory))
        return [d for d in self.dirs if d not in included]

    def topological_order(self) -> list[str]:
        """Every workspace, dependencies first, each listed once."""
        seen: set[str] = set()
        ordered = []
        for directory in self.dirs:
            for d in self._order(directory, []):
                if d not in seen:
                    seen.add(d)
                    ordered.append(d)
        return ordered

    def _order(self, directory: str, stack: list[str]) -> list[str]:
        if directory in self._order_cache:
            return self._order_cache[directory]
        if directory in stack:
            cycle = stack[stack.index(directory):] + [directory]
            raise CyclicWorkspaceDependency(cycle)

        stack.append(directory)
        order: list[str] = []
        for dep in self.direct_dependencies(directory):
            order.extend(self._order(dep, stack))
        stack.pop()

        if directory:
            order.append(directory)
        self._order_cache[directory] = order
        logger.debug("Workspace order for '%s': %s", directory or "<root>", order)
        return order


def _glob_parts(glob: str) -> list[str]:
    glob = glob.strip("/")
    while glob.startswith("./"):
        glob = glob[2:]
    return [p for p in glob.split("/") if p and p != "."]


def _glob_match(parts: list[str], pattern: list[str]) -> bool:
    """Segment-wise match; ``*`` stays inside one segment, ``**`` spans any."""
    if not pattern:
        return not parts
    head, rest = pattern[0], pattern[1:]
    if head == "**":
        return any(_glob_match(parts[i:], rest) for i in range(len(parts) + 1))
    if not parts or not fnmatch.fnmatchcase(parts[0], head):
        return False
    return _glob_match(parts[1:], rest)
