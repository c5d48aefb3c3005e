"""
Hierarchy resolver — simulate node's nested module lookup.

Lockfile dependency lists only carry names. Where a name is installed
depends on the requester's position: node looks in the requester's own
``node_modules``, then its parent's, up to the root. Given

    node_modules/@stoplight/spectral-core/node_modules/@stoplight/better-ajv-errors

requiring ``leven`` probes, innermost first:

    .../better-ajv-errors/node_modules/leven
    node_modules/@stoplight/spectral-core/node_modules/leven
    node_modules/leven

Workspaces form a flat global namespace and win over any nested match.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from lockplan.core.errors import Unresolved
from lockplan.core.models.package import MODULE_DIR, PackageRecord, join_path, split_path


class HierarchyResolver:
    """Bind dependency names to hierarchy paths.

    Pure function of the package set: the result does not depend on the
    order of lookups or on any state carried between them.
    """

    def __init__(
        self,
        paths: Iterable[str],
        workspaces: Mapping[str, str] | None = None,
    ) -> None:
        self._paths = frozenset(paths)
        self._workspaces = dict(workspaces or {})

    @classmethod
    def from_records(cls, records: Iterable[PackageRecord]) -> HierarchyResolver:
        """Index records; local package directories become workspace bindings."""
        records = list(records)
        workspaces = {r.name: r.path for r in records if r.is_local and r.name}
        return cls((r.path for r in records), workspaces)

    @property
    def workspaces(self) -> dict[str, str]:
        return dict(self._workspaces)

    def __contains__(self, path: object) -> bool:
        return path in self._paths

    def find(self, from_path: str, name: str) -> str | None:
        """Return the path ``name`` resolves to from ``from_path``, or None."""
        if name in self._workspaces:
            return self._workspaces[name]

        hierarchy = list(split_path(from_path))
        while True:
            candidate = join_path([*hierarchy, MODULE_DIR, name])
            if candidate in self._paths:
                return candidate
            if not hierarchy:
                return None
            hierarchy.pop()

    def resolve(self, from_path: str, name: str) -> str:
        """Like ``find`` but raises ``Unresolved`` on a miss."""
        path = self.find(from_path, name)
        if path is None:
            raise Unresolved(name, from_path)
        return path

    def candidates(self, from_path: str, name: str) -> list[str]:
        """Every probe location, innermost first. Useful for diagnostics."""
        hierarchy = list(split_path(from_path))
        probes = []
        while True:
            probes.append(join_path([*hierarchy, MODULE_DIR, name]))
            if not hierarchy:
                return probes
            hierarchy.pop()
