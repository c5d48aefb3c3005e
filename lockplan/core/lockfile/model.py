"""
Lockfile model — raw ``package-lock.json`` data into typed records.

Only the ``packages`` map (lockfile version 2 and 3) is understood. Each
entry is keyed by its hierarchy path; the empty key is the root manifest.

Parsing yields two views of the same entries:

    entries   every non-root entry, used for name resolution
    records   the installable subset (no bundled, no dev unless requested,
              nothing without a source locator)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from lockplan.core.errors import MalformedLockfile
from lockplan.core.models.package import (
    DependencyEdge,
    PackageRecord,
    package_name_from_path,
)

logger = logging.getLogger(__name__)


class ParsedLockfile(BaseModel):
    """A lockfile parsed once and immutable afterwards."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    version: str = ""
    lockfile_version: int | None = None
    content_hash: str = ""
    install_dev: bool = True
    root: PackageRecord = Field(default_factory=lambda: PackageRecord(path=""))
    entries: dict[str, PackageRecord] = Field(default_factory=dict)
    records: list[PackageRecord] = Field(default_factory=list)
    edges_by_path: dict[str, list[DependencyEdge]] = Field(default_factory=dict)

    def get(self, path: str) -> PackageRecord | None:
        """Look up any entry, the root included."""
        if path == "":
            return self.root
        return self.entries.get(path)

    def edges_for(self, path: str) -> list[DependencyEdge]:
        return self.edges_by_path.get(path, [])

    @property
    def edges(self) -> list[DependencyEdge]:
        return [e for edges in self.edges_by_path.values() for e in edges]

    @property
    def workspaces(self) -> list[str]:
        """Workspace member globs declared on the root entry."""
        return self.root.workspaces

    @property
    def local_packages(self) -> list[PackageRecord]:
        return [r for r in self.entries.values() if r.is_local]


def parse_lockfile(
    lock: Mapping[str, Any],
    install_dev: bool = True,
    peers_required: bool = False,
    content_hash: str = "",
) -> ParsedLockfile:
    """Parse decoded lockfile data.

    Args:
        lock: The decoded JSON document.
        install_dev: Keep dev-only entries and follow devDependencies.
        peers_required: Treat peerDependencies as required edges.
        content_hash: Hash of the raw lock text, carried for fingerprints.

    Returns:
        ParsedLockfile with records and dependency edges.

    Raises:
        MalformedLockfile: On structural problems, or when an installable
            entry has no source locator.
    """
    if not isinstance(lock, Mapping):
        raise MalformedLockfile(f"Expected a JSON object, got {type(lock).__name__}")

    packages = lock.get("packages")
    if packages is None:
        raise MalformedLockfile(
            f"No 'packages' map (lockfileVersion {lock.get('lockfileVersion')!r}); "
            "only lockfile version 2 and later are supported"
        )
    if not isinstance(packages, Mapping):
        raise MalformedLockfile("'packages' must be an object")

    root: PackageRecord | None = None
    entries: dict[str, PackageRecord] = {}

    for path, raw in packages.items():
        if not isinstance(raw, Mapping):
            raise MalformedLockfile("Package entry is not an object", path)
        record = _to_record(str(path), raw)
        if record.is_root:
            root = record
        else:
            entries[record.path] = record

    if root is None:
        root = PackageRecord(
            path="",
            name=str(lock.get("name") or ""),
            version=str(lock.get("version") or ""),
        )

    records: list[PackageRecord] = []
    for record in entries.values():
        if record.bundled:
            continue
        if record.dev and not install_dev:
            continue
        if record.link and not record.resolved:
            raise MalformedLockfile("Link entry has no target", record.path)
        if not record.resolved and not record.is_local:
            raise MalformedLockfile("Entry has no resolved source locator", record.path)
        records.append(record)

    edges_by_path = {"": dependency_edges(root, install_dev, peers_required)}
    for path, record in entries.items():
        edges_by_path[path] = dependency_edges(record, install_dev, peers_required)

    skipped = len(entries) - len(records)
    logger.debug(
        "Parsed lockfile '%s': %d entries, %d installable, %d filtered",
        root.name, len(entries), len(records), skipped,
    )

    lockfile_version = lock.get("lockfileVersion")
    return ParsedLockfile(
        name=root.name or str(lock.get("name") or ""),
        version=root.version or str(lock.get("version") or ""),
        lockfile_version=lockfile_version if isinstance(lockfile_version, int) else None,
        content_hash=content_hash,
        install_dev=install_dev,
        root=root,
        entries=entries,
        records=records,
        edges_by_path=edges_by_path,
    )


def dependency_edges(
    record: PackageRecord,
    install_dev: bool = True,
    peers_required: bool = False,
) -> list[DependencyEdge]:
    """Flat, ordered list of named requirements for one record.

    Required names come first (dependencies, then devDependencies when
    requested), followed by peers and optionals. Each group is sorted.
    Each name is kept once. Only optionalDependencies demote a required
    name; a name that is both required and a peer stays required.
    """
    optional_names = set(record.optional_dependencies)
    peer_optional = not peers_required

    groups: list[tuple[str, list[str]]] = [("prod", record.dependencies)]
    if install_dev:
        groups.append(("dev", record.dev_dependencies))
    groups.append(("peer", record.peer_dependencies))
    groups.append(("optional", record.optional_dependencies))

    edges: list[DependencyEdge] = []
    seen: set[str] = set()
    for kind, names in groups:
        for name in sorted(names):
            if name in seen:
                continue
            optional = name in optional_names or (kind == "peer" and peer_optional)
            if kind in ("prod", "dev") and optional:
                # Declared again further down as optional; emit it there.
                continue
            seen.add(name)
            edges.append(
                DependencyEdge(
                    from_path=record.path,
                    name=name,
                    kind=kind,  # type: ignore[arg-type]
                    optional=optional,
                )
            )
    return edges


# ── Helpers ─────────────────────────────────────────────────────


def _to_record(path: str, raw: Mapping[str, Any]) -> PackageRecord:
    name = raw.get("name") or package_name_from_path(path)
    if not isinstance(name, str):
        raise MalformedLockfile("'name' must be a string", path)

    return PackageRecord(
        path=path,
        name=name,
        version=str(raw.get("version") or ""),
        resolved=_optional_str(raw, "resolved", path),
        integrity=_optional_str(raw, "integrity", path),
        link=bool(raw.get("link", False)),
        dev=bool(raw.get("dev", False)),
        optional=bool(raw.get("optional", False)),
        bundled=bool(raw.get("inBundle", False)),
        bins=_normalise_bins(raw.get("bin"), name, path),
        dependencies=_names(raw, "dependencies", path),
        dev_dependencies=_names(raw, "devDependencies", path),
        peer_dependencies=_names(raw, "peerDependencies", path),
        optional_dependencies=_names(raw, "optionalDependencies", path),
        workspaces=_workspace_globs(raw.get("workspaces"), path),
    )


def _optional_str(raw: Mapping[str, Any], key: str, path: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedLockfile(f"'{key}' must be a string", path)
    return value or None


def _names(raw: Mapping[str, Any], key: str, path: str) -> list[str]:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, Mapping):
        raise MalformedLockfile(f"'{key}' must be an object", path)
    return [str(k) for k in value]


def _normalise_bins(value: Any, name: str, path: str) -> dict[str, str]:
    """``"bin": "cli.js"`` means one executable named after the package."""
    if value is None:
        return {}
    if isinstance(value, str):
        return {name: _strip_dot(value)}
    if isinstance(value, Mapping):
        return {str(k): _strip_dot(str(v)) for k, v in value.items()}
    raise MalformedLockfile("'bin' must be a string or an object", path)


def _strip_dot(rel: str) -> str:
    while rel.startswith("./"):
        rel = rel[2:]
    return rel


def _workspace_globs(value: Any, path: str) -> list[str]:
    if value is None:
        return []
    # Yarn-style {"packages": [...]} is accepted as well
    if isinstance(value, Mapping):
        value = value.get("packages", [])
    if not isinstance(value, list):
        raise MalformedLockfile("'workspaces' must be a list", path)
    return [str(v) for v in value]
