"""
Package model — typed lockfile entries and dependency edges.

A lockfile's ``packages`` map is keyed by hierarchy path, e.g.
``node_modules/foo/node_modules/@scope/bar``. That path is both the
record's identity and the basis for resolving names from it.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Directory name of the nested module convention
MODULE_DIR = "node_modules"

EdgeKind = Literal["prod", "dev", "peer", "optional"]


def split_path(path: str) -> tuple[str, ...]:
    """Split a hierarchy path into segments. The root path is empty."""
    if not path:
        return ()
    return tuple(path.split("/"))


def join_path(segments: tuple[str, ...] | list[str]) -> str:
    """Join hierarchy segments back into a lockfile key."""
    return "/".join(segments)


def package_name_from_path(path: str) -> str:
    """Infer the package name from the segments after the last module dir.

    ``node_modules/a/node_modules/@s/b`` → ``@s/b``. Paths outside any
    module dir (workspaces) fall back to their last segment.
    """
    segments = split_path(path)
    if MODULE_DIR in segments:
        last = len(segments) - 1 - segments[::-1].index(MODULE_DIR)
        return join_path(segments[last + 1:])
    return segments[-1] if segments else ""


class PackageRecord(BaseModel):
    """One entry of the lockfile ``packages`` map.

    Records are parsed once per lockfile and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    name: str = ""
    version: str = ""
    resolved: str | None = None      # URL, or a relative dir for links
    integrity: str | None = None
    link: bool = False
    dev: bool = False
    optional: bool = False
    bundled: bool = False            # "inBundle": shipped inside its parent
    bins: dict[str, str] = Field(default_factory=dict)

    dependencies: list[str] = Field(default_factory=list)
    dev_dependencies: list[str] = Field(default_factory=list)
    peer_dependencies: list[str] = Field(default_factory=list)
    optional_dependencies: list[str] = Field(default_factory=list)

    # Only meaningful on the root entry
    workspaces: list[str] = Field(default_factory=list)

    @property
    def hierarchy(self) -> tuple[str, ...]:
        return split_path(self.path)

    @property
    def is_root(self) -> bool:
        return self.path == ""

    @property
    def is_local(self) -> bool:
        """A package directory living in the source tree, not in node_modules.

        Workspaces and ``file:`` dependencies both show up this way.
        """
        return not self.is_root and MODULE_DIR not in self.hierarchy

    @property
    def is_remote(self) -> bool:
        """Fetched from a registry or URL by its resolved locator."""
        return bool(self.resolved) and not self.link and not self.is_local


class DependencyEdge(BaseModel):
    """A named requirement, not yet bound to a concrete record."""

    model_config = ConfigDict(frozen=True)

    from_path: str
    name: str
    kind: EdgeKind = "prod"
    optional: bool = False


class ResolvedDependency(BaseModel):
    """A dependency edge bound to the hierarchy path it resolves to.

    ``optional`` is the effective status: the edge itself is optional, or
    it was reached through an optional parent.
    """

    model_config = ConfigDict(frozen=True)

    edge: DependencyEdge
    path: str
    optional: bool = False


class Closure(BaseModel):
    """The set of paths reachable from one or more roots.

    ``paths`` keeps visit order and maps each path to the optionality it
    had when first visited.
    """

    model_config = ConfigDict(frozen=True)

    roots: list[str] = Field(default_factory=list)
    paths: dict[str, bool] = Field(default_factory=dict)
    dropped: list[DependencyEdge] = Field(default_factory=list)

    def __contains__(self, path: object) -> bool:
        return path in self.paths

    def __len__(self) -> int:
        return len(self.paths)

    @property
    def required_paths(self) -> list[str]:
        return [p for p, optional in self.paths.items() if not optional]

    @property
    def optional_paths(self) -> list[str]:
        return [p for p, optional in self.paths.items() if optional]
