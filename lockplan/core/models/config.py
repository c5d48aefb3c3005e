"""
Config model — settings loaded from lockplan.yml.

Everything has a default, so a project without a config file plans with
the lockfile next to it, dev dependencies included, artifacts linked.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from lockplan.core.models.artifact import LinkMode

# Safety ceilings against pathological or cyclic lockfiles
DEFAULT_MAX_DEPTH = 256
DEFAULT_MAX_NODES = 100_000


class OverrideSpec(BaseModel):
    """Declarative override for one hierarchy path.

    Either replace the package outright (``replace`` is the new source
    locator) or wrap the original with extra pre-build ``patch`` steps.
    ``link_mode`` can be combined with both.
    """

    replace: str | None = None
    version: str = ""
    integrity: str | None = None
    bins: dict[str, str] = Field(default_factory=dict)
    patch: list[str] = Field(default_factory=list)
    link_mode: LinkMode | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> OverrideSpec:
        if self.replace is not None and self.patch:
            raise ValueError("'replace' and 'patch' are mutually exclusive")
        if self.replace is None and not self.patch and self.link_mode is None:
            raise ValueError("override needs one of 'replace', 'patch' or 'link_mode'")
        return self


class LockplanConfig(BaseModel):
    """Root configuration — loaded from lockplan.yml."""

    version: int = 1

    name: str = ""
    lockfile: str = "package-lock.json"
    install_dev: bool = True
    peer_dependencies: Literal["optional", "required"] = "optional"
    link_mode: LinkMode = "link"
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=1)
    max_nodes: int = Field(default=DEFAULT_MAX_NODES, ge=1)

    workspaces: list[str] = Field(default_factory=list)   # empty = all
    overrides: dict[str, OverrideSpec] = Field(default_factory=dict)
    output_dir: str = ".lockplan"

    @property
    def peers_required(self) -> bool:
        return self.peer_dependencies == "required"

    def allows_workspace(self, ref: str) -> bool:
        """Whether ``ref`` may be planned. An empty list allows everything."""
        return not self.workspaces or ref in self.workspaces
