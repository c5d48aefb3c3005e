"""
Artifact model — one unpacked package ready to be placed in a tree.

Artifacts are what the external build substrate produces from a record:
a fetched archive, a locally built package, or a user replacement. The
planner only carries their identity and the instructions attached to them.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ArtifactKind = Literal["fetch", "local", "replacement"]
LinkMode = Literal["link", "copy"]


class Artifact(BaseModel):
    """A placeable package, keyed by the hierarchy path it occupies."""

    model_config = ConfigDict(frozen=True)

    key: str                          # hierarchy path, e.g. node_modules/foo
    name: str
    version: str = ""
    kind: ArtifactKind = "fetch"
    source: str = ""                  # URL, or relative dir for local builds
    integrity: str | None = None
    bins: dict[str, str] = Field(default_factory=dict)
    patches: tuple[str, ...] = ()     # pre-build steps, in order
    link_mode: LinkMode | None = None # None = use the plan default

    @property
    def hierarchy(self) -> tuple[str, ...]:
        return tuple(self.key.split("/")) if self.key else ()

    @property
    def leaf(self) -> str:
        """Directory name the artifact occupies in its parent."""
        return self.hierarchy[-1] if self.key else ""
