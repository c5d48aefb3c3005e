"""
Plan models — the module tree and the replayable overlay plan.

A tree node is one of three shapes:

    pass-through  single artifact, nothing nested inside it
    overlay       base artifact + nested dependencies injected before build
    merge         no artifact of its own, named children unioned

The plan flattens the tree into ordered ``PlanStep``s that a generic
materializer can replay against any output directory.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from lockplan.core.models.artifact import Artifact
from lockplan.core.models.package import Closure, PackageRecord

StepOp = Literal["mkdir", "link", "copy", "overlay", "bin"]


class PassThroughNode(BaseModel):
    """A position represented directly by one artifact."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["pass-through"] = "pass-through"
    artifact: Artifact


class OverlayNode(BaseModel):
    """An artifact that needs nested dependencies placed inside it."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["overlay"] = "overlay"
    artifact: Artifact
    children: dict[str, ModuleTreeNode] = Field(default_factory=dict)


class MergeNode(BaseModel):
    """A pure grouping directory (node_modules, @scope, a workspace dir).

    ``bins`` is the executable manifest for this directory, name → path
    relative to the directory itself. Empty unless children are packages.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["merge"] = "merge"
    children: dict[str, ModuleTreeNode] = Field(default_factory=dict)
    bins: dict[str, str] = Field(default_factory=dict)


ModuleTreeNode = Annotated[
    Union[PassThroughNode, OverlayNode, MergeNode],
    Field(discriminator="kind"),
]

OverlayNode.model_rebuild()
MergeNode.model_rebuild()


class PlanStep(BaseModel):
    """One replayable instruction, relative to the output directory."""

    model_config = ConfigDict(frozen=True)

    op: StepOp
    path: str
    artifact: str | None = None   # artifact key for link/copy/overlay
    target: str | None = None     # wrapper target for bin steps
    pre_build: bool = False       # must exist before the enclosing artifact builds
    replace: bool = False         # an existing entry at ``path`` is replaced


class MergeCollision(BaseModel):
    """Non-fatal diagnostic: two sources claimed the same name."""

    model_config = ConfigDict(frozen=True)

    path: str
    kept: str
    replaced: str
    reason: str = ""


class LinkInstruction(BaseModel):
    """Symlink a local package directory into a module dir."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str


class OverlayPlan(BaseModel):
    """Complete, immutable result of planning one target."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    target: str = ""                  # "" = whole project, else workspace dir
    records: list[PackageRecord] = Field(default_factory=list)
    closure: Closure = Field(default_factory=Closure)
    artifacts: dict[str, Artifact] = Field(default_factory=dict)
    tree: ModuleTreeNode | None = None
    steps: list[PlanStep] = Field(default_factory=list)
    bins: dict[str, str] = Field(default_factory=dict)
    entrypoints: dict[str, str] = Field(default_factory=dict)
    main_program: str | None = None
    included_workspaces: list[str] = Field(default_factory=list)
    excluded_workspaces: list[str] = Field(default_factory=list)
    workspace_order: list[str] = Field(default_factory=list)
    links: list[LinkInstruction] = Field(default_factory=list)
    link_cleanup: list[str] = Field(default_factory=list)
    diagnostics: list[MergeCollision] = Field(default_factory=list)
    fingerprint: str = ""

    @property
    def is_empty(self) -> bool:
        return self.tree is None

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
