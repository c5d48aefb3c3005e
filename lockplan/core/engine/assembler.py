"""
Tree assembler — flat ``{hierarchy path -> artifact}`` into a module tree.

Paths are exploded into nested directories first:

    node_modules/foo                    {node_modules: {foo: {.: A}}}
    node_modules/foo/node_modules/bar   ... {foo: {.: A, node_modules: {bar: {.: B}}}}
    node_modules/@s/baz                 ... {@s: {baz: {.: C}}}

then folded bottom-up. A directory with only its own artifact is passed
through; one with an artifact and nested entries becomes an overlay (the
nested entries must be visible before anything builds the artifact); a
directory without an artifact is a merge of its children.

Every ``node_modules`` merge node also carries the ``.bin`` manifest for
the packages directly inside it, scoped packages included. Children are
visited in artifact insertion order and a later executable with the same
name replaces an earlier one, leaving a ``MergeCollision`` behind.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from lockplan.core.errors import PlanningLimitExceeded
from lockplan.core.models.artifact import Artifact, LinkMode
from lockplan.core.models.config import DEFAULT_MAX_DEPTH
from lockplan.core.models.package import MODULE_DIR
from lockplan.core.models.plan import (
    MergeCollision,
    MergeNode,
    ModuleTreeNode,
    OverlayNode,
    PassThroughNode,
    PlanStep,
)

logger = logging.getLogger(__name__)

BIN_DIR = ".bin"


@dataclass
class _Slot:
    """One directory while exploding paths."""

    artifact: Artifact | None = None
    order: int = -1
    children: dict[str, _Slot] = field(default_factory=dict)


@dataclass
class TreeAssembly:
    """Result of assembling a tree."""

    tree: ModuleTreeNode | None = None
    diagnostics: list[MergeCollision] = field(default_factory=list)

    @property
    def bins(self) -> dict[str, str]:
        """Executable manifest of the top-level node_modules directory."""
        if isinstance(self.tree, MergeNode):
            top = self.tree.children.get(MODULE_DIR)
            if isinstance(top, MergeNode):
                return dict(top.bins)
        return {}


class TreeAssembler:
    """Fold artifacts into a ``ModuleTreeNode``."""

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._max_depth = max_depth

    def assemble(self, artifacts: Mapping[str, Artifact]) -> TreeAssembly:
        """Build the tree. An empty artifact set yields ``tree=None``."""
        if not artifacts:
            logger.debug("No artifacts: empty module tree")
            return TreeAssembly()

        root = self._explode(artifacts)
        diagnostics: list[MergeCollision] = []
        tree = self._fold(root, (), diagnostics)
        logger.debug(
            "Assembled tree from %d artifacts (%d collisions)",
            len(artifacts), len(diagnostics),
        )
        return TreeAssembly(tree=tree, diagnostics=diagnostics)

    def _explode(self, artifacts: Mapping[str, Artifact]) -> _Slot:
        root = _Slot()
        for order, (key, artifact) in enumerate(artifacts.items()):
            segments = artifact.hierarchy
            if not segments:
                raise ValueError(f"Artifact '{artifact.name}' has no hierarchy path")
            if len(segments) > self._max_depth:
                raise PlanningLimitExceeded(
                    f"'{key}' is nested {len(segments)} levels deep "
                    f"(limit {self._max_depth})"
                )
            slot = root
            for segment in segments:
                slot = slot.children.setdefault(segment, _Slot())
            slot.artifact = artifact
            slot.order = order
        return root

    def _fold(
        self,
        slot: _Slot,
        path: tuple[str, ...],
        diagnostics: list[MergeCollision],
    ) -> ModuleTreeNode:
        children = {
            name: self._fold(child, (*path, name), diagnostics)
            for name, child in slot.children.items()
        }

        if slot.artifact is not None:
            if not children:
                return PassThroughNode(artifact=slot.artifact)
            return OverlayNode(artifact=slot.artifact, children=children)

        # Invariant: a lockfile never asks for an empty directory
        assert children, f"empty directory at '{'/'.join(path)}'"

        bins: dict[str, str] = {}
        if path and path[-1] == MODULE_DIR:
            bins = _aggregate_bins(slot, "/".join(path), diagnostics)
        return MergeNode(children=children, bins=bins)


def _aggregate_bins(
    slot: _Slot,
    dir_path: str,
    diagnostics: list[MergeCollision],
) -> dict[str, str]:
    bins: dict[str, str] = {}

    def register(artifact: Artifact, prefix: str) -> None:
        for bin_name, rel in artifact.bins.items():
            name = bin_name.rsplit("/", 1)[-1]
            target = f"{prefix}/{rel}"
            previous = bins.get(name)
            if previous is not None and previous != target:
                collision = MergeCollision(
                    path=f"{dir_path}/{BIN_DIR}/{name}",
                    kept=target,
                    replaced=previous,
                    reason="duplicate executable name",
                )
                diagnostics.append(collision)
                logger.warning(
                    "Executable '%s' in %s: %s replaces %s",
                    name, dir_path, target, previous,
                )
            bins[name] = target

    # Scoped packages interleave with unscoped ones in artifact order
    members: list[tuple[int, str, Artifact]] = []
    for name, child in slot.children.items():
        if child.artifact is not None:
            members.append((child.order, name, child.artifact))
        elif name.startswith("@"):
            for sub_name, sub in child.children.items():
                if sub.artifact is not None:
                    members.append((sub.order, f"{name}/{sub_name}", sub.artifact))

    for _, prefix, artifact in sorted(members, key=lambda member: member[0]):
        register(artifact, prefix)
    return bins


def plan_steps(
    node: ModuleTreeNode,
    base: str = "",
    link_mode: LinkMode = "link",
) -> list[PlanStep]:
    """Flatten a tree into ordered, replayable steps.

    Parents always come before their contents. Artifacts are linked or
    copied according to their own ``link_mode`` or the plan default.
    Nested entries of an overlay are flagged ``pre_build``.
    """
    steps: list[PlanStep] = []
    _emit(node, base, link_mode, False, steps)
    return steps


def _emit(
    node: ModuleTreeNode,
    path: str,
    link_mode: LinkMode,
    pre_build: bool,
    steps: list[PlanStep],
) -> None:
    if isinstance(node, PassThroughNode):
        op = node.artifact.link_mode or link_mode
        steps.append(PlanStep(op=op, path=path, artifact=node.artifact.key, pre_build=pre_build))
        return

    if isinstance(node, OverlayNode):
        steps.append(
            PlanStep(op="overlay", path=path, artifact=node.artifact.key, pre_build=pre_build)
        )
        for name, child in node.children.items():
            _emit(child, _join(path, name), link_mode, True, steps)
        return

    if path:
        steps.append(PlanStep(op="mkdir", path=path, pre_build=pre_build))
    for name, child in node.children.items():
        _emit(child, _join(path, name), link_mode, pre_build, steps)
    for name, rel in node.bins.items():
        steps.append(bin_step(path, name, rel, pre_build))


def bin_step(dir_path: str, name: str, rel: str, pre_build: bool = False) -> PlanStep:
    """Wrapper at ``<dir>/.bin/<name>`` pointing back at ``<dir>/<rel>``."""
    return PlanStep(
        op="bin",
        path=_join(dir_path, f"{BIN_DIR}/{name}"),
        target=f"../{rel}",
        pre_build=pre_build,
    )


def _join(base: str, name: str) -> str:
    return f"{base}/{name}" if base else name
