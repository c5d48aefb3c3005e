"""
Merge planning — overlay a module tree onto an existing directory.

The materializer may be asked to fill in a directory that already has
content, e.g. a source checkout where workspace links were created
first. Merging walks the tree by name:

    - a merge node whose name is already a directory is merged into it,
      recursively;
    - anything else is placed verbatim, replacing what was there.

Replacing a different entry is a collision: last applied wins and a
``MergeCollision`` is recorded. Placing an entry identical to the one
already present emits nothing, so merging a tree into its own
materialization is a no-op.

``VirtualTree`` is an in-memory directory listing that can replay plan
steps; it stands in for the real output directory during planning.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

from lockplan.core.engine.assembler import bin_step, plan_steps
from lockplan.core.models.artifact import LinkMode
from lockplan.core.models.plan import (
    MergeCollision,
    MergeNode,
    ModuleTreeNode,
    PlanStep,
)

logger = logging.getLogger(__name__)

EntryKind = Literal["dir", "link", "copy", "overlay", "bin", "file"]


@dataclass(frozen=True)
class Entry:
    """One filesystem entry: what it is and what it points at."""

    kind: EntryKind
    ref: str | None = None

    def describe(self) -> str:
        return f"{self.kind}:{self.ref}" if self.ref else self.kind


class VirtualTree:
    """Flat ``relative path -> Entry`` view of a directory."""

    def __init__(self, entries: dict[str, Entry] | None = None) -> None:
        self._entries: dict[str, Entry] = dict(entries or {})

    @classmethod
    def from_steps(cls, steps: Iterable[PlanStep]) -> VirtualTree:
        tree = cls()
        tree.apply(steps)
        return tree

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VirtualTree):
            return NotImplemented
        return self._entries == other._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def get(self, path: str) -> Entry | None:
        return self._entries.get(path)

    def is_dir(self, path: str) -> bool:
        entry = self._entries.get(path)
        return entry is not None and entry.kind == "dir"

    def paths(self) -> list[str]:
        return sorted(self._entries)

    def subtree(self, path: str) -> dict[str, Entry]:
        """Entries at and below ``path``, keyed relative to it ("" = itself)."""
        if not path:
            return dict(self._entries)
        result = {}
        prefix = path + "/"
        for p, entry in self._entries.items():
            if p == path:
                result[""] = entry
            elif p.startswith(prefix):
                result[p[len(prefix):]] = entry
        return result

    def remove(self, path: str) -> None:
        prefix = path + "/"
        for p in [p for p in self._entries if p == path or p.startswith(prefix)]:
            del self._entries[p]

    def apply(self, steps: Iterable[PlanStep]) -> None:
        """Replay steps the way a materializer would (``mkdir -p`` parents)."""
        for step in steps:
            self._ensure_parents(step.path)
            if step.op == "mkdir":
                if self.is_dir(step.path):
                    continue
                self.remove(step.path)
                self._entries[step.path] = Entry("dir")
                continue

            if step.path in self._entries:
                self.remove(step.path)
            ref = step.target if step.op == "bin" else step.artifact
            self._entries[step.path] = Entry(step.op, ref)

    def _ensure_parents(self, path: str) -> None:
        parts = path.split("/")[:-1]
        for i in range(1, len(parts) + 1):
            parent = "/".join(parts[:i])
            if parent not in self._entries:
                self._entries[parent] = Entry("dir")


@dataclass
class MergeResult:
    """Steps needed to merge a tree into an existing directory."""

    steps: list[PlanStep] = field(default_factory=list)
    diagnostics: list[MergeCollision] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.steps)


def plan_merge(
    node: ModuleTreeNode,
    existing: VirtualTree | None = None,
    base: str = "",
    link_mode: LinkMode = "link",
) -> MergeResult:
    """Plan merging ``node`` (a merge node) into ``existing`` at ``base``.

    Args:
        node: Root of the tree to merge. Must be a merge node.
        existing: Current contents of the output directory.
        base: Directory inside ``existing`` to merge into.
        link_mode: Default placement for artifacts without their own.

    Returns:
        MergeResult with ordered steps and collision diagnostics.
    """
    if not isinstance(node, MergeNode):
        raise TypeError(f"Only merge nodes can be merged into a directory, got {node.kind}")
    result = MergeResult()
    _merge(node, existing or VirtualTree(), base, link_mode, result)
    if result.diagnostics:
        logger.warning("Merge into '%s' replaced %d entries", base or ".", len(result.diagnostics))
    return result


def _merge(
    node: MergeNode,
    existing: VirtualTree,
    base: str,
    link_mode: LinkMode,
    result: MergeResult,
) -> None:
    for name, child in node.children.items():
        path = f"{base}/{name}" if base else name

        if isinstance(child, MergeNode) and existing.is_dir(path):
            _merge(child, existing, path, link_mode, result)
            continue

        wanted = plan_steps(child, path, link_mode)
        _place(path, wanted, existing, _describe(child), result)

    for name, rel in node.bins.items():
        step = bin_step(base, name, rel)
        _place(step.path, [step], existing, f"bin:{step.target}", result)


def _place(
    path: str,
    wanted: list[PlanStep],
    existing: VirtualTree,
    description: str,
    result: MergeResult,
) -> None:
    current = existing.subtree(path)
    if current:
        if VirtualTree.from_steps(_rebase(wanted, path)).subtree("") == current:
            return
        replaced = current[""].describe() if "" in current else "dir"
        result.diagnostics.append(
            MergeCollision(path=path, kept=description, replaced=replaced, reason="name collision")
        )
        logger.warning("Merge collision at %s: %s replaces %s", path, description, replaced)
        wanted = [wanted[0].model_copy(update={"replace": True}), *wanted[1:]]
    result.steps.extend(wanted)


def _rebase(steps: list[PlanStep], path: str) -> list[PlanStep]:
    """Re-root steps so that ``path`` becomes the empty path."""
    rebased = []
    for step in steps:
        rel = "" if step.path == path else step.path[len(path) + 1:]
        rebased.append(step.model_copy(update={"path": rel}))
    return rebased


def _describe(node: ModuleTreeNode) -> str:
    if isinstance(node, MergeNode):
        return "dir"
    return f"{node.kind}:{node.artifact.key}"
