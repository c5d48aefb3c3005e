"""
Planner — the central planning flow for one target.

Takes a parsed lockfile and a target (the whole project, or one
workspace), computes the closure, turns the reached entries into
artifacts, applies overrides, assembles the module tree, and flattens it
into steps that merge the tree into the source checkout.

Flow:
    parsed lockfile → closure → artifacts → overrides → tree → merge steps

Every stage is a pure function of its inputs. Two calls with the same
lockfile, target, options and override identity give byte-identical plans.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass

from lockplan.core.engine.assembler import TreeAssembler
from lockplan.core.engine.merge import Entry, VirtualTree, plan_merge
from lockplan.core.engine.overrides import OverrideMap, apply_overrides
from lockplan.core.lockfile.model import ParsedLockfile
from lockplan.core.models.artifact import Artifact, LinkMode
from lockplan.core.models.config import DEFAULT_MAX_DEPTH, DEFAULT_MAX_NODES
from lockplan.core.models.package import Closure
from lockplan.core.models.plan import LinkInstruction, OverlayPlan
from lockplan.core.resolution.closure import ClosureBuilder
from lockplan.core.resolution.workspaces import WorkspaceGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanOptions:
    """Knobs that change the plan, and therefore its fingerprint."""

    link_mode: LinkMode = "link"
    max_depth: int = DEFAULT_MAX_DEPTH
    max_nodes: int = DEFAULT_MAX_NODES


def plan_cache_key(
    content_hash: str,
    target: str,
    install_dev: bool,
    options: PlanOptions,
    override_id: str = "",
) -> str:
    """Memoisation key: lockfile content, target and override identity."""
    material = json.dumps(
        {
            "lock": content_hash,
            "target": target,
            "install_dev": install_dev,
            "link_mode": options.link_mode,
            "max_depth": options.max_depth,
            "max_nodes": options.max_nodes,
            "overrides": override_id,
        },
        sort_keys=True,
    )
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def collect_artifacts(parsed: ParsedLockfile, closure: Closure) -> dict[str, Artifact]:
    """Artifacts for every placeable path of the closure, in lockfile order.

    Remote entries are fetched; links reached directly become locally
    built packages. Local directories are sources, not artifacts, and
    bundled entries travel inside their parent's archive.
    """
    artifacts: dict[str, Artifact] = {}
    for path, record in parsed.entries.items():
        if path not in closure or record.bundled:
            continue
        if record.is_remote:
            artifacts[path] = Artifact(
                key=path,
                name=record.name,
                version=record.version,
                kind="fetch",
                source=record.resolved or "",
                integrity=record.integrity,
                bins=record.bins,
            )
        elif record.link and record.resolved:
            target = parsed.get(record.resolved)
            artifacts[path] = Artifact(
                key=path,
                name=record.name,
                version=target.version if target else record.version,
                kind="local",
                source=record.resolved,
                bins=target.bins if target else record.bins,
            )
    return artifacts


def plan_target(
    parsed: ParsedLockfile,
    target: str | None = None,
    overrides: OverrideMap | None = None,
    options: PlanOptions | None = None,
    override_id: str = "",
    existing: VirtualTree | None = None,
) -> OverlayPlan:
    """Plan the module layout for the project or one workspace.

    Args:
        parsed: The parsed lockfile.
        target: Workspace directory or package name; None for the project.
        overrides: Substitutions keyed by hierarchy path.
        options: Link mode and safety ceilings.
        override_id: Stable identity of ``overrides`` for the fingerprint.
        existing: Current output directory contents. Defaults to the
            source checkout implied by the lockfile.

    Returns:
        The immutable OverlayPlan.

    Raises:
        LockplanError: Any resolution failure. No partial plan is produced.
    """
    options = options or PlanOptions()
    graph = WorkspaceGraph(parsed)

    if target:
        target_dir = graph.target_dir(target)
        roots = [target_dir]
    else:
        # npm installs every declared workspace when run at the root
        target_dir = ""
        roots = [""] + [d for d in graph.dirs if graph.is_declared(d)]

    # Workspace order first: a cycle fails the same way whatever the closure
    order: list[str] = []
    for root in roots:
        order.extend(graph.dependency_order(root))

    closure = ClosureBuilder(parsed, max_nodes=options.max_nodes).build(roots)

    # Graph order first, then local packages reached some other way
    local_paths = [p for p in closure.paths if p in parsed.entries and parsed.entries[p].is_local]
    included = _unique([d for d in order if d in closure] + local_paths)
    excluded = [d for d in graph.dirs if d not in included]

    artifacts = apply_overrides(collect_artifacts(parsed, closure), overrides)
    assembly = TreeAssembler(max_depth=options.max_depth).assemble(artifacts)

    links = [
        LinkInstruction(source=record.resolved, target=path)
        for path, record in parsed.entries.items()
        if record.link and record.resolved in included
    ]

    diagnostics = list(assembly.diagnostics)
    steps = []
    if assembly.tree is not None:
        if existing is None:
            existing = source_layout(parsed, links)
        merged = plan_merge(assembly.tree, existing, link_mode=options.link_mode)
        steps = merged.steps
        diagnostics.extend(merged.diagnostics)

    target_record = parsed.get(target_dir)
    entrypoints: dict[str, str] = {}
    main_program = None
    if target_record is not None:
        prefix = f"{target_dir}/" if target_dir else ""
        entrypoints = {name: f"{prefix}{rel}" for name, rel in target_record.bins.items()}
        if target_record.name in entrypoints:
            main_program = target_record.name

    plan = OverlayPlan(
        name=parsed.name,
        target=target_dir,
        records=[r for r in parsed.records if r.path in closure],
        closure=closure,
        artifacts=artifacts,
        tree=assembly.tree,
        steps=steps,
        bins=assembly.bins,
        entrypoints=entrypoints,
        main_program=main_program,
        included_workspaces=included,
        excluded_workspaces=excluded,
        workspace_order=order,
        links=links,
        link_cleanup=link_cleanup(parsed, links),
        diagnostics=diagnostics,
        fingerprint=plan_cache_key(
            parsed.content_hash, target_dir, parsed.install_dev, options, override_id
        ),
    )

    logger.info(
        "Planned '%s' (%s): %d artifacts, %d steps, %d workspaces, %d diagnostics",
        parsed.name,
        target_dir or "project",
        len(artifacts),
        len(steps),
        len(included),
        len(diagnostics),
    )
    return plan


def source_layout(parsed: ParsedLockfile, links: list[LinkInstruction]) -> VirtualTree:
    """The checkout a plan is merged into: local package dirs and links."""
    entries: dict[str, Entry] = {}
    for record in parsed.local_packages:
        _add_dirs(entries, record.path)
    for link in links:
        if "/" in link.target:
            _add_dirs(entries, link.target.rsplit("/", 1)[0])
        entries[link.target] = Entry("link", link.source)
    return VirtualTree(entries)


def link_cleanup(parsed: ParsedLockfile, links: list[LinkInstruction]) -> list[str]:
    """Paths that undo ``links``: each link target, then every directory
    that existed only to hold links, deepest first.
    """
    checkout = set(source_layout(parsed, []).paths())
    created: set[str] = set()
    for link in links:
        parts = link.target.split("/")[:-1]
        for i in range(1, len(parts) + 1):
            parent = "/".join(parts[:i])
            if parent not in checkout:
                created.add(parent)
    dirs = sorted(created, key=lambda path: (-path.count("/"), path))
    return [link.target for link in links] + dirs


def _add_dirs(entries: dict[str, Entry], path: str) -> None:
    parts = path.split("/")
    for i in range(1, len(parts) + 1):
        entries.setdefault("/".join(parts[:i]), Entry("dir"))


def _unique(items: list[str]) -> list[str]:
    seen: set[str] = set()
    unique = []
    for item in items:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique
