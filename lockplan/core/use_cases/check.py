"""
Check use case — validate lockplan.yml and the lockfile without planning.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from lockplan.core.config.loader import ConfigError
from lockplan.core.errors import LockplanError
from lockplan.core.resolution.closure import ClosureBuilder
from lockplan.core.resolution.workspaces import WorkspaceGraph
from lockplan.core.use_cases.project import open_project


@dataclass
class CheckResult:
    """Result of validating config and lockfile."""

    valid: bool = False
    name: str = ""
    lockfile_path: Path | None = None
    lockfile_version: int | None = None
    package_count: int = 0
    workspace_count: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "name": self.name,
            "lockfile": str(self.lockfile_path) if self.lockfile_path else None,
            "lockfile_version": self.lockfile_version,
            "package_count": self.package_count,
            "workspace_count": self.workspace_count,
            "errors": self.errors,
            "warnings": self.warnings,
        }


def run_check(config_path: Path | None = None) -> CheckResult:
    """Validate configuration and lockfile, and report issues.

    Args:
        config_path: Optional explicit path to lockplan.yml.

    Returns:
        CheckResult with validation status and any issues.
    """
    result = CheckResult()

    try:
        ctx = open_project(config_path)
    except (LockplanError, ConfigError) as e:
        result.errors.append(str(e))
        return result

    parsed = ctx.parsed
    config = ctx.config
    result.name = parsed.name
    result.lockfile_path = ctx.lockfile_path
    result.lockfile_version = parsed.lockfile_version
    result.package_count = len(parsed.records)

    graph = WorkspaceGraph(parsed)
    result.workspace_count = len(graph.dirs)

    # Every workspace must order cleanly
    try:
        graph.topological_order()
    except LockplanError as e:
        result.errors.append(str(e))

    # The whole project must close over required dependencies
    try:
        roots = [""] + [d for d in graph.dirs if graph.is_declared(d)]
        closure = ClosureBuilder(parsed, max_nodes=config.max_nodes).build(roots)
        if closure.dropped:
            result.warnings.append(
                f"{len(closure.dropped)} optional dependencies are not in the lockfile"
            )
    except LockplanError as e:
        result.errors.append(str(e))

    for ref in config.workspaces:
        if ref not in graph.all_workspaces and ref not in graph.dirs:
            result.errors.append(f"Configured workspace '{ref}' is not in the lockfile")

    for key in config.overrides:
        if parsed.get(key) is None:
            result.warnings.append(f"Override for '{key}' matches no lockfile entry")

    if parsed.lockfile_version is None:
        result.warnings.append("Lockfile has no lockfileVersion")

    result.valid = len(result.errors) == 0
    return result
