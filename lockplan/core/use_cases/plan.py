"""
Plan use case — load config and lockfile, plan one target, optionally save.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from lockplan.core.config.loader import ConfigError
from lockplan.core.config.overrides import build_override_map, override_identity
from lockplan.core.engine.planner import PlanOptions, plan_target
from lockplan.core.errors import LockplanError
from lockplan.core.models.plan import OverlayPlan
from lockplan.core.persistence.plan_file import default_plan_path, save_plan
from lockplan.core.resolution.workspaces import WorkspaceGraph
from lockplan.core.use_cases.project import open_project

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    """Result of planning one target."""

    plan: OverlayPlan | None = None
    lockfile_path: Path | None = None
    saved_to: Path | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        result: dict = {
            "lockfile": str(self.lockfile_path) if self.lockfile_path else None,
            "saved_to": str(self.saved_to) if self.saved_to else None,
        }
        if self.plan is not None:
            result["plan"] = self.plan.to_dict()
        return result


def run_plan(
    config_path: Path | None = None,
    workspace: str | None = None,
    save: bool = False,
) -> PlanResult:
    """Plan the project, or one workspace of it.

    Args:
        config_path: Optional explicit path to lockplan.yml.
        workspace: Workspace directory or package name (None = project).
        save: Write the plan under the configured output directory.

    Returns:
        PlanResult with the plan, or an error string. Never a partial plan.
    """
    result = PlanResult()

    try:
        ctx = open_project(config_path)
        result.lockfile_path = ctx.lockfile_path
        config = ctx.config

        target = None
        if workspace:
            target = WorkspaceGraph(ctx.parsed).target_dir(workspace)
            record = ctx.parsed.get(target)
            refs = {workspace, target, record.name if record else ""}
            if not any(config.allows_workspace(ref) for ref in refs if ref):
                result.error = f"Workspace '{workspace}' is not enabled in the config"
                return result

        options = PlanOptions(
            link_mode=config.link_mode,
            max_depth=config.max_depth,
            max_nodes=config.max_nodes,
        )
        plan = plan_target(
            ctx.parsed,
            target=target,
            overrides=build_override_map(config.overrides),
            options=options,
            override_id=override_identity(config.overrides),
        )
        result.plan = plan

        if save:
            path = default_plan_path(ctx.root, plan.target, config.output_dir)
            save_plan(plan, path)
            result.saved_to = path

    except (LockplanError, ConfigError) as e:
        logger.debug("Planning failed: %s", e)
        result.error = str(e)
        result.plan = None
    except OSError as e:
        result.error = f"Cannot write plan: {e}"

    return result
