"""
Plan file persistence — atomic read/write for OverlayPlan.

Plans are stored as JSON under ``.lockplan/``, one file per target:
``project.json`` for the whole project, ``<workspace dir>.json``
(slashes flattened) for a workspace. Writes are atomic (temp file,
then rename) so a crash never leaves half a plan behind.
"""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from pydantic import ValidationError

from lockplan.core.errors import LockplanError
from lockplan.core.models.plan import OverlayPlan

logger = logging.getLogger(__name__)

# Default plan directory (relative to project root)
DEFAULT_PLAN_DIR = ".lockplan"
PROJECT_PLAN_FILE = "project.json"


class PlanFileError(LockplanError):
    """A saved plan cannot be read back."""


def default_plan_path(
    project_root: Path,
    target: str = "",
    output_dir: str = DEFAULT_PLAN_DIR,
) -> Path:
    """Get the plan file path for a target ("" = whole project)."""
    name = f"{target.replace('/', '__')}.json" if target else PROJECT_PLAN_FILE
    return project_root / output_dir / name


def load_plan(path: Path) -> OverlayPlan:
    """Load a saved plan.

    Raises:
        PlanFileError: If the file is missing, not JSON, or not a plan.
    """
    if not path.is_file():
        raise PlanFileError(f"No plan file at {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise PlanFileError(f"Cannot read plan {path}: {e}") from e

    try:
        plan = OverlayPlan.model_validate(data)
    except ValidationError as e:
        raise PlanFileError(f"Corrupt plan file {path}: {e}") from e

    logger.debug("Loaded plan from %s (fingerprint=%s)", path, plan.fingerprint[:12])
    return plan


def save_plan(plan: OverlayPlan, path: Path) -> None:
    """Save a plan to a JSON file (atomic write).

    Args:
        plan: The plan to save.
        path: Target path for the plan file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    content = json.dumps(plan.to_dict(), indent=2, ensure_ascii=False) + "\n"

    # Atomic write: temp file in same directory, then rename
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".plan_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with open(fd, "w", encoding="utf-8") as f:
            f.write(content)
        tmp.replace(path)
        logger.debug("Plan saved to %s", path)
    except OSError as e:
        tmp.unlink(missing_ok=True)
        logger.error("Failed to save plan to %s: %s", path, e)
        raise
