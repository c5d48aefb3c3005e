"""Plan persistence."""

from lockplan.core.persistence.plan_file import (
    PlanFileError,
    default_plan_path,
    load_plan,
    save_plan,
)

__all__ = ["PlanFileError", "default_plan_path", "load_plan", "save_plan"]
