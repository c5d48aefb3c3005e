"""
Domain models — Pydantic types for lockfile planning.

All models are re-exported here for convenient access:

    from lockplan.core.models import PackageRecord, Artifact, OverlayPlan
"""

from lockplan.core.models.artifact import Artifact, ArtifactKind, LinkMode
from lockplan.core.models.config import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_NODES,
    LockplanConfig,
    OverrideSpec,
)
from lockplan.core.models.package import (
    MODULE_DIR,
    Closure,
    DependencyEdge,
    PackageRecord,
    ResolvedDependency,
    join_path,
    package_name_from_path,
    split_path,
)
from lockplan.core.models.plan import (
    LinkInstruction,
    MergeCollision,
    MergeNode,
    ModuleTreeNode,
    OverlayNode,
    OverlayPlan,
    PassThroughNode,
    PlanStep,
)

__all__ = [
    # artifact.py
    "Artifact",
    "ArtifactKind",
    "LinkMode",
    # config.py
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_MAX_NODES",
    "LockplanConfig",
    "OverrideSpec",
    # package.py
    "Closure",
    "DependencyEdge",
    "MODULE_DIR",
    "PackageRecord",
    "ResolvedDependency",
    "join_path",
    "package_name_from_path",
    "split_path",
    # plan.py
    "LinkInstruction",
    "MergeCollision",
    "MergeNode",
    "ModuleTreeNode",
    "OverlayNode",
    "OverlayPlan",
    "PassThroughNode",
    "PlanStep",
]
