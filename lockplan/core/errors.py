"""
Error taxonomy for lockfile resolution and planning.

Every fatal failure derives from ``LockplanError`` so the use-case layer
can catch one type and turn it into a result error. Merge collisions are
not errors: they are recorded as ``MergeCollision`` diagnostics on the plan.
"""

from __future__ import annotations


class LockplanError(Exception):
    """Base class for all fatal resolution/planning failures."""


class MalformedLockfile(LockplanError):
    """The lockfile cannot be read or violates the expected structure."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        if path is not None:
            message = f"{message} (entry '{path}')"
        super().__init__(message)


class Unresolved(LockplanError):
    """A dependency name has no match in the module hierarchy.

    Only surfaced to callers that asked for a hard resolution. The closure
    builder swallows it for optional edges.
    """

    def __init__(self, name: str, from_path: str) -> None:
        self.name = name
        self.from_path = from_path
        where = from_path or "<root>"
        super().__init__(f"Cannot resolve '{name}' from '{where}'")


class UnresolvedRequiredDependency(LockplanError):
    """A required dependency edge points at nothing."""

    def __init__(self, name: str, from_path: str) -> None:
        self.name = name
        self.from_path = from_path
        where = from_path or "<root>"
        super().__init__(f"Couldn't find non-optional dependency '{name}' of '{where}'")


class CyclicWorkspaceDependency(LockplanError):
    """Workspaces depend on each other in a loop."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = list(cycle)
        super().__init__("Cyclic workspace dependency: " + " -> ".join(self.cycle))


class PlanningLimitExceeded(LockplanError):
    """Depth or node-count ceiling hit while walking the lockfile."""


class OverrideCycleError(LockplanError):
    """An override reads its own final value while it is being computed."""

    def __init__(self, key: str, evaluating: list[str]) -> None:
        self.key = key
        self.evaluating = list(evaluating)
        super().__init__(
            f"Infinite recursion evaluating override for '{key}' "
            f"(currently evaluating: {', '.join(self.evaluating)})"
        )


class UnknownWorkspace(LockplanError):
    """A workspace was requested by a name or directory the lockfile lacks."""

    def __init__(self, ref: str, known: list[str]) -> None:
        self.ref = ref
        self.known = list(known)
        hint = ", ".join(self.known) if self.known else "none"
        super().__init__(f"Unknown workspace '{ref}' (known: {hint})")
