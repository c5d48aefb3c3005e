"""
Override engine — lazy fixpoint substitution over the flat artifact set.

An override map is ``path -> fn(final, prev)``:

    prev   the artifact set before any override (read-only, lazy)
    final  the artifact set after all overrides (read-only, lazy)

A function usually wraps ``prev[path]`` for its own path, but may also
read ``final`` for another overridden package. Values are thunks forced
on first access and memoised, so a function that never touches a path
never forces it, and never fails on it.

Overrides are applied per physical hierarchy path: overriding
``node_modules/foo`` leaves ``node_modules/bar/node_modules/foo`` alone.
Overrides for paths absent from this artifact set are ignored without
being evaluated, so one shared override map can serve every workspace.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping

from lockplan.core.errors import OverrideCycleError
from lockplan.core.models.artifact import Artifact, LinkMode
from lockplan.core.models.package import package_name_from_path

logger = logging.getLogger(__name__)


class LazyArtifactSet(Mapping[str, Artifact]):
    """Read-only mapping of memoised artifact thunks."""

    def __init__(self, thunks: dict[str, Callable[[], Artifact]] | None = None) -> None:
        self._thunks: dict[str, Callable[[], Artifact]] = dict(thunks or {})
        self._cache: dict[str, Artifact] = {}
        self._evaluating: list[str] = []

    def __getitem__(self, key: str) -> Artifact:
        if key in self._cache:
            return self._cache[key]
        if key not in self._thunks:
            raise KeyError(key)
        if key in self._evaluating:
            raise OverrideCycleError(key, self._evaluating)

        self._evaluating.append(key)
        try:
            value = self._thunks[key]()
        finally:
            self._evaluating.remove(key)

        if not isinstance(value, Artifact):
            raise TypeError(
                f"Override for '{key}' returned {type(value).__name__}, expected Artifact"
            )
        self._cache[key] = value
        return value

    def __contains__(self, key: object) -> bool:
        # Membership must not force the thunk
        return key in self._thunks

    def __iter__(self) -> Iterator[str]:
        return iter(self._thunks)

    def __len__(self) -> int:
        return len(self._thunks)

    @property
    def forced(self) -> list[str]:
        """Keys evaluated so far, in evaluation order."""
        return list(self._cache)


Substitution = Callable[[LazyArtifactSet, LazyArtifactSet], Artifact]
OverrideMap = Mapping[str, Substitution]


def fix_overrides(artifacts: Mapping[str, Artifact], overrides: OverrideMap) -> LazyArtifactSet:
    """Build the lazy fixpoint without forcing anything."""
    prev = LazyArtifactSet({key: _const(artifact) for key, artifact in artifacts.items()})
    final = LazyArtifactSet()

    thunks: dict[str, Callable[[], Artifact]] = {}
    for key in artifacts:
        fn = overrides.get(key)
        if fn is None:
            thunks[key] = _passthrough(prev, key)
        else:
            thunks[key] = _substituted(final, prev, key, fn)
    final._thunks = thunks

    ignored = [key for key in overrides if key not in artifacts]
    if ignored:
        logger.debug("Ignoring %d override(s) for absent paths: %s", len(ignored), ignored)
    return final


def apply_overrides(
    artifacts: Mapping[str, Artifact],
    overrides: OverrideMap | None = None,
) -> dict[str, Artifact]:
    """Apply ``overrides`` and return the final artifact set, same key order."""
    if not overrides:
        return dict(artifacts)
    final = fix_overrides(artifacts, overrides)
    result = {key: final[key] for key in artifacts}
    applied = [key for key in overrides if key in artifacts]
    logger.info("Applied %d override(s)", len(applied))
    return result


# ── Substitution helpers ────────────────────────────────────────


def patched(key: str, *steps: str) -> Substitution:
    """Wrap the original artifact, appending pre-build patch steps."""

    def substitute(final: LazyArtifactSet, prev: LazyArtifactSet) -> Artifact:
        base = prev[key]
        return base.model_copy(update={"patches": base.patches + tuple(steps)})

    return substitute


def replaced(
    key: str,
    source: str,
    version: str = "",
    integrity: str | None = None,
    bins: Mapping[str, str] | None = None,
) -> Substitution:
    """Replace the artifact outright, without reading the original."""

    def substitute(final: LazyArtifactSet, prev: LazyArtifactSet) -> Artifact:
        return Artifact(
            key=key,
            name=package_name_from_path(key),
            version=version,
            kind="replacement",
            source=source,
            integrity=integrity,
            bins=dict(bins or {}),
        )

    return substitute


def relinked(key: str, mode: LinkMode) -> Substitution:
    """Force link-or-copy placement for one artifact."""

    def substitute(final: LazyArtifactSet, prev: LazyArtifactSet) -> Artifact:
        return prev[key].model_copy(update={"link_mode": mode})

    return substitute


def _const(artifact: Artifact) -> Callable[[], Artifact]:
    return lambda: artifact


def _passthrough(prev: LazyArtifactSet, key: str) -> Callable[[], Artifact]:
    return lambda: prev[key]


def _substituted(
    final: LazyArtifactSet,
    prev: LazyArtifactSet,
    key: str,
    fn: Substitution,
) -> Callable[[], Artifact]:
    def thunk() -> Artifact:
        value = fn(final, prev)
        if isinstance(value, Artifact) and value.key != key:
            # Overrides are bound to the physical path they were registered for
            value = value.model_copy(update={"key": key})
        return value

    return thunk
