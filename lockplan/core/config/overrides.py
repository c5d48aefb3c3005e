"""
Declarative overrides — turn ``overrides:`` config entries into substitutions.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping

from lockplan.core.engine.overrides import (
    LazyArtifactSet,
    OverrideMap,
    Substitution,
    patched,
    relinked,
    replaced,
)
from lockplan.core.models.artifact import Artifact, LinkMode
from lockplan.core.models.config import OverrideSpec


def build_override_map(specs: Mapping[str, OverrideSpec]) -> OverrideMap:
    """One substitution per configured hierarchy path."""
    overrides: dict[str, Substitution] = {}
    for key, spec in specs.items():
        if spec.replace is not None:
            fn = replaced(key, spec.replace, spec.version, spec.integrity, spec.bins)
        elif spec.patch:
            fn = patched(key, *spec.patch)
        else:
            fn = None

        if spec.link_mode is not None:
            fn = relinked(key, spec.link_mode) if fn is None else _then_relink(fn, spec.link_mode)
        overrides[key] = fn
    return overrides


def override_identity(specs: Mapping[str, OverrideSpec]) -> str:
    """Stable hash of the override configuration, for plan fingerprints."""
    if not specs:
        return ""
    material = json.dumps(
        {key: spec.model_dump(mode="json") for key, spec in specs.items()},
        sort_keys=True,
    )
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def _then_relink(fn: Substitution, mode: LinkMode) -> Substitution:
    def substitute(final: LazyArtifactSet, prev: LazyArtifactSet) -> Artifact:
        return fn(final, prev).model_copy(update={"link_mode": mode})

    return substitute
