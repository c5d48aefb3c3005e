"""Lockfile reading and parsing."""

from lockplan.core.lockfile.loader import find_lockfile, load_lockfile, read_lockfile
from lockplan.core.lockfile.model import ParsedLockfile, dependency_edges, parse_lockfile

__all__ = [
    "ParsedLockfile",
    "dependency_edges",
    "find_lockfile",
    "load_lockfile",
    "parse_lockfile",
    "read_lockfile",
]
