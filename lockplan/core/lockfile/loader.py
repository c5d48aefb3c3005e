"""
Lockfile loader — reads package-lock.json text.

This is the only place the core touches the filesystem: it reads the
lock text, hashes it for plan fingerprints, and hands the decoded JSON
to the parser.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

from lockplan.core.errors import MalformedLockfile
from lockplan.core.lockfile.model import ParsedLockfile, parse_lockfile

logger = logging.getLogger(__name__)

# Default lockfile name
LOCKFILE_NAME = "package-lock.json"


def find_lockfile(start_dir: Path | None = None) -> Path | None:
    """Return the lockfile in the given directory (default: cwd), or None."""
    candidate = (start_dir or Path.cwd()).resolve() / LOCKFILE_NAME
    return candidate if candidate.is_file() else None


def read_lockfile(path: Path) -> tuple[dict[str, Any], str]:
    """Read and decode a lockfile.

    Returns:
        The decoded JSON document and the sha256 of its raw text.

    Raises:
        MalformedLockfile: If the file is missing, unreadable, or not JSON.
    """
    if not path.is_file():
        raise MalformedLockfile(f"Lockfile not found: {path}")

    logger.debug("Reading lockfile %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise MalformedLockfile(f"Cannot read {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedLockfile(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise MalformedLockfile(
            f"Expected a JSON object in {path}, got {type(data).__name__}"
        )

    digest = hashlib.sha256(raw.encode("utf-8")).hexdigest()
    return data, digest


def load_lockfile(
    path: Path,
    install_dev: bool = True,
    peers_required: bool = False,
) -> ParsedLockfile:
    """Read and parse a lockfile in one go."""
    data, digest = read_lockfile(path)
    parsed = parse_lockfile(
        data,
        install_dev=install_dev,
        peers_required=peers_required,
        content_hash=digest,
    )
    logger.info(
        "Loaded lockfile '%s' with %d installable packages",
        parsed.name, len(parsed.records),
    )
    return parsed
