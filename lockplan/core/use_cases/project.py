"""
Project context — config + parsed lockfile, shared by every use case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from lockplan.core.config.loader import find_config_file, load_config, project_root
from lockplan.core.lockfile.loader import load_lockfile
from lockplan.core.lockfile.model import ParsedLockfile
from lockplan.core.models.config import LockplanConfig

logger = logging.getLogger(__name__)


@dataclass
class ProjectContext:
    """Everything a use case needs to plan: where, with what, from which lock."""

    config: LockplanConfig
    config_path: Path | None
    root: Path
    lockfile_path: Path
    parsed: ParsedLockfile


def open_project(config_path: Path | None = None) -> ProjectContext:
    """Load lockplan.yml (if any) and the lockfile it points at.

    Raises:
        ConfigError: If the config file is invalid.
        MalformedLockfile: If the lockfile is missing or invalid.
    """
    if config_path is None:
        config_path = find_config_file()

    config = load_config(config_path)
    root = project_root(config_path)
    lockfile_path = root / config.lockfile

    parsed = load_lockfile(
        lockfile_path,
        install_dev=config.install_dev,
        peers_required=config.peers_required,
    )
    logger.debug("Project root %s, lockfile %s", root, lockfile_path)
    return ProjectContext(
        config=config,
        config_path=config_path,
        root=root,
        lockfile_path=lockfile_path,
        parsed=parsed,
    )
