"""
Configuration loader — reads lockplan.yml into a LockplanConfig.

The config file is optional. Without one, every setting takes its
default and the lockfile is looked up in the working directory.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from lockplan.core.models.config import LockplanConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "lockplan.yml"


class ConfigError(Exception):
    """Raised when lockplan.yml is invalid or unreadable."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for lockplan.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to lockplan.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None) -> LockplanConfig:
    """Load and validate lockplan configuration.

    Args:
        path: Explicit path to lockplan.yml. If None, searches upward and
            falls back to defaults when nothing is found.

    Returns:
        Validated LockplanConfig.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found, using defaults", CONFIG_FILE)
            return LockplanConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        # An empty file is a valid "all defaults" config
        return LockplanConfig()

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "lockplan" key or be flat
    config_data = data["lockplan"] if "lockplan" in data else data
    if not isinstance(config_data, dict):
        raise ConfigError(f"Expected a mapping under 'lockplan' in {path}")

    try:
        config = LockplanConfig.model_validate(config_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid lockplan configuration: {e}") from e

    logger.info("Loaded config from %s with %d overrides", path, len(config.overrides))
    return config


def project_root(config_path: Path | None) -> Path:
    """Get the project root: the config file's directory, or the cwd."""
    return config_path.parent.resolve() if config_path else Path.cwd().resolve()
