"""Project configuration (lockplan.yml)."""

from lockplan.core.config.loader import (
    CONFIG_FILE,
    ConfigError,
    find_config_file,
    load_config,
    project_root,
)
from lockplan.core.config.overrides import build_override_map, override_identity

__all__ = [
    "CONFIG_FILE",
    "ConfigError",
    "build_override_map",
    "find_config_file",
    "load_config",
    "override_identity",
    "project_root",
]
