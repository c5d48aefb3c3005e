"""
Logging configuration for the lockplan CLI.

Only the ``lockplan`` logger tree follows the requested level; the root
logger stays at WARNING so library chatter (PyYAML) never drowns out
resolution and collision messages. Module names are shortened on output:
``lockplan.core.resolution.closure`` prints as ``resolution.closure``.

Level precedence:
    --debug / --verbose / --quiet  >  LOCKPLAN_LOG_LEVEL  >  WARNING

File output via LOCKPLAN_LOG_FILE / LOCKPLAN_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

PACKAGE_LOGGER = "lockplan"

ENV_LEVEL = "LOCKPLAN_LOG_LEVEL"
ENV_FILE = "LOCKPLAN_LOG_FILE"
ENV_FILE_LEVEL = "LOCKPLAN_LOG_FILE_LEVEL"

_FMT_CONSOLE = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(shortname)s:%(lineno)d %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(shortname)s] %(message)s", "%H:%M:%S"),
}
# Collisions and failures only
_FMT_PLAIN = "%(levelname)s: %(message)s"

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


class _ShortNameFormatter(logging.Formatter):
    """Adds ``shortname``: the logger name without ``lockplan.core.``."""

    def format(self, record: logging.LogRecord) -> str:
        name = record.name
        for prefix in (f"{PACKAGE_LOGGER}.core.", f"{PACKAGE_LOGGER}."):
            if name.startswith(prefix):
                name = name[len(prefix):]
                break
        record.shortname = name
        return super().format(record)


def resolve_level(
    verbose: bool = False,
    quiet: bool = False,
    debug: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get(ENV_LEVEL, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure console (stderr) and optional file logging.

    Safe to call more than once; handlers from a previous call are
    replaced.
    """
    numeric_level = _parse_level(level)

    if numeric_level in _FMT_CONSOLE:
        fmt, datefmt = _FMT_CONSOLE[numeric_level]
    elif numeric_level < logging.INFO:
        fmt, datefmt = _FMT_CONSOLE[logging.DEBUG]
    else:
        fmt, datefmt = _FMT_PLAIN, None

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(_ShortNameFormatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root.setLevel(logging.WARNING)

    package_level = numeric_level
    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        package_level = min(package_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    logging.getLogger(PACKAGE_LOGGER).setLevel(package_level)


def _parse_level(level: str | None) -> int:
    """Level name to its numeric constant; unknown names mean WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
