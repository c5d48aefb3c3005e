"""Logging setup."""

from lockplan.core.observability.logging_config import setup_logging

__all__ = ["setup_logging"]
