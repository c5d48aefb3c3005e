"""
lockplan — plan npm node_modules layouts from a lockfile, offline.
"""

__version__ = "0.1.0"
