"""Core domain: lockfile parsing, resolution, override and tree planning."""
