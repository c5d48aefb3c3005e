"""Use cases — top-level orchestration for the CLI."""
