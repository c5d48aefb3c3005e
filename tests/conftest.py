"""
Shared test fixtures and configuration.
"""

import json
import textwrap
from pathlib import Path

import pytest

from lockplan.core.lockfile.model import parse_lockfile

REGISTRY = "https://registry.npmjs.org"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def load_fixture(fixtures_dir: Path):
    """Parse one of the JSON lockfiles under tests/fixtures/."""

    def _load(name: str, **kwargs):
        data = json.loads((fixtures_dir / f"{name}.json").read_text())
        return parse_lockfile(data, **kwargs)

    return _load


@pytest.fixture
def remote():
    """Build a registry package entry."""

    def _remote(name: str, version: str = "1.0.0", **fields) -> dict:
        base = name.rsplit("/", 1)[-1]
        entry = {
            "version": version,
            "resolved": f"{REGISTRY}/{name}/-/{base}-{version}.tgz",
            "integrity": f"sha512-{base}{version}",
        }
        entry.update(fields)
        return entry

    return _remote


@pytest.fixture
def make_lock():
    """Build raw lockfile data from a root manifest and package entries."""

    def _make(packages: dict | None = None, root: dict | None = None, name: str = "app") -> dict:
        root_entry = {"name": name, "version": "1.0.0"}
        root_entry.update(root or {})
        return {
            "name": name,
            "version": "1.0.0",
            "lockfileVersion": 3,
            "requires": True,
            "packages": {"": root_entry, **(packages or {})},
        }

    return _make


@pytest.fixture
def write_project(tmp_path: Path, fixtures_dir: Path):
    """Write package-lock.json (and optionally lockplan.yml) into tmp_path.

    ``lock`` is raw lockfile data or the name of a JSON fixture. Returns
    the config path when a config is written, else the lockfile path.
    """

    def _write(lock, config: str | None = None) -> Path:
        if isinstance(lock, str):
            lock = json.loads((fixtures_dir / f"{lock}.json").read_text())
        lock_path = tmp_path / "package-lock.json"
        lock_path.write_text(json.dumps(lock, indent=2))
        if config is None:
            return lock_path
        config_path = tmp_path / "lockplan.yml"
        config_path.write_text(textwrap.dedent(config))
        return config_path

    return _write
