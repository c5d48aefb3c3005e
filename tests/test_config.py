"""
Tests for configuration loading — lockplan.yml parsing and validation.
"""

import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from lockplan.core.config.loader import ConfigError, find_config_file, load_config
from lockplan.core.config.overrides import build_override_map, override_identity
from lockplan.core.engine.overrides import apply_overrides
from lockplan.core.models.artifact import Artifact
from lockplan.core.models.config import LockplanConfig, OverrideSpec


@pytest.fixture
def full_config_yml(tmp_path: Path) -> Path:
    """A lockplan.yml using every key."""
    content = textwrap.dedent("""\
        version: 1
        name: my-app
        lockfile: locks/package-lock.json
        install_dev: false
        peer_dependencies: required
        link_mode: copy
        max_depth: 64
        max_nodes: 5000
        workspaces:
          - packages/app
        overrides:
          node_modules/left-pad:
            replace: "file:./vendor/left-pad"
            version: "1.3.1"
          node_modules/sharp:
            patch:
              - "node scripts/fix-sharp.js"
            link_mode: copy
        output_dir: .plans
    """)
    path = tmp_path / "lockplan.yml"
    path.write_text(content)
    return path


class TestLoadConfig:
    """Tests for load_config."""

    def test_full(self, full_config_yml: Path):
        config = load_config(full_config_yml)
        assert config.name == "my-app"
        assert config.lockfile == "locks/package-lock.json"
        assert config.install_dev is False
        assert config.peers_required is True
        assert config.link_mode == "copy"
        assert config.max_depth == 64
        assert config.max_nodes == 5000
        assert config.output_dir == ".plans"
        assert config.overrides["node_modules/left-pad"].replace == "file:./vendor/left-pad"
        assert config.overrides["node_modules/sharp"].patch == ["node scripts/fix-sharp.js"]

    def test_wrapped(self, tmp_path: Path):
        path = tmp_path / "lockplan.yml"
        path.write_text("lockplan:\n  name: wrapped\n  link_mode: copy\n")
        config = load_config(path)
        assert config.name == "wrapped"
        assert config.link_mode == "copy"

    def test_empty_file_is_defaults(self, tmp_path: Path):
        path = tmp_path / "lockplan.yml"
        path.write_text("")
        assert load_config(path) == LockplanConfig()

    def test_defaults_without_file(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = load_config()
        assert config.lockfile == "package-lock.json"
        assert config.install_dev is True
        assert config.peers_required is False
        assert config.link_mode == "link"

    def test_explicit_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "lockplan.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "lockplan.yml"
        path.write_text("name: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "lockplan.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_invalid_values(self, tmp_path: Path):
        path = tmp_path / "lockplan.yml"
        path.write_text("link_mode: hardlink\n")
        with pytest.raises(ConfigError, match="Invalid lockplan configuration"):
            load_config(path)

    def test_bad_override_shape(self, tmp_path: Path):
        path = tmp_path / "lockplan.yml"
        path.write_text(textwrap.dedent("""\
            overrides:
              node_modules/x:
                replace: "file:./x"
                patch: ["echo"]
        """))
        with pytest.raises(ConfigError, match="mutually exclusive"):
            load_config(path)


class TestFindConfigFile:
    """Tests for the upward search."""

    def test_in_start_dir(self, tmp_path: Path):
        (tmp_path / "lockplan.yml").write_text("name: x\n")
        assert find_config_file(tmp_path) == (tmp_path / "lockplan.yml").resolve()

    def test_walks_up(self, tmp_path: Path):
        (tmp_path / "lockplan.yml").write_text("name: x\n")
        nested = tmp_path / "packages" / "app"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == (tmp_path / "lockplan.yml").resolve()


class TestConfigModel:
    """Tests for LockplanConfig and OverrideSpec."""

    def test_allows_workspace(self):
        assert LockplanConfig().allows_workspace("anything")
        config = LockplanConfig(workspaces=["packages/app"])
        assert config.allows_workspace("packages/app")
        assert not config.allows_workspace("packages/docs")

    def test_limits_positive(self):
        with pytest.raises(ValidationError):
            LockplanConfig(max_nodes=0)

    def test_empty_override_rejected(self):
        with pytest.raises(ValidationError):
            OverrideSpec()


class TestOverrideMap:
    """Config overrides become substitutions."""

    def _artifacts(self):
        return {
            key: Artifact(key=key, name=key.rsplit("/", 1)[-1], source=f"https://r/{key}.tgz")
            for key in ("node_modules/left-pad", "node_modules/sharp", "node_modules/other")
        }

    def test_build(self, full_config_yml: Path):
        config = load_config(full_config_yml)
        result = apply_overrides(self._artifacts(), build_override_map(config.overrides))

        left_pad = result["node_modules/left-pad"]
        assert left_pad.kind == "replacement"
        assert left_pad.version == "1.3.1"
        assert left_pad.source == "file:./vendor/left-pad"

        sharp = result["node_modules/sharp"]
        assert sharp.patches == ("node scripts/fix-sharp.js",)
        assert sharp.link_mode == "copy"

        assert result["node_modules/other"] == self._artifacts()["node_modules/other"]

    def test_link_mode_only(self):
        overrides = build_override_map({"node_modules/other": OverrideSpec(link_mode="copy")})
        result = apply_overrides(self._artifacts(), overrides)
        assert result["node_modules/other"].link_mode == "copy"

    def test_identity(self):
        spec = {"node_modules/x": OverrideSpec(patch=["echo"])}
        assert override_identity({}) == ""
        assert override_identity(spec) == override_identity(dict(spec))
        assert override_identity(spec) != override_identity(
            {"node_modules/x": OverrideSpec(patch=["echo", "again"])}
        )
