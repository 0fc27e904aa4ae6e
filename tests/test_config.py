"""
Tests for configuration loading — config folder layout and config.yml.
"""

import textwrap
from pathlib import Path

import pytest

from bussin.core.config.loader import (
    BussinPaths,
    ConfigError,
    EngineConfig,
    default_config_dir,
    load_engine_config,
    resolve_paths,
)


class TestPaths:
    def test_layout(self, tmp_path: Path):
        paths = BussinPaths(config_dir=tmp_path)
        assert paths.registry_file == tmp_path / "tools_list.conf"
        assert paths.settings_file == tmp_path / "settings.conf"
        assert paths.log_file == tmp_path / "bussin.log"
        assert paths.engine_config_file == tmp_path / "config.yml"

    def test_ensure_creates_files(self, tmp_path: Path):
        paths = BussinPaths(config_dir=tmp_path / "bussin")
        paths.ensure()
        assert paths.registry_file.is_file()
        assert paths.settings_file.is_file()
        assert not paths.engine_config_file.exists()

    def test_ensure_keeps_existing(self, tmp_path: Path):
        paths = BussinPaths(config_dir=tmp_path)
        paths.registry_file.write_text("rg|.|binary|https://x/rg|\n")
        paths.ensure()
        assert paths.registry_file.read_text() == "rg|.|binary|https://x/rg|\n"

    def test_default_dir_from_home(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        assert default_config_dir() == tmp_path / ".config" / "bussin"

    def test_default_dir_from_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("BUSSIN_CONFIG_DIR", str(tmp_path / "custom"))
        assert default_config_dir() == tmp_path / "custom"

    def test_resolve_paths_explicit(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("BUSSIN_CONFIG_DIR", str(tmp_path / "ignored"))
        assert resolve_paths(tmp_path / "explicit").config_dir == tmp_path / "explicit"


class TestEngineConfig:
    def test_missing_file_defaults(self, tmp_path: Path):
        config = load_engine_config(tmp_path / "config.yml")
        assert config == EngineConfig()
        assert config.parallel is False
        assert config.max_workers is None
        assert config.fetch_retries == 3

    def test_empty_file_defaults(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("")
        assert load_engine_config(path) == EngineConfig()

    def test_valid(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text(textwrap.dedent("""\
            parallel: true
            max_workers: 4
            fetch_retries: 5
            fetch_timeout: 10
            git_timeout: 120
            default_install_dir: /opt/tools
        """))
        config = load_engine_config(path)
        assert config.parallel is True
        assert config.max_workers == 4
        assert config.fetch_retries == 5
        assert config.fetch_timeout == 10.0
        assert config.git_timeout == 120
        assert config.default_install_dir == "/opt/tools"
        assert config.apt_timeout == 1800

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("parallel: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_engine_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("- parallel\n- true\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_engine_config(path)

    def test_schema_violation(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_text("max_workers: 0\n")
        with pytest.raises(ConfigError, match="Invalid engine configuration"):
            load_engine_config(path)

    def test_unreadable(self, tmp_path: Path):
        path = tmp_path / "config.yml"
        path.write_bytes(b"\xff\xfe\x00bad")
        with pytest.raises(ConfigError):
            load_engine_config(path)
