"""
Configuration loader — config folder layout and engine options.

bussin keeps everything in one folder (``~/.config/bussin`` unless
``BUSSIN_CONFIG_DIR`` says otherwise):

    tools_list.conf   registry (see persistence/registry_file.py)
    settings.conf     DEFAULT_INSTALL_DIR=... (see config/settings.py)
    bussin.log        log file
    config.yml        optional engine options (this module)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "BUSSIN_CONFIG_DIR"
INSTALL_DIR_ENV = "BUSSIN_INSTALL_DIR"

REGISTRY_FILE = "tools_list.conf"
SETTINGS_FILE = "settings.conf"
LOG_FILE = "bussin.log"
ENGINE_CONFIG_FILE = "config.yml"


class ConfigError(Exception):
    """Raised when config.yml is invalid."""


@dataclass(frozen=True)
class BussinPaths:
    """Resolved file layout of a config folder."""

    config_dir: Path

    @property
    def registry_file(self) -> Path:
        return self.config_dir / REGISTRY_FILE

    @property
    def settings_file(self) -> Path:
        return self.config_dir / SETTINGS_FILE

    @property
    def log_file(self) -> Path:
        return self.config_dir / LOG_FILE

    @property
    def engine_config_file(self) -> Path:
        return self.config_dir / ENGINE_CONFIG_FILE

    def ensure(self) -> None:
        """Create the folder plus empty registry and settings files."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        for path in (self.registry_file, self.settings_file):
            if not path.exists():
                path.touch()


def default_config_dir() -> Path:
    """``$BUSSIN_CONFIG_DIR``, else ``~/.config/bussin``."""
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "bussin"


def resolve_paths(config_dir: Path | None = None) -> BussinPaths:
    return BussinPaths(config_dir=(config_dir or default_config_dir()).expanduser())


class EngineConfig(BaseModel):
    """Optional engine tuning, read from config.yml."""

    parallel: bool = False
    max_workers: int | None = Field(default=None, ge=1)  # None = one thread per tool

    fetch_retries: int = Field(default=3, ge=0)
    fetch_timeout: float = Field(default=60.0, gt=0)
    retry_delay: float = Field(default=1.0, ge=0)
    github_api: str = "https://api.github.com"
    user_agent: str = "bussin"

    git_timeout: int = Field(default=600, gt=0)
    apt_timeout: int = Field(default=1800, gt=0)

    default_install_dir: str | None = None


def load_engine_config(path: Path) -> EngineConfig:
    """Load config.yml, or defaults when the file is absent.

    Raises:
        ConfigError: If the file is unreadable, not a mapping, or invalid.
    """
    if not path.is_file():
        logger.debug("No engine config at %s, using defaults", path)
        return EngineConfig()

    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return EngineConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = EngineConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid engine configuration: {e}") from e

    logger.debug("Loaded engine config from %s", path)
    return config
