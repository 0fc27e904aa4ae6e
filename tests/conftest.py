"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from bussin.adapters.mock import MockBackend
from bussin.adapters.registry import BackendRegistry
from bussin.core.config.loader import EngineConfig
from bussin.core.context import EngineContext
from bussin.core.persistence.registry_file import RegistryStore

_ENV_VARS = (
    "BUSSIN_CONFIG_DIR",
    "BUSSIN_INSTALL_DIR",
    "BUSSIN_LOG_LEVEL",
    "BUSSIN_LOG_FILE",
    "BUSSIN_LOG_FILE_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the developer's own bussin settings out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Return a temporary config folder."""
    path = tmp_path / "config"
    path.mkdir()
    return path


@pytest.fixture
def install_root(tmp_path: Path) -> Path:
    """Return a temporary install root."""
    path = tmp_path / "tools"
    path.mkdir()
    return path


@pytest.fixture
def store(config_dir: Path) -> RegistryStore:
    store = RegistryStore(config_dir / "tools_list.conf")
    store.path.touch()
    return store


@pytest.fixture
def mocks() -> dict[str, MockBackend]:
    """One mock backend per tool kind; apt has no update, like the real one."""
    return {
        "binary": MockBackend(kind="binary"),
        "git": MockBackend(kind="git"),
        "apt": MockBackend(kind="apt", supports_update=False),
    }


@pytest.fixture
def backends(mocks: dict[str, MockBackend]) -> BackendRegistry:
    registry = BackendRegistry()
    for backend in mocks.values():
        registry.register(backend)
    return registry


@pytest.fixture
def engine(store: RegistryStore, backends: BackendRegistry, install_root: Path) -> EngineContext:
    return EngineContext(
        store=store,
        backends=backends,
        install_root=install_root,
        config=EngineConfig(),
    )
