"""
Engine context — the explicit configuration every operation runs with.

The install root is resolved once by the SettingsResolver and then
travels inside this value, together with the registry store, the
backend registry and the engine options. Nothing in the engine reads
it from a module-level global.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from bussin.adapters.registry import BackendRegistry
from bussin.core.config.loader import EngineConfig
from bussin.core.persistence.registry_file import RegistryStore


@dataclass
class EngineContext:
    """What the orchestrator needs for one invocation."""

    store: RegistryStore
    backends: BackendRegistry
    install_root: Path
    config: EngineConfig = field(default_factory=EngineConfig)


def default_backends(config: EngineConfig | None = None) -> BackendRegistry:
    """Backend registry with the real binary, git and apt backends."""
    from bussin.adapters.net.http import HttpClient
    from bussin.adapters.packages.apt import AptBackend
    from bussin.adapters.release.fetcher import ReleaseAssetBackend
    from bussin.adapters.vcs.git import GitBackend

    config = config or EngineConfig()
    http = HttpClient(
        retries=config.fetch_retries,
        timeout=config.fetch_timeout,
        retry_delay=config.retry_delay,
        api_base=config.github_api,
        user_agent=config.user_agent,
    )

    registry = BackendRegistry()
    registry.register(ReleaseAssetBackend(http))
    registry.register(GitBackend(timeout=config.git_timeout))
    registry.register(AptBackend(timeout=config.apt_timeout))
    return registry
