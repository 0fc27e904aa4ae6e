"""
Settings resolver — the default installation root.

settings.conf holds ``KEY=VALUE`` lines; the only key used is
``DEFAULT_INSTALL_DIR``. The first time a command needs the install root
and the key is absent, the value comes from a configured source or from
the user, and is written back before anything else happens. After that
it is read, never asked for again.

The resolved root is an explicit value: callers put it into the
``EngineContext`` instead of reading a process-wide global.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from bussin.core.errors import UnresolvableRoot
from bussin.core.persistence.atomic import atomic_write_text

logger = logging.getLogger(__name__)

INSTALL_DIR_KEY = "DEFAULT_INSTALL_DIR"
PROMPT_MESSAGE = "Enter default installation directory (absolute path)"


def read_settings(path: Path) -> dict[str, str]:
    """Parse a settings file. The first occurrence of a key wins."""
    settings: dict[str, str] = {}
    if not path.is_file():
        return settings
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        settings.setdefault(key.strip(), value.strip())
    return settings


def write_setting(path: Path, key: str, value: str) -> None:
    """Set ``key`` in a settings file, keeping every other line."""
    lines = path.read_text(encoding="utf-8").splitlines() if path.is_file() else []
    out: list[str] = []
    replaced = False
    for line in lines:
        if not replaced and line.strip().startswith(f"{key}="):
            out.append(f"{key}={value}")
            replaced = True
        else:
            out.append(line)
    if not replaced:
        out.append(f"{key}={value}")
    atomic_write_text(path, "\n".join(out) + "\n")


class SettingsResolver:
    """Resolve ``DEFAULT_INSTALL_DIR`` once per process.

    Sources, in order: the persisted value, the configured value
    (``--install-dir`` / ``BUSSIN_INSTALL_DIR`` / config.yml), the prompt.
    Without a prompt (non-interactive run) and without the first two,
    resolution fails fast instead of blocking on stdin.

    Args:
        settings_file: Path to settings.conf.
        configured: Value to persist if nothing is stored yet.
        prompt: Called with the prompt message; returns the user's input.
    """

    def __init__(
        self,
        settings_file: Path,
        configured: str | None = None,
        prompt: Callable[[str], str] | None = None,
    ):
        self._settings_file = settings_file
        self._configured = configured
        self._prompt = prompt
        self._resolved: Path | None = None

    @property
    def settings_file(self) -> Path:
        return self._settings_file

    def persisted_root(self) -> str | None:
        """The stored value, or None when absent or empty."""
        return read_settings(self._settings_file).get(INSTALL_DIR_KEY) or None

    def resolve_install_root(self) -> Path:
        """Return the install root, obtaining and persisting it if needed.

        Raises:
            UnresolvableRoot: No stored value, no configured value and no
                interactive channel; or the value is not an absolute path.
        """
        if self._resolved is not None:
            return self._resolved

        value = self.persisted_root()
        if value is None:
            value = self._obtain()
            root = _validate_root(value)
            write_setting(self._settings_file, INSTALL_DIR_KEY, str(root))
            logger.info("Saved default installation directory %s to %s", root, self._settings_file)
        else:
            root = _validate_root(value)

        self._resolved = root
        return root

    def _obtain(self) -> str:
        if self._configured:
            return self._configured
        if self._prompt is None:
            raise UnresolvableRoot(
                f"No default installation directory configured in {self._settings_file} "
                "and no terminal to ask. Pass --install-dir or set BUSSIN_INSTALL_DIR."
            )
        logger.info("No default installation directory configured.")
        return self._prompt(PROMPT_MESSAGE)


def _validate_root(value: str) -> Path:
    root = Path(value.strip()).expanduser()
    if not value.strip() or not root.is_absolute():
        raise UnresolvableRoot(f"Installation directory must be an absolute path, got '{value}'")
    return root
