"""
Git backend — tools that live in a cloned repository.

Two states per destination:

    Absent   no ``.git`` directory   → install/update clones
    Present  ``.git`` directory      → install/update pulls

A pull that hits local changes or diverged history fails as-is; the
receipt carries git's stderr and nothing is resolved automatically.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from bussin.adapters.base import Backend, BackendContext
from bussin.adapters.shell.command import CommandRunner, run_command
from bussin.core.errors import SyncFailed
from bussin.core.models.receipt import Receipt

logger = logging.getLogger(__name__)


class GitBackend(Backend):
    """Clone-or-pull repository sync.

    Args:
        runner: Subprocess runner (see ``adapters/shell/command.py``).
        timeout: Seconds allowed per git command.
    """

    def __init__(self, runner: CommandRunner = run_command, timeout: int = 600):
        self._runner = runner
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def install(self, context: BackendContext) -> Receipt:
        dest = context.destination
        assert dest is not None  # git tools always have a destination
        tool = context.tool

        try:
            if self.has_repository(dest):
                logger.info("Updating repository in %s...", dest)
                output = self.pull(dest)
                transition = "pull"
            else:
                logger.info("Cloning repository from %s into %s...", tool.source, dest)
                output = self.clone(tool.source, dest)
                transition = "clone"
        except SyncFailed as e:
            return Receipt.failure(
                backend=self.name,
                tool=tool.name,
                error=str(e),
                error_kind=e.kind,
                metadata={"destination": str(dest)},
            )

        return Receipt.success(
            backend=self.name,
            tool=tool.name,
            output=output.strip(),
            metadata={"transition": transition, "destination": str(dest)},
        )

    # ── Repository operations ───────────────────────────────────

    @staticmethod
    def has_repository(path: Path) -> bool:
        return (path / ".git").is_dir()

    def clone(self, url: str, path: Path) -> str:
        """Clone ``url`` into ``path``. Raises SyncFailed."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SyncFailed(f"Cannot create {path.parent}: {e}") from e
        return self._git(["clone", url, str(path)], cwd=None)

    def pull(self, path: Path) -> str:
        """Pull in an existing clone. Raises SyncFailed."""
        return self._git(["pull"], cwd=str(path))

    def _git(self, args: list[str], cwd: str | None) -> str:
        result = self._runner(["git", *args], cwd=cwd, timeout=self._timeout)
        if not result.get("ok"):
            raise SyncFailed(f"git {args[0]} failed: {result.get('error', 'unknown error')}")
        return result.get("stdout", "")
