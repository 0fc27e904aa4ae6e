"""
APT backend — tools owned by the system package manager.

Install is one privileged ``apt-get install -y <package>``. There is no
update: upgrades belong to the package manager, so update-all skips
these tools.
"""

from __future__ import annotations

import logging
import shutil

from bussin.adapters.base import Backend, BackendContext
from bussin.adapters.shell.command import CommandRunner, run_command
from bussin.core.errors import PackageInstallFailed
from bussin.core.models.receipt import Receipt

logger = logging.getLogger(__name__)


class AptBackend(Backend):
    """Install packages with apt-get."""

    def __init__(self, runner: CommandRunner = run_command, timeout: int = 1800):
        self._runner = runner
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "apt"

    @property
    def supports_update(self) -> bool:
        return False

    def is_available(self) -> bool:
        return shutil.which("apt-get") is not None

    def install(self, context: BackendContext) -> Receipt:
        package = context.tool.source
        try:
            output = self.install_package(package)
        except PackageInstallFailed as e:
            return Receipt.failure(
                backend=self.name,
                tool=context.tool.name,
                error=str(e),
                error_kind=e.kind,
                metadata={"package": package},
            )
        return Receipt.success(
            backend=self.name,
            tool=context.tool.name,
            output=output.strip(),
            metadata={"package": package},
        )

    def install_package(self, package: str) -> str:
        """Raises PackageInstallFailed."""
        logger.info("Installing APT package: %s", package)
        result = self._runner(
            ["apt-get", "install", "-y", package],
            timeout=self._timeout,
            needs_sudo=True,
        )
        if not result.get("ok"):
            raise PackageInstallFailed(
                f"apt-get install {package} failed: {result.get('error', 'unknown error')}"
            )
        return result.get("stdout", "")
