"""
Subprocess runner — the single place git and apt commands are executed.

Backends take the runner as a constructor argument so tests can swap in
a fake that records commands instead of running them.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

# (cmd, cwd, timeout) -> result dict
CommandRunner = Callable[..., dict[str, Any]]

_TAIL = 2000


def run_command(
    cmd: list[str],
    *,
    cwd: str | None = None,
    timeout: int = 300,
    needs_sudo: bool = False,
) -> dict[str, Any]:
    """Run a command and capture its output.

    Args:
        cmd: Command list for ``subprocess.run()``.
        cwd: Working directory.
        timeout: Seconds before the command is killed.
        needs_sudo: Prefix with ``sudo`` unless already root. sudo asks
            for the password on the terminal itself.

    Returns:
        ``{"ok": True, "stdout": "...", "elapsed_ms": N}`` on success,
        ``{"ok": False, "error": "...", "stderr": "...", ...}`` on failure.
    """
    if needs_sudo and os.geteuid() != 0:
        cmd = ["sudo", *cmd]

    logger.debug("Executing: %s (cwd=%s)", " ".join(cmd), cwd)
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"Command timed out ({timeout}s)"}
    except OSError as e:
        return {"ok": False, "error": f"Cannot run {cmd[0]}: {e}"}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = result.stdout[-_TAIL:] if result.stdout else ""
    stderr = result.stderr[-_TAIL:] if result.stderr else ""

    if result.returncode == 0:
        return {"ok": True, "stdout": stdout, "elapsed_ms": elapsed_ms}

    return {
        "ok": False,
        "error": stderr.strip() or f"Command failed (exit {result.returncode})",
        "stderr": stderr,
        "stdout": stdout,
        "returncode": result.returncode,
        "elapsed_ms": elapsed_ms,
    }
