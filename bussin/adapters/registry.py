"""
Backend registry — central dispatch for all backend operations.

Looks a backend up by the tool's kind and runs install or update
through it. The orchestrator never talks to backends directly; always
through the registry, which guarantees a Receipt comes back.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from bussin.adapters.base import Backend, BackendContext
from bussin.core.models.receipt import Receipt
from bussin.core.models.tool import ToolRecord

logger = logging.getLogger(__name__)

MISSING_DEPENDENCY = "MissingDependency"

Operation = Literal["install", "update"]


class BackendRegistry:
    """Kind → backend lookup and dispatcher."""

    def __init__(self) -> None:
        self._backends: dict[str, Backend] = {}

    def register(self, backend: Backend) -> None:
        name = backend.name
        if name in self._backends:
            logger.warning("Overwriting existing backend: %s", name)
        self._backends[name] = backend
        logger.debug("Registered backend: %s", name)

    def get(self, name: str) -> Backend | None:
        return self._backends.get(name)

    def list_backends(self) -> list[str]:
        return list(self._backends.keys())

    def backend_status(self) -> dict[str, dict[str, Any]]:
        """Availability of every registered backend."""
        status = {}
        for name, backend in self._backends.items():
            try:
                available = backend.is_available()
            except Exception:
                available = False
            status[name] = {
                "name": name,
                "available": available,
                "type": backend.__class__.__name__,
            }
        return status

    def missing_dependencies(self, kinds: Iterable[str]) -> list[str]:
        """Kinds (in first-seen order) whose backend is missing or unavailable."""
        status = self.backend_status()
        missing: list[str] = []
        for kind in kinds:
            if kind in missing:
                continue
            if not status.get(kind, {}).get("available", False):
                missing.append(kind)
        return missing

    def dispatch(
        self,
        tool: ToolRecord,
        operation: Operation,
        install_root: Path,
        dry_run: bool = False,
    ) -> Receipt:
        """Run one tool through its backend.

        1. Resolve the backend for ``tool.kind``
        2. Skip updates the backend does not support
        3. Check the backend's CLI is available
        4. Execute (or dry-run)
        5. Return a timed Receipt (never raises)
        """
        start_time = time.monotonic()
        started_at = datetime.now(UTC).isoformat()
        kind = tool.kind.value

        backend = self._backends.get(kind)
        if backend is None:
            return Receipt.failure(
                backend=kind,
                tool=tool.name,
                operation=operation,
                error=f"No backend registered for kind '{kind}'",
            )

        if operation == "update" and not backend.supports_update:
            return Receipt.skip(
                backend=kind,
                tool=tool.name,
                operation=operation,
                reason=f"Skipping update for {kind} package '{tool.name}'.",
            )

        if not backend.is_available():
            return Receipt.failure(
                backend=kind,
                tool=tool.name,
                operation=operation,
                error=f"Dependency for '{kind}' tools not found. Please install it.",
                error_kind=MISSING_DEPENDENCY,
            )

        if dry_run:
            return Receipt.skip(
                backend=kind,
                tool=tool.name,
                operation=operation,
                reason=f"[dry-run] Would {operation} {tool.name}",
                metadata={"dry_run": True},
            )

        context = BackendContext(tool=tool, install_root=install_root)
        try:
            if operation == "update":
                receipt = backend.update(context)
            else:
                receipt = backend.install(context)
        except Exception as e:
            # Backends should never raise
            logger.error("Backend %s raised for %s: %s", kind, tool.name, e)
            receipt = Receipt.failure(
                backend=kind,
                tool=tool.name,
                operation=operation,
                error=f"Unexpected error: {e}",
            )

        receipt.operation = operation
        receipt.started_at = started_at
        receipt.ended_at = datetime.now(UTC).isoformat()
        receipt.duration_ms = int((time.monotonic() - start_time) * 1000)
        return receipt
