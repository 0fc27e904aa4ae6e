"""
Mock backend — test double for any tool kind.

Records every context it receives and returns success unless told
otherwise per tool name. Optional ``delay`` makes fan-out ordering
observable in tests.
"""

from __future__ import annotations

import threading
import time

from bussin.adapters.base import Backend, BackendContext
from bussin.core.models.receipt import Receipt


class MockBackend(Backend):
    """Configurable backend for tests.

    Args:
        kind: Tool kind to register under ('binary', 'git', 'apt').
        available: What ``is_available`` reports.
        supports_update: What ``supports_update`` reports.
        delay: Seconds to sleep per call, or a per-tool mapping.
    """

    def __init__(
        self,
        kind: str = "binary",
        available: bool = True,
        supports_update: bool = True,
        delay: float | dict[str, float] = 0.0,
    ):
        self._kind = kind
        self._available = available
        self._supports_update = supports_update
        self._delay = delay
        self._failures: dict[str, tuple[str, str]] = {}
        self._call_log: list[tuple[str, BackendContext]] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._kind

    @property
    def supports_update(self) -> bool:
        return self._supports_update

    @property
    def call_log(self) -> list[tuple[str, BackendContext]]:
        """``(operation, context)`` for every call, in call order."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def called_tools(self) -> list[str]:
        return [ctx.tool.name for _, ctx in self._call_log]

    def is_available(self) -> bool:
        return self._available

    def set_failure(self, tool: str, error: str = "Mock failure", kind: str = "FetchFailed") -> None:
        """Configure a specific tool to fail."""
        self._failures[tool] = (error, kind)

    def install(self, context: BackendContext) -> Receipt:
        return self._run("install", context)

    def update(self, context: BackendContext) -> Receipt:
        return self._run("update", context)

    def reset(self) -> None:
        """Clear call log and configured failures."""
        self._call_log.clear()
        self._failures.clear()

    def _run(self, operation: str, context: BackendContext) -> Receipt:
        name = context.tool.name
        delay = self._delay.get(name, 0.0) if isinstance(self._delay, dict) else self._delay
        if delay:
            time.sleep(delay)

        with self._lock:
            self._call_log.append((operation, context))

        if name in self._failures:
            error, kind = self._failures[name]
            return Receipt.failure(backend=self._kind, tool=name, error=error, error_kind=kind)
        return Receipt.success(
            backend=self._kind,
            tool=name,
            output=f"[mock] {operation} {name}",
            metadata={"mock": True},
        )
