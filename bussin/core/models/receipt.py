"""
Receipt model — the outcome of one backend call.

The engine dispatches a tool to its backend and gets a Receipt back.
Never an exception: failures are captured here with the error kind
taken from the taxonomy in ``bussin.core.errors``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Receipt(BaseModel):
    """Result of installing or updating a single tool."""

    backend: str                    # binary, git, apt
    tool: str
    operation: Literal["install", "update"] = "install"
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None
    error_kind: str | None = None   # FetchFailed, SyncFailed, ...

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the call succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the call failed."""
        return self.status == "failed"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @classmethod
    def success(
        cls,
        backend: str,
        tool: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(backend=backend, tool=tool, status="ok", output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        backend: str,
        tool: str,
        error: str,
        error_kind: str = "Error",
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            backend=backend,
            tool=tool,
            status="failed",
            error=error,
            error_kind=error_kind,
            **kwargs,
        )

    @classmethod
    def skip(
        cls,
        backend: str,
        tool: str,
        reason: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a skip receipt."""
        return cls(backend=backend, tool=tool, status="skipped", output=reason, **kwargs)
