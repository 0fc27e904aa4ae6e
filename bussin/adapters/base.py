"""
Backend base — the contract between the engine and a tool source.

Each tool kind (binary, git, apt) has one backend. The engine only
talks to backends through this protocol, via the BackendRegistry,
never to curl/git/apt directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel

from bussin.core.models.receipt import Receipt
from bussin.core.models.tool import ToolRecord


class BackendContext(BaseModel):
    """Everything a backend needs to install or update one tool."""

    tool: ToolRecord
    install_root: Path

    @property
    def destination(self) -> Path | None:
        """Where the tool lives on disk, or None for package-managed tools."""
        if self.tool.is_apt:
            return None
        return self.install_root / self.tool.relative_dest


class Backend(ABC):
    """Abstract base class for all backends.

    Backends perform external side effects and return receipts.
    They NEVER raise exceptions. Failures are captured in the Receipt.

    To add a new tool kind:
        1. Add the kind to ``ToolKind``
        2. Subclass Backend, implement name, is_available, install
        3. Register it in ``default_backends()``
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """The tool kind this backend handles (e.g., 'git')."""

    @property
    def supports_update(self) -> bool:
        """Whether update-all may dispatch to this backend."""
        return True

    @abstractmethod
    def is_available(self) -> bool:
        """Check that the underlying CLI exists. Fast, never raises."""

    @abstractmethod
    def install(self, context: BackendContext) -> Receipt:
        """Install the tool. MUST never raise."""

    def update(self, context: BackendContext) -> Receipt:
        """Update the tool. Defaults to a fresh install."""
        receipt = self.install(context)
        receipt.operation = "update"
        return receipt

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
