"""
ToolRecord — the unit of management.

One registered tool: where it comes from, where it lives under the
install root, and which backend owns it. Records are persisted one per
line in the registry file (see ``bussin.core.persistence.registry_file``
for the wire format), so no field may contain the ``|`` delimiter.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import PurePosixPath
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator, model_validator

FIELD_DELIMITER = "|"
APT_DEST = "apt"


class ToolKind(StrEnum):
    """Backend family of a tool."""

    BINARY = "binary"
    GIT = "git"
    APT = "apt"


def normalize_dest(dest: str) -> str:
    """Strip leading separators so the path always joins under the root.

    Raises:
        ValueError: If a ``..`` segment would climb out of the root.
    """
    cleaned = dest.strip().lstrip("/")
    if ".." in PurePosixPath(cleaned).parts:
        raise ValueError(f"destination must stay under the install root: {dest!r}")
    return cleaned or "."


def _check_delimiter(value: str, field: str) -> str:
    if FIELD_DELIMITER in value or "\n" in value or "\r" in value:
        raise ValueError(f"{field} must not contain '{FIELD_DELIMITER}' or line breaks")
    return value


class ToolRecord(BaseModel):
    """A managed tool.

    Invariants:
        - ``name`` and ``source`` are non-empty.
        - ``kind == apt`` if and only if ``relative_dest == "apt"``.
        - ``relative_dest`` never starts with ``/`` nor contains ``..``.
    """

    name: str
    relative_dest: str = "."
    kind: ToolKind
    source: str
    checksum: str = ""

    @field_validator("name", "source")
    @classmethod
    def _non_empty(cls, value: str, info) -> str:
        value = value.strip()
        if not value:
            raise ValueError(f"{info.field_name} must not be empty")
        return _check_delimiter(value, info.field_name)

    @field_validator("relative_dest")
    @classmethod
    def _normalize_dest(cls, value: str) -> str:
        return _check_delimiter(normalize_dest(value), "relative_dest")

    @field_validator("checksum")
    @classmethod
    def _clean_checksum(cls, value: str) -> str:
        return _check_delimiter(value.strip(), "checksum")

    @model_validator(mode="after")
    def _apt_sentinel(self) -> ToolRecord:
        if self.kind == ToolKind.APT:
            self.relative_dest = APT_DEST
        elif self.relative_dest == APT_DEST:
            raise ValueError(
                f"destination '{APT_DEST}' is reserved for apt packages"
            )
        return self

    @property
    def is_apt(self) -> bool:
        return self.kind == ToolKind.APT


def derive_tool_name(source: str, kind: ToolKind | str) -> str:
    """Derive a default tool name from its source.

    git:    ``https://host/org/repo.git`` → ``repo``
    binary: ``https://host/path/tool.sh`` → ``tool`` (``.sh``/``.py`` dropped)
    apt:    the package name itself
    """
    kind = ToolKind(kind)
    if kind == ToolKind.APT:
        return source.strip()

    path = urlparse(source.strip()).path or source.strip()
    base = PurePosixPath(path.rstrip("/")).name

    if kind == ToolKind.GIT:
        return base.removesuffix(".git")

    base = base.removesuffix(".sh")
    return base.removesuffix(".py")


def infer_kind(source: str) -> ToolKind:
    """A source ending in ``.git`` is a repository; anything else a binary."""
    return ToolKind.GIT if source.strip().endswith(".git") else ToolKind.BINARY
