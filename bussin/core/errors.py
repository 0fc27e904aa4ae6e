"""
Error taxonomy — every failure the engine can name.

Store, settings and network layers raise these. Backends catch the
``BackendError`` family and turn it into a failed Receipt whose
``error_kind`` is the class's ``kind``, so a batch never aborts on one
tool's failure.
"""

from __future__ import annotations


class BussinError(Exception):
    """Base class for all bussin errors."""

    kind = "Error"


class DuplicateTool(BussinError):
    """A tool with the same name is already registered."""

    kind = "DuplicateTool"


class ToolNotFound(BussinError):
    """No registered tool has the requested name."""

    kind = "NotFound"


class BackupNotFound(BussinError):
    """A backup reference does not resolve to an existing file."""

    kind = "BackupNotFound"


class UnresolvableRoot(BussinError):
    """The default installation directory could not be determined."""

    kind = "UnresolvableRoot"


# ── Backend failures ────────────────────────────────────────────


class BackendError(BussinError):
    """A backend call failed. Isolated to the tool it concerns."""

    kind = "BackendError"


class FetchFailed(BackendError):
    """Network fetch or release lookup failed."""

    kind = "FetchFailed"


class AssetNotFound(FetchFailed):
    """The latest release no longer publishes the expected asset."""

    kind = "AssetNotFound"


class SyncFailed(BackendError):
    """A repository clone or pull failed."""

    kind = "SyncFailed"


class PackageInstallFailed(BackendError):
    """The system package manager refused or failed the install."""

    kind = "PackageInstallFailed"
