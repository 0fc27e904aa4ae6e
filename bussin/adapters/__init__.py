"""Backends — per-kind install/update implementations.

Public re-exports for convenient access.
"""

from bussin.adapters.base import Backend, BackendContext
from bussin.adapters.mock import MockBackend
from bussin.adapters.registry import BackendRegistry

__all__ = [
    "Backend",
    "BackendContext",
    "BackendRegistry",
    "MockBackend",
]
