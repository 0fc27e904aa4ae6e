"""
Domain models — Pydantic types for the tool registry.

All models are re-exported here for convenient access:

    from bussin.core.models import ToolRecord, ToolKind, Receipt
"""

from bussin.core.models.receipt import Receipt
from bussin.core.models.tool import (
    APT_DEST,
    FIELD_DELIMITER,
    ToolKind,
    ToolRecord,
    derive_tool_name,
    infer_kind,
    normalize_dest,
)

__all__ = [
    "APT_DEST",
    "FIELD_DELIMITER",
    # receipt.py
    "Receipt",
    # tool.py
    "ToolKind",
    "ToolRecord",
    "derive_tool_name",
    "infer_kind",
    "normalize_dest",
]
