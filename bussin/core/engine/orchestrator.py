"""
Orchestrator — turns a requested operation into backend calls.

    add          install once, register only if the install succeeded
    install-all  list the registry, install every tool
    update-all   list the registry, update every non-apt tool
    remove       drop the record and its artifact directory

Batches run sequentially (registry order, one at a time) or fanned out
(one thread per tool, no cap unless ``max_workers`` is configured, joined
before returning). Either way a failing tool never stops the others and
receipts come back in registry order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any

from bussin.adapters.registry import Operation
from bussin.core.context import EngineContext
from bussin.core.errors import ToolNotFound
from bussin.core.models.receipt import Receipt
from bussin.core.models.tool import ToolRecord

logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    """Outcome of install-all or update-all."""

    operation: str = ""
    parallel: bool = False
    receipts: list[Receipt] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.receipts)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.receipts if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.receipts if r.failed)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.receipts if r.skipped)

    @property
    def failures(self) -> list[Receipt]:
        return [r for r in self.receipts if r.failed]

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "parallel": self.parallel,
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


@dataclass
class AddResult:
    """Outcome of adding one tool."""

    tool: ToolRecord
    receipt: Receipt | None = None
    registered: bool = False
    duplicate: bool = False

    @property
    def ok(self) -> bool:
        return self.receipt is not None and not self.receipt.failed

    @property
    def error(self) -> str | None:
        return self.receipt.error if self.receipt else None

    @property
    def error_kind(self) -> str | None:
        return self.receipt.error_kind if self.receipt else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool.model_dump(mode="json"),
            "registered": self.registered,
            "duplicate": self.duplicate,
            "receipt": self.receipt.model_dump(mode="json") if self.receipt else None,
        }


@dataclass
class RemoveResult:
    """Outcome of removing one tool."""

    name: str
    record: ToolRecord | None = None
    error: str | None = None
    error_kind: str | None = None

    @property
    def removed(self) -> bool:
        return self.record is not None


# ── Single-tool operations ──────────────────────────────────────


def add_tool(ctx: EngineContext, record: ToolRecord, dry_run: bool = False) -> AddResult:
    """Install a tool once, then register it.

    A failed install leaves the registry untouched. Registering a name
    that already exists is a no-op (the first record wins).
    """
    result = AddResult(tool=record)
    logger.info("Adding %s (%s) from %s", record.name, record.kind.value, record.source)

    result.receipt = _dispatch(ctx, record, "install", dry_run)
    if result.receipt.failed:
        logger.info(
            "Add of %s failed [%s]: %s",
            record.name,
            result.receipt.error_kind,
            result.receipt.error,
        )
        return result

    if dry_run:
        result.duplicate = ctx.store.get(record.name) is not None
        return result

    result.registered = ctx.store.add(record)
    result.duplicate = not result.registered
    return result


def remove_tool(ctx: EngineContext, name: str) -> RemoveResult:
    """Remove a tool from the registry and delete its files."""
    result = RemoveResult(name=name)
    try:
        result.record = ctx.store.remove(name, install_root=ctx.install_root)
    except ToolNotFound as e:
        logger.info("%s", e)
        result.error = str(e)
        result.error_kind = e.kind
    return result


# ── Batches ─────────────────────────────────────────────────────


def install_all(
    ctx: EngineContext,
    parallel: bool | None = None,
    dry_run: bool = False,
) -> BatchReport:
    """Install every registered tool."""
    tools = list(ctx.store.list_tools())
    return run_batch(ctx, tools, "install", parallel=parallel, dry_run=dry_run)


def update_all(
    ctx: EngineContext,
    parallel: bool | None = None,
    dry_run: bool = False,
) -> BatchReport:
    """Update every registered tool; apt tools are reported as skipped."""
    tools = list(ctx.store.list_tools())
    return run_batch(ctx, tools, "update", parallel=parallel, dry_run=dry_run)


def run_batch(
    ctx: EngineContext,
    tools: list[ToolRecord],
    operation: Operation,
    parallel: bool | None = None,
    dry_run: bool = False,
) -> BatchReport:
    """Dispatch ``operation`` for each tool and collect receipts in order.

    Args:
        ctx: Engine context.
        tools: Tools in registry order.
        operation: 'install' or 'update'.
        parallel: Fan out across threads. None falls back to the config.
        dry_run: Validate only, don't touch anything.

    Returns:
        BatchReport whose receipts line up with ``tools``.
    """
    if parallel is None:
        parallel = ctx.config.parallel

    report = BatchReport(operation=operation, parallel=parallel)
    slots: list[Receipt | None] = [None] * len(tools)
    pending: list[tuple[int, ToolRecord]] = []

    for index, tool in enumerate(tools):
        if operation == "update" and not _updatable(ctx, tool):
            slots[index] = Receipt.skip(
                backend=tool.kind.value,
                tool=tool.name,
                operation="update",
                reason=f"Skipping update for apt package '{tool.name}'.",
            )
        else:
            pending.append((index, tool))

    if parallel and len(pending) > 1:
        workers = min(ctx.config.max_workers or len(pending), len(pending))
        logger.debug("Fanning out %d %s calls over %d threads", len(pending), operation, workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {
                pool.submit(_dispatch, ctx, tool, operation, dry_run): (index, tool)
                for index, tool in pending
            }
            for future in as_completed(futures):
                index, tool = futures[future]
                try:
                    slots[index] = future.result()
                except Exception as exc:
                    slots[index] = Receipt.failure(
                        backend=tool.kind.value,
                        tool=tool.name,
                        operation=operation,
                        error=f"Unexpected error: {exc}",
                    )
    else:
        for index, tool in pending:
            slots[index] = _dispatch(ctx, tool, operation, dry_run)

    report.receipts = [r for r in slots if r is not None]

    for receipt in report.receipts:
        status_marker = "✓" if receipt.ok else "✗" if receipt.failed else "⊘"
        logger.info("%s %s:%s → %s", status_marker, receipt.tool, operation, receipt.status)

    return report


def required_kinds(tools: list[ToolRecord], operation: Operation) -> list[str]:
    """Kinds a batch will actually dispatch, in first-seen order."""
    kinds: list[str] = []
    for tool in tools:
        if operation == "update" and tool.is_apt:
            continue
        if tool.kind.value not in kinds:
            kinds.append(tool.kind.value)
    return kinds


def _updatable(ctx: EngineContext, tool: ToolRecord) -> bool:
    if tool.is_apt:
        return False
    backend = ctx.backends.get(tool.kind.value)
    return backend is None or backend.supports_update


def _dispatch(
    ctx: EngineContext,
    tool: ToolRecord,
    operation: Operation,
    dry_run: bool,
) -> Receipt:
    verb = "Updating" if operation == "update" else "Installing"
    logger.info("%s %s...", verb, tool.name)
    return ctx.backends.dispatch(tool, operation, ctx.install_root, dry_run=dry_run)
