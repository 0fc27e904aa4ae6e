"""
Registry store — the persisted list of managed tools.

The registry is a UTF-8 text file, one tool per line, five fields
separated by ``|``:

    name|relative_dest|kind|source|checksum

The checksum may be empty but its delimiter is always written. There is
no escaping, which is why ``ToolRecord`` rejects the delimiter in every
field.

Order is insertion order. Adds append, removes filter, backups copy,
restores overwrite. Every mutation goes through ``atomic_write_text`` so
a concurrent reader never sees a partial file, and mutations inside one
process are serialized by a lock. Two *processes* adding the same name
at the same moment can still both append; cross-process locking is not
attempted.
"""

from __future__ import annotations

import logging
import shutil
import threading
from collections.abc import Callable, Iterator
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from bussin.core.errors import BackupNotFound, DuplicateTool, ToolNotFound
from bussin.core.models.tool import FIELD_DELIMITER, ToolRecord
from bussin.core.persistence.atomic import atomic_write_text

logger = logging.getLogger(__name__)

BACKUP_MARKER = ".backup_"
BACKUP_TIMESTAMP = "%Y%m%d%H%M%S"
_FIELD_COUNT = 5


# ── Wire format ─────────────────────────────────────────────────


def format_record(record: ToolRecord) -> str:
    """Serialize a record to one registry line (without newline)."""
    return FIELD_DELIMITER.join(
        [
            record.name,
            record.relative_dest,
            record.kind.value,
            record.source,
            record.checksum,
        ]
    )


def parse_record(line: str) -> ToolRecord:
    """Parse one registry line.

    A line written without the trailing checksum delimiter is accepted.
    Extra delimiters land in the checksum field, which rejects them, so
    such a line is reported as corrupt.

    Raises:
        ValueError: If the line has too few fields or a field is invalid.
    """
    fields = line.rstrip("\r\n").split(FIELD_DELIMITER, _FIELD_COUNT - 1)
    if len(fields) < _FIELD_COUNT - 1:
        raise ValueError(f"expected {_FIELD_COUNT} fields, got {len(fields)}")
    if len(fields) == _FIELD_COUNT - 1:
        fields.append("")

    name, relative_dest, kind, source, checksum = fields
    try:
        return ToolRecord(
            name=name,
            relative_dest=relative_dest,
            kind=kind,
            source=source,
            checksum=checksum,
        )
    except ValidationError as e:
        raise ValueError(str(e)) from e


def _line_name(line: str) -> str:
    return line.split(FIELD_DELIMITER, 1)[0]


# ── Store ───────────────────────────────────────────────────────


class RegistryStore:
    """File-backed registry of tool records.

    Reads always go back to disk: ``list_tools()`` reflects the latest
    persisted state, never a cached snapshot.
    """

    def __init__(
        self,
        path: Path,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._path = path
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def read_text(self) -> str:
        if not self._path.is_file():
            return ""
        return self._path.read_text(encoding="utf-8")

    # ── Queries ─────────────────────────────────────────────────

    def list_tools(self) -> Iterator[ToolRecord]:
        """Yield every valid record in insertion order.

        Corrupt lines are logged and skipped.
        """
        for line_num, line in enumerate(self.read_text().splitlines(), start=1):
            if not line.strip():
                continue
            try:
                yield parse_record(line)
            except ValueError as e:
                logger.warning(
                    "Skipping corrupt registry entry at %s:%d: %s",
                    self._path, line_num, e,
                )

    def get(self, name: str) -> ToolRecord | None:
        """Look up a record by name."""
        for record in self.list_tools():
            if record.name == name:
                return record
        return None

    # ── Mutations ───────────────────────────────────────────────

    def add(self, record: ToolRecord, *, exist_ok: bool = True) -> bool:
        """Append a record unless its name is already registered.

        Args:
            record: The record to append.
            exist_ok: When False, a duplicate raises instead of being skipped.

        Returns:
            True if the record was appended, False if it already existed.

        Raises:
            DuplicateTool: Duplicate name and ``exist_ok`` is False.
        """
        with self._lock:
            if self.get(record.name) is not None:
                if not exist_ok:
                    raise DuplicateTool(f"Tool '{record.name}' is already registered")
                logger.info(
                    "Tool '%s' already exists in configuration. Skipping addition.",
                    record.name,
                )
                return False

            content = self.read_text()
            if content and not content.endswith("\n"):
                content += "\n"
            content += format_record(record) + "\n"
            atomic_write_text(self._path, content)

        logger.info("Tool '%s' added to configuration.", record.name)
        return True

    def remove(self, name: str, install_root: Path | None = None) -> ToolRecord:
        """Drop a record and delete its artifact directory.

        Args:
            name: Tool name.
            install_root: Root that non-apt destinations resolve under.
                When None, only the registry entry is removed.

        Returns:
            The removed record.

        Raises:
            ToolNotFound: No tool with that name is registered.
        """
        with self._lock:
            record = self.get(name)
            if record is None:
                raise ToolNotFound(f"Tool '{name}' not found in configuration")

            logger.info("Removing tool '%s' of type '%s'...", name, record.kind.value)
            kept = [
                line
                for line in self.read_text().splitlines()
                if _line_name(line).strip() != name
            ]
            atomic_write_text(self._path, "".join(f"{line}\n" for line in kept))

        if install_root is not None:
            _delete_artifacts(record, install_root)
        return record

    # ── Backup / restore ────────────────────────────────────────

    def backup(self) -> Path:
        """Copy the registry to ``<name>.backup_<YYYYMMDDHHMMSS>``.

        Two backups within the same second share a name; the second wins.
        """
        stamp = self._clock().strftime(BACKUP_TIMESTAMP)
        target = self._path.with_name(f"{self._path.name}{BACKUP_MARKER}{stamp}")
        with self._lock:
            atomic_write_text(target, self.read_text())
        logger.info("Configuration backed up to %s", target)
        return target

    def list_backups(self) -> list[Path]:
        """All backups next to the registry, newest first."""
        pattern = f"{self._path.name}{BACKUP_MARKER}*"
        return sorted(
            (p for p in self._path.parent.glob(pattern) if p.is_file()),
            key=lambda p: p.name,
            reverse=True,
        )

    def resolve_backup(self, ref: str | Path) -> Path:
        """Resolve a backup path, or a bare file name next to the registry.

        Raises:
            BackupNotFound: Nothing exists at the reference.
        """
        candidate = Path(ref).expanduser()
        if candidate.is_file():
            return candidate
        if not candidate.is_absolute():
            sibling = self._path.parent / candidate
            if sibling.is_file():
                return sibling
        raise BackupNotFound(f"Backup file not found: {ref}")

    def restore(self, ref: str | Path) -> Path:
        """Replace the live registry with a backup's content (no merge).

        Returns:
            The backup file that was restored.

        Raises:
            BackupNotFound: Nothing exists at the reference.
        """
        source = self.resolve_backup(ref)
        content = source.read_text(encoding="utf-8")
        with self._lock:
            atomic_write_text(self._path, content)
        logger.info("Configuration restored from %s", source)
        return source


def _delete_artifacts(record: ToolRecord, install_root: Path) -> None:
    """Delete ``install_root/relative_dest`` for non-apt tools.

    A destination that is the root itself (``.``) or escapes it is left
    alone: other tools live there too.
    """
    if record.is_apt:
        return

    root = install_root.resolve()
    target = (root / record.relative_dest).resolve()
    if target == root or root not in target.parents:
        logger.warning(
            "Not deleting %s for '%s': destination is not a dedicated directory under %s",
            target, record.name, root,
        )
        return

    if target.is_dir():
        shutil.rmtree(target)
        logger.info("Removed directory %s.", target)
