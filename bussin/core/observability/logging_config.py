"""
Logging configuration — one root setup per bussin process.

main.py calls ``setup_logging`` before any command runs; modules only
ever do ``logger = logging.getLogger(__name__)``.

Console (stderr) level, highest precedence first:
    --debug / -v / -q  >  BUSSIN_LOG_LEVEL  >  WARNING

The log file (``<config>/bussin.log``, or BUSSIN_LOG_FILE) records at
BUSSIN_LOG_FILE_LEVEL, INFO unless set, so installs leave a timestamped
trail even when the console is quiet.
"""

from __future__ import annotations

import logging
import sys

# ── Formats ─────────────────────────────────────────────────────

# (max level, format, datefmt): first row whose level >= console level wins
_CONSOLE_FORMATS: list[tuple[int, str, str | None]] = [
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d %(message)s", "%H:%M:%S"),
    (logging.INFO, "[*] %(message)s", None),
    (logging.CRITICAL, "%(message)s", None),
]

_FILE_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = "INFO",
) -> None:
    """Replace the root logger's handlers with bussin's console + file pair.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Log file path; None for console only.
        log_file_level: File level name, INFO when unset or unknown.
    """
    console_level = _parse_level(level)
    handlers: list[logging.Handler] = [_console_handler(console_level)]

    if log_file:
        file_handler = _file_handler(log_file, _parse_level(log_file_level, default=logging.INFO))
        if file_handler is not None:
            handlers.append(file_handler)

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
        old.close()
    for handler in handlers:
        root.addHandler(handler)

    # Root must pass records down to the most verbose handler
    root.setLevel(min(h.level for h in handlers))
    logging.raiseExceptions = False

    if log_file and len(handlers) == 1:
        logging.getLogger(__name__).warning("Cannot open log file %s", log_file)


def _console_handler(level: int) -> logging.Handler:
    fmt, datefmt = next(
        (fmt, datefmt) for max_level, fmt, datefmt in _CONSOLE_FORMATS if level <= max_level
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return handler


def _file_handler(path: str, level: int) -> logging.Handler | None:
    try:
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        return None
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
    return handler


def _parse_level(level: str | None, default: int = logging.WARNING) -> int:
    """Level name → numeric level, ``default`` for empty or unknown names."""
    if not level:
        return default
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else default
