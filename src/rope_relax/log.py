# MIT License (see LICENSE)
"""
Scoped loggers for the package.

Every module asks for ``get_logger("rope_relax.<module>")``. Loggers print to
stdout at INFO and can share one file handler installed with
``setup_file_logging``.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

CONSOLE_FMT = "[%(name)s] %(levelname)s: %(message)s"
FILE_FMT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

_KNOWN_LOGGERS: list[logging.Logger] = []
_SHARED_FILE_HANDLER: logging.FileHandler | None = None


def get_logger(name: str) -> logging.Logger:
    """
    Create or retrieve a logger with the package formatting.

    Args:
        name: Dot-separated logger name (e.g. 'rope_relax.simulation').
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)  # handlers filter
    logger.propagate = False

    if logger not in _KNOWN_LOGGERS:
        _KNOWN_LOGGERS.append(logger)

    has_console = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in logger.handlers
    )
    if not has_console:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.INFO)
        handler.setFormatter(logging.Formatter(CONSOLE_FMT))
        logger.addHandler(handler)

    if _SHARED_FILE_HANDLER and _SHARED_FILE_HANDLER not in logger.handlers:
        logger.addHandler(_SHARED_FILE_HANDLER)

    return logger


def setup_file_logging(log_dir: Path | str, file_level: int = logging.DEBUG) -> Path:
    """
    Install one file handler shared by every package logger.

    Call once at the start of a script. Replaces any previous shared handler.

    Args:
        log_dir: Directory that receives ``rope_relax.log``.
        file_level: Level for the file handler.

    Returns:
        Path of the log file.
    """
    global _SHARED_FILE_HANDLER

    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "rope_relax.log"

    new_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
    new_handler.setLevel(file_level)
    new_handler.setFormatter(logging.Formatter(FILE_FMT))

    if _SHARED_FILE_HANDLER:
        _SHARED_FILE_HANDLER.close()
    _SHARED_FILE_HANDLER = new_handler

    for known in _KNOWN_LOGGERS:
        for h in [h for h in known.handlers if isinstance(h, logging.FileHandler)]:
            known.removeHandler(h)
        known.addHandler(new_handler)

    get_logger("rope_relax").info(f"File logging initialized at: {log_file}")
    return log_file
