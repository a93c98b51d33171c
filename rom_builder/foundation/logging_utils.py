"""Logging helpers for the operational session log."""

from __future__ import annotations

import logging
import os
import sys


def configure_stdio_utf8() -> None:
    """Force stdout/stderr to UTF-8 so tool diagnostics never crash a Windows console."""
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        sys.stderr.reconfigure(encoding="utf-8", errors="replace")
    except (AttributeError, ValueError):
        # Replaced or detached streams (e.g. under pytest capture) keep their defaults.
        pass


def setup_operational_logger(
    log_dir: str | None, session_id: str, *, level: str = "INFO"
) -> tuple[logging.Logger, str | None]:
    """
    Configure the session logger.

    Logs go to stdout at the requested level and, when `log_dir` is set, to a
    UTF-8 file under that directory at DEBUG.
    """

    logger_name = f"rom_builder.{session_id}"
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")

    log_file: str | None = None
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"{session_id}_oplog.log")
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(logging.getLevelName(level.upper()))
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    logger.propagate = False

    logger.debug("Operational logging initialized for session %s", session_id)
    if log_file:
        logger.debug("Operational log file: %s", log_file)

    return logger, log_file


def close_logger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
