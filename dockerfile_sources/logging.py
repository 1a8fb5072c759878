"""Diagnostics for scan runs.

The JSON report is the only thing written to stdout. Everything else (skipped
manifest lines, unreadable files, per-entry failures) is a diagnostic and goes
through the ``dockerfile_sources`` logger hierarchy to stderr, an optional log
file, or a caller-supplied collector.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import IO, List, Optional, Tuple

_LOGGER_NAME = "dockerfile_sources"
_STREAM_FORMAT = "dockerfile-sources: %(levelname)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``dockerfile_sources`` hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class DiagnosticsCollector(logging.Handler):
    """Keeps diagnostic records in memory instead of printing them.

    Attach it with :func:`diagnostics_logger` and pass the logger to
    ``ScanPipeline`` or ``find_dockerfiles`` to inspect what a run skipped.
    """

    def __init__(self, level: int = logging.DEBUG) -> None:
        super().__init__(level=level)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def messages(self, level: int = logging.DEBUG) -> List[str]:
        return [record.getMessage() for record in self.records if record.levelno >= level]

    def clear(self) -> None:
        self.records.clear()


def diagnostics_logger(name: str) -> Tuple[logging.Logger, DiagnosticsCollector]:
    """Return an isolated logger wired only to a fresh collector.

    The logger sits under ``dockerfile_sources.diagnostics`` but does not
    propagate, so stream and file handlers never see its records.
    """
    logger = get_logger(f"diagnostics.{name}")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    collector = DiagnosticsCollector()
    logger.addHandler(collector)
    return logger, collector


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Route package diagnostics to ``stream`` (stderr) and optionally a file.

    Calling it again replaces the previous handlers.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    stream_handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter(_STREAM_FORMAT))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)
        # The file keeps debug detail even when the console does not.
        logger.setLevel(logging.DEBUG)

    return logger


__all__ = [
    "DiagnosticsCollector",
    "configure_logging",
    "diagnostics_logger",
    "get_logger",
]
