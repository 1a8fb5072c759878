"""Dockerfile discovery within a materialized repository tree."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List

from .logging import get_logger

DOCKERFILE_NAME = "Dockerfile"

_EXCLUDED_DIRS = {".git"}


class DiscoveryError(RuntimeError):
    """Raised when the repository root itself cannot be walked."""


def find_dockerfiles(root: Path | str, logger: logging.Logger | None = None) -> List[str]:
    """Return root-relative POSIX paths of every file named exactly ``Dockerfile``.

    Directories are visited in sorted order so repeated scans of the same tree
    yield the same sequence. Subdirectories that cannot be read are logged and
    skipped.
    """
    log = logger or get_logger("locator")
    root_path = Path(root)
    if not root_path.exists():
        raise DiscoveryError(f"error finding Dockerfiles: {root_path} does not exist")
    if not root_path.is_dir():
        raise DiscoveryError(f"error finding Dockerfiles: {root_path} is not a directory")

    def _on_error(exc: OSError) -> None:
        if exc.filename is not None and Path(exc.filename) == root_path:
            raise DiscoveryError(f"error finding Dockerfiles: {exc}") from exc
        log.warning("Skipping unreadable directory %s: %s", exc.filename, exc.strerror or exc)

    found: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root_path, onerror=_on_error):
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            if filename != DOCKERFILE_NAME:
                continue
            found.append((current_dir / filename).relative_to(root_path).as_posix())
    return found


__all__ = ["DOCKERFILE_NAME", "DiscoveryError", "find_dockerfiles"]
