"""Manifest retrieval and line validation."""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, Iterator, List, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .logging import get_logger
from .models import RepoEntry

# https://github.com/<org>/<repo>.git <commitSHA>
_LINE_PATTERN = re.compile(
    r"^(https://github\.com/[\w\-./]+\.git)\s+([0-9a-fA-F]{6,40})$",
    re.ASCII,
)


class ManifestError(RuntimeError):
    """Raised when the manifest itself cannot be retrieved."""


def parse_line(line: str) -> Optional[RepoEntry]:
    """Return the entry described by ``line``, or ``None`` when it is malformed."""
    match = _LINE_PATTERN.match(line.strip())
    if match is None:
        return None
    return RepoEntry(repo_url=match.group(1), commit_sha=match.group(2))


def iter_entries(
    lines: Iterable[str], logger: logging.Logger | None = None
) -> Iterator[RepoEntry]:
    """Yield valid entries in manifest order, skipping blank and malformed lines."""
    log = logger or get_logger("manifest")
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        entry = parse_line(line)
        if entry is None:
            log.warning("Skipping invalid line: %r", line)
            continue
        yield entry


def fetch_manifest(
    url: str,
    *,
    timeout: float | None = 30.0,
    opener: Callable[..., object] | None = None,
) -> List[str]:
    """Download the manifest at ``url`` and return its lines."""
    open_url = opener or urlopen
    request = Request(url, headers={"User-Agent": "dockerfile-sources"})
    try:
        with open_url(request, timeout=timeout) as response:  # type: ignore[attr-defined]
            # file:// responses carry no status code.
            status = getattr(response, "status", None)
            if status is not None and not 200 <= status < 300:
                raise ManifestError(f"unexpected status code {status}")
            raw = response.read()
    except HTTPError as exc:
        raise ManifestError(f"unexpected status code {exc.code}") from exc
    except URLError as exc:
        raise ManifestError(f"HTTP GET error: {exc.reason}") from exc
    except (OSError, ValueError) as exc:
        raise ManifestError(f"HTTP GET error: {exc}") from exc

    return raw.decode("utf-8-sig", errors="replace").splitlines()


__all__ = ["ManifestError", "fetch_manifest", "iter_entries", "parse_line"]
