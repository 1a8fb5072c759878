"""Base-image extraction from Dockerfile ``FROM`` instructions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List

ALIAS_SPLIT_MODES = ("token", "literal")

_FROM_PATTERN = re.compile(r"^\s*FROM\s+(\S+)", re.IGNORECASE)


class ExtractionError(RuntimeError):
    """Raised when a single Dockerfile cannot be read."""


def extract_images(content: str, *, alias_split: str = "token") -> List[str]:
    """Return the image references declared by ``FROM`` lines, in file order.

    Only the first argument of each ``FROM`` line is considered. With
    ``alias_split="token"`` the stage alias is treated as a separate
    whitespace-delimited keyword, so the argument is kept whole. With
    ``alias_split="literal"`` the argument is cut at the first ``AS``
    substring, which also truncates names such as ``myorg/BASE``.
    """
    if alias_split not in ALIAS_SPLIT_MODES:
        raise ValueError(f"Unknown alias split mode: {alias_split}")

    images: List[str] = []
    for line in content.splitlines():
        match = _FROM_PATTERN.match(line)
        if match is None:
            continue
        candidate = match.group(1)
        if alias_split == "literal":
            candidate = candidate.split("AS", 1)[0].strip()
        images.append(candidate)
    return images


def read_dockerfile(path: Path | str, *, alias_split: str = "token") -> List[str]:
    """Read ``path`` and extract its base images."""
    try:
        content = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise ExtractionError(f"failed to open file: {exc}") from exc
    return extract_images(content, alias_split=alias_split)


@dataclass(frozen=True)
class FromExtractor:
    """Extractor bound to one alias handling mode."""

    alias_split: str = "token"

    def __post_init__(self) -> None:
        if self.alias_split not in ALIAS_SPLIT_MODES:
            raise ValueError(f"Unknown alias split mode: {self.alias_split}")

    def extract(self, content: str) -> List[str]:
        return extract_images(content, alias_split=self.alias_split)

    def read(self, path: Path | str) -> List[str]:
        return read_dockerfile(path, alias_split=self.alias_split)


__all__ = [
    "ALIAS_SPLIT_MODES",
    "ExtractionError",
    "FromExtractor",
    "extract_images",
    "read_dockerfile",
]
