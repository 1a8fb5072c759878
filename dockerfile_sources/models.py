"""Core data models shared across dockerfile_sources components."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass(frozen=True)
class RepoEntry:
    """A validated manifest line: a GitHub repository pinned to one commit."""

    repo_url: str
    commit_sha: str

    @property
    def key(self) -> str:
        return f"{self.repo_url}:{self.commit_sha}"


@dataclass
class Report:
    """Aggregated scan output keyed by ``repo_url:commit_sha``."""

    data: Dict[str, Dict[str, List[str]]] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    def record_success(self, key: str, dockerfiles: Dict[str, List[str]]) -> None:
        self.errors.pop(key, None)
        self.data[key] = dockerfiles

    def record_error(self, key: str, message: str) -> None:
        self.data.pop(key, None)
        self.errors[key] = message

    def to_dict(self) -> Dict[str, Any]:
        """Return the serializable form; ``errors`` is omitted when empty."""
        payload: Dict[str, Any] = {"data": self.data}
        if self.errors:
            payload["errors"] = self.errors
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True, ensure_ascii=False)


__all__ = ["RepoEntry", "Report"]
