"""Run settings resolution (flags, environment, .dockerfile-sources.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .extractor import ALIAS_SPLIT_MODES

CONFIG_FILENAME = ".dockerfile-sources.yml"
ENV_MANIFEST_URL = "REPOSITORY_LIST_URL"
ENV_GITHUB_TOKEN = "GITHUB_TOKEN"


class ConfigError(RuntimeError):
    """Raised when the run settings cannot be resolved."""


@dataclass
class ScanSettings:
    """Effective settings for one scan run."""

    manifest_url: Optional[str]
    request_timeout: Optional[float] = 30.0
    git_executable: str = "git"
    git_timeout: Optional[float] = 600.0
    alias_split: str = "token"
    github_token: Optional[str] = None


def resolve_settings(
    url: str | None = None,
    *,
    config_path: Path | str | None = None,
    alias_split: str | None = None,
    environ: Mapping[str, str] | None = None,
    require_url: bool = True,
) -> ScanSettings:
    """Resolve settings once, before any manifest entry is processed.

    The manifest URL comes from ``url`` first, then ``REPOSITORY_LIST_URL``,
    then the config file. A missing URL raises ``ConfigError`` unless
    ``require_url`` is false, as in service mode where requests may carry
    their own manifest.
    """
    env = os.environ if environ is None else environ
    data = _load_file(config_path)

    manifest_url = (
        _as_str(url)
        or _as_str(env.get(ENV_MANIFEST_URL))
        or _as_str(data.get("manifest_url"))
    )
    if not manifest_url and require_url:
        raise ConfigError(
            f"no repository list URL provided. Use --url or set {ENV_MANIFEST_URL}."
        )

    git_data = _as_dict(data.get("git"))
    extraction_data = _as_dict(data.get("extraction"))

    mode = alias_split or _as_str(extraction_data.get("alias_split")) or "token"
    if mode not in ALIAS_SPLIT_MODES:
        raise ConfigError(
            f"extraction.alias_split must be one of {', '.join(ALIAS_SPLIT_MODES)}, got {mode!r}"
        )

    return ScanSettings(
        manifest_url=manifest_url,
        request_timeout=_as_timeout(data, "request_timeout", 30.0),
        git_executable=_as_str(git_data.get("executable")) or "git",
        git_timeout=_as_timeout(git_data, "timeout", 600.0),
        alias_split=mode,
        github_token=_as_str(env.get(ENV_GITHUB_TOKEN)),
    )


def _load_file(config_path: Path | str | None) -> Dict[str, Any]:
    explicit = config_path is not None
    path = Path(config_path).expanduser() if explicit else Path.cwd() / CONFIG_FILENAME
    if not path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return {}

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}

    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def _as_timeout(data: Mapping[str, Any], key: str, default: float) -> Optional[float]:
    if key not in data:
        return default
    value = data[key]
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key} must be a number of seconds, got {value!r}")
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {value!r}")
    return float(value)


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ScanSettings",
    "resolve_settings",
    "ENV_GITHUB_TOKEN",
    "ENV_MANIFEST_URL",
]
