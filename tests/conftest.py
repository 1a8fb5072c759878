from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from dockerfile_sources.logging import DiagnosticsCollector, diagnostics_logger
from tests._fixtures.repo_builder import RepoBuilder


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable repo builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture
def diagnostics(request: pytest.FixtureRequest) -> tuple[logging.Logger, DiagnosticsCollector]:
    """Provide an injectable logger whose records can be asserted on."""
    return diagnostics_logger(request.node.name)


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    """Drop handlers bound to a finished test's captured streams."""
    yield
    logger = logging.getLogger("dockerfile_sources")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
