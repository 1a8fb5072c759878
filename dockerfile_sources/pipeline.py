"""Scan pipeline: manifest lines in, aggregated report out."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from .config import ScanSettings
from .extractor import ExtractionError, FromExtractor
from .git.materializer import GitMaterializer, MaterializeError, Materializer
from .locator import DiscoveryError, find_dockerfiles
from .logging import get_logger
from .manifest import iter_entries
from .models import RepoEntry, Report


class ScanPipeline:
    """Processes manifest entries one at a time and aggregates the results.

    Each entry is materialized, scanned, and released before the next one
    starts. Materialization and discovery failures are recorded under the
    entry's key in ``Report.errors``; unreadable Dockerfiles are only logged
    through ``logger`` and do not fail the entry.
    """

    def __init__(
        self,
        materializer: Materializer | None = None,
        *,
        extractor: FromExtractor | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.materializer = materializer or GitMaterializer()
        self.extractor = extractor or FromExtractor()
        self.logger = logger or get_logger("pipeline")

    @classmethod
    def from_settings(
        cls, settings: ScanSettings, *, logger: logging.Logger | None = None
    ) -> "ScanPipeline":
        """Build a pipeline backed by git using resolved run settings."""
        materializer = GitMaterializer(
            executable=settings.git_executable,
            timeout=settings.git_timeout,
            github_token=settings.github_token,
        )
        return cls(
            materializer,
            extractor=FromExtractor(alias_split=settings.alias_split),
            logger=logger,
        )

    def run(self, lines: Iterable[str]) -> Report:
        """Process every valid manifest line in order and return the report."""
        report = Report()
        processed = 0
        for entry in iter_entries(lines, logger=self.logger):
            processed += 1
            self.logger.info("Processing %s", entry.key)
            try:
                dockerfiles = self.process_entry(entry)
            except (MaterializeError, DiscoveryError) as exc:
                self.logger.warning("Failed to process %s: %s", entry.key, exc)
                report.record_error(entry.key, str(exc))
                continue
            except Exception as exc:
                self.logger.exception("Unexpected failure while processing %s", entry.key)
                report.record_error(entry.key, str(exc) or exc.__class__.__name__)
                continue
            report.record_success(entry.key, dockerfiles)

        self.logger.info(
            "Processed %d entries (%d succeeded, %d failed)",
            processed,
            len(report.data),
            len(report.errors),
        )
        return report

    def process_entry(self, entry: RepoEntry) -> Dict[str, List[str]]:
        """Return ``{dockerfile path: [images]}`` for one entry.

        Raises ``MaterializeError`` or ``DiscoveryError`` when the entry as a
        whole cannot be scanned.
        """
        with self.materializer.materialize(entry) as root:
            paths = find_dockerfiles(root, logger=self.logger)
            self.logger.debug("Found %d Dockerfiles in %s", len(paths), entry.key)

            dockerfiles: Dict[str, List[str]] = {}
            for rel_path in paths:
                full_path = root / rel_path
                try:
                    images = self.extractor.read(full_path)
                except ExtractionError as exc:
                    self.logger.warning("Error parsing %s: %s", full_path, exc)
                    continue
                dockerfiles[rel_path] = images
        return dockerfiles


__all__ = ["ScanPipeline"]
