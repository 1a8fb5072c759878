"""Tests for the FastAPI service mode."""

from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from dockerfile_sources.config import ScanSettings
from dockerfile_sources.git.materializer import GitMaterializer, MaterializeError
from dockerfile_sources.logging import diagnostics_logger
from dockerfile_sources.manifest import ManifestError
from dockerfile_sources.pipeline import ScanPipeline
from dockerfile_sources.service import create_app
from tests._fixtures.fakes import FakeMaterializer

ONE = "https://github.com/org/one.git"
TWO = "https://github.com/org/two.git"


@pytest.fixture
def client(tmp_path: Path) -> TestClient:
    trees = {
        ONE: {"deploy/Dockerfile": "FROM nginx:1.25 AS web\n"},
        TWO: MaterializeError("git checkout error: failed to checkout commit def456"),
    }
    logger, _ = diagnostics_logger("service")

    def factory() -> ScanPipeline:
        return ScanPipeline(FakeMaterializer(tmp_path, trees), logger=logger)

    def fetcher(url: str) -> list[str]:
        if url.endswith("missing.txt"):
            raise ManifestError("unexpected status code 404")
        return [f"{ONE} abc123"]

    settings = ScanSettings(manifest_url=None)
    return TestClient(create_app(factory, settings=settings, manifest_fetcher=fetcher))


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_scan_lines_reports_data_and_errors(client: TestClient) -> None:
    response = client.post("/scan", json={"lines": [f"{ONE} abc123", f"{TWO} def456", "junk"]})

    assert response.status_code == 200
    assert response.json() == {
        "data": {f"{ONE}:abc123": {"deploy/Dockerfile": ["nginx:1.25"]}},
        "errors": {f"{TWO}:def456": "git checkout error: failed to checkout commit def456"},
    }


def test_scan_manifest_url_omits_empty_errors(client: TestClient) -> None:
    response = client.post("/scan", json={"manifest_url": "https://example.com/repos.txt"})

    assert response.status_code == 200
    assert response.json() == {"data": {f"{ONE}:abc123": {"deploy/Dockerfile": ["nginx:1.25"]}}}


def test_scan_manifest_fetch_failure_maps_to_bad_gateway(client: TestClient) -> None:
    response = client.post("/scan", json={"manifest_url": "https://example.com/missing.txt"})

    assert response.status_code == 502
    assert "unexpected status code 404" in response.json()["detail"]


@pytest.mark.parametrize(
    "payload",
    [{}, {"lines": ["x"], "manifest_url": "https://example.com/repos.txt"}],
)
def test_scan_requires_exactly_one_source(client: TestClient, payload: dict[str, object]) -> None:
    response = client.post("/scan", json=payload)

    assert response.status_code == 422


def test_scan_rejects_non_http_manifest_url(client: TestClient) -> None:
    response = client.post("/scan", json={"manifest_url": "file:///etc/passwd"})

    assert response.status_code == 422
    assert "http or https" in response.text


def test_scan_without_source_uses_configured_manifest(tmp_path: Path) -> None:
    fetched: list[str] = []

    def fetcher(url: str) -> list[str]:
        fetched.append(url)
        return [f"{ONE} abc123"]

    def factory() -> ScanPipeline:
        trees = {ONE: {"Dockerfile": "FROM alpine:3.20\n"}}
        return ScanPipeline(FakeMaterializer(tmp_path, trees))

    settings = ScanSettings(manifest_url="https://example.com/configured.txt")
    client = TestClient(create_app(factory, settings=settings, manifest_fetcher=fetcher))

    response = client.post("/scan", json={})

    assert response.status_code == 200
    assert response.json() == {"data": {f"{ONE}:abc123": {"Dockerfile": ["alpine:3.20"]}}}
    assert fetched == ["https://example.com/configured.txt"]


def test_scan_pipeline_follows_service_settings(tmp_path: Path, monkeypatch) -> None:
    commands: list[tuple[list[str], float | None]] = []

    def fake_runner(args, *, cwd, timeout=None):  # type: ignore[no-untyped-def]
        command = list(args)
        commands.append((command, timeout))
        if command[1] == "clone":
            Path(command[-1], "Dockerfile").write_text("FROM registry/BASE:1\n", encoding="utf-8")
        return ""

    monkeypatch.setattr(GitMaterializer, "_default_runner", staticmethod(fake_runner))
    settings = ScanSettings(
        manifest_url=None,
        git_executable="/opt/git/bin/git",
        git_timeout=45.0,
        alias_split="literal",
    )
    client = TestClient(create_app(settings=settings))

    response = client.post("/scan", json={"lines": [f"{ONE} abc123"]})

    assert response.status_code == 200
    assert response.json() == {"data": {f"{ONE}:abc123": {"Dockerfile": ["registry/B"]}}}
    assert [command[:2] for command, _ in commands] == [
        ["/opt/git/bin/git", "clone"],
        ["/opt/git/bin/git", "checkout"],
    ]
    assert {timeout for _, timeout in commands} == {45.0}
