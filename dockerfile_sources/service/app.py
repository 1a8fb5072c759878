"""FastAPI application entrypoint for dockerfile-sources service mode."""

from __future__ import annotations

import asyncio
from functools import partial
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlparse

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator, model_validator

from ..config import ScanSettings, resolve_settings
from ..logging import get_logger
from ..manifest import ManifestError, fetch_manifest
from ..models import Report
from ..pipeline import ScanPipeline

_MANIFEST_SCHEMES = ("http", "https")


class ScanRequest(BaseModel):
    lines: Optional[List[str]] = None
    manifest_url: Optional[str] = None

    @field_validator("manifest_url")
    @classmethod
    def _remote_manifest_only(cls, value: Optional[str]) -> Optional[str]:
        # Requests must not make the server read its own filesystem.
        if value is not None and urlparse(value).scheme.lower() not in _MANIFEST_SCHEMES:
            raise ValueError("manifest_url must be an http or https URL")
        return value

    @model_validator(mode="after")
    def _at_most_one_source(self) -> "ScanRequest":
        if self.lines is not None and self.manifest_url is not None:
            raise ValueError("Provide only one of 'lines' or 'manifest_url'")
        return self


class HealthResponse(BaseModel):
    status: str


def create_app(
    pipeline_factory: Optional[Callable[[], ScanPipeline]] = None,
    *,
    settings: Optional[ScanSettings] = None,
    manifest_fetcher: Optional[Callable[[str], List[str]]] = None,
) -> FastAPI:
    """Create the FastAPI application exposing the scan pipeline.

    ``settings`` are resolved once at startup the same way the CLI resolves
    them. A request without ``lines`` or ``manifest_url`` scans the configured
    manifest URL, if any.
    """

    if settings is None:
        settings = resolve_settings(require_url=False)
    resolved = settings
    logger = get_logger("service")

    def _settings_pipeline() -> ScanPipeline:
        return ScanPipeline.from_settings(resolved)

    factory = pipeline_factory or _settings_pipeline
    fetcher = manifest_fetcher or partial(fetch_manifest, timeout=resolved.request_timeout)

    app = FastAPI(title="Dockerfile Sources Service", version="1.0.0")

    async def get_pipeline() -> ScanPipeline:
        # Fresh pipeline per request so no state is shared between scans.
        return factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/scan")
    async def scan(
        payload: ScanRequest,
        pipeline: ScanPipeline = Depends(get_pipeline),
    ) -> JSONResponse:
        manifest_url = payload.manifest_url
        if payload.lines is None and manifest_url is None:
            manifest_url = resolved.manifest_url
            if manifest_url is None:
                raise HTTPException(
                    status_code=422,
                    detail="Provide 'lines' or 'manifest_url'; no default manifest is configured",
                )

        def _run_scan() -> Report:
            if manifest_url is not None:
                logger.info("Downloading repository list from %s", manifest_url)
                lines = fetcher(manifest_url)
            else:
                lines = payload.lines or []
            return pipeline.run(lines)

        loop = asyncio.get_running_loop()
        try:
            report = await loop.run_in_executor(None, _run_scan)
        except ManifestError as exc:
            raise HTTPException(
                status_code=502, detail=f"Error downloading repository list: {exc}"
            ) from exc
        content: Dict[str, Any] = report.to_dict()
        return JSONResponse(content=content)

    return app


def run_service(
    host: str = "0.0.0.0",
    port: int = 8000,
    settings: Optional[ScanSettings] = None,
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(settings=settings)
    uvicorn.run(app, host=host, port=port)
