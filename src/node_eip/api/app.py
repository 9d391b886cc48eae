# src/node_eip/api/app.py
"""
FastAPI application factory for the metrics surface.
"""

import logging

from fastapi import FastAPI, HTTPException, Response

from node_eip import __version__
from node_eip.core.exceptions import MetadataUnavailable
from node_eip.metrics.exporter import MetricsExporter

logger = logging.getLogger(__name__)

METRICS_PATH = "/metrics"


def create_app(exporter: MetricsExporter) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        exporter: The exporter whose registry is served on /metrics.

    Returns:
        A configured FastAPI application instance.
    """
    app = FastAPI(
        title="node-eip",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.get(METRICS_PATH)
    async def metrics() -> Response:
        try:
            body = await exporter.render()
        except MetadataUnavailable as e:
            logger.error("metrics: %s", e)
            raise HTTPException(status_code=503, detail=str(e))
        return Response(content=body, media_type=exporter.content_type)

    @app.get("/healthz")
    async def healthz() -> dict:
        return {"status": "ok", "version": __version__}

    logger.info("metrics: serving on '%s'", METRICS_PATH)
    return app
