"""
FastAPI application factory and command-line entrypoint.
"""

import argparse
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Sequence

import httpx
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from prometheus_client import CollectorRegistry

from maxscale_exporter.config import Settings, UpstreamConfig, get_settings, load_upstream_config
from maxscale_exporter.core.exceptions import ConfigError
from maxscale_exporter.core.logging_config import setup_logging, get_logger
from maxscale_exporter.core.metrics import ExporterMetrics
from maxscale_exporter.core.middleware import RequestContextMiddleware
from maxscale_exporter.features.collectors.collector import ServerCollector, ServiceCollector
from maxscale_exporter.features.upstream.client import ResourceClient

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan events."""
    settings: Settings = app.state.settings
    logger.info(
        "exporter_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        upstream=app.state.client.config.base_url,
    )

    yield

    logger.info("exporter_shutting_down")
    app.state.client.close()
    logger.info("exporter_shutdown_complete")


def create_application(
    settings: Settings,
    upstream: UpstreamConfig,
    transport: httpx.BaseTransport | None = None,
) -> FastAPI:
    """
    Application factory.

    Builds the exporter's own metric registry, the upstream client and one
    collector per resource kind. ``transport`` replaces the network layer of
    the upstream client (used by tests).
    """
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Prometheus exporter for the MaxScale REST API",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    registry = CollectorRegistry()
    exporter_metrics = ExporterMetrics(registry, version=settings.app_version)
    client = ResourceClient(
        upstream,
        timeout=settings.upstream_timeout,
        metrics=exporter_metrics,
        transport=transport,
    )
    registry.register(ServerCollector(client, exporter_metrics))
    registry.register(ServiceCollector(client, exporter_metrics))

    app.state.settings = settings
    app.state.registry = registry
    app.state.exporter_metrics = exporter_metrics
    app.state.client = client

    app.add_middleware(RequestContextMiddleware)

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        request_id = getattr(request.state, "request_id", "unknown")

        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An internal error occurred.",
                "request_id": request_id,
            },
        )

    from maxscale_exporter.api.health_router import router as health_router
    from maxscale_exporter.api.metrics_router import router as metrics_router

    app.include_router(health_router)
    app.include_router(metrics_router)

    @app.get("/", tags=["Root"])
    async def root() -> dict:
        return {
            "message": settings.app_name,
            "version": settings.app_version,
            "metrics": "/metrics",
            "health": "/health/ready",
        }

    logger.info("exporter_configured")
    return app


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="maxscale-exporter",
        description="Expose MaxScale REST API statistics as Prometheus metrics",
    )
    parser.add_argument("--path", "-path", help="Path to json configuration file")
    parser.add_argument("--host", help="Listen address")
    parser.add_argument("--port", type=int, help="Listen port")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--log-format", choices=["json", "console"])
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """Overlay command-line flags on environment-derived settings."""
    overrides = {
        "config_path": args.path,
        "listen_host": args.host,
        "listen_port": args.port,
        "log_level": args.log_level.upper() if args.log_level else None,
        "log_format": args.log_format,
    }
    return get_settings().model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Load configuration, then serve /metrics until interrupted."""
    import uvicorn

    settings = build_settings(parse_args(argv))
    setup_logging(settings)

    try:
        upstream = load_upstream_config(settings.config_path)
    except ConfigError as e:
        logger.error("config_error", detail=e.message, **e.details)
        sys.exit(1)

    app = create_application(settings, upstream)

    logger.info(
        "exporter_listening",
        host=settings.listen_host,
        port=settings.listen_port,
        endpoint="/metrics",
    )
    uvicorn.run(
        app,
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=settings.log_level.lower(),
        access_log=False,  # We handle logging ourselves
    )


if __name__ == "__main__":
    main()
