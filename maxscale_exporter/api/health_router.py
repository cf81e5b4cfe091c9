"""
Health check endpoints for monitoring and orchestration.

Provides:
- Liveness probe: Is the exporter running?
- Readiness probe: Can the MaxScale REST API be reached?
"""

from typing import Any

import structlog
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from maxscale_exporter.core.exceptions import DecodeError, UpstreamUnavailable
from maxscale_exporter.features.upstream.decoder import decode
from maxscale_exporter.features.upstream.schemas import ResourceKind

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health/live")
async def liveness() -> dict:
    """
    Liveness probe.

    Returns:
        200: Exporter process is running
    """
    return {"status": "alive"}


@router.get("/health/ready")
def readiness(request: Request) -> JSONResponse:
    """
    Readiness probe.

    Checks every resource collection the exporter scrapes.

    Returns:
        200: All collections reachable and decodable
        503: At least one collection failed
    """
    client = request.app.state.client
    checks: dict[str, Any] = {}
    is_ready = True

    for kind in ResourceKind:
        try:
            resources = decode(client.fetch(kind), kind)
            checks[kind.value] = {"status": "healthy", "count": len(resources)}
        except (UpstreamUnavailable, DecodeError) as e:
            checks[kind.value] = {"status": "unhealthy", "error": e.message}
            is_ready = False

    if not is_ready:
        logger.warning("readiness_check_failed", checks=checks)

    status_code = status.HTTP_200_OK if is_ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "status": "ready" if is_ready else "not_ready",
            "upstream": client.config.base_url,
            "checks": checks,
        }
    )
