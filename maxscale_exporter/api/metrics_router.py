"""
Metrics endpoint for Prometheus scraping.
"""

from fastapi import APIRouter, Request, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

router = APIRouter(tags=["Metrics"])


@router.get("/metrics")
def metrics(request: Request) -> Response:
    """
    Prometheus metrics endpoint.

    Every request runs all registered collectors, which query the MaxScale
    REST API synchronously. Declared as a plain function so FastAPI serves
    it from the worker thread pool, one thread per concurrent scrape.
    """
    state = request.app.state
    state.exporter_metrics.scrapes_total.inc()

    return Response(
        content=generate_latest(state.registry),
        media_type=CONTENT_TYPE_LATEST,
    )
