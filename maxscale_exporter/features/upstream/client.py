"""
HTTP client for the MaxScale REST API.

One GET per resource kind per scrape. No retries and no caching: every call
goes to the upstream so that samples always reflect the current state.
"""

import time

import httpx
import structlog

from maxscale_exporter.config import UpstreamConfig
from maxscale_exporter.core.exceptions import UpstreamUnavailable
from maxscale_exporter.core.metrics import ExporterMetrics
from maxscale_exporter.features.upstream.schemas import ResourceKind

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 10.0


class ResourceClient:
    """
    Authenticated client for /v1 resource collections.

    Handles:
    - Basic-auth with the configured credentials
    - JSON request headers
    - Timeout policy
    """

    def __init__(
        self,
        config: UpstreamConfig,
        timeout: float = DEFAULT_TIMEOUT,
        metrics: ExporterMetrics | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config
        self.timeout = timeout
        self.metrics = metrics
        self._client = httpx.Client(
            base_url=config.base_url,
            auth=httpx.BasicAuth(config.username, config.password.get_secret_value()),
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def url_for(self, kind: ResourceKind) -> str:
        """Absolute URL of a resource collection."""
        return f"{self.config.base_url}{kind.value}"

    def fetch(self, kind: ResourceKind) -> bytes:
        """
        GET one resource collection and return the raw body.

        ``timeout`` bounds the whole exchange, body included: an upstream
        that keeps trickling bytes is cut off once the budget is spent.
        The status code is not interpreted; non-2xx bodies are returned as
        is and left to the decoder.

        Raises:
            UpstreamUnavailable: connection error, timeout or protocol error
        """
        url = self.url_for(kind)
        start_time = time.perf_counter()
        deadline = start_time + self.timeout

        try:
            with self._client.stream("GET", kind.value) as response:
                body = bytearray()
                for chunk in response.iter_bytes():
                    body.extend(chunk)
                    if time.perf_counter() > deadline:
                        raise self._timed_out(kind, url, f"body incomplete after {len(body)} bytes")
        except httpx.TimeoutException as e:
            raise self._timed_out(kind, url, str(e)) from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(
                f"Cannot open path {url}",
                details={"url": url, "resource": kind.value, "error": str(e)},
            ) from e

        duration = time.perf_counter() - start_time

        if self.metrics is not None:
            self.metrics.observe_request(kind.value, response.status_code, duration)

        if response.is_success:
            logger.info(
                "upstream_fetched",
                url=url,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
        else:
            logger.warning(
                "upstream_non_success_status",
                url=url,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )

        return bytes(body)

    def _timed_out(self, kind: ResourceKind, url: str, error: str) -> UpstreamUnavailable:
        return UpstreamUnavailable(
            f"Timed out after {self.timeout}s reaching {url}",
            details={"url": url, "resource": kind.value, "error": error},
        )

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._client.close()

    def __enter__(self) -> "ResourceClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
