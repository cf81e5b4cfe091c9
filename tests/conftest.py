"""
Pytest fixtures for all tests.

Provides:
- A fake MaxScale REST API served through httpx.MockTransport
- Upstream client and collectors wired to the fake
- Application and async HTTP client for endpoint tests
"""

from typing import AsyncGenerator, Callable

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient

from maxscale_exporter.config import Settings, UpstreamConfig
from maxscale_exporter.features.upstream.client import ResourceClient
from maxscale_exporter.main import create_application
from tests.factories import ServerFactory, ServiceFactory, collection


class FakeUpstream:
    """
    In-process stand-in for the MaxScale REST API.

    Each path maps to either a (status_code, body) pair or an exception to
    raise, so tests can model healthy, broken and unreachable upstreams.
    """

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, bytes] | Exception] = {}
        self.requests: list[httpx.Request] = []

    def respond(self, path: str, body: bytes, status_code: int = 200) -> None:
        self.routes[path] = (status_code, body)

    def fail(self, path: str, error: Exception) -> None:
        self.routes[path] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)

        if route is None:
            return httpx.Response(404, json={"errors": [{"detail": "Not found"}]})
        if isinstance(route, Exception):
            raise route

        status_code, body = route
        return httpx.Response(
            status_code,
            content=body,
            headers={"Content-Type": "application/json"},
        )

    def requests_for(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


@pytest.fixture
def upstream_config() -> UpstreamConfig:
    return UpstreamConfig(
        username="admin",
        password="mariadb",
        host="http://maxscale.test",
        port=8989,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(log_level="DEBUG", upstream_timeout=2.0)


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    """Fake upstream pre-loaded with one server and one service."""
    upstream = FakeUpstream()
    upstream.respond("/v1/servers", collection([ServerFactory.build("server1")]))
    upstream.respond("/v1/services", collection([ServiceFactory.build("RW-Split-Router")]))
    return upstream


@pytest.fixture
def make_client(
    upstream_config: UpstreamConfig,
    fake_upstream: FakeUpstream,
) -> Callable[..., ResourceClient]:
    """Build ResourceClients bound to the fake upstream; closed at teardown."""
    clients: list[ResourceClient] = []

    def factory(**kwargs) -> ResourceClient:
        client = ResourceClient(
            upstream_config,
            transport=httpx.MockTransport(fake_upstream.handler),
            **kwargs,
        )
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()


@pytest.fixture
def resource_client(make_client) -> ResourceClient:
    return make_client()


@pytest.fixture
def app(settings: Settings, upstream_config: UpstreamConfig, fake_upstream: FakeUpstream):
    """
    Create exporter application.

    The upstream client talks to the fake upstream instead of the network.
    """
    application = create_application(
        settings,
        upstream_config,
        transport=httpx.MockTransport(fake_upstream.handler),
    )
    yield application
    application.state.client.close()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    Create async HTTP client for testing endpoints.

    Usage:
        async def test_endpoint(client):
            response = await client.get("/metrics")
            assert response.status_code == 200
    """
    async with AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
