"""
API tests for the /metrics endpoint.
"""

import httpx
import pytest
from httpx import AsyncClient
from prometheus_client import CONTENT_TYPE_LATEST
from prometheus_client.parser import text_string_to_metric_families

from tests.factories import ServerFactory, ServiceFactory, collection


def parse_samples(text: str) -> dict[tuple[str, tuple], float]:
    samples = {}
    for family in text_string_to_metric_families(text):
        for sample in family.samples:
            samples[(sample.name, tuple(sorted(sample.labels.items())))] = sample.value
    return samples


def resource_samples(text: str) -> set[tuple[str, tuple, float]]:
    return {
        (name, labels, value)
        for (name, labels), value in parse_samples(text).items()
        if name.startswith(("s_", "r_"))
    }


@pytest.mark.api
class TestMetricsEndpoint:
    """Test the Prometheus exposition endpoint."""

    async def test_metrics_content_type(self, client: AsyncClient):
        response = await client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"] == CONTENT_TYPE_LATEST

    async def test_server_scenario(self, client: AsyncClient, fake_upstream):
        fake_upstream.respond(
            "/v1/servers",
            collection([ServerFactory.build(
                "srv1",
                connections=5,
                max_connections=100,
                adaptive_avg_select_time="1.23s",
            )]),
        )

        response = await client.get("/metrics")

        assert 's_connections{server="srv1"} 5.0' in response.text
        assert 's_max_connections{server="srv1"} 100.0' in response.text
        assert "s_adaptive_avg_select_time{" not in response.text

    async def test_sample_counts(self, client: AsyncClient, fake_upstream):
        fake_upstream.respond("/v1/servers", collection(ServerFactory.build_batch(2)))
        fake_upstream.respond("/v1/services", collection(ServiceFactory.build_batch(3)))

        response = await client.get("/metrics")
        samples = resource_samples(response.text)

        assert sum(1 for name, _, _ in samples if name.startswith("s_")) == 2 * 9
        assert sum(1 for name, _, _ in samples if name.startswith("r_")) == 3 * 12

    async def test_service_labels(self, client: AsyncClient):
        response = await client.get("/metrics")

        assert 'r_queries{service="RW-Split-Router"}' in response.text
        assert 'r_total_connections{service="RW-Split-Router"}' in response.text

    async def test_consecutive_scrapes_equal(self, client: AsyncClient, fake_upstream):
        first = await client.get("/metrics")
        second = await client.get("/metrics")

        assert resource_samples(first.text) == resource_samples(second.text)
        assert len(fake_upstream.requests_for("/v1/servers")) == 2
        assert len(fake_upstream.requests_for("/v1/services")) == 2

    async def test_empty_data(self, client: AsyncClient, fake_upstream):
        fake_upstream.respond("/v1/servers", collection([]))

        response = await client.get("/metrics")
        names = {name for name, _, _ in resource_samples(response.text)}

        assert response.status_code == 200
        assert not any(name.startswith("s_") for name in names)
        assert any(name.startswith("r_") for name in names)

    async def test_failed_kind_writes_no_help_lines(self, client: AsyncClient, fake_upstream):
        fake_upstream.fail("/v1/servers", httpx.ConnectError("Connection refused"))

        response = await client.get("/metrics")

        assert "# HELP s_" not in response.text
        assert "# TYPE s_" not in response.text
        assert "# HELP r_queries" in response.text

    async def test_out_of_range_statistic(self, client: AsyncClient, fake_upstream):
        fake_upstream.respond(
            "/v1/servers",
            b'{"data": [{"id": "srv1", "attributes": {"statistics": '
            b'{"connections": ' + b"9" * 400 + b"}}}]}",
        )

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert 's_connections{server="srv1"} 0.0' in response.text
        assert 'r_queries{service="RW-Split-Router"}' in response.text

    async def test_malformed_json(self, client: AsyncClient, fake_upstream):
        fake_upstream.respond("/v1/services", b"<html>502 Bad Gateway</html>", status_code=502)

        response = await client.get("/metrics")
        samples = parse_samples(response.text)

        assert response.status_code == 200
        assert not any(name.startswith("r_") for name, _ in samples)
        assert samples[(
            "maxscale_exporter_upstream_errors_total",
            (("reason", "decode"), ("resource", "services")),
        )] == 1.0

    async def test_upstream_unreachable(self, client: AsyncClient, fake_upstream):
        fake_upstream.fail("/v1/servers", httpx.ConnectError("Connection refused"))
        fake_upstream.fail("/v1/services", httpx.ConnectTimeout("timed out"))

        response = await client.get("/metrics")
        samples = parse_samples(response.text)

        assert response.status_code == 200
        assert resource_samples(response.text) == set()
        assert samples[(
            "maxscale_exporter_upstream_errors_total",
            (("reason", "unavailable"), ("resource", "servers")),
        )] == 1.0

    async def test_recovers_after_outage(self, client: AsyncClient, fake_upstream):
        fake_upstream.fail("/v1/servers", httpx.ConnectError("Connection refused"))
        await client.get("/metrics")

        fake_upstream.respond("/v1/servers", collection([ServerFactory.build("srv1", connections=1)]))
        response = await client.get("/metrics")

        assert 's_connections{server="srv1"} 1.0' in response.text

    async def test_exporter_self_metrics(self, client: AsyncClient):
        await client.get("/metrics")
        response = await client.get("/metrics")
        samples = parse_samples(response.text)

        assert samples[("maxscale_exporter_scrapes_total", ())] == 2.0
        assert samples[(
            "maxscale_exporter_upstream_requests_total",
            (("resource", "servers"), ("status_code", "200")),
        )] == 2.0

    async def test_request_id_header(self, client: AsyncClient):
        response = await client.get("/metrics", headers={"X-Request-ID": "scrape-1"})

        assert response.headers["X-Request-ID"] == "scrape-1"
