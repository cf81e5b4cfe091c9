"""
Prometheus collectors for MaxScale resources.

Registered on a prometheus_client CollectorRegistry; the registry calls
``collect()`` synchronously for every scrape of /metrics. Each call fetches
and decodes the resource collection again, so nothing is cached between
scrapes.

Failure policy: a fetch or decode failure for one resource kind is logged
and counted, and that kind contributes zero samples to the scrape. Other
kinds and the HTTP response are unaffected.
"""

from typing import Any, Iterator, NamedTuple

import structlog
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from maxscale_exporter.core.exceptions import DecodeError, UpstreamUnavailable
from maxscale_exporter.core.metrics import REASON_DECODE, REASON_UNAVAILABLE, ExporterMetrics
from maxscale_exporter.features.collectors.descriptors import (
    SERVER_REGISTRY,
    SERVICE_REGISTRY,
    DescriptorRegistry,
    MetricDescriptor,
)
from maxscale_exporter.features.upstream.client import ResourceClient
from maxscale_exporter.features.upstream.decoder import decode
from maxscale_exporter.features.upstream.schemas import ResourceKind

logger = structlog.get_logger(__name__)


class MetricSample(NamedTuple):
    """One value produced during a single scrape."""

    descriptor: MetricDescriptor
    value: float
    label_value: str


class ResourceCollector(Collector):
    """
    Maps every instance of one resource kind to one gauge sample per
    numeric descriptor, labeled with the instance ID.
    """

    def __init__(
        self,
        client: ResourceClient,
        registry: DescriptorRegistry,
        metrics: ExporterMetrics | None = None,
    ) -> None:
        self.client = client
        self.registry = registry
        self.metrics = metrics

    @property
    def kind(self) -> ResourceKind:
        return self.registry.kind

    def describe(self) -> Iterator[GaugeMetricFamily]:
        """Yield one empty family per descriptor. Independent of upstream state."""
        for descriptor in self.registry.describe():
            yield self._family(descriptor)

    def collect(self) -> Iterator[GaugeMetricFamily]:
        """
        Fetch, decode and yield one gauge family per numeric descriptor.

        Families without samples are left out, so a failed or empty scrape
        writes nothing for this kind.
        """
        families = {
            descriptor.name: self._family(descriptor)
            for descriptor in self.registry.numeric()
        }

        for sample in self.samples():
            families[sample.descriptor.name].add_metric([sample.label_value], sample.value)

        for family in families.values():
            if family.samples:
                yield family

    def samples(self) -> Iterator[MetricSample]:
        """
        Lazily produce this scrape's samples.

        Each call performs a fresh upstream round-trip.
        """
        numeric = self.registry.numeric()
        seen: set[str] = set()

        for resource in self.fetch_resources():
            if resource.id in seen:
                logger.warning(
                    "duplicate_resource_id",
                    resource=self.kind.value,
                    resource_id=resource.id,
                )
                continue
            seen.add(resource.id)

            for descriptor in numeric:
                yield MetricSample(
                    descriptor=descriptor,
                    value=descriptor.read(resource.attributes),
                    label_value=resource.id,
                )

    def fetch_resources(self) -> list[Any]:
        """Fetch and decode the resource collection; empty on failure."""
        try:
            raw = self.client.fetch(self.kind)
        except UpstreamUnavailable as e:
            logger.warning(
                "upstream_unavailable",
                detail=e.message,
                **e.details,
            )
            self._record_error(REASON_UNAVAILABLE)
            return []

        try:
            resources = decode(raw, self.kind)
        except DecodeError as e:
            logger.warning(
                "upstream_decode_failed",
                detail=e.message,
                **e.details,
            )
            self._record_error(REASON_DECODE)
            return []

        logger.debug(
            "resources_decoded",
            resource=self.kind.value,
            count=len(resources),
        )
        return resources

    def _record_error(self, reason: str) -> None:
        if self.metrics is not None:
            self.metrics.record_error(self.kind.value, reason)

    def _family(self, descriptor: MetricDescriptor) -> GaugeMetricFamily:
        return GaugeMetricFamily(
            descriptor.name,
            descriptor.documentation,
            labels=[descriptor.label],
        )


class ServerCollector(ResourceCollector):
    """Exports ``s_*`` gauges for every server."""

    def __init__(self, client: ResourceClient, metrics: ExporterMetrics | None = None) -> None:
        super().__init__(client, SERVER_REGISTRY, metrics)


class ServiceCollector(ResourceCollector):
    """Exports ``r_*`` gauges for every service, router diagnostics and statistics alike."""

    def __init__(self, client: ResourceClient, metrics: ExporterMetrics | None = None) -> None:
        super().__init__(client, SERVICE_REGISTRY, metrics)
