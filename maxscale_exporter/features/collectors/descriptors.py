"""
Static metric descriptor tables.

Each exported statistic is one row: metric name, help text and the dotted
attribute path it is read from inside a resource's ``attributes``. Adding or
removing a statistic is a one-line edit here plus the schema field.

Two registries exist for the process lifetime:
- SERVER_REGISTRY: ``s_*`` gauges labeled ``server``
- SERVICE_REGISTRY: ``r_*`` gauges labeled ``service``
"""

from dataclasses import dataclass
from operator import attrgetter
from typing import Any

from maxscale_exporter.core.exceptions import UnsupportedFieldType
from maxscale_exporter.features.upstream.schemas import ResourceKind


@dataclass(frozen=True)
class MetricDescriptor:
    """Immutable identity of one exported metric."""

    name: str
    documentation: str
    label: str
    source: str
    numeric: bool = True

    def read(self, attributes: Any) -> float:
        """
        Read this descriptor's statistic from a resource's attributes.

        Raises:
            UnsupportedFieldType: the statistic is not numeric
        """
        if not self.numeric:
            raise UnsupportedFieldType(
                f"{self.name} is not a numeric statistic",
                details={"metric": self.name, "source": self.source},
            )

        value = attrgetter(self.source)(attributes)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise UnsupportedFieldType(
                f"{self.name} has non-numeric value of type {type(value).__name__}",
                details={"metric": self.name, "source": self.source},
            )
        return float(value)


@dataclass(frozen=True)
class DescriptorRegistry:
    """Fixed set of descriptors for one resource kind."""

    kind: ResourceKind
    label: str
    descriptors: tuple[MetricDescriptor, ...]

    def __post_init__(self) -> None:
        names = [d.name for d in self.descriptors]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate metric names: {', '.join(duplicates)}")

        for descriptor in self.descriptors:
            if descriptor.label != self.label:
                raise ValueError(
                    f"{descriptor.name} uses label {descriptor.label!r}, expected {self.label!r}"
                )

    def describe(self) -> tuple[MetricDescriptor, ...]:
        """All descriptors, including those that never produce samples."""
        return self.descriptors

    def numeric(self) -> tuple[MetricDescriptor, ...]:
        """Descriptors that produce a sample per resource instance."""
        return tuple(d for d in self.descriptors if d.numeric)

    def __len__(self) -> int:
        return len(self.descriptors)


def _server(name: str, documentation: str, numeric: bool = True) -> MetricDescriptor:
    return MetricDescriptor(
        name=f"s_{name}",
        documentation=documentation,
        label="server",
        source=f"statistics.{name}",
        numeric=numeric,
    )


def _service(group: str, name: str, documentation: str) -> MetricDescriptor:
    return MetricDescriptor(
        name=f"r_{name}",
        documentation=documentation,
        label="service",
        source=f"{group}.{name}",
    )


SERVER_REGISTRY = DescriptorRegistry(
    kind=ResourceKind.SERVERS,
    label="server",
    descriptors=(
        _server("active_operations", "Operations currently in progress on the server"),
        # Text such as "1.23s" upstream; described for completeness, never sampled.
        _server("adaptive_avg_select_time", "Adaptive average select time", numeric=False),
        _server("connection_pool_empty", "Times the connection pool was empty"),
        _server("connections", "Current connections to the server"),
        _server("max_connections", "Maximum concurrent connections seen"),
        _server("max_pool_size", "Maximum size of the connection pool"),
        _server("persistent_connections", "Current persistent (pooled) connections"),
        _server("reused_connections", "Times a pooled connection was reused"),
        _server("routed_packets", "Packets routed to the server"),
        _server("total_connections", "Total connections created to the server"),
    ),
)

SERVICE_REGISTRY = DescriptorRegistry(
    kind=ResourceKind.SERVICES,
    label="service",
    descriptors=(
        # Router diagnostics
        _service("router_diagnostics", "queries", "Queries routed by the service"),
        _service("router_diagnostics", "replayed_transactions", "Transactions replayed after a failure"),
        _service("router_diagnostics", "ro_transactions", "Read-only transactions"),
        _service("router_diagnostics", "route_all", "Queries routed to all servers"),
        _service("router_diagnostics", "route_master", "Queries routed to the master"),
        _service("router_diagnostics", "route_slave", "Queries routed to a slave"),
        _service("router_diagnostics", "rw_transactions", "Read-write transactions"),
        # Connection statistics
        _service("statistics", "active_operations", "Operations currently in progress on the service"),
        _service("statistics", "connections", "Current client connections to the service"),
        _service("statistics", "max_connections", "Maximum concurrent client connections seen"),
        _service("statistics", "routed_packets", "Packets routed by the service"),
        _service("statistics", "total_connections", "Total client connections to the service"),
    ),
)

REGISTRIES: dict[ResourceKind, DescriptorRegistry] = {
    ResourceKind.SERVERS: SERVER_REGISTRY,
    ResourceKind.SERVICES: SERVICE_REGISTRY,
}
