"""
Pydantic schemas for MaxScale REST API resource collections.

Both collections share the JSON:API envelope:
    {"data": [{"id": "...", "attributes": {...}}, ...]}

Decoding is lenient: a missing, wrongly typed or out-of-range statistic
becomes 0, a group that is not an object takes its defaults, and array
elements that are not objects are skipped. Only an unparseable body or a
non-array "data" fails the whole collection.
"""

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


class ResourceKind(str, Enum):
    """Upstream collection types. The value is the API path segment."""

    SERVERS = "servers"
    SERVICES = "services"


# Statistics outside the int64 range decode as 0.
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def _coerce_stat(value: Any) -> int:
    """Keep integers that fit in 64 bits, zero anything else."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and INT64_MIN <= value <= INT64_MAX:
        return value
    return 0


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _empty_if_not_object(value: Any) -> Any:
    return value if isinstance(value, dict) else {}


def _objects_only(value: Any) -> Any:
    """Drop array elements that are not objects; a non-array stays an error."""
    if value is None:
        return []
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    return value


Stat = Annotated[int, BeforeValidator(_coerce_stat)]
Text = Annotated[str, BeforeValidator(_coerce_text)]
Group = BeforeValidator(_empty_if_not_object)
Items = BeforeValidator(_objects_only)


class ResourceSchema(BaseModel):
    """Base schema for upstream payloads; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)


# Servers

class ServerStatistics(ResourceSchema):
    active_operations: Stat = 0
    # Reported as a duration string such as "1.23s"; never exported.
    adaptive_avg_select_time: Text = ""
    connection_pool_empty: Stat = 0
    connections: Stat = 0
    max_connections: Stat = 0
    max_pool_size: Stat = 0
    persistent_connections: Stat = 0
    reused_connections: Stat = 0
    routed_packets: Stat = 0
    total_connections: Stat = 0


class ServerAttributes(ResourceSchema):
    statistics: Annotated[ServerStatistics, Group] = Field(default_factory=ServerStatistics)


class ServerResource(ResourceSchema):
    id: Text = ""
    attributes: Annotated[ServerAttributes, Group] = Field(default_factory=ServerAttributes)


class ServerCollection(ResourceSchema):
    data: Annotated[list[ServerResource], Items] = Field(default_factory=list)


# Services

class ServiceRouterDiagnostics(ResourceSchema):
    queries: Stat = 0
    replayed_transactions: Stat = 0
    ro_transactions: Stat = 0
    route_all: Stat = 0
    route_master: Stat = 0
    route_slave: Stat = 0
    rw_transactions: Stat = 0


class ServiceStatistics(ResourceSchema):
    active_operations: Stat = 0
    connections: Stat = 0
    max_connections: Stat = 0
    routed_packets: Stat = 0
    total_connections: Stat = 0


class ServiceAttributes(ResourceSchema):
    router_diagnostics: Annotated[ServiceRouterDiagnostics, Group] = Field(
        default_factory=ServiceRouterDiagnostics
    )
    statistics: Annotated[ServiceStatistics, Group] = Field(default_factory=ServiceStatistics)


class ServiceResource(ResourceSchema):
    id: Text = ""
    attributes: Annotated[ServiceAttributes, Group] = Field(default_factory=ServiceAttributes)


class ServiceCollection(ResourceSchema):
    data: Annotated[list[ServiceResource], Items] = Field(default_factory=list)


COLLECTION_SCHEMAS: dict[ResourceKind, type[ResourceSchema]] = {
    ResourceKind.SERVERS: ServerCollection,
    ResourceKind.SERVICES: ServiceCollection,
}
