"""
Decoding of raw MaxScale REST API responses into resource instances.
"""

from pydantic import ValidationError

from maxscale_exporter.core.exceptions import DecodeError
from maxscale_exporter.features.upstream.schemas import (
    COLLECTION_SCHEMAS,
    ResourceKind,
    ServerResource,
    ServiceResource,
)


def decode(raw: bytes, kind: ResourceKind) -> list[ServerResource] | list[ServiceResource]:
    """
    Parse a response body into the resource instances of one kind.

    Upstream array order is preserved. Individual statistic fields that are
    missing, not integers or outside int64 decode as 0; elements that are
    not objects are skipped.

    Raises:
        DecodeError: body is not JSON or not a {"data": [...]} collection
    """
    schema = COLLECTION_SCHEMAS[kind]

    try:
        collection = schema.model_validate_json(raw)
    except ValidationError as e:
        raise DecodeError(
            f"Malformed {kind.value} payload",
            details={
                "resource": kind.value,
                "error_count": e.error_count(),
                "first_error": e.errors(include_url=False)[0]["msg"],
                "body_size": len(raw),
            },
        ) from e

    return list(collection.data)
