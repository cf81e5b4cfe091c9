"""
Request context using contextvars.

Holds the request ID of the scrape being served so that log lines emitted
by collectors can be correlated with the HTTP request that triggered them.
"""

import contextvars
from typing import Any

request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
path_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "path", default=None
)


def set_request_context(
    request_id: str | None = None,
    path: str | None = None,
) -> None:
    """Set request context variables."""
    if request_id:
        request_id_var.set(request_id)
    if path:
        path_var.set(path)


def get_request_context() -> dict[str, Any]:
    """Get all request context as a dictionary."""
    return {
        "request_id": request_id_var.get(),
        "path": path_var.get(),
    }


def clear_request_context() -> None:
    """Clear all context variables."""
    request_id_var.set(None)
    path_var.set(None)
