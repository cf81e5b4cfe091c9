"""
Custom exception hierarchy for the exporter.
"""

from typing import Any


class ExporterException(Exception):
    """Base exception for all exporter exceptions."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigError(ExporterException):
    """Raised when the configuration file is missing, unreadable or invalid."""
    pass


class UpstreamUnavailable(ExporterException):
    """Raised when the MaxScale REST API cannot be reached or times out."""
    pass


class DecodeError(ExporterException):
    """Raised when an upstream payload is not a valid resource collection."""
    pass


class UnsupportedFieldType(ExporterException):
    """Raised when a non-numeric statistic is read as a metric value."""
    pass
