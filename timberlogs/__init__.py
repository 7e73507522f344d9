"""Timberlogs SDK - Python SDK for shipping logs to Timberlogs."""

from .client import TimberlogsClient
from .enums import Environment, LogLevel, RawFormat
from .exceptions import (
    BufferFullError,
    HttpError,
    NotConnectedError,
    RequestError,
    TimberlogsError,
    ValidationError,
)
from .flow import Flow
from .models import (
    ClientMetrics,
    ClientOptions,
    IngestRawOptions,
    LogEntry,
    RetryConfig,
)

__version__ = "0.1.0"

__all__ = [
    # Client
    "TimberlogsClient",
    "Flow",
    # Models
    "LogEntry",
    "ClientOptions",
    "RetryConfig",
    "IngestRawOptions",
    "ClientMetrics",
    # Enums
    "LogLevel",
    "Environment",
    "RawFormat",
    # Exceptions
    "TimberlogsError",
    "ValidationError",
    "HttpError",
    "RequestError",
    "NotConnectedError",
    "BufferFullError",
]
