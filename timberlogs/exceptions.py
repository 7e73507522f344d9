"""Custom exceptions for Timberlogs SDK."""

from typing import Optional


class TimberlogsError(Exception):
    """Base exception for Timberlogs SDK errors."""

    pass


class ValidationError(TimberlogsError):
    """Raised when a log entry or argument is malformed."""

    pass


class HttpError(TimberlogsError):
    """Raised when the ingestion endpoint answers with a non-2xx status."""

    def __init__(self, status: int, body: str = "") -> None:
        super().__init__(f"HTTP error {status}: {body}")
        self.status = status
        self.body = body


class RequestError(TimberlogsError):
    """Raised when a request fails before a response is received."""

    def __init__(self, detail: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"request failed: {detail}")
        self.detail = detail
        self.cause = cause


class NotConnectedError(TimberlogsError):
    """Raised when a disconnected client is asked to start or extend a flow."""

    pass


class BufferFullError(TimberlogsError):
    """Raised when buffer is full and cannot accept more logs."""

    pass
