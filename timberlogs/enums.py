"""Enums for Timberlogs SDK."""

from enum import Enum


class LogLevel(str, Enum):
    """Log level enumeration, ordered from least to most severe."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def severity(self) -> int:
        """Position of the level in the severity order."""
        return list(LogLevel).index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity < other.severity

    def __le__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity <= other.severity

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity > other.severity

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity >= other.severity


class Environment(str, Enum):
    """Deployment environment enumeration."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class RawFormat(str, Enum):
    """Formats accepted by raw ingestion."""

    JSON = "json"
    JSONL = "jsonl"
    SYSLOG = "syslog"
    TEXT = "text"
    CSV = "csv"
    OBL = "obl"

    @property
    def content_type(self) -> str:
        """HTTP content type for a body in this format."""
        return _CONTENT_TYPES[self]


_CONTENT_TYPES = {
    RawFormat.JSON: "application/json",
    RawFormat.JSONL: "application/x-ndjson",
    RawFormat.SYSLOG: "application/x-syslog",
    RawFormat.TEXT: "text/plain",
    RawFormat.CSV: "text/csv",
    RawFormat.OBL: "application/x-obl",
}
