"""Data models for Timberlogs SDK."""

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Union

from .enums import Environment, LogLevel
from .exceptions import ValidationError

if TYPE_CHECKING:
    from .exceptions import TimberlogsError

DEFAULT_BASE_URL = "https://timberlogs-ingest.enaboapps.workers.dev"

# Python attribute name -> wire field name
_WIRE_NAMES = {
    "level": "level",
    "message": "message",
    "data": "data",
    "user_id": "userId",
    "session_id": "sessionId",
    "request_id": "requestId",
    "error_name": "errorName",
    "error_stack": "errorStack",
    "tags": "tags",
    "flow_id": "flowId",
    "step_index": "stepIndex",
    "dataset": "dataset",
    "timestamp": "timestamp",
    "ip_address": "ipAddress",
    "country": "country",
}


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return int(time.time() * 1000)


@dataclass
class LogEntry:
    """Single log entry."""

    level: Union[LogLevel, str]
    message: str
    data: Optional[Dict[str, Any]] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    request_id: Optional[str] = None
    error_name: Optional[str] = None
    error_stack: Optional[str] = None
    tags: Optional[List[str]] = None
    dataset: Optional[str] = None
    timestamp: Optional[int] = None
    ip_address: Optional[str] = None
    country: Optional[str] = None
    flow_id: Optional[str] = None
    step_index: Optional[int] = None

    def __post_init__(self) -> None:
        """Initialize default values."""
        if self.timestamp is None:
            self.timestamp = now_ms()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization, omitting unset fields."""
        result: Dict[str, Any] = {}
        for attr, wire_name in _WIRE_NAMES.items():
            value = getattr(self, attr)
            if value is None:
                continue
            if isinstance(value, LogLevel):
                value = value.value
            result[wire_name] = value
        return result


@dataclass
class RetryConfig:
    """Exponential backoff parameters for failed submissions."""

    max_retries: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 30000

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay_ms < 0:
            raise ValueError("initial_delay_ms must be >= 0")
        if self.max_delay_ms < self.initial_delay_ms:
            raise ValueError("max_delay_ms must be >= initial_delay_ms")


@dataclass
class ClientOptions:
    """Configuration options for Timberlogs client."""

    source: str
    environment: Union[Environment, str]
    api_key: str = field(repr=False)
    version: Optional[str] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    dataset: Optional[str] = None
    batch_size: int = 10
    flush_interval_ms: int = 5000
    min_level: Union[LogLevel, str] = LogLevel.DEBUG
    retry: RetryConfig = field(default_factory=RetryConfig)
    on_error: Optional[Callable[["TimberlogsError"], None]] = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    max_buffer_size: int = 10000
    requeue_failed_batches: bool = False
    debug: bool = False

    def __post_init__(self) -> None:
        if not self.source:
            raise ValueError("source must not be empty")
        if not self.api_key:
            raise ValueError("api_key must not be empty")
        if not self.base_url:
            raise ValueError("base_url must not be empty")
        if self.batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        if self.flush_interval_ms <= 0:
            raise ValueError("flush_interval_ms must be > 0")
        if self.max_buffer_size < self.batch_size:
            raise ValueError("max_buffer_size must be >= batch_size")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        self.environment = Environment(self.environment)
        self.min_level = LogLevel(self.min_level)


@dataclass
class IngestRawOptions:
    """Per-request overrides for raw ingestion."""

    source: Optional[str] = None
    environment: Optional[Union[Environment, str]] = None
    level: Optional[Union[LogLevel, str]] = None
    dataset: Optional[str] = None

    def __post_init__(self) -> None:
        self.normalize()

    def normalize(self) -> None:
        """
        Coerce the environment and level overrides to their enums.

        Raises:
            ValidationError: If either override is not recognized
        """
        if self.environment is not None:
            try:
                self.environment = Environment(self.environment)
            except ValueError:
                raise ValidationError(
                    f"unrecognized environment: {self.environment!r}"
                ) from None
        if self.level is not None:
            try:
                self.level = LogLevel(self.level)
            except ValueError:
                raise ValidationError(f"unrecognized log level: {self.level!r}") from None

    def to_params(self) -> Dict[str, str]:
        """Query parameters for the overrides that are set."""
        params: Dict[str, str] = {}
        if self.source:
            params["source"] = self.source
        if self.environment is not None:
            params["environment"] = Environment(self.environment).value
        if self.level is not None:
            params["level"] = LogLevel(self.level).value
        if self.dataset:
            params["dataset"] = self.dataset
        return params


@dataclass
class ClientMetrics:
    """SDK internal metrics."""

    logs_sent: int = 0
    logs_dropped: int = 0
    errors: int = 0
    retries: int = 0
    avg_latency_ms: float = 0.0
