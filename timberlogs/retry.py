"""Retry policy with exponential backoff."""

import time
from typing import Callable, Iterator, Optional, TypeVar

from .exceptions import HttpError, RequestError, TimberlogsError
from .models import RetryConfig

T = TypeVar("T")

RETRYABLE_STATUSES = frozenset({408, 425, 429})


def is_retryable(error: TimberlogsError) -> bool:
    """
    Classify a failed submission as transient or permanent.

    Network failures, timeouts, throttling and 5xx responses are transient.
    Any other HTTP status means the request itself was rejected.
    """
    if isinstance(error, RequestError):
        return True
    if isinstance(error, HttpError):
        return error.status >= 500 or error.status in RETRYABLE_STATUSES
    return False


class RetryPolicy:
    """
    Bounded exponential backoff around a single-attempt operation.

    Every call to ``run`` starts from a fresh attempt count and delay.
    """

    def __init__(
        self,
        config: RetryConfig,
        sleep: Callable[[float], None] = time.sleep,
        on_retry: Optional[Callable[[int, int, TimberlogsError], None]] = None,
    ) -> None:
        """
        Initialize retry policy.

        Args:
            config: Retry parameters
            sleep: Function used to wait, taking seconds
            on_retry: Called with (retry number, delay in ms, error) before each wait
        """
        self.config = config
        self._sleep = sleep
        self._on_retry = on_retry

    def delays(self) -> Iterator[int]:
        """Yield the backoff delays in milliseconds, one per allowed retry."""
        delay = self.config.initial_delay_ms
        for _ in range(self.config.max_retries):
            yield delay
            delay = min(delay * 2, self.config.max_delay_ms)

    def run(self, operation: Callable[[], T]) -> T:
        """
        Call ``operation`` until it succeeds or the retry budget is spent.

        Args:
            operation: Callable performing one attempt

        Returns:
            Result of the first successful attempt

        Raises:
            TimberlogsError: The error of the last attempt, or the first
                non-retryable error
        """
        delays = self.delays()
        retry = 0
        while True:
            try:
                return operation()
            except TimberlogsError as e:
                if not is_retryable(e):
                    raise
                delay = next(delays, None)
                if delay is None:
                    raise
                retry += 1
                if self._on_retry is not None:
                    self._on_retry(retry, delay, e)
                self._sleep(delay / 1000.0)
