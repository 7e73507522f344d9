"""Main Timberlogs SDK client implementation."""

import atexit
import time
import traceback
import uuid
from contextlib import contextmanager
from threading import Lock
from typing import Any, Dict, Iterator, List, Optional, Union

from .buffer import LogBuffer
from .enums import LogLevel, RawFormat
from .exceptions import NotConnectedError, TimberlogsError, ValidationError
from .flow import Flow
from .models import ClientMetrics, ClientOptions, IngestRawOptions, LogEntry
from .retry import RetryPolicy
from .timer import FlushTimer
from .transport import HttpTransport
from .validation import FIELD_LIMITS

LATENCY_WINDOW = 100


def _format_stack(error: BaseException) -> str:
    """Formatted traceback, keeping the innermost frames if too long."""
    stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return stack[-FIELD_LIMITS["error_stack"]:]


def _as_sdk_error(error: Exception) -> TimberlogsError:
    """Wrap exceptions raised outside the SDK hierarchy."""
    if isinstance(error, TimberlogsError):
        return error
    return TimberlogsError(f"flush failed: {error!r}")


class TimberlogsClient:
    """
    Timberlogs SDK Client.

    Buffers log entries in memory and ships them to the ingestion API in
    batches, on a timer, on demand and at shutdown, retrying failed
    submissions with exponential backoff.
    """

    def __init__(
        self, options: ClientOptions, transport: Optional[HttpTransport] = None
    ) -> None:
        """
        Initialize Timberlogs client.

        Args:
            options: Client configuration options
            transport: Transport to use instead of the default HTTP one
        """
        self.options = options
        self._transport = transport or HttpTransport(options)
        self._buffer = LogBuffer(
            min_level=options.min_level,
            max_size=options.max_buffer_size,
            user_id=options.user_id,
            session_id=options.session_id,
            dataset=options.dataset,
        )
        self._retry = RetryPolicy(options.retry, on_retry=self._record_retry)
        self._flush_lock = Lock()
        self._state_lock = Lock()
        self._metrics_lock = Lock()
        self._metrics = ClientMetrics()
        self._latency_window: List[float] = []
        self._closed = False

        self._timer = FlushTimer(
            options.flush_interval_ms, self._background_flush, on_error=self._timer_error
        )
        self._timer.start()

        # Register cleanup on exit
        atexit.register(self._disconnect_at_exit)

        if self.options.debug:
            print(f"[Timberlogs] Client initialized: {self.options.base_url}")

    @property
    def closed(self) -> bool:
        """Whether ``disconnect()`` has been called."""
        with self._state_lock:
            return self._closed

    # Default context

    def set_user_id(self, user_id: Optional[str]) -> None:
        """
        Set user ID for subsequent logs.

        Args:
            user_id: User ID or None to clear
        """
        self._buffer.set_user_id(user_id)

    def get_user_id(self) -> Optional[str]:
        """
        Get current default user ID.

        Returns:
            Current user ID or None
        """
        return self._buffer.user_id

    def set_session_id(self, session_id: Optional[str]) -> None:
        """
        Set session ID for subsequent logs.

        Args:
            session_id: Session ID or None to clear
        """
        self._buffer.set_session_id(session_id)

    def get_session_id(self) -> Optional[str]:
        """
        Get current default session ID.

        Returns:
            Current session ID or None
        """
        return self._buffer.session_id

    def set_dataset(self, dataset: Optional[str]) -> None:
        """
        Set dataset for subsequent logs.

        Args:
            dataset: Dataset name or None to clear
        """
        self._buffer.set_dataset(dataset)

    @contextmanager
    def with_user_id(self, user_id: str) -> Iterator[None]:
        """
        Context manager for scoped user ID.

        Args:
            user_id: User ID to use within context

        Example:
            with client.with_user_id('user-42'):
                client.info('Profile updated')
        """
        old_user_id = self._buffer.user_id
        self.set_user_id(user_id)
        try:
            yield
        finally:
            self.set_user_id(old_user_id)

    @contextmanager
    def with_session_id(self, session_id: str) -> Iterator[None]:
        """
        Context manager for scoped session ID.

        Args:
            session_id: Session ID to use within context
        """
        old_session_id = self._buffer.session_id
        self.set_session_id(session_id)
        try:
            yield
        finally:
            self.set_session_id(old_session_id)

    @contextmanager
    def with_new_session_id(self) -> Iterator[None]:
        """
        Context manager with auto-generated session ID.

        Example:
            with client.with_new_session_id():
                client.info('Background job')
        """
        with self.with_session_id(str(uuid.uuid4())):
            yield

    # Logging

    def log(self, entry: LogEntry) -> None:
        """
        Log a custom entry.

        Default context is merged into fields the entry leaves unset. Once
        ``batch_size`` entries are buffered the background thread is woken
        to send them; this call itself never waits on the network.

        Args:
            entry: Log entry to send

        Raises:
            ValidationError: If the entry is malformed or below min_level
            BufferFullError: If the buffer is full
        """
        size = self._buffer.append(entry)
        if size >= self.options.batch_size:
            self._timer.wake()

    def debug(self, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        """
        Log debug message.

        Args:
            message: Log message
            data: Optional structured data
        """
        self.log(LogEntry(level=LogLevel.DEBUG, message=message, data=data))

    def info(self, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        """
        Log info message.

        Args:
            message: Log message
            data: Optional structured data
        """
        self.log(LogEntry(level=LogLevel.INFO, message=message, data=data))

    def warn(self, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        """
        Log warning message.

        Args:
            message: Log message
            data: Optional structured data
        """
        self.log(LogEntry(level=LogLevel.WARN, message=message, data=data))

    def error(
        self,
        message: str,
        data_or_error: Union[Dict[str, Any], BaseException, None] = None,
    ) -> None:
        """
        Log error message.

        Args:
            message: Log message
            data_or_error: Structured data or an exception, whose type name
                and traceback become error_name and error_stack
        """
        if isinstance(data_or_error, BaseException):
            self.log(
                LogEntry(
                    level=LogLevel.ERROR,
                    message=message,
                    error_name=type(data_or_error).__name__,
                    error_stack=_format_stack(data_or_error),
                )
            )
        else:
            self.log(LogEntry(level=LogLevel.ERROR, message=message, data=data_or_error))

    def flow(self, name: str) -> Flow:
        """
        Start a flow.

        Args:
            name: Flow name

        Returns:
            Flow bound to a server-assigned id, starting at step 0

        Raises:
            NotConnectedError: If the client was disconnected
            HttpError: If the server rejects the request
            RequestError: On network failure
        """
        if not name:
            raise ValidationError("flow name must not be empty")
        if self.closed:
            raise NotConnectedError("client is not connected")

        flow_id, flow_name = self._transport.create_flow(name)
        if self.options.debug:
            print(f"[Timberlogs] Flow started: {flow_name} ({flow_id})")
        return Flow(self, flow_id, flow_name)

    def ingest_raw(
        self,
        body: str,
        fmt: Union[RawFormat, str],
        options: Optional[IngestRawOptions] = None,
    ) -> None:
        """
        Send a pre-formatted payload immediately, bypassing the buffer.

        Args:
            body: Raw payload
            fmt: Payload format
            options: Optional source/environment/level/dataset overrides

        Raises:
            ValidationError: If the body is empty, or the format or an
                override is not recognized
            HttpError: If the server rejects the request after retries
            RequestError: On network failure after retries
        """
        if not body:
            raise ValidationError("body must not be empty")
        try:
            raw_format = RawFormat(fmt)
        except ValueError:
            raise ValidationError(f"unrecognized raw format: {fmt!r}") from None
        if options is not None:
            options.normalize()

        try:
            self._retry.run(lambda: self._transport.submit_raw(body, raw_format, options))
        except TimberlogsError:
            with self._metrics_lock:
                self._metrics.errors += 1
            raise

        if self.options.debug:
            print(f"[Timberlogs] Ingested raw {raw_format.value} payload")

    # Lifecycle

    def flush(self) -> None:
        """
        Flush buffered logs to the Timberlogs API.

        Waits for a flush already in progress, then sends everything
        buffered at that point as one batch.

        Raises:
            HttpError: If the batch was rejected after retries
            RequestError: On network failure after retries
            ValidationError: If the batch cannot be encoded
        """
        self._flush_cycle()

    def disconnect(self) -> None:
        """
        Stop the flush timer and flush remaining logs.

        Safe to call more than once. Entries logged afterwards stay buffered
        until the next explicit ``flush()``.

        Raises:
            HttpError: If the final batch was rejected after retries
            RequestError: On network failure after retries
        """
        with self._state_lock:
            self._closed = True

        if self._timer.cancel():
            atexit.unregister(self._disconnect_at_exit)

        self._flush_cycle()

        if self.options.debug:
            print("[Timberlogs] Client disconnected")

    def get_metrics(self) -> ClientMetrics:
        """
        Get SDK metrics.

        Returns:
            Current metrics
        """
        with self._metrics_lock:
            return ClientMetrics(
                logs_sent=self._metrics.logs_sent,
                logs_dropped=self._metrics.logs_dropped,
                errors=self._metrics.errors,
                retries=self._metrics.retries,
                avg_latency_ms=self._metrics.avg_latency_ms,
            )

    def reset_metrics(self) -> None:
        """Reset SDK metrics."""
        with self._metrics_lock:
            self._metrics = ClientMetrics()
            self._latency_window.clear()

    # Private methods

    def _flush_cycle(self) -> None:
        """Drain the buffer and submit it, one cycle at a time."""
        with self._flush_lock:
            batch = self._buffer.drain()
            if not batch:
                return

            start_time = time.time()
            try:
                self._retry.run(lambda: self._transport.submit(batch))
            except Exception as e:
                error = _as_sdk_error(e)
                with self._metrics_lock:
                    self._metrics.errors += 1
                self._handle_failed_batch(batch, error)
                if error is e:
                    raise
                raise error from e

            latency = (time.time() - start_time) * 1000
            self._update_latency(latency)
            with self._metrics_lock:
                self._metrics.logs_sent += len(batch)

            if self.options.debug:
                print(f"[Timberlogs] Sent {len(batch)} logs ({latency:.2f}ms)")

    def _handle_failed_batch(self, batch: List[LogEntry], error: TimberlogsError) -> None:
        if self.options.requeue_failed_batches:
            self._buffer.requeue(batch)
            if self.options.debug:
                print(f"[Timberlogs] Requeued {len(batch)} logs after failure: {error}")
            return

        with self._metrics_lock:
            self._metrics.logs_dropped += len(batch)
        if self.options.debug:
            print(f"[Timberlogs] Dropped {len(batch)} logs after failure: {error}")

    def _background_flush(self) -> None:
        """Timer callback; failures go to on_error instead of a caller."""
        try:
            self._flush_cycle()
        except Exception as e:
            self._report_error(_as_sdk_error(e))

    def _report_error(self, error: TimberlogsError) -> None:
        if self.options.on_error is None:
            return
        try:
            self.options.on_error(error)
        except Exception as e:
            if self.options.debug:
                print(f"[Timberlogs] on_error callback raised: {e!r}")

    def _timer_error(self, error: Exception) -> None:
        self._report_error(_as_sdk_error(error))

    def _disconnect_at_exit(self) -> None:
        try:
            self.disconnect()
        except TimberlogsError as e:
            self._report_error(e)

    def _record_retry(self, retry: int, delay_ms: int, error: TimberlogsError) -> None:
        with self._metrics_lock:
            self._metrics.errors += 1
            self._metrics.retries += 1

        if self.options.debug:
            print(
                f"[Timberlogs] Retry {retry}/{self.options.retry.max_retries} "
                f"in {delay_ms}ms: {error}"
            )

    def _update_latency(self, latency: float) -> None:
        """
        Update latency metrics with rolling window.

        Args:
            latency: Latency in milliseconds
        """
        with self._metrics_lock:
            self._latency_window.append(latency)

            if len(self._latency_window) > LATENCY_WINDOW:
                self._latency_window.pop(0)

            self._metrics.avg_latency_ms = sum(self._latency_window) / len(
                self._latency_window
            )
