"""Shared fixtures and fakes for Timberlogs SDK tests."""

import threading
import time
from typing import Any, Callable, List, Optional, Tuple

import pytest

from timberlogs import ClientOptions, Environment, LogEntry, RetryConfig, TimberlogsClient


def make_options(**overrides: Any) -> ClientOptions:
    """Options with fast retries and a timer that never fires on its own."""
    defaults = {
        "source": "test",
        "environment": Environment.DEVELOPMENT,
        "api_key": "tb_test_key",
        "batch_size": 100,
        "flush_interval_ms": 60000,
        "retry": RetryConfig(max_retries=3, initial_delay_ms=1, max_delay_ms=1),
    }
    defaults.update(overrides)
    return ClientOptions(**defaults)


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll ``predicate`` until it holds or ``timeout`` seconds pass."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


class FakeTransport:
    """
    In-memory transport recording every call.

    ``failures`` is consumed one error per call (batch and raw alike);
    once empty, calls succeed. ``gate`` blocks submissions until set.
    """

    def __init__(self, failures: Optional[List[Exception]] = None, always_fail: Optional[Exception] = None) -> None:
        self.batches: List[List[LogEntry]] = []
        self.raw_calls: List[Tuple[str, Any, Any]] = []
        self.flow_names: List[str] = []
        self.submit_calls = 0
        self.failures = list(failures or [])
        self.always_fail = always_fail
        self.flow_error: Optional[Exception] = None
        self.gate: Optional[threading.Event] = None
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    @property
    def entries(self) -> List[LogEntry]:
        return [entry for batch in self.batches for entry in batch]

    def submit(self, entries: List[LogEntry]) -> None:
        with self._lock:
            self.submit_calls += 1
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                self.gate.wait(5)
            self._maybe_fail()
            with self._lock:
                self.batches.append(list(entries))
        finally:
            with self._lock:
                self.in_flight -= 1

    def submit_raw(self, body: str, fmt: Any, raw_options: Any = None) -> None:
        with self._lock:
            self.raw_calls.append((body, fmt, raw_options))
        self._maybe_fail()

    def create_flow(self, name: str) -> Tuple[str, str]:
        if self.flow_error is not None:
            raise self.flow_error
        with self._lock:
            self.flow_names.append(name)
            return f"flow_{len(self.flow_names)}", name

    def close(self) -> None:
        pass

    def _maybe_fail(self) -> None:
        if self.always_fail is not None:
            raise self.always_fail
        with self._lock:
            error = self.failures.pop(0) if self.failures else None
        if error is not None:
            raise error


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def make_client(transport: FakeTransport):
    """Factory building clients on the fake transport, disconnected afterwards."""
    clients: List[TimberlogsClient] = []

    def factory(**overrides: Any) -> TimberlogsClient:
        client = TimberlogsClient(make_options(**overrides), transport=transport)
        clients.append(client)
        return client

    yield factory

    transport.failures.clear()
    transport.always_fail = None
    for client in clients:
        client.disconnect()
