"""Background thread that triggers periodic flushes."""

import traceback
from threading import Event, Lock, Thread, current_thread
from typing import Callable, Optional


class FlushTimer:
    """
    Daemon thread calling ``callback`` every ``interval_ms`` milliseconds.

    ``wake()`` fires the callback early without waiting for the interval.
    Callbacks run one at a time on the timer thread. An exception raised by
    the callback is handed to ``on_error`` (or printed if there is none) and
    the timer keeps running.
    """

    def __init__(
        self,
        interval_ms: int,
        callback: Callable[[], None],
        name: str = "timberlogs-flush",
        on_error: Optional[Callable[[Exception], None]] = None,
    ) -> None:
        self._interval = interval_ms / 1000.0
        self._callback = callback
        self._on_error = on_error
        self._wake = Event()
        self._stop = Event()
        self._lock = Lock()
        self._thread = Thread(target=self._run, daemon=True, name=name)

    @property
    def active(self) -> bool:
        return not self._stop.is_set()

    @property
    def alive(self) -> bool:
        """Whether the timer thread is running."""
        return self._thread.is_alive()

    def start(self) -> None:
        self._thread.start()

    def wake(self) -> None:
        """Request an immediate firing."""
        if not self._stop.is_set():
            self._wake.set()

    def cancel(self) -> bool:
        """
        Stop the timer and wait for an in-progress callback to return.

        Returns:
            True on the first call, False if the timer was already cancelled
        """
        with self._lock:
            if self._stop.is_set():
                return False
            self._stop.set()
        self._wake.set()
        if self._thread.is_alive() and self._thread is not current_thread():
            self._thread.join()
        return True

    def _run(self) -> None:
        while not self._stop.is_set():
            self._wake.wait(self._interval)
            self._wake.clear()
            if self._stop.is_set():
                break
            try:
                self._callback()
            except Exception as e:
                if self._on_error is None:
                    traceback.print_exc()
                else:
                    self._on_error(e)
