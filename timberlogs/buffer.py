"""In-memory log buffer and default context."""

from dataclasses import replace
from threading import Lock
from typing import List, Optional

from .enums import LogLevel
from .exceptions import BufferFullError
from .models import LogEntry, now_ms
from .validation import validate_entry


class LogBuffer:
    """
    Ordered buffer of entries awaiting submission.

    Also holds the default context (user id, session id, dataset) merged
    into every entry at append time. The queue and the context each have
    their own lock so changing the context never waits on an append.
    """

    def __init__(
        self,
        min_level: LogLevel = LogLevel.DEBUG,
        max_size: int = 10000,
        user_id: Optional[str] = None,
        session_id: Optional[str] = None,
        dataset: Optional[str] = None,
    ) -> None:
        self._min_level = min_level
        self._max_size = max_size
        self._entries: List[LogEntry] = []
        self._lock = Lock()
        self._context_lock = Lock()
        self._user_id = user_id
        self._session_id = session_id
        self._dataset = dataset

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def user_id(self) -> Optional[str]:
        with self._context_lock:
            return self._user_id

    @property
    def session_id(self) -> Optional[str]:
        with self._context_lock:
            return self._session_id

    @property
    def dataset(self) -> Optional[str]:
        with self._context_lock:
            return self._dataset

    def set_user_id(self, user_id: Optional[str]) -> None:
        with self._context_lock:
            self._user_id = user_id

    def set_session_id(self, session_id: Optional[str]) -> None:
        with self._context_lock:
            self._session_id = session_id

    def set_dataset(self, dataset: Optional[str]) -> None:
        with self._context_lock:
            self._dataset = dataset

    def append(self, entry: LogEntry) -> int:
        """
        Merge defaults into a copy of ``entry``, validate it and queue it.

        The caller's entry object is left untouched.

        Args:
            entry: Entry to queue

        Returns:
            Number of buffered entries after the append

        Raises:
            ValidationError: If the merged entry is malformed
            BufferFullError: If the buffer already holds max_size entries
        """
        with self._context_lock:
            defaults = (self._user_id, self._session_id, self._dataset)

        merged = replace(
            entry,
            user_id=entry.user_id if entry.user_id is not None else defaults[0],
            session_id=entry.session_id if entry.session_id is not None else defaults[1],
            dataset=entry.dataset if entry.dataset is not None else defaults[2],
            timestamp=entry.timestamp if entry.timestamp is not None else now_ms(),
            tags=list(entry.tags) if entry.tags is not None else None,
        )
        validate_entry(merged, self._min_level)

        with self._lock:
            if len(self._entries) >= self._max_size:
                raise BufferFullError("Log buffer is full")
            self._entries.append(merged)
            return len(self._entries)

    def drain(self) -> List[LogEntry]:
        """Remove and return every buffered entry, oldest first."""
        with self._lock:
            batch = self._entries
            self._entries = []
        return batch

    def requeue(self, batch: List[LogEntry]) -> None:
        """
        Put a previously drained batch back in front of newer entries.

        The size limit is not applied here, so the buffer may hold up to one
        batch more than max_size. Appends raise BufferFullError until a
        drain brings it back under the limit.
        """
        with self._lock:
            self._entries = batch + self._entries
