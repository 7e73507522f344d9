"""Flow handle: a server-correlated sequence of numbered log steps."""

from threading import Lock
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from .enums import LogLevel
from .exceptions import NotConnectedError
from .models import LogEntry

if TYPE_CHECKING:
    from .client import TimberlogsClient


class Flow:
    """
    Logs emitted through a flow carry its id and a step index.

    Steps start at 0 and grow by one per log call, including calls whose
    entry is rejected, so a step value is never reused.

    Example:
        flow = client.flow('checkout')
        flow.info('Cart loaded').info('Payment accepted')
    """

    def __init__(self, client: "TimberlogsClient", flow_id: str, name: str) -> None:
        self.id = flow_id
        self.name = name
        self._client = client
        self._step_index = 0
        self._lock = Lock()

    @property
    def step_index(self) -> int:
        """Step the next log call will use."""
        with self._lock:
            return self._step_index

    def debug(self, message: str, data: Optional[Dict[str, Any]] = None) -> "Flow":
        return self.log_with_level(LogLevel.DEBUG, message, data)

    def info(self, message: str, data: Optional[Dict[str, Any]] = None) -> "Flow":
        return self.log_with_level(LogLevel.INFO, message, data)

    def warn(self, message: str, data: Optional[Dict[str, Any]] = None) -> "Flow":
        return self.log_with_level(LogLevel.WARN, message, data)

    def error(self, message: str, data: Optional[Dict[str, Any]] = None) -> "Flow":
        return self.log_with_level(LogLevel.ERROR, message, data)

    def log_with_level(
        self,
        level: Union[LogLevel, str],
        message: str,
        data: Optional[Dict[str, Any]] = None,
        tags: Optional[List[str]] = None,
    ) -> "Flow":
        """
        Log the next step of this flow.

        Args:
            level: Log level
            message: Log message
            data: Optional structured data
            tags: Optional tags

        Returns:
            This flow, for chaining

        Raises:
            NotConnectedError: If the owning client was disconnected
            ValidationError: If the entry is rejected
        """
        if self._client.closed:
            raise NotConnectedError(f"flow {self.name!r} belongs to a disconnected client")

        # Held across the append so buffer order matches step order.
        with self._lock:
            step = self._step_index
            self._step_index += 1
            self._client.log(
                LogEntry(
                    level=level,
                    message=message,
                    data=data,
                    tags=tags,
                    flow_id=self.id,
                    step_index=step,
                )
            )
        return self

    def __repr__(self) -> str:
        return f"Flow(id={self.id!r}, name={self.name!r}, step_index={self.step_index})"
