"""Validation rules applied to log entries before they are buffered."""

import json

from .enums import LogLevel
from .exceptions import ValidationError
from .models import LogEntry

MAX_MESSAGE_LENGTH = 10_000
MAX_TAGS = 20
MAX_TAG_LENGTH = 50
MAX_STEP_INDEX = 1000

FIELD_LIMITS = {
    "user_id": 100,
    "session_id": 100,
    "request_id": 100,
    "error_name": 200,
    "error_stack": 10_000,
    "flow_id": 100,
    "dataset": 50,
    "ip_address": 100,
    "country": 10,
}


def coerce_level(level: object) -> LogLevel:
    """Return ``level`` as a LogLevel, raising ValidationError if unknown."""
    if isinstance(level, LogLevel):
        return level
    try:
        return LogLevel(level)
    except ValueError:
        raise ValidationError(f"unrecognized log level: {level!r}") from None


def validate_entry(entry: LogEntry, min_level: LogLevel) -> None:
    """
    Check an entry against the ingestion limits.

    Normalizes ``entry.level`` to a LogLevel in place.

    Args:
        entry: Entry to check
        min_level: Lowest level the client accepts

    Raises:
        ValidationError: If any rule is violated
    """
    entry.level = coerce_level(entry.level)
    if entry.level < min_level:
        raise ValidationError(
            f"level {entry.level.value} is below minimum level {min_level.value}"
        )

    if not entry.message:
        raise ValidationError("message must not be empty")
    if len(entry.message) > MAX_MESSAGE_LENGTH:
        raise ValidationError(
            f"message exceeds {MAX_MESSAGE_LENGTH} characters: {len(entry.message)}"
        )

    if entry.tags is not None:
        if len(entry.tags) > MAX_TAGS:
            raise ValidationError(
                f"tags must have at most {MAX_TAGS} items, got {len(entry.tags)}"
            )
        for i, tag in enumerate(entry.tags):
            if len(tag) > MAX_TAG_LENGTH:
                raise ValidationError(
                    f"tags[{i}] exceeds {MAX_TAG_LENGTH} characters: {len(tag)}"
                )

    if entry.step_index is not None and not 0 <= entry.step_index <= MAX_STEP_INDEX:
        raise ValidationError(
            f"step_index must be 0-{MAX_STEP_INDEX}, got {entry.step_index}"
        )

    if entry.data is not None:
        try:
            json.dumps(entry.data, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"data is not JSON serializable: {e}") from None

    for name, limit in FIELD_LIMITS.items():
        value = getattr(entry, name)
        if value is not None and len(value) > limit:
            raise ValidationError(f"{name} exceeds {limit} characters: {len(value)}")
