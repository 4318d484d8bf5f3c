import base64
import binascii
from datetime import UTC, datetime

from learning_journal.core.exceptions import InvalidCursorError


def encode_cursor(storage_id: str) -> str:
    """Encodes a row's storage id into an opaque cursor string."""
    return base64.b64encode(str(storage_id).encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> str:
    """Decodes an opaque cursor string back into the storage id it wraps."""
    try:
        decoded = base64.b64decode(cursor.encode("ascii"), validate=True).decode("utf-8")
    except (ValueError, binascii.Error, UnicodeError):
        raise InvalidCursorError(f"Invalid cursor: {cursor}") from None
    if not decoded:
        raise InvalidCursorError(f"Invalid cursor: {cursor}")
    return decoded


def format_timestamp(value: datetime) -> str:
    """Formats a timestamp as ISO-8601 UTC with millisecond precision, e.g. 2024-05-01T12:00:00.000Z."""
    if value.tzinfo is None:
        # SQLite hands back naive values; they are stored as UTC
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
