from __future__ import annotations

from datetime import datetime, timedelta, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Frame record trailer: int32 seconds, uint16 milliseconds, uint16 microseconds
TIMESTAMP_FORMAT = "<iHH"
TIMESTAMP_SIZE = 8


def timestamp_to_datetime(seconds: int, millis: int = 0, micros: int = 0) -> datetime:
    """Convert a raw frame timestamp to an aware UTC datetime."""
    return EPOCH + timedelta(seconds=seconds, milliseconds=millis, microseconds=micros)


def decode_timestamp(seconds: int, millis: int, micros: int) -> str:
    """
    Format a raw frame timestamp as ``YYYY-MM-DDTHH:MM:SS:mmmuuu``.

    Seconds count from 1970-01-01T00:00:00Z and are rendered in UTC. The
    millisecond and microsecond fields are appended verbatim, each padded to
    three digits, rather than folded into the seconds.
    """
    whole = EPOCH + timedelta(seconds=seconds)
    return f"{whole.strftime('%Y-%m-%dT%H:%M:%S')}:{millis:03d}{micros:03d}"
