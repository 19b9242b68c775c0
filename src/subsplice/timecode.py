"""Conversion between SRT timestamp text and integer milliseconds."""

import math
import re

ZERO_TIMESTAMP = "00:00:00,000"

_FIELD_SEPARATORS = re.compile(r"[:,.]")


def parse_timestamp(timestamp: str) -> int:
    """Parse an SRT timestamp to milliseconds.

    Accepts ``HH:MM:SS,mmm`` with either ``,`` or ``.`` before the
    milliseconds. The hour field is unbounded. The millisecond digits are a
    whole count of milliseconds, so ``,5`` means 5 ms.

    Malformed input returns 0 instead of raising: timestamps are often
    half-typed while a user is editing them.

    Args:
        timestamp: Timestamp text such as "00:01:02,345"

    Returns:
        Offset in milliseconds
    """
    parts = _FIELD_SEPARATORS.split(timestamp.strip())
    if len(parts) != 4 or not all(part.isdigit() for part in parts):
        return 0

    hours, minutes, seconds, fraction = parts
    return (int(hours) * 3600 + int(minutes) * 60 + int(seconds)) * 1000 + int(fraction)


def format_timestamp(ms: float) -> str:
    """Format milliseconds as an SRT timestamp (HH:MM:SS,mmm).

    Negative and non-finite values format as the zero timestamp. Fractional
    milliseconds are floored.
    """
    if not math.isfinite(ms) or ms < 0:
        return ZERO_TIMESTAMP

    total_ms = int(ms)
    millis = total_ms % 1000
    total_seconds = total_ms // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    secs = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"
