"""SRT subtitle file parsing and generation."""

import re
from pathlib import Path

from loguru import logger

from .models import Subtitle
from .timecode import format_timestamp, parse_timestamp

__all__ = [
    "adjust_gaps",
    "format_timestamp",
    "parse_srt",
    "parse_timestamp",
    "read_srt",
    "renumber",
    "subtitles_to_srt",
    "write_srt",
]

TIME_RANGE_PATTERN = re.compile(
    r"(\d{1,2}:\d{2}:\d{2}[,.]\d{1,3})\s*-->\s*(\d{1,2}:\d{2}:\d{2}[,.]\d{1,3})"
)


def parse_srt(content: str) -> list[Subtitle]:
    """Parse SRT content into Subtitle objects.

    Each block's first line matching a time range is taken as its timing and
    every line after it becomes the text. Blocks without a time range, or
    with no text, are dropped. The numbering in the source is ignored and
    entries are numbered in order of survival.

    Args:
        content: Raw SRT file content (LF or CRLF line endings)

    Returns:
        List of Subtitle objects
    """
    subtitles = []
    blocks = re.split(r"\n{2,}", content.replace("\r\n", "\n").strip())

    for block in blocks:
        lines = block.split("\n")

        for i, line in enumerate(lines):
            match = TIME_RANGE_PATTERN.search(line)
            if match:
                break
        else:
            if block.strip():
                logger.debug(f"Dropping SRT block without a time range: {block[:40]!r}")
            continue

        text = "\n".join(lines[i + 1:]).strip()
        if not text:
            logger.debug(f"Dropping empty SRT block at {match.group(1)}")
            continue

        subtitles.append(
            Subtitle(
                index=len(subtitles) + 1,
                start=parse_timestamp(match.group(1)),
                end=parse_timestamp(match.group(2)),
                text=text,
            )
        )

    return subtitles


def adjust_gaps(subtitles: list[Subtitle]) -> list[Subtitle]:
    """Tighten each entry to end 1 ms before the next one starts.

    Start times are left alone. An entry is never pulled back to or past its
    own start, so no entry ends up with zero or negative duration.

    Args:
        subtitles: Parsed subtitles in temporal order

    Returns:
        New list with adjusted end times
    """
    adjusted = list(subtitles)

    for i in range(len(adjusted) - 1):
        current = adjusted[i]
        next_start = adjusted[i + 1].start
        if next_start <= 0:
            continue

        new_end = next_start - 1
        if new_end > current.start:
            adjusted[i] = current.model_copy(update={"end": new_end})

    return adjusted


def renumber(subtitles: list[Subtitle]) -> list[Subtitle]:
    """Reassign 1-based display indices in list order."""
    return [
        sub if sub.index == i else sub.model_copy(update={"index": i})
        for i, sub in enumerate(subtitles, start=1)
    ]


def read_srt(path: str | Path) -> list[Subtitle]:
    """Read and parse an SRT file.

    Args:
        path: Path to the SRT file

    Returns:
        List of Subtitle objects
    """
    path = Path(path)
    content = path.read_text(encoding="utf-8-sig")
    return parse_srt(content)


def write_srt(subtitles: list[Subtitle], path: str | Path) -> None:
    """Write subtitles to an SRT file.

    Args:
        subtitles: List of Subtitle objects
        path: Output file path
    """
    path = Path(path)
    path.write_text(subtitles_to_srt(subtitles), encoding="utf-8")


def subtitles_to_srt(subtitles: list[Subtitle]) -> str:
    """Convert subtitles to SRT format string, numbered 1..N.

    Args:
        subtitles: List of Subtitle objects

    Returns:
        SRT formatted string
    """
    return "\n".join(
        sub.to_srt_block(index=i) for i, sub in enumerate(subtitles, start=1)
    )
