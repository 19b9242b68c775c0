"""Audio reconstruction from an edited subtitle track."""

from loguru import logger
import numpy as np

from .audio import AudioBuffer
from .exceptions import EmptyResultError
from .models import SilentSegment, Subtitle


def _ms_to_sample(ms: int, sample_rate: int) -> int:
    return ms * sample_rate // 1000


def _sample_to_ms(sample: int, sample_rate: int) -> int:
    return sample * 1000 // sample_rate


def splice_audio(
    buffer: AudioBuffer, subtitles: list[Subtitle]
) -> tuple[AudioBuffer, list[Subtitle]]:
    """Rebuild audio from the ranges an edited subtitle track points at.

    Each entry's ``[start, end)`` selects samples from ``buffer``. The
    selections are concatenated in track order with no gap, and the returned
    track is retimed so entries sit back to back from zero. Entries whose
    range is empty or inverted are dropped from both outputs. An entry whose
    retimed range rounds to under 1 ms keeps its samples but is dropped from
    the track, so every returned entry has ``start < end``.

    Args:
        buffer: Source audio
        subtitles: Edited subtitle track

    Returns:
        Tuple of (new buffer, retimed subtitles numbered 1..N)

    Raises:
        EmptyResultError: If no samples survive
    """
    sample_rate = buffer.sample_rate
    duration_ms = buffer.frames * 1000 // sample_rate

    kept = []
    for sub in subtitles:
        start_sample = _ms_to_sample(max(0, sub.start), sample_rate)
        end_sample = _ms_to_sample(min(duration_ms, sub.end), sample_rate)
        if end_sample <= start_sample:
            logger.debug(f"Dropping subtitle {sub.id} with empty range {sub.start}-{sub.end} ms")
            continue
        kept.append((start_sample, end_sample, sub))

    total_length = sum(end - start for start, end, _ in kept)
    if total_length <= 0:
        raise EmptyResultError(
            "Audio is empty after editing. Every line was removed or the timecodes are invalid."
        )

    chunks = []
    new_subtitles = []
    offset = 0
    for start_sample, end_sample, sub in kept:
        chunks.append(buffer.samples[:, start_sample:end_sample])
        new_start = _sample_to_ms(offset, sample_rate)
        offset += end_sample - start_sample
        new_end = _sample_to_ms(offset, sample_rate)
        # Sub-millisecond ranges keep their samples but cannot carry a line
        if new_end <= new_start:
            logger.debug(f"Dropping subtitle {sub.id} shorter than 1 ms after splicing")
            continue
        new_subtitles.append(
            sub.model_copy(
                update={"index": len(new_subtitles) + 1, "start": new_start, "end": new_end}
            )
        )

    logger.info(
        f"Spliced {len(new_subtitles)}/{len(subtitles)} lines into {total_length} samples"
    )
    return AudioBuffer(np.concatenate(chunks, axis=1), sample_rate), new_subtitles


def _removal_ranges(
    segments: list[SilentSegment], sample_rate: int, frames: int
) -> list[tuple[int, int]]:
    """Convert segments to sorted, merged sample ranges within the buffer."""
    ranges = sorted(
        (
            max(0, int(np.floor(seg.start * sample_rate))),
            min(frames, int(np.floor(seg.end * sample_rate))),
        )
        for seg in segments
    )

    merged: list[tuple[int, int]] = []
    for start, end in ranges:
        if end <= start:
            continue
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def remove_segments(buffer: AudioBuffer, segments: list[SilentSegment]) -> AudioBuffer:
    """Cut the given time ranges out of a buffer.

    Overlapping ranges are merged before cutting.

    Raises:
        EmptyResultError: If nothing is left after the cut
    """
    ranges = _removal_ranges(segments, buffer.sample_rate, buffer.frames)

    chunks = []
    cursor = 0
    for start, end in ranges:
        chunks.append(buffer.samples[:, cursor:start])
        cursor = end
    chunks.append(buffer.samples[:, cursor:])

    result = np.concatenate(chunks, axis=1)
    if result.shape[1] <= 0:
        raise EmptyResultError("Resulting audio is empty after removing silence.")

    removed = buffer.frames - result.shape[1]
    logger.info(f"Removed {len(ranges)} segments ({removed} samples)")
    return AudioBuffer(result, buffer.sample_rate)


def retime_after_removal(
    subtitles: list[Subtitle],
    segments: list[SilentSegment],
    sample_rate: int,
    frames: int,
) -> list[Subtitle]:
    """Map a subtitle track onto audio that had ``segments`` cut out.

    A time inside a removed range moves to where that range was cut. Entries
    that collapse to nothing are dropped and the rest are renumbered.
    """
    ranges = _removal_ranges(segments, sample_rate, frames)

    def shift(ms: int) -> int:
        sample = _ms_to_sample(ms, sample_rate)
        removed = 0
        for start, end in ranges:
            if sample <= start:
                break
            removed += min(sample, end) - start
        return _sample_to_ms(sample - removed, sample_rate)

    retimed = []
    for sub in subtitles:
        start, end = shift(sub.start), shift(sub.end)
        if end <= start:
            logger.debug(f"Subtitle {sub.id} fell entirely inside removed audio")
            continue
        retimed.append(
            sub.model_copy(update={"index": len(retimed) + 1, "start": start, "end": end})
        )
    return retimed
