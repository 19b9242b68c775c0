"""Silence detection over in-memory audio buffers."""

import math

import numpy as np

from .audio import AudioBuffer
from .models import SilentSegment

DEFAULT_THRESHOLD = 0.01
DEFAULT_MIN_SILENCE = 0.25


def detect_silence(
    buffer: AudioBuffer,
    threshold: float = DEFAULT_THRESHOLD,
    min_silence_duration: float = DEFAULT_MIN_SILENCE,
    channel: int = 0,
) -> list[SilentSegment]:
    """Find runs of near-silent samples.

    A sample is silent when ``abs(sample) < threshold``. A run is reported
    only if it spans at least ``floor(min_silence_duration * sample_rate)``
    samples; a run reaching the end of the buffer follows the same rule.

    Args:
        buffer: Audio to scan
        threshold: Amplitude below which a sample counts as silent
        min_silence_duration: Minimum run length in seconds
        channel: Channel to scan

    Returns:
        Non-overlapping silent segments in time order, in seconds
    """
    data = buffer.channel(channel)
    sample_rate = buffer.sample_rate
    min_samples = math.floor(min_silence_duration * sample_rate)

    mask = (np.abs(data) < threshold).astype(np.int8)
    edges = np.diff(np.concatenate(([0], mask, [0])))
    starts = np.flatnonzero(edges == 1)
    ends = np.flatnonzero(edges == -1)

    return [
        SilentSegment(start=int(start) / sample_rate, end=int(end) / sample_rate)
        for start, end in zip(starts, ends)
        if end - start >= min_samples
    ]
