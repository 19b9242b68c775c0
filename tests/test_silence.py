import numpy as np

from subsplice.audio import AudioBuffer
from subsplice.silence import detect_silence

RATE = 1000


def build(*runs):
    """Concatenate (value, length) runs into a mono buffer."""
    return AudioBuffer(np.concatenate([np.full(n, v) for v, n in runs]), RATE)


def test_reports_run_of_exact_minimum_length():
    buffer = build((0.5, 100), (0.0, 250), (0.5, 100))
    segments = detect_silence(buffer, min_silence_duration=0.25)

    assert len(segments) == 1
    assert segments[0].start == 0.1
    assert segments[0].end == 0.35


def test_ignores_run_one_sample_short():
    buffer = build((0.5, 100), (0.0, 249), (0.5, 100))

    assert detect_silence(buffer, min_silence_duration=0.25) == []


def test_trailing_and_leading_silence():
    buffer = build((0.0, 300), (0.5, 100), (0.001, 400))
    segments = detect_silence(buffer)

    assert [(s.start, s.end) for s in segments] == [(0.0, 0.3), (0.4, 0.8)]


def test_trailing_run_uses_same_minimum():
    buffer = build((0.5, 100), (0.0, 200))

    assert detect_silence(buffer) == []


def test_threshold_is_strict_and_uses_absolute_value():
    buffer = build((0.9, 10), (0.5, 300), (-0.25, 300), (0.9, 10))
    segments = detect_silence(buffer, threshold=0.5)

    assert [(s.start, s.end) for s in segments] == [(0.31, 0.61)]


def test_segments_are_ordered_and_disjoint():
    buffer = build((0.0, 300), (0.9, 5), (0.0, 300), (0.9, 5), (0.0, 300))
    segments = detect_silence(buffer)

    assert len(segments) == 3
    for earlier, later in zip(segments, segments[1:]):
        assert earlier.end <= later.start


def test_scans_requested_channel():
    samples = np.stack([np.zeros(500), np.full(500, 0.5)])
    buffer = AudioBuffer(samples, RATE)

    assert len(detect_silence(buffer, channel=0)) == 1
    assert detect_silence(buffer, channel=1) == []
