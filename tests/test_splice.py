import numpy as np
import pytest

from subsplice.audio import AudioBuffer
from subsplice.editor import TimelineEditor
from subsplice.exceptions import EmptyResultError
from subsplice.models import SilentSegment, Subtitle
from subsplice.splice import remove_segments, retime_after_removal, splice_audio
from subsplice.srt import adjust_gaps, parse_srt

from conftest import HELLO_WORLD_SRT, SAMPLE_RATE


def test_end_to_end_trim(ramp_buffer):
    editor = TimelineEditor(adjust_gaps(parse_srt(HELLO_WORLD_SRT)), sync_enabled=False)
    second = editor.lines[1]
    editor.retime(second.id, start="00:00:03,000")

    new_buffer, new_lines = splice_audio(ramp_buffer, editor.lines)

    assert new_buffer.frames == 71976
    assert new_buffer.sample_rate == SAMPLE_RATE
    assert [(s.start, s.end) for s in new_lines] == [(0, 1999), (1999, 2999)]
    assert [s.text for s in new_lines] == ["Hello", "World"]


def test_output_audio_is_concatenation_of_ranges(ramp_buffer):
    lines = [
        Subtitle(id="late", start=3000, end=3500, text="B"),
        Subtitle(id="early", start=0, end=500, text="A"),
    ]
    new_buffer, new_lines = splice_audio(ramp_buffer, lines)

    source = ramp_buffer.channel(0)
    expected = np.concatenate([source[72000:84000], source[0:12000]])
    assert np.array_equal(new_buffer.channel(0), expected)
    assert [s.id for s in new_lines] == ["late", "early"]


def test_output_is_contiguous_from_zero(ramp_buffer):
    lines = [
        Subtitle(start=100, end=433, text="a"),
        Subtitle(start=1000, end=1777, text="b"),
        Subtitle(start=2000, end=2001, text="c"),
        Subtitle(start=3333, end=3999, text="d"),
    ]
    _, new_lines = splice_audio(ramp_buffer, lines)

    assert new_lines[0].start == 0
    for prev, cur in zip(new_lines, new_lines[1:]):
        assert cur.start == prev.end


def test_empty_and_inverted_entries_are_dropped(ramp_buffer):
    lines = [
        Subtitle(id="keep1", start=0, end=1000, text="a"),
        Subtitle(id="empty", start=1500, end=1500, text="b"),
        Subtitle(id="inverted", start=2000, end=1800, text="c"),
        Subtitle(id="keep2", start=2000, end=2500, text="d"),
    ]
    new_buffer, new_lines = splice_audio(ramp_buffer, lines)

    assert [s.id for s in new_lines] == ["keep1", "keep2"]
    assert [s.index for s in new_lines] == [1, 2]
    assert new_buffer.frames == 36000


def test_sub_millisecond_entries_are_dropped_from_track():
    buffer = AudioBuffer(np.zeros(44100, dtype=np.float32), 44100)
    lines = [Subtitle(id=f"s{i}", start=i, end=i + 1, text="x") for i in range(5)]

    new_buffer, new_lines = splice_audio(buffer, lines)

    # 44 samples per entry; the first retimes to 0-0 ms
    assert new_buffer.frames == 220
    assert [s.id for s in new_lines] == ["s1", "s2", "s3", "s4"]
    assert all(s.start < s.end for s in new_lines)
    assert [(s.start, s.end) for s in new_lines] == [(0, 1), (1, 2), (2, 3), (3, 4)]
    assert [s.index for s in new_lines] == [1, 2, 3, 4]


def test_entries_past_the_end_are_clamped(ramp_buffer):
    lines = [
        Subtitle(id="tail", start=3500, end=9000, text="a"),
        Subtitle(id="gone", start=5000, end=6000, text="b"),
    ]
    new_buffer, new_lines = splice_audio(ramp_buffer, lines)

    assert new_buffer.frames == 12000
    assert [s.id for s in new_lines] == ["tail"]


def test_empty_result_raises(ramp_buffer):
    with pytest.raises(EmptyResultError):
        splice_audio(ramp_buffer, [])
    with pytest.raises(EmptyResultError):
        splice_audio(ramp_buffer, [Subtitle(start=1000, end=1000, text="x")])


def test_source_buffer_is_untouched(ramp_buffer):
    before = ramp_buffer.channel(0).copy()
    splice_audio(ramp_buffer, [Subtitle(start=0, end=1000, text="x")])

    assert np.array_equal(ramp_buffer.channel(0), before)


def test_all_channels_are_spliced():
    stereo = AudioBuffer(np.stack([np.ones(2000), -np.ones(2000)]), 1000)
    new_buffer, _ = splice_audio(stereo, [Subtitle(start=500, end=1000, text="x")])

    assert new_buffer.channels == 2
    assert new_buffer.frames == 500
    assert new_buffer.channel(1)[0] == -1.0


def test_remove_segments_cuts_and_merges():
    buffer = AudioBuffer(np.arange(1000, dtype=np.float32), 1000)
    segments = [
        SilentSegment(start=0.5, end=0.7),
        SilentSegment(start=0.1, end=0.2),
        SilentSegment(start=0.6, end=0.8),
    ]
    result = remove_segments(buffer, segments)

    assert result.frames == 1000 - 100 - 300
    data = result.channel(0)
    assert data[99] == 99
    assert data[100] == 200
    assert data[400] == 800


def test_remove_segments_everything_raises():
    buffer = AudioBuffer(np.zeros(1000), 1000)
    with pytest.raises(EmptyResultError):
        remove_segments(buffer, [SilentSegment(start=0.0, end=1.0)])


def test_retime_after_removal():
    lines = [
        Subtitle(id="a", start=0, end=300, text="a"),
        Subtitle(id="b", start=350, end=380, text="b"),
        Subtitle(id="c", start=500, end=900, text="c"),
    ]
    segments = [SilentSegment(start=0.3, end=0.4)]
    retimed = retime_after_removal(lines, segments, 1000, 1000)

    assert [(s.id, s.start, s.end) for s in retimed] == [("a", 0, 300), ("c", 400, 800)]
    assert [s.index for s in retimed] == [1, 2]
