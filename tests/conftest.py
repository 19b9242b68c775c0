import numpy as np
import pytest

from subsplice.audio import AudioBuffer
from subsplice.models import Subtitle

SAMPLE_RATE = 24000

HELLO_WORLD_SRT = (
    "1\n00:00:00,000 --> 00:00:02,000\nHello\n\n"
    "2\n00:00:02,000 --> 00:00:04,000\nWorld"
)


@pytest.fixture
def ramp_buffer():
    """4 s mono buffer whose sample values encode their own position."""
    frames = 4 * SAMPLE_RATE
    samples = np.arange(frames, dtype=np.float32) / frames
    return AudioBuffer(samples, SAMPLE_RATE)


@pytest.fixture
def three_lines():
    return [
        Subtitle(id="a", index=1, start=0, end=1000, text="First line"),
        Subtitle(id="b", index=2, start=1000, end=2000, text="Second line"),
        Subtitle(id="c", index=3, start=2500, end=3500, text="Third line"),
    ]
