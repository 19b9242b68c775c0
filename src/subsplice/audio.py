"""In-memory audio buffers and the PCM16/WAV codec."""

import base64
import io
import wave
from dataclasses import dataclass
from pathlib import Path

import numpy as np

# Sample rate of raw PCM returned by the speech backend
DEFAULT_SAMPLE_RATE = 24000
SAMPLE_WIDTH_BYTES = 2


@dataclass(frozen=True, eq=False)
class AudioBuffer:
    """Fixed-length float samples per channel, full scale +/-1.0.

    ``samples`` has shape ``(channels, frames)`` and is read-only. Every
    transformation returns a new buffer, so a buffer handed to playback or
    kept in history never changes underneath its holder.
    """

    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        data = np.array(self.samples, dtype=np.float32, copy=True)
        if data.ndim == 1:
            data = data.reshape(1, -1)
        if data.ndim != 2:
            raise ValueError(f"Expected 1-D or 2-D samples, got shape {data.shape}")
        if self.sample_rate <= 0:
            raise ValueError(f"Sample rate must be positive, got {self.sample_rate}")
        data.setflags(write=False)
        object.__setattr__(self, "samples", data)

    @property
    def channels(self) -> int:
        return self.samples.shape[0]

    @property
    def frames(self) -> int:
        return self.samples.shape[1]

    @property
    def duration(self) -> float:
        """Length in seconds."""
        return self.frames / self.sample_rate

    def channel(self, index: int = 0) -> np.ndarray:
        """Return a read-only view of one channel."""
        return self.samples[index]


def from_pcm16(
    data: bytes,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
    channels: int = 1,
) -> AudioBuffer:
    """Decode interleaved signed 16-bit little-endian PCM.

    Args:
        data: Raw PCM bytes
        sample_rate: Sample rate of the PCM stream
        channels: Number of interleaved channels

    Returns:
        Decoded AudioBuffer
    """
    frame_bytes = SAMPLE_WIDTH_BYTES * channels
    usable = len(data) - (len(data) % frame_bytes)
    ints = np.frombuffer(data[:usable], dtype="<i2")
    floats = ints.astype(np.float32) / 32768.0
    return AudioBuffer(floats.reshape(-1, channels).T, sample_rate)


def to_pcm16(buffer: AudioBuffer) -> bytes:
    """Encode a buffer as interleaved signed 16-bit little-endian PCM."""
    clipped = np.clip(buffer.samples, -1.0, 1.0)
    scaled = np.where(clipped < 0, clipped * 0x8000, clipped * 0x7FFF)
    return scaled.T.astype("<i2").tobytes()


def decode_pcm_base64(
    pcm_base64: str, sample_rate: int = DEFAULT_SAMPLE_RATE
) -> AudioBuffer:
    """Decode base64 mono PCM16 as returned by the synthesis backend."""
    return from_pcm16(base64.b64decode(pcm_base64), sample_rate=sample_rate)


def encode_wav(buffer: AudioBuffer) -> bytes:
    """Encode a buffer as a 16-bit PCM WAV file with a 44-byte header."""
    out = io.BytesIO()
    with wave.open(out, "wb") as wav_handle:
        wav_handle.setnchannels(buffer.channels)
        wav_handle.setsampwidth(SAMPLE_WIDTH_BYTES)
        wav_handle.setframerate(buffer.sample_rate)
        wav_handle.writeframes(to_pcm16(buffer))
    return out.getvalue()


def pcm_to_wav(pcm: bytes, sample_rate: int = DEFAULT_SAMPLE_RATE, channels: int = 1) -> bytes:
    """Wrap raw PCM16 bytes in a WAV container without re-encoding samples."""
    out = io.BytesIO()
    with wave.open(out, "wb") as wav_handle:
        wav_handle.setnchannels(channels)
        wav_handle.setsampwidth(SAMPLE_WIDTH_BYTES)
        wav_handle.setframerate(sample_rate)
        wav_handle.writeframes(pcm)
    return out.getvalue()


def decode_wav(data: bytes) -> AudioBuffer:
    """Decode a 16-bit PCM WAV file.

    Raises:
        ValueError: If the file is not 16-bit PCM
    """
    try:
        with wave.open(io.BytesIO(data), "rb") as wav_handle:
            channels = wav_handle.getnchannels()
            sample_rate = wav_handle.getframerate()
            sample_width = wav_handle.getsampwidth()
            frames = wav_handle.readframes(wav_handle.getnframes())
    except (wave.Error, EOFError) as e:
        raise ValueError(f"Invalid WAV data: {e}") from e

    if sample_width != SAMPLE_WIDTH_BYTES:
        raise ValueError(f"Only 16-bit PCM WAV is supported, got {sample_width * 8}-bit")

    return from_pcm16(frames, sample_rate=sample_rate, channels=channels)


def to_wav_base64(buffer: AudioBuffer) -> str:
    """Encode a buffer as base64 WAV for upload to the transcription backend."""
    return base64.b64encode(encode_wav(buffer)).decode("ascii")


def read_wav(path: str | Path) -> AudioBuffer:
    """Read a 16-bit PCM WAV file."""
    return decode_wav(Path(path).read_bytes())


def write_wav(buffer: AudioBuffer, path: str | Path) -> Path:
    """Write a buffer to a 16-bit PCM WAV file."""
    path = Path(path)
    path.write_bytes(encode_wav(buffer))
    return path


def slice_audio(buffer: AudioBuffer, start: float, end: float) -> AudioBuffer:
    """Copy the samples between two times into a new buffer.

    Args:
        buffer: Source buffer
        start: Start time in seconds
        end: End time in seconds, clamped to the buffer duration

    Returns:
        New AudioBuffer holding the slice

    Raises:
        ValueError: If the slice would be empty
    """
    start_sample = int(np.floor(max(0.0, start) * buffer.sample_rate))
    end_sample = int(np.floor(min(end, buffer.duration) * buffer.sample_rate))
    if end_sample <= start_sample:
        raise ValueError("Invalid slice parameters resulting in an empty audio buffer.")

    return AudioBuffer(buffer.samples[:, start_sample:end_sample], buffer.sample_rate)
