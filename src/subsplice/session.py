"""Editing session: generated audio history, live subtitle edits, reconstruction."""

import tempfile
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from loguru import logger

from .audio import AudioBuffer, decode_pcm_base64, to_wav_base64, write_wav
from .config import Config
from .editor import TimelineEditor
from .exceptions import ReconstructionNotAllowed
from .models import SilentSegment, Subtitle
from .silence import detect_silence
from .splice import remove_segments, retime_after_removal, splice_audio
from .srt import adjust_gaps, parse_srt, subtitles_to_srt
from .synthesis import VOICES, CancelToken, synthesize, transcribe


@dataclass(eq=False)
class HistoryItem:
    """One generated or reconstructed take.

    ``audio`` and ``original_srt_lines`` never change. ``srt_lines`` follows
    the live edits while the item is active.
    """

    script: str
    audio: AudioBuffer
    srt_lines: list[Subtitle]
    original_srt_lines: list[Subtitle]
    status: Literal["full", "trimmed"] = "full"
    id: str = field(default_factory=lambda: f"audio-{uuid.uuid4().hex[:12]}")
    wav_path: Path | None = None

    def export_wav(self) -> Path:
        """Write the audio to a temp WAV file for playback, once."""
        if self.wav_path is None:
            temp_file = tempfile.NamedTemporaryFile(suffix=".wav", delete=False)
            temp_file.close()
            self.wav_path = write_wav(self.audio, temp_file.name)
        return self.wav_path

    def release(self) -> None:
        """Delete the exported WAV file, if any."""
        if self.wav_path is not None:
            self.wav_path.unlink(missing_ok=True)
            self.wav_path = None


class EditorSession:
    """Ties synthesis, the timeline editor and the audio history together.

    The editor's working track is the single source of truth; the active
    history item's ``srt_lines`` is kept in step through a change listener.
    """

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or Config()
        self.editor = TimelineEditor(sync_enabled=self.config.sync_enabled)
        self.history: list[HistoryItem] = []
        self.active_id: str | None = None
        self.editor.subscribe(self._on_lines_changed)

    def _on_lines_changed(self, lines: list[Subtitle]) -> None:
        item = self.active_item
        if item is not None:
            item.srt_lines = lines

    @property
    def active_item(self) -> HistoryItem | None:
        if self.active_id is None:
            return None
        return next((item for item in self.history if item.id == self.active_id), None)

    @property
    def srt_content(self) -> str | None:
        """The working track as SRT text, or None before any audio exists."""
        if not self.history:
            return None
        return subtitles_to_srt(self.editor.lines)

    def get(self, item_id: str) -> HistoryItem:
        for item in self.history:
            if item.id == item_id:
                return item
        raise KeyError(f"Unknown history item: {item_id}")

    def _target(self, item_id: str | None) -> HistoryItem | None:
        if item_id is not None:
            return self.get(item_id)
        return self.active_item or (self.history[0] if self.history else None)

    def _add_item(
        self,
        script: str,
        audio: AudioBuffer,
        lines: list[Subtitle],
        status: Literal["full", "trimmed"],
    ) -> HistoryItem:
        item = HistoryItem(
            script=script,
            audio=audio,
            srt_lines=list(lines),
            original_srt_lines=list(lines),
            status=status,
        )
        self.history.insert(0, item)
        self.active_id = item.id
        self.editor.load(lines)
        return item

    def _transcribe(
        self, audio: AudioBuffer, script: str, cancel_token: CancelToken | None
    ) -> list[Subtitle]:
        srt_text = transcribe(
            to_wav_base64(audio),
            self.config.split_chars,
            self.config,
            cancel_token=cancel_token,
            reference_text=script,
        )
        return adjust_gaps(parse_srt(srt_text))

    def generate(
        self,
        text: str,
        voice: str | None = None,
        cancel_token: CancelToken | None = None,
    ) -> HistoryItem:
        """Synthesize ``text``, transcribe it and make the result active.

        Nothing is installed if the call fails or is cancelled.

        Raises:
            ValueError: If the text is empty or too long, or the voice is unset or unknown
            OperationCancelled: If ``cancel_token`` was cancelled
            SynthesisError: If the backend fails
        """
        script = text.strip()
        if not script:
            raise ValueError("Enter some text to convert.")
        if len(script) > self.config.max_chars:
            raise ValueError(f"Text cannot exceed {self.config.max_chars} characters.")
        voice = voice or self.config.voice
        if not voice:
            raise ValueError("Select a voice.")
        if voice not in VOICES:
            raise ValueError(f"Unknown voice: {voice}. Choose one of {', '.join(VOICES)}.")

        pcm_base64 = synthesize(script, voice, self.config, cancel_token=cancel_token)
        audio = decode_pcm_base64(pcm_base64, sample_rate=self.config.sample_rate)
        lines = self._transcribe(audio, script, cancel_token)

        item = self._add_item(script, audio, lines, status="full")
        logger.info(
            f"Generated {item.id}: {audio.duration:.2f}s audio, {len(lines)} subtitle lines"
        )
        return item

    def regenerate_srt(
        self, item_id: str | None = None, cancel_token: CancelToken | None = None
    ) -> HistoryItem | None:
        """Re-transcribe an item's audio and make it the active item."""
        item = self._target(item_id)
        if item is None:
            return None

        lines = self._transcribe(item.audio, item.script, cancel_token)
        item.srt_lines = list(lines)
        item.original_srt_lines = list(lines)
        self.active_id = item.id
        self.editor.load(lines)
        logger.info(f"Regenerated subtitles for {item.id}: {len(lines)} lines")
        return item

    def select(self, item_id: str) -> HistoryItem:
        """Make a history item active and load its tracks into the editor."""
        item = self.get(item_id)
        self.active_id = item.id
        self.editor.load(item.srt_lines, baseline=item.original_srt_lines)
        return item

    def can_reconstruct(self) -> bool:
        """Whether the current edits may be committed to audio."""
        if self._target(None) is None or not self.editor.is_modified():
            return False
        if self.config.strict_reconstruct and self.editor.has_timestamp_edits:
            return False
        return True

    def reconstruct(self) -> HistoryItem:
        """Splice the active audio by the working track into a new take.

        Raises:
            ReconstructionNotAllowed: If there is nothing to commit
            EmptyResultError: If every line was removed or collapsed
        """
        item = self._target(None)
        if item is None:
            raise ReconstructionNotAllowed("No audio to reconstruct.")
        if not self.can_reconstruct():
            raise ReconstructionNotAllowed("The current edits cannot be applied to the audio.")

        audio, lines = splice_audio(item.audio, self.editor.lines)
        new_item = self._add_item(item.script, audio, lines, status="trimmed")
        logger.info(f"Reconstructed {item.id} into {new_item.id} ({audio.duration:.2f}s)")
        return new_item

    def detect_silence(self, item_id: str | None = None) -> list[SilentSegment]:
        """Find silent stretches in an item's audio."""
        item = self._target(item_id)
        if item is None:
            return []
        return detect_silence(
            item.audio,
            threshold=self.config.silence_threshold,
            min_silence_duration=self.config.min_silence,
        )

    def remove_silence(
        self, segments: list[SilentSegment], item_id: str | None = None
    ) -> HistoryItem | None:
        """Cut segments out of an item's audio and retime its subtitles to match."""
        item = self._target(item_id)
        if item is None or not segments:
            return None

        lines = self.editor.lines if item.id == self.active_id else item.srt_lines
        audio = remove_segments(item.audio, segments)
        retimed = retime_after_removal(
            lines, segments, item.audio.sample_rate, item.audio.frames
        )
        new_item = self._add_item(item.script, audio, retimed, status="trimmed")
        logger.info(f"Removed {len(segments)} silent segments from {item.id}")
        return new_item

    def active_line_at(self, seconds: float) -> Subtitle | None:
        return self.editor.active_line_at(seconds)

    def clear_history(self) -> None:
        """Drop every take and release its exported audio."""
        for item in self.history:
            item.release()
        count = len(self.history)
        self.history = []
        self.active_id = None
        self.editor.load([])
        logger.info(f"Cleared {count} history items")
