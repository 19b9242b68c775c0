"""Data models for subsplice."""

import uuid

from pydantic import BaseModel, ConfigDict, Field

from .timecode import format_timestamp


def new_subtitle_id() -> str:
    """Generate a fresh, never reused subtitle id."""
    return f"srt-{uuid.uuid4().hex[:12]}"


class Subtitle(BaseModel):
    """A single subtitle entry with timing and text.

    ``id`` is stable for the life of the entry. ``index`` is the 1-based
    display position and is recomputed whenever the sequence changes shape.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_subtitle_id)
    index: int = 1
    start: int = Field(ge=0)  # milliseconds
    end: int = Field(ge=0)  # milliseconds
    text: str

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def start_seconds(self) -> float:
        return self.start / 1000

    @property
    def end_seconds(self) -> float:
        return self.end / 1000

    def to_srt_block(self, index: int | None = None) -> str:
        """Convert to SRT format block."""
        number = self.index if index is None else index
        start_ts = format_timestamp(self.start)
        end_ts = format_timestamp(self.end)
        return f"{number}\n{start_ts} --> {end_ts}\n{self.text}\n"


class SilentSegment(BaseModel):
    """A run of near-silent samples, in seconds."""

    model_config = ConfigDict(frozen=True)

    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


class CharacterBreakdown(BaseModel):
    """Character class counts for a script."""

    hangul: int = 0
    english: int = 0
    numbers: int = 0
    spaces: int = 0
    symbols: int = 0
    total: int = 0


class ScriptAnalysis(BaseModel):
    """Statistics about a script shown next to the script editor."""

    char_count: int = 0
    char_count_no_spaces: int = 0
    word_count: int = 0
    sentence_count: int = 0
    line_count: int = 0
    paragraph_count: int = 0
    unique_word_count: int = 0
    read_time: int = 0  # seconds
    characters: CharacterBreakdown = Field(default_factory=CharacterBreakdown)
    top_words: list[tuple[str, int]] = Field(default_factory=list)
    top_bigrams: list[tuple[str, int]] = Field(default_factory=list)
    top_trigrams: list[tuple[str, int]] = Field(default_factory=list)
