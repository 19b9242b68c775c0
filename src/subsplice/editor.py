"""Timeline editing of a subtitle track.

``TimelineEditor`` owns the working subtitle track and a frozen baseline.
Every mutation builds a new list of (immutable) ``Subtitle`` objects, swaps
it in and notifies subscribers, so snapshots handed out earlier stay valid.

Timing edits follow one of two policies, chosen by ``sync_enabled``:

* ripple (sync on): moving a start moves the previous entry's end by the
  same delta; moving an end shifts every later entry by the same delta.
* clamp (sync off): a start may not precede the previous end (or 0) and an
  end may not pass the next start. If the edited entry ends up with
  ``start >= end`` it is forced to a 100 ms duration around the edited field.
"""

from typing import Callable

from loguru import logger

from .models import Subtitle, new_subtitle_id
from .srt import renumber
from .timecode import parse_timestamp

MIN_CLAMPED_DURATION_MS = 100

TimeValue = int | str
ChangeListener = Callable[[list[Subtitle]], None]


def _to_ms(value: TimeValue) -> int:
    if isinstance(value, str):
        return parse_timestamp(value)
    return int(value)


class TimelineEditor:
    """Stateful editor over one subtitle track."""

    def __init__(
        self,
        subtitles: list[Subtitle] | None = None,
        sync_enabled: bool = True,
    ) -> None:
        self.sync_enabled = sync_enabled
        self.has_timestamp_edits = False
        self._lines: list[Subtitle] = renumber(list(subtitles or []))
        self._baseline: list[Subtitle] = list(self._lines)
        self._listeners: list[ChangeListener] = []

    @property
    def lines(self) -> list[Subtitle]:
        """The working track (a fresh list, safe to keep)."""
        return list(self._lines)

    @property
    def baseline(self) -> list[Subtitle]:
        """The frozen reset target."""
        return list(self._baseline)

    def is_modified(self) -> bool:
        """Whether the working track differs from the baseline."""
        return self._lines != self._baseline

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Call ``listener`` with the new track after each mutation.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _commit(self, lines: list[Subtitle]) -> list[Subtitle]:
        self._lines = lines
        for listener in list(self._listeners):
            listener(self.lines)
        return self.lines

    def _position(self, subtitle_id: str) -> int:
        for i, line in enumerate(self._lines):
            if line.id == subtitle_id:
                return i
        return -1

    def load(
        self,
        subtitles: list[Subtitle],
        baseline: list[Subtitle] | None = None,
    ) -> list[Subtitle]:
        """Replace the working track and baseline, clearing the edit flag.

        Without ``baseline`` the loaded track becomes its own baseline.
        """
        lines = list(subtitles)
        self._baseline = list(lines if baseline is None else baseline)
        self.has_timestamp_edits = False
        return self._commit(lines)

    def update(
        self,
        subtitle_id: str,
        start: TimeValue | None = None,
        end: TimeValue | None = None,
        text: str | None = None,
    ) -> list[Subtitle]:
        """Change any of an entry's start, end and text.

        Times may be milliseconds or timestamp text; malformed text reads as
        0. Unknown ids leave the track unchanged.
        """
        index = self._position(subtitle_id)
        if index == -1:
            logger.debug(f"Ignoring update for unknown subtitle {subtitle_id}")
            return self.lines

        lines = list(self._lines)
        old = lines[index]
        changes: dict = {}
        if text is not None:
            changes["text"] = text

        if start is None and end is None:
            lines[index] = old.model_copy(update=changes)
            return self._commit(lines)

        new_start = old.start if start is None else max(0, _to_ms(start))
        new_end = old.end if end is None else max(0, _to_ms(end))

        if self.sync_enabled:
            self._ripple(lines, index, old, new_start, new_end, start is not None, end is not None)
        else:
            new_start, new_end = self._clamp(
                lines, index, new_start, new_end, start is not None, end is not None
            )

        changes.update(start=new_start, end=new_end)
        lines[index] = old.model_copy(update=changes)
        self.has_timestamp_edits = True
        return self._commit(lines)

    def retime(
        self,
        subtitle_id: str,
        start: TimeValue | None = None,
        end: TimeValue | None = None,
    ) -> list[Subtitle]:
        """Move an entry's start and/or end under the current edit policy."""
        return self.update(subtitle_id, start=start, end=end)

    def retext(self, subtitle_id: str, text: str) -> list[Subtitle]:
        """Replace an entry's text. Does not count as a timestamp edit."""
        return self.update(subtitle_id, text=text)

    @staticmethod
    def _ripple(
        lines: list[Subtitle],
        index: int,
        old: Subtitle,
        new_start: int,
        new_end: int,
        start_changed: bool,
        end_changed: bool,
    ) -> None:
        if start_changed and index > 0:
            delta = new_start - old.start
            prev = lines[index - 1]
            lines[index - 1] = prev.model_copy(update={"end": max(0, prev.end + delta)})

        if end_changed:
            delta = new_end - old.end
            for i in range(index + 1, len(lines)):
                line = lines[i]
                lines[i] = line.model_copy(
                    update={
                        "start": max(0, line.start + delta),
                        "end": max(0, line.end + delta),
                    }
                )

    @staticmethod
    def _clamp(
        lines: list[Subtitle],
        index: int,
        new_start: int,
        new_end: int,
        start_changed: bool,
        end_changed: bool,
    ) -> tuple[int, int]:
        if index > 0 and new_start < lines[index - 1].end:
            new_start = lines[index - 1].end

        if index < len(lines) - 1 and new_end > lines[index + 1].start:
            new_end = lines[index + 1].start

        if new_start >= new_end:
            if start_changed:
                new_end = new_start + MIN_CLAMPED_DURATION_MS
            elif end_changed:
                new_start = max(0, new_end - MIN_CLAMPED_DURATION_MS)
            logger.debug(f"Clamped degenerate edit to {new_start}-{new_end} ms")

        return new_start, new_end

    def remove(self, subtitle_id: str) -> list[Subtitle]:
        """Delete an entry and renumber the rest."""
        lines = [line for line in self._lines if line.id != subtitle_id]
        if len(lines) == len(self._lines):
            return self.lines
        self.has_timestamp_edits = True
        return self._commit(renumber(lines))

    def split(self, index: int, offset: int) -> list[Subtitle]:
        """Split the entry at ``index`` (0-based) at a text offset.

        The time range is divided in proportion to ``offset / len(text)``.
        The first half keeps the original id; the second gets a new one. A
        split that would leave the second half empty does nothing.
        """
        if not 0 <= index < len(self._lines):
            return self.lines

        line = self._lines[index]
        offset = max(0, min(offset, len(line.text)))
        first_text = line.text[:offset].strip()
        second_text = line.text[offset:].strip()
        if not second_text:
            return self.lines

        split_time = line.start + (line.end - line.start) * offset // len(line.text)

        first = line.model_copy(update={"text": first_text, "end": split_time})
        second = Subtitle(
            id=new_subtitle_id(),
            index=line.index + 1,
            start=split_time,
            end=line.end,
            text=second_text,
        )

        lines = list(self._lines)
        lines[index:index + 1] = [first, second]
        self.has_timestamp_edits = True
        return self._commit(renumber(lines))

    def _merge(self, keep: int, drop: int) -> list[Subtitle]:
        lines = list(self._lines)
        first, second = sorted((keep, drop))
        combined = f"{lines[first].text.strip()} {lines[second].text.strip()}".strip()
        lines[keep] = lines[keep].model_copy(update={"text": combined})
        del lines[drop]
        self.has_timestamp_edits = True
        return self._commit(renumber(lines))

    def merge_up(self, index: int) -> list[Subtitle]:
        """Fold the entry at ``index`` into the one above it.

        The entry above keeps its own timestamps. No-op for the first entry.
        """
        if not 0 < index < len(self._lines):
            return self.lines
        return self._merge(keep=index - 1, drop=index)

    def merge_down(self, index: int) -> list[Subtitle]:
        """Fold the entry below ``index`` into it. No-op for the last entry."""
        if not 0 <= index < len(self._lines) - 1:
            return self.lines
        return self._merge(keep=index, drop=index + 1)

    def bulk_shift(self, delta_ms: int) -> list[Subtitle]:
        """Shift every entry by ``delta_ms``, clamping at zero."""
        lines = [
            line.model_copy(
                update={
                    "start": max(0, line.start + delta_ms),
                    "end": max(0, line.end + delta_ms),
                }
            )
            for line in self._lines
        ]
        self.has_timestamp_edits = True
        return self._commit(lines)

    def reset(self) -> list[Subtitle]:
        """Restore the baseline and clear the timestamp-edit flag."""
        self.has_timestamp_edits = False
        return self._commit(list(self._baseline))

    def active_line_at(self, seconds: float) -> Subtitle | None:
        """Return the entry playing at ``seconds``, if any."""
        ms = seconds * 1000
        for line in self._lines:
            if line.start <= ms < line.end:
                return line
        return None
