"""Width-constrained layout of chord-over-lyrics lines.

Text width is never computed here.  Every function takes a ``measure``
callable mapping a string to a width in whatever unit the caller uses
(pixels from a font engine, or plain character counts).  Two ready-made
measures are provided:

- :func:`char_width` counts characters, for terminals and plain text.
- :func:`monospace_measure` estimates pixels for a monospace font size.

Wrapping rules
--------------

1. A line is split only if ``measure(lyrics) > container_width - padding``.
2. Each sub-line is as long as fits, broken after the last whitespace that
   keeps it within the width.  Whitespace at a break stays at the end of the
   earlier sub-line and is not counted toward its width.
3. A single word wider than the whole width is split mid-word.
4. Each chord moves to the sub-line containing its anchor character, with
   its position rebased to that sub-line's start.

Joining the sub-lines' lyrics gives back the original text exactly, and
every chord lands in exactly one sub-line.
"""

import re
from bisect import bisect_right
from collections.abc import Callable
from dataclasses import dataclass, replace

from .chords import render_chord
from .models import ChordAnchor, ChordOverLyrics, LyricsOnly, Section, StructuredSong

Measure = Callable[[str], float]

DEFAULT_PADDING = 0.0

# Average advance of a monospace glyph relative to the font size
# (Monaco / Lucida Console).
MONOSPACE_CHAR_RATIO = 0.58

# Hebrew and Arabic blocks (incl. presentation forms) plus the RLM mark.
_RTL_RE = re.compile(r"[\u0590-\u08FF\uFB1D-\uFDFF\uFE70-\uFEFC\u200F]")


def char_width(text: str) -> float:
    return float(len(text))


def monospace_measure(font_size: float, ratio: float = MONOSPACE_CHAR_RATIO) -> Measure:
    """Return a measure estimating pixel width for a monospace font of *font_size*."""

    def measure(text: str) -> float:
        return len(text) * font_size * ratio

    return measure


def is_rtl(text: str) -> bool:
    """Return True if *text* contains right-to-left script."""
    return bool(_RTL_RE.search(text))


def needs_wrap(
    line: ChordOverLyrics | LyricsOnly | str,
    container_width: float,
    measure: Measure = char_width,
    padding: float = DEFAULT_PADDING,
) -> bool:
    """Return True if the line's text is wider than the usable width."""
    return measure(_text_of(line)) > container_width - padding


def wrap_chord_over_lyrics(
    line: ChordOverLyrics,
    container_width: float,
    measure: Measure = char_width,
    padding: float = DEFAULT_PADDING,
) -> list[ChordOverLyrics]:
    """Split *line* into sub-lines that fit *container_width*.

    Args:
        line:            The chord-over-lyrics line to wrap.
        container_width: Width available for the line, in *measure* units.
        measure:         Text width function.
        padding:         Subtracted from *container_width* before fitting.

    Returns:
        One or more :class:`ChordOverLyrics`, in order.  Each carries its
        ``source_offset`` into the original lyric and chords rebased to its
        own start.  A line that already fits is returned as the only item.

    Raises:
        MalformedLineError: if the line's anchors are unsorted or out of
            bounds.
    """
    line.validate()
    if not needs_wrap(line, container_width, measure, padding):
        return [line]

    segments = _segments(line.lyrics, container_width - padding, measure)
    starts = [start for start, _ in segments]
    buckets: list[list[ChordAnchor]] = [[] for _ in segments]
    for anchor in line.chords:
        index = bisect_right(starts, anchor.position) - 1
        buckets[index].append(
            ChordAnchor(anchor.chord, anchor.position - starts[index])
        )

    return [
        ChordOverLyrics(
            lyrics=line.lyrics[start:end],
            chords=tuple(bucket),
            source_offset=line.source_offset + start,
        )
        for (start, end), bucket in zip(segments, buckets)
    ]


def wrap_lyrics(
    line: LyricsOnly,
    container_width: float,
    measure: Measure = char_width,
    padding: float = DEFAULT_PADDING,
) -> list[LyricsOnly]:
    """Split a chordless line using the same break rules as chord lines."""
    if not needs_wrap(line, container_width, measure, padding):
        return [line]
    return [
        LyricsOnly(line.text[start:end])
        for start, end in _segments(line.text, container_width - padding, measure)
    ]


def wrap_song(
    song: StructuredSong,
    container_width: float,
    measure: Measure = char_width,
    padding: float = DEFAULT_PADDING,
) -> StructuredSong:
    """Return a copy of *song* with every long lyric line wrapped.

    Chord-only lines are left as they are.
    """
    sections = []
    for section in song.sections:
        lines = []
        for line in section.lines:
            if isinstance(line, ChordOverLyrics):
                lines.extend(wrap_chord_over_lyrics(line, container_width, measure, padding))
            elif isinstance(line, LyricsOnly):
                lines.extend(wrap_lyrics(line, container_width, measure, padding))
            else:
                lines.append(line)
        sections.append(Section(name=section.name, lines=tuple(lines)))
    return replace(song, sections=tuple(sections))


# ---------------------------------------------------------------------------
# Chord placement
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PlacedChord:
    """Where a chord label is drawn, in *measure* units.

    ``offset`` is the distance from the line's leading edge: the left edge
    for left-to-right text, the right edge when ``rtl`` is set.  It is a
    rendering coordinate and is never written back into an anchor.
    """

    anchor: ChordAnchor
    label: str
    offset: float
    width: float
    rtl: bool = False

    @property
    def end(self) -> float:
        return self.offset + self.width

    def left(self, container_width: float) -> float:
        """Distance of the label's left edge from the container's left edge."""
        if self.rtl:
            return container_width - self.offset - self.width
        return self.offset


def place_chords(
    line: ChordOverLyrics,
    measure: Measure = char_width,
    gap: float = 0.0,
    rtl: bool | None = None,
) -> list[PlacedChord]:
    """Compute drawing offsets for each chord of *line*.

    A chord is drawn over its anchor character unless the previous label
    would overlap it; then it is pushed to start *gap* after that label's
    end.  Chords are never reordered.  *rtl* defaults to :func:`is_rtl` on
    the lyrics.

    Raises:
        MalformedLineError: if the line's anchors are unsorted or out of
            bounds.
    """
    line.validate()
    if rtl is None:
        rtl = is_rtl(line.lyrics)

    placed: list[PlacedChord] = []
    for anchor in line.chords:
        label = render_chord(anchor.chord)
        offset = measure(line.lyrics[: anchor.position])
        if placed:
            offset = max(offset, placed[-1].end + gap)
        placed.append(PlacedChord(anchor, label, offset, measure(label), rtl))
    return placed


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _text_of(line: ChordOverLyrics | LyricsOnly | str) -> str:
    if isinstance(line, ChordOverLyrics):
        return line.lyrics
    if isinstance(line, LyricsOnly):
        return line.text
    return line


def _segments(text: str, available: float, measure: Measure) -> list[tuple[int, int]]:
    """Return ``(start, end)`` ranges covering *text* end to end."""
    segments: list[tuple[int, int]] = []
    start = 0
    while start < len(text):
        end = _fit_end(text, start, available, measure)
        if end < len(text):
            end = _break_at(text, start, end)
        segments.append((start, end))
        start = end
    return segments or [(0, 0)]


def _fit_end(text: str, start: int, available: float, measure: Measure) -> int:
    # Always take at least one character so a too-narrow width still progresses.
    end = start + 1
    while end < len(text) and measure(text[start : end + 1].rstrip()) <= available:
        end += 1
    return end


def _break_at(text: str, start: int, end: int) -> int:
    if text[end].isspace():
        # The whole word fits; hang the following whitespace on this line.
        while end < len(text) and text[end].isspace():
            end += 1
        return end

    cut = end
    while cut > start and not text[cut - 1].isspace():
        cut -= 1
    if cut > start and text[start:cut].strip():
        return cut
    return end
