"""Plain-text chord sheet formatter.

Renders a :class:`~chordmedley.models.StructuredSong` back to the familiar
chords-above-lyrics layout::

    Amazing Grace
    John Newton
    Key: G  Capo: 2

    [Verse 1]
    G                  C         G
    Amazing grace, how sweet the sound

The header block is written so that :func:`~chordmedley.parser.parse_song`
reads the title, artist, key and capo back.

Usage::

    from chordmedley.sheet import SheetFormatter
    text = SheetFormatter(width=40).render(song)
"""

from .chords import render_chord
from .layout import Measure, char_width, place_chords, wrap_song
from .models import ChordOverLyrics, ChordsOnly, Line, LyricsOnly, Section, StructuredSong
from .pitch import render_key


class SheetFormatter:
    """Render a :class:`StructuredSong` to chord-over-lyrics text.

    Args:
        width:   Wrap lyric lines to this many columns; ``None`` disables
                 wrapping.
        measure: Width function used for wrapping.  Chord rows are always
                 laid out in character columns.
    """

    def __init__(self, width: int | None = None, measure: Measure = char_width):
        self.width = width
        self.measure = measure

    def render(self, song: StructuredSong) -> str:
        """Return the sheet text, ending with a single newline."""
        if self.width is not None:
            song = wrap_song(song, self.width, self.measure)

        parts: list[str] = []
        if song.title:
            parts.append(song.title)
        if song.artist:
            parts.append(song.artist)
        details = []
        if song.key is not None:
            details.append(f"Key: {render_key(song.key)}")
        # parse_song only reads title and artist back from above this line.
        if song.capo or (song.key is None and (song.title or song.artist)):
            details.append(f"Capo: {song.capo}")
        if details:
            parts.append("  ".join(details))

        for section in song.sections:
            if parts:
                parts.append("")
            parts.extend(_render_section(section))

        return "\n".join(parts) + "\n"


def _render_section(section: Section) -> list[str]:
    out = [f"[{section.name}]"] if section.name else []
    for line in section.lines:
        out.extend(render_line(line))
    return out


def render_line(line: Line) -> list[str]:
    """Return the text rows for one line (two rows for chord-over-lyrics)."""
    if isinstance(line, ChordOverLyrics):
        rows = []
        if line.chords:
            rows.append(chord_row(line))
        rows.append(line.lyrics)
        return rows
    if isinstance(line, ChordsOnly):
        return [line.raw_text or " ".join(render_chord(c) for c in line.chords)]
    if isinstance(line, LyricsOnly):
        return [line.text]
    raise TypeError(f"Unknown line type: {type(line).__name__}")


def chord_row(line: ChordOverLyrics) -> str:
    """Lay the chord labels of *line* out in character columns.

    Labels sit over their anchor characters and are pushed right, one space
    apart, when they would collide.  Right-to-left lines are mirrored so
    each label sits over its anchor as displayed.
    """
    placed = place_chords(line, char_width, gap=1.0)
    if not placed:
        return ""

    if placed[0].rtl:
        total = max(float(len(line.lyrics)), placed[-1].end)
        spans = sorted((int(p.left(total)), p.label) for p in placed)
    else:
        spans = [(int(p.offset), p.label) for p in placed]

    row = ""
    for column, label in spans:
        row += " " * max(column - len(row), 1 if row else 0) + label
    return row
