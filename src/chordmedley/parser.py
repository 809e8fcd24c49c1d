"""Chord-sheet text → :class:`~chordmedley.models.StructuredSong`.

Implements the chord-above-lyric pipeline:

  1. classify_line()               — BLANK / DIRECTIVE / SECTION / CHORD / TAB / LYRIC
  2. extract_chords_with_offsets() — (column, name) pairs from a chord line
  3. anchor_chords()               — pair a chord line with its lyric line
  4. split_inline_chords()         — ChordPro-style ``[G]Amazing [C]grace``
  5. parse_song()                  — full pipeline: raw text → StructuredSong

Chord lines may be written plain or bracketed::

    G       C          G
    [G]     [C]        [G]

Both become anchors at the column of the chord's first character.
"""

import logging
import re
from enum import Enum, auto

from .chords import is_chord_name, parse_chord
from .models import ChordAnchor, ChordOverLyrics, ChordsOnly, Line, LyricsOnly, Section, StructuredSong
from .pitch import parse_key

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Regexes
# ---------------------------------------------------------------------------

# ChordPro directive: {title: Amazing Grace}, {start_of_chorus}
DIRECTIVE_RE = re.compile(r"^\{\s*([\w-]+)\s*(?::\s*(.*?))?\s*\}$")

# Inline chord inside a lyric: "I [D]pulled into [G]Nazareth"
INLINE_CHORD_RE = re.compile(r"\[([^\]\s]+)\]")

# Known section-header keywords (case-insensitive)
SECTION_KEYWORDS_RE = re.compile(
    r"^(?:Verse|Chorus|Bridge|Intro|Outro|Solo|Interlude|Instrumental|"
    r"Pre-?Chorus|Tag|Coda|Refrain|Hook)(?:\s+\d+)?$",
    re.IGNORECASE,
)

# ASCII guitar tab line.  Either "e|--0--1--" or "E---------2--".
TAB_LINE_RE = re.compile(r"^[eEBGDAd](?:\|[-\d]|--)")

CAPO_LINE_RE = re.compile(r"^capo\s*:?\s*(\d{1,2})(?:\s*(?:st|nd|rd|th)?\s*(?:fret)?)?$", re.IGNORECASE)

# Plain-sheet header: "Key: G", "Key: F#m  Capo: 2"
KEY_LINE_RE = re.compile(
    r"^(?i:key)\s*:\s*([A-G][#♯b♭]?\s*(?:minor|min|m|major|maj)?)"
    r"(?:\s+(?i:capo)\s*:?\s*(\d{1,2}))?$"
)

# Chord-line tokens that are not chords but do not make the line a lyric.
_CHORD_LINE_FILLER = {"|", "||", "/", "-", "x2", "x3", "x4", "(x2)", "(x3)", "(x4)"}

_SECTION_DIRECTIVES = {
    "start_of_verse": "Verse",
    "sov": "Verse",
    "start_of_chorus": "Chorus",
    "soc": "Chorus",
    "start_of_bridge": "Bridge",
    "sob": "Bridge",
}
_COMMENT_DIRECTIVES = {"comment", "c"}
_TITLE_DIRECTIVES = {"title", "t"}
_ARTIST_DIRECTIVES = {"artist", "subtitle", "st"}


# ---------------------------------------------------------------------------
# LineType
# ---------------------------------------------------------------------------


class LineType(Enum):
    BLANK = auto()  # empty or whitespace only
    DIRECTIVE = auto()  # {key: G}, {start_of_chorus}
    SECTION = auto()  # section header: [Verse 1], Chorus:
    CHORD = auto()  # chord-only line: G  C  D  or  [G] [C] [D]
    TAB = auto()  # ASCII guitar tab line: e|--0--1--
    LYRIC = auto()  # everything else, including lyrics with inline [chords]


# ---------------------------------------------------------------------------
# Line classification
# ---------------------------------------------------------------------------


def _strip_brackets(token: str) -> str:
    if token.startswith("[") and token.endswith("]"):
        return token[1:-1]
    return token


def classify_line(line: str) -> LineType:
    """Classify a single line of chord-sheet text."""
    stripped = line.strip()
    if not stripped:
        return LineType.BLANK
    if DIRECTIVE_RE.match(stripped):
        return LineType.DIRECTIVE
    if TAB_LINE_RE.match(stripped):
        return LineType.TAB

    m = re.match(r"^\[([^\]]+)\]$", stripped)
    if m and not is_chord_name(m.group(1)):
        return LineType.SECTION
    if SECTION_KEYWORDS_RE.match(stripped.rstrip(":").strip()):
        return LineType.SECTION

    tokens = [t for t in stripped.split() if t not in _CHORD_LINE_FILLER]
    if tokens and all(is_chord_name(_strip_brackets(t)) for t in tokens):
        return LineType.CHORD
    return LineType.LYRIC


# ---------------------------------------------------------------------------
# Chord extraction
# ---------------------------------------------------------------------------


def extract_chords_with_offsets(line: str) -> list[tuple[int, str]]:
    """Return ``(column_offset, chord_name)`` pairs from a CHORD line.

    The offset is the column of the chord's first character, or of its
    opening ``[`` when bracketed.  Filler tokens such as ``|`` are skipped.
    """
    found = []
    for m in re.finditer(r"\S+", line):
        name = _strip_brackets(m.group())
        if is_chord_name(name):
            found.append((m.start(), name))
    return found


def anchor_chords(chord_line: str, lyric_line: str) -> ChordOverLyrics:
    """Pair a CHORD line with the lyric line printed under it.

    A chord whose column lies past the end of the lyric is anchored to the
    end of the lyric rather than dropped.
    """
    lyrics = lyric_line.rstrip()
    anchors = tuple(
        ChordAnchor(parse_chord(name), min(offset, len(lyrics)))
        for offset, name in extract_chords_with_offsets(chord_line)
    )
    return ChordOverLyrics(lyrics=lyrics, chords=anchors)


def split_inline_chords(line: str) -> Line:
    """Turn ``"I [D]pulled into [G]Nazareth"`` into a :class:`ChordOverLyrics`.

    Bracketed tokens that are not chords are left in the text.  A line with
    no inline chords comes back as :class:`LyricsOnly`.
    """
    lyrics = ""
    anchors: list[ChordAnchor] = []
    cursor = 0
    for m in INLINE_CHORD_RE.finditer(line):
        if not is_chord_name(m.group(1)):
            continue
        lyrics += line[cursor : m.start()]
        anchors.append(ChordAnchor(parse_chord(m.group(1)), len(lyrics)))
        cursor = m.end()
    lyrics += line[cursor:]
    lyrics = lyrics.rstrip()

    if not anchors:
        return LyricsOnly(lyrics)
    # Trailing chords ("...dead [G]") are pinned to the end of the stripped lyric.
    anchors = [ChordAnchor(a.chord, min(a.position, len(lyrics))) for a in anchors]
    return ChordOverLyrics(lyrics=lyrics, chords=tuple(anchors))


# ---------------------------------------------------------------------------
# Section label extraction
# ---------------------------------------------------------------------------


def extract_section_label(line: str) -> str:
    """Return the human-readable label from a SECTION line.

    Handles ``[Verse 1]``, ``Chorus:``, and bare ``Bridge`` formats.
    """
    stripped = line.strip()
    m = re.match(r"^\[([^\]]+)\]$", stripped)
    if m:
        return m.group(1)
    return stripped.rstrip(":").strip()


# ---------------------------------------------------------------------------
# Full parser
# ---------------------------------------------------------------------------


class _SongBuilder:
    def __init__(self):
        self.sections: list[Section] = []
        self.name: str | None = None
        self.lines: list[Line] = []
        self.meta: dict[str, str] = {}

    def start_section(self, name: str | None) -> None:
        self.flush()
        self.name = name

    def flush(self) -> None:
        if self.lines:
            self.sections.append(Section(name=self.name, lines=tuple(self.lines)))
        self.lines = []

    def take_header(self) -> None:
        """Read up to two plain lines above a ``Key:``/``Capo:`` line as title and artist."""
        if self.sections or self.name is not None or "title" in self.meta:
            return
        if not 0 < len(self.lines) <= 2:
            return
        if not all(isinstance(line, LyricsOnly) for line in self.lines):
            return
        self.meta["title"] = self.lines[0].text
        if len(self.lines) == 2:
            self.meta.setdefault("artist", self.lines[1].text)
        self.lines = []


def parse_song(text: str) -> StructuredSong:
    """Parse raw chord-sheet text into a :class:`StructuredSong`.

    Algorithm
    ---------
    1. Split *text* into lines and classify each one.
    2. Group lines into sections using SECTION lines and ChordPro
       ``start_of_*`` / ``comment`` directives as boundaries.
    3. Pair each CHORD line with the LYRIC line that immediately follows it
       into a :class:`ChordOverLyrics`.
    4. CHORD lines not followed by a LYRIC line become :class:`ChordsOnly`.
    5. LYRIC lines with inline ``[chords]`` become :class:`ChordOverLyrics`,
       other LYRIC lines :class:`LyricsOnly`.
    6. Metadata directives (``title``, ``artist``, ``key``, ``capo``),
       ``Capo: N`` lines and the ``Key: X  Capo: N`` header written by
       :class:`~chordmedley.sheet.SheetFormatter` fill in the song's
       metadata.  Up to two plain lines above such a header, before any
       section, are the title and artist.  BLANK and TAB lines are skipped.

    Raises:
        ParseError: if a ``key`` directive is not a key name.
    """
    lines = text.splitlines()
    builder = _SongBuilder()

    i = 0
    while i < len(lines):
        raw = lines[i]
        lt = classify_line(raw)

        if lt in (LineType.BLANK, LineType.TAB):
            i += 1
            continue

        if lt == LineType.DIRECTIVE:
            _apply_directive(builder, raw.strip())
            i += 1
            continue

        if lt == LineType.SECTION:
            builder.start_section(extract_section_label(raw))
            i += 1
            continue

        header = KEY_LINE_RE.match(raw.strip())
        if header:
            builder.take_header()
            builder.meta["key"] = header.group(1)
            if header.group(2):
                builder.meta["capo"] = header.group(2)
            i += 1
            continue

        capo = CAPO_LINE_RE.match(raw.strip())
        if capo:
            builder.take_header()
            builder.meta["capo"] = capo.group(1)
            i += 1
            continue

        if lt == LineType.CHORD:
            next_lt = classify_line(lines[i + 1]) if i + 1 < len(lines) else None
            if next_lt == LineType.LYRIC and not INLINE_CHORD_RE.search(lines[i + 1]):
                builder.lines.append(anchor_chords(raw, lines[i + 1]))
                i += 2
            else:
                # Chord-only passage (instrumental / intro riff with no lyric)
                chords = tuple(parse_chord(name) for _, name in extract_chords_with_offsets(raw))
                builder.lines.append(ChordsOnly(chords=chords, raw_text=raw.rstrip()))
                i += 1
            continue

        # LineType.LYRIC
        builder.lines.append(split_inline_chords(raw))
        i += 1

    builder.flush()
    logger.debug("Parsed %d sections from %d lines", len(builder.sections), len(lines))
    return _finish(builder)


def _apply_directive(builder: _SongBuilder, line: str) -> None:
    m = DIRECTIVE_RE.match(line)
    name = m.group(1).lower()
    value = (m.group(2) or "").strip()

    if name in _SECTION_DIRECTIVES:
        builder.start_section(value or _SECTION_DIRECTIVES[name])
    elif name.startswith("end_of_") or name in ("eoc", "eov", "eob"):
        builder.start_section(None)
    elif name in _COMMENT_DIRECTIVES:
        builder.start_section(value or None)
    elif name in _TITLE_DIRECTIVES:
        builder.meta["title"] = value
    elif name in _ARTIST_DIRECTIVES:
        builder.meta["artist"] = value
    else:
        builder.meta[name] = value


def _finish(builder: _SongBuilder) -> StructuredSong:
    meta = dict(builder.meta)
    title = meta.pop("title", "")
    artist = meta.pop("artist", "")
    key_text = meta.pop("key", "")
    capo_text = meta.pop("capo", "0")

    try:
        capo = int(capo_text) % 12
    except ValueError:
        logger.warning("Ignoring non-numeric capo %r", capo_text)
        capo = 0

    return StructuredSong(
        sections=tuple(builder.sections),
        title=title,
        artist=artist,
        key=parse_key(key_text) if key_text else None,
        capo=capo,
        metadata=meta,
    )
