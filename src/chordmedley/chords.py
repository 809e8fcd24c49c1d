"""Chord symbols: parsing, transposition and rendering.

A chord symbol is split into three parts::

    C#m7/G#
    ^^ ^^ ^^
    |  |  +-- optional slash bass (any note name, upper or lower case)
    |  +----- quality suffix, kept verbatim
    +-------- root: letter A-G plus optional accidental

The suffix is classified into a :class:`ChordQuality` and an optional
numeric ``extension``.  Suffixes that are not recognised are still accepted
and tagged :attr:`ChordQuality.UNKNOWN`, so exotic chords keep transposing by
root even though their quality is opaque.

Rendering always spells the root and bass from
:data:`~chordmedley.pitch.SPELLING` and appends the suffix unchanged, which
makes ``parse -> render`` a round trip on pitch classes (``Db7`` renders as
``C#7``).
"""

import re
from dataclasses import dataclass, replace
from enum import Enum

from .exceptions import ParseError
from .pitch import NOTE_RE, parse_note, spell, transpose_pitch

_ROOT_RE = re.compile(r"^([A-G][#♯b♭]?)")

# Token shape used when scanning free text for chords.  Matches what
# parse_chord accepts for the common vocabulary; the parser uses it to decide
# whether a line is a chord line before parsing each token for real.
CHORD_NAME_RE = re.compile(
    r"^[A-G][#♯b♭]?"
    r"(?:maj|min|m|M|dim|aug|sus|add|\+|°|ø|-)?"
    r"\d*"
    r"(?:/9)?"
    r"(?:(?:b|#|sus|add|maj)\d+)*"
    r"(?:/[A-Ga-g][#♯b♭]?)?$"
)


class ChordQuality(Enum):
    MAJOR = "major"
    MINOR = "minor"
    DIMINISHED = "diminished"
    AUGMENTED = "augmented"
    SUSPENDED = "suspended"
    ADD = "add"
    POWER = "power"
    DOMINANT_SEVENTH = "dominant7"
    MAJOR_SEVENTH = "major7"
    MINOR_SEVENTH = "minor7"
    MINOR_MAJOR_SEVENTH = "minor-major7"
    HALF_DIMINISHED = "half-diminished"
    UNKNOWN = "unknown"

    @property
    def is_minor(self) -> bool:
        return self in _MINOR_QUALITIES


_MINOR_QUALITIES = frozenset(
    {
        ChordQuality.MINOR,
        ChordQuality.MINOR_SEVENTH,
        ChordQuality.MINOR_MAJOR_SEVENTH,
        ChordQuality.DIMINISHED,
        ChordQuality.HALF_DIMINISHED,
    }
)

# Checked in order with fullmatch; the named group ``ext`` (when present)
# becomes Chord.extension.
_QUALITY_PATTERNS: list[tuple[re.Pattern, ChordQuality]] = [
    (re.compile(r""), ChordQuality.MAJOR),
    (re.compile(r"(?:maj|M|Δ)(?P<ext>7|9|11|13)"), ChordQuality.MAJOR_SEVENTH),
    (re.compile(r"(?:m|min|-)(?:maj|M)(?P<ext>7)"), ChordQuality.MINOR_MAJOR_SEVENTH),
    (re.compile(r"(?:m|min|-)7b5|ø7?"), ChordQuality.HALF_DIMINISHED),
    (re.compile(r"(?:m|min|-)(?P<ext>7|9|11|13)"), ChordQuality.MINOR_SEVENTH),
    (re.compile(r"(?:m|min|-)(?P<ext>6/9|6)?"), ChordQuality.MINOR),
    (re.compile(r"(?:dim|°|o)(?P<ext>7)?"), ChordQuality.DIMINISHED),
    (re.compile(r"(?:aug|\+)(?P<ext>7)?"), ChordQuality.AUGMENTED),
    (re.compile(r"sus(?P<ext>2|4)?"), ChordQuality.SUSPENDED),
    (re.compile(r"add(?P<ext>\d+)"), ChordQuality.ADD),
    (re.compile(r"(?P<ext>5)"), ChordQuality.POWER),
    (re.compile(r"(?P<ext>6/9|6)"), ChordQuality.MAJOR),
    (re.compile(r"(?P<ext>7|9|11|13)"), ChordQuality.DOMINANT_SEVENTH),
]


@dataclass(frozen=True)
class Chord:
    """A parsed chord symbol.

    ``root`` and ``bass`` are pitch classes.  ``suffix`` is the quality text
    exactly as written (``"m7"``, ``"sus4"``, ``"7#9"``); ``quality`` and
    ``extension`` are derived from it.
    """

    root: int
    quality: ChordQuality = ChordQuality.MAJOR
    suffix: str = ""
    extension: str | None = None
    bass: int | None = None

    @property
    def is_minor(self) -> bool:
        return self.quality.is_minor

    def __str__(self) -> str:
        return render_chord(self)


def classify_suffix(suffix: str) -> tuple[ChordQuality, str | None]:
    """Return ``(quality, extension)`` for a quality suffix."""
    for pattern, quality in _QUALITY_PATTERNS:
        m = pattern.fullmatch(suffix)
        if m:
            return quality, m.groupdict().get("ext")
    return ChordQuality.UNKNOWN, None


def parse_chord(text: str) -> Chord:
    """Parse a chord symbol such as ``"C#m7/G#"``.

    Args:
        text: The chord symbol.  Surrounding whitespace is ignored.

    Returns:
        The parsed :class:`Chord`.

    Raises:
        ParseError: if the root is not a note letter, or the text after the
            last ``/`` is neither a note name nor a number.
    """
    stripped = text.strip()
    m = _ROOT_RE.match(stripped)
    if not m:
        raise ParseError(text, "chord must start with a root note A-G")
    root_text = m.group(1)
    rest = stripped[m.end():]

    bass = None
    if "/" in rest:
        head, bass_text = rest.rsplit("/", 1)
        if NOTE_RE.fullmatch(bass_text):
            rest, bass = head, parse_note(bass_text)
        # A numeric tail such as the 9 of 6/9 stays in the suffix.
        elif not bass_text.isdigit():
            raise ParseError(text, f"slash bass {bass_text!r} is not a note name")

    quality, extension = classify_suffix(rest)
    return Chord(
        root=parse_note(root_text),
        quality=quality,
        suffix=rest,
        extension=extension,
        bass=bass,
    )


def transpose_chord(chord: Chord, semitones: int) -> Chord:
    """Return *chord* moved by *semitones*; root and bass move together."""
    bass = None if chord.bass is None else transpose_pitch(chord.bass, semitones)
    return replace(chord, root=transpose_pitch(chord.root, semitones), bass=bass)


def render_chord(chord: Chord) -> str:
    name = spell(chord.root) + chord.suffix
    if chord.bass is not None:
        name += "/" + spell(chord.bass)
    return name


def is_chord_name(token: str) -> bool:
    """Return True if *token* looks like a chord symbol and parses as one."""
    if not CHORD_NAME_RE.match(token):
        return False
    try:
        parse_chord(token)
    except ParseError:
        return False
    return True
