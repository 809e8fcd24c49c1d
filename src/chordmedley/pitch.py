"""Pitch classes, note spelling and keys.

A pitch class is a plain ``int`` in ``0..11`` with ``0 == C``.  All arithmetic
on pitch classes is done modulo 12.

Spelling
--------

Every pitch class has exactly one display name, taken from
:data:`SPELLING`.  Input accepts sharps, flats and the unicode accidentals
(``♯``/``♭``), so ``"Db"`` and ``"C#"`` both parse to ``1`` but always
render back as ``"C#"``.  Key-aware spelling (flats in F major etc.) is not
attempted.
"""

import re
from dataclasses import dataclass
from enum import Enum

from .exceptions import ParseError

SPELLING: tuple[str, ...] = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

_NATURALS = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}
_ACCIDENTALS = {"": 0, "#": 1, "♯": 1, "b": -1, "♭": -1}

# Root letter plus at most one accidental.  Lowercase letters are accepted
# for slash-bass notes (``D/f#``) by the callers that need it.
NOTE_RE = re.compile(r"([A-Ga-g])([#♯b♭]?)")

_KEY_RE = re.compile(
    r"^\s*([A-G][#♯b♭]?)\s*(m|min|minor|-|maj|major|M)?\s*$",
)


class Mode(Enum):
    MAJOR = "major"
    MINOR = "minor"


def normalize_semitones(semitones: int) -> int:
    """Fold *semitones* into ``[-11, 11]`` keeping its sign.

    ``14 -> 2``, ``-13 -> -1``, ``12 -> 0``.
    """
    if semitones >= 0:
        return semitones % 12
    return -((-semitones) % 12)


def transpose_pitch(pitch: int, semitones: int) -> int:
    return (pitch + normalize_semitones(semitones)) % 12


def parse_note(text: str) -> int:
    """Return the pitch class for a note name like ``"F#"`` or ``"Bb"``.

    Raises :class:`~chordmedley.exceptions.ParseError` for anything else.
    """
    m = NOTE_RE.fullmatch(text)
    if not m:
        raise ParseError(text, "not a note name")
    letter, accidental = m.groups()
    return (_NATURALS[letter.upper()] + _ACCIDENTALS[accidental]) % 12


def spell(pitch: int) -> str:
    return SPELLING[pitch % 12]


@dataclass(frozen=True)
class Key:
    """A tonal centre: root pitch class plus major/minor mode."""

    root: int
    mode: Mode = Mode.MAJOR

    @property
    def is_minor(self) -> bool:
        return self.mode is Mode.MINOR

    def __str__(self) -> str:
        return render_key(self)


def parse_key(text: str) -> Key:
    """Parse ``"G"``, ``"Am"``, ``"F# minor"``, ``"Bb major"`` into a :class:`Key`.

    Raises :class:`~chordmedley.exceptions.ParseError` if *text* is not a key.
    """
    m = _KEY_RE.match(text)
    if not m:
        raise ParseError(text, "not a key name")
    root, mode = m.groups()
    minor = mode in ("m", "min", "minor", "-")
    return Key(parse_note(root), Mode.MINOR if minor else Mode.MAJOR)


def render_key(key: Key) -> str:
    """Return the short display name: ``"A"`` or ``"F#m"``."""
    return spell(key.root) + ("m" if key.is_minor else "")


def transpose_key(key: Key, semitones: int) -> Key:
    return Key(transpose_pitch(key.root, semitones), key.mode)


def sounding_key(key: Key, capo: int) -> Key:
    """Return the key actually heard when *key* is fingered with a capo at *capo*.

    Only used for display and grouping; never fed back into transposition.
    """
    return Key((key.root + capo) % 12, key.mode)


def relative_key(key: Key) -> Key:
    """Return the relative minor of a major key, or relative major of a minor key."""
    if key.is_minor:
        return Key((key.root + 3) % 12, Mode.MAJOR)
    return Key((key.root + 9) % 12, Mode.MINOR)
