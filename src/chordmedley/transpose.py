"""Song-level transposition.

Only chord symbols change.  Lyric text, anchor positions, section names and
line order are carried over untouched, and a fresh song is returned every
time.

Capo handling
-------------

A capo at fret *n* makes the notated chords sound *n* semitones higher.  The
user picks a shift relative to what they hear with the capo on; if they then
play without the capo, the displayed chords must drop by *n* to keep the
same sounding result::

    shift = effective_transpose(user_semitones, song.capo, use_capo)
    shown = transpose_song(song, shift)
"""

import re
from dataclasses import replace

from .chords import is_chord_name, parse_chord, render_chord, transpose_chord
from .models import ChordAnchor, ChordOverLyrics, ChordsOnly, Line, Section, StructuredSong
from .pitch import Key, normalize_semitones, transpose_key

_TOKEN_RE = re.compile(r"\S+")


def effective_transpose(user_semitones: int, capo: int, use_capo: bool) -> int:
    """Return the shift to apply to the notated chords.

    With the capo on the requested shift is used as-is; with it off the
    shift is lowered by *capo*.
    """
    return user_semitones - (0 if use_capo else capo)


def key_adjustment(song_key: Key, target_key: Key) -> int:
    """Return the shift in ``[-6, 6]`` that moves *song_key*'s root onto *target_key*'s.

    Mode is ignored; ``key_adjustment(Am, C) == 3``.
    """
    adjustment = target_key.root - song_key.root
    if adjustment > 6:
        adjustment -= 12
    if adjustment < -6:
        adjustment += 12
    return adjustment


def transpose_song(song: StructuredSong, semitones: int) -> StructuredSong:
    """Return a copy of *song* with every chord moved by *semitones*.

    *semitones* is folded into ``[-11, 11]`` first.  The song key, when set,
    moves with the chords; the capo does not.

    Raises:
        MalformedLineError: if any chord-over-lyrics line has anchors that
            are unsorted or outside its lyric.
    """
    shift = normalize_semitones(semitones)
    for section in song.sections:
        for line in section.lines:
            if isinstance(line, ChordOverLyrics):
                line.validate()

    if shift == 0:
        return replace(song)

    sections = tuple(
        Section(name=section.name, lines=tuple(_transpose_line(line, shift) for line in section.lines))
        for section in song.sections
    )
    key = transpose_key(song.key, shift) if song.key is not None else None
    return replace(song, sections=sections, key=key)


def _transpose_line(line: Line, shift: int) -> Line:
    if isinstance(line, ChordOverLyrics):
        anchors = tuple(
            ChordAnchor(transpose_chord(a.chord, shift), a.position) for a in line.chords
        )
        return replace(line, chords=anchors)
    if isinstance(line, ChordsOnly):
        return ChordsOnly(
            chords=tuple(transpose_chord(c, shift) for c in line.chords),
            raw_text=transpose_chord_text(line.raw_text, shift),
        )
    return line


def transpose_chord_text(text: str, semitones: int) -> str:
    """Respell every chord token in a raw chord line, keeping columns where possible.

    Each chord starts at its original column unless the previous (now
    longer) chord runs into it, in which case it is pushed right to leave a
    single space.  Bracketed chords keep their brackets; tokens that are not
    chords (``|``, ``x2``) are copied.
    """
    result = ""
    for m in _TOKEN_RE.finditer(text):
        token = m.group()
        bracketed = token.startswith("[") and token.endswith("]")
        name = token[1:-1] if bracketed else token
        if is_chord_name(name):
            token = render_chord(transpose_chord(parse_chord(name), semitones))
            if bracketed:
                token = f"[{token}]"
        if result:
            column = max(m.start(), len(result) + 1)
        else:
            column = m.start()
        result += " " * (column - len(result)) + token
    return result
