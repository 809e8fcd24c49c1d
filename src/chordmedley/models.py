from dataclasses import dataclass, field

from .chords import Chord
from .exceptions import MalformedLineError
from .pitch import Key


@dataclass(frozen=True)
class ChordAnchor:
    """A chord pinned to a character of the original, untransposed lyric.

    ``position`` is an index into the lyric string (``0..len(lyrics)``).  It
    survives transposition unchanged; only re-wrapping rebases it.
    """

    chord: Chord
    position: int


@dataclass(frozen=True)
class LyricsOnly:
    """A line of lyrics (or any other text) with no chords."""

    text: str


@dataclass(frozen=True)
class ChordsOnly:
    """An instrumental chord line, e.g. ``"G   C   D"``.

    ``raw_text`` keeps the original spacing so the line can be reprinted.
    """

    chords: tuple[Chord, ...]
    raw_text: str = ""


@dataclass(frozen=True)
class ChordOverLyrics:
    """A lyric line with chords anchored above individual characters.

    Example::

        G              C
        Amazing grace, how sweet the sound

    becomes ``lyrics="Amazing grace, how sweet the sound"`` with anchors at
    positions 0 and 15.  ``source_offset`` is where ``lyrics`` starts inside
    the line it was wrapped from (0 for a line that was never wrapped).
    """

    lyrics: str
    chords: tuple[ChordAnchor, ...] = ()
    source_offset: int = 0

    def validate(self) -> None:
        """Raise :class:`MalformedLineError` unless anchors are sorted and in bounds."""
        previous = 0
        for anchor in self.chords:
            if anchor.position < 0 or anchor.position > len(self.lyrics):
                raise MalformedLineError(
                    self.lyrics,
                    f"chord anchor {anchor.position} outside 0..{len(self.lyrics)}",
                )
            if anchor.position < previous:
                raise MalformedLineError(
                    self.lyrics,
                    f"chord anchor {anchor.position} comes after {previous}",
                )
            previous = anchor.position


Line = LyricsOnly | ChordsOnly | ChordOverLyrics


@dataclass(frozen=True)
class Section:
    """A named section of a song (verse, chorus, bridge, etc.)."""

    name: str | None  # e.g. "Verse 1", "Chorus", None for unlabelled passages
    lines: tuple[Line, ...] = ()


@dataclass(frozen=True)
class StructuredSong:
    """A chord sheet broken into sections and typed lines."""

    sections: tuple[Section, ...] = ()
    title: str = ""
    artist: str = ""
    key: Key | None = None
    capo: int = 0
    metadata: dict[str, str] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self):
        # Every song, including copies made with dataclasses.replace, owns its metadata.
        object.__setattr__(self, "metadata", dict(self.metadata))

    def chords(self) -> list[Chord]:
        """Every chord in reading order."""
        found: list[Chord] = []
        for section in self.sections:
            for line in section.lines:
                if isinstance(line, ChordOverLyrics):
                    found.extend(anchor.chord for anchor in line.chords)
                elif isinstance(line, ChordsOnly):
                    found.extend(line.chords)
        return found
