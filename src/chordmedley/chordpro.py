"""ChordPro formatter.

Renders a :class:`~chordmedley.models.StructuredSong` to ChordPro (``.cho``)
text, with every chord written inline at its anchor::

    [G]Amazing grace, how [C]sweet the [G]sound

Section name → ChordPro directive mapping
-----------------------------------------

+--------------------------------------+------------------------------------+
| Name (case-insensitive first word)   | Directive pair                     |
+======================================+====================================+
| ``Verse``, ``Verse N``               | ``{start_of_verse: Verse N}`` /    |
|                                      | ``{end_of_verse}``                 |
+--------------------------------------+------------------------------------+
| ``Chorus``                           | ``{start_of_chorus}`` /            |
|                                      | ``{end_of_chorus}``                |
+--------------------------------------+------------------------------------+
| ``Bridge``                           | ``{start_of_bridge}`` /            |
|                                      | ``{end_of_bridge}``                |
+--------------------------------------+------------------------------------+
| anything else                        | ``{comment: <name>}``              |
+--------------------------------------+------------------------------------+
| ``None`` / unnamed                   | no wrapper directive               |
+--------------------------------------+------------------------------------+

Usage::

    from chordmedley.chordpro import ChordProFormatter
    text = ChordProFormatter().render(song)
"""

from .chords import render_chord
from .models import ChordOverLyrics, ChordsOnly, Line, LyricsOnly, Section, StructuredSong
from .pitch import render_key

# Section names whose directives ChordPro has standardised.
_STRUCTURED = {
    "verse": ("start_of_verse", "end_of_verse"),
    "chorus": ("start_of_chorus", "end_of_chorus"),
    "bridge": ("start_of_bridge", "end_of_bridge"),
}


class ChordProFormatter:
    """Render a :class:`StructuredSong` to ChordPro text."""

    def render(self, song: StructuredSong) -> str:
        """Return ChordPro text for *song*.

        The returned string ends with a single newline and uses Unix line
        endings (``\\n``) throughout.
        """
        parts: list[str] = []

        # --- Metadata block ---
        if song.title:
            parts.append(f"{{title: {song.title}}}")
        if song.artist:
            parts.append(f"{{artist: {song.artist}}}")
        if song.key is not None:
            parts.append(f"{{key: {render_key(song.key)}}}")
        if song.capo:
            parts.append(f"{{capo: {song.capo}}}")
        for name, value in song.metadata.items():
            parts.append(f"{{{name}: {value}}}")

        # --- Section blocks ---
        for section in song.sections:
            if parts:
                parts.append("")  # blank line before every section
            parts.extend(_render_section(section))

        return "\n".join(parts) + "\n"


def inline_chords(line: ChordOverLyrics) -> str:
    """Return the lyric with ``[Chord]`` inserted before each anchor character."""
    line.validate()
    result = line.lyrics
    # Insert right to left so earlier positions stay valid.
    for anchor in reversed(line.chords):
        pos = anchor.position
        result = result[:pos] + f"[{render_chord(anchor.chord)}]" + result[pos:]
    return result


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _render_line(line: Line) -> str:
    if isinstance(line, ChordOverLyrics):
        return inline_chords(line)
    if isinstance(line, ChordsOnly):
        return " ".join(f"[{render_chord(c)}]" for c in line.chords)
    if isinstance(line, LyricsOnly):
        return line.text
    raise TypeError(f"Unknown line type: {type(line).__name__}")


def _render_section(section: Section) -> list[str]:
    """Return a list of lines for one section (no trailing blank line)."""
    name = section.name
    lines = [_render_line(line) for line in section.lines]

    if not name:
        return lines

    first_word = name.lower().split()[0]  # e.g. "verse" from "Verse 1"

    if first_word in _STRUCTURED:
        start_dir, end_dir = _STRUCTURED[first_word]
        # Include the full name for verse (e.g. "Verse 1"), bare directive for chorus/bridge
        if first_word == "verse":
            start_line = f"{{{start_dir}: {name}}}"
        else:
            start_line = f"{{{start_dir}}}"
        return [start_line, *lines, f"{{{end_dir}}}"]

    return [f"{{comment: {name}}}", *lines]
