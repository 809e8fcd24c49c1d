import pytest

from chordmedley.chords import parse_chord, render_chord
from chordmedley.exceptions import MalformedLineError
from chordmedley.models import (
    ChordAnchor,
    ChordOverLyrics,
    ChordsOnly,
    LyricsOnly,
    Section,
    StructuredSong,
)
from chordmedley.pitch import Key, Mode, parse_key
from chordmedley.transpose import (
    effective_transpose,
    key_adjustment,
    transpose_chord_text,
    transpose_song,
)


def _song(**kwargs) -> StructuredSong:
    defaults = dict(
        title="Amazing Grace",
        key=parse_key("G"),
        capo=2,
        sections=(
            Section(
                "Verse 1",
                (
                    ChordOverLyrics(
                        "Amazing grace, how sweet the sound",
                        (
                            ChordAnchor(parse_chord("G"), 0),
                            ChordAnchor(parse_chord("G7"), 15),
                            ChordAnchor(parse_chord("C/G"), 24),
                        ),
                    ),
                    LyricsOnly("That saved a wretch like me"),
                ),
            ),
            Section("Outro", (ChordsOnly((parse_chord("G"), parse_chord("D7")), "G   D7"),)),
        ),
    )
    defaults.update(kwargs)
    return StructuredSong(**defaults)


def _names(line: ChordOverLyrics) -> list[str]:
    return [render_chord(a.chord) for a in line.chords]


# ---------------------------------------------------------------------------
# transpose_song
# ---------------------------------------------------------------------------


def test_transpose_song_moves_every_chord():
    result = transpose_song(_song(), 2)
    verse, outro = result.sections
    assert _names(verse.lines[0]) == ["A", "A7", "D/A"]
    assert [render_chord(c) for c in outro.lines[0].chords] == ["A", "E7"]


def test_transpose_song_keeps_lyrics_and_positions():
    original = _song()
    result = transpose_song(original, 5)
    before = original.sections[0].lines[0]
    after = result.sections[0].lines[0]
    assert after.lyrics == before.lyrics
    assert [a.position for a in after.chords] == [a.position for a in before.chords]
    assert result.sections[0].lines[1] == original.sections[0].lines[1]


def test_transpose_song_keeps_structure():
    result = transpose_song(_song(), -3)
    assert [s.name for s in result.sections] == ["Verse 1", "Outro"]
    assert [type(line) for line in result.sections[0].lines] == [ChordOverLyrics, LyricsOnly]


def test_transpose_song_moves_key_not_capo():
    result = transpose_song(_song(), 2)
    assert result.key == Key(9, Mode.MAJOR)
    assert result.capo == 2


def test_transpose_song_does_not_mutate_input():
    original = _song()
    transpose_song(original, 4)
    assert _names(original.sections[0].lines[0]) == ["G", "G7", "C/G"]


def test_transpose_by_zero_is_structurally_equal():
    original = _song()
    assert transpose_song(original, 0) == original


def test_transpose_by_twelve_is_structurally_equal():
    original = _song()
    assert transpose_song(original, 12) == original
    assert transpose_song(original, -24) == original


def test_transpose_folds_large_shifts():
    assert transpose_song(_song(), 14) == transpose_song(_song(), 2)


def test_transpose_song_rejects_malformed_line():
    bad = StructuredSong(
        sections=(Section("V", (ChordOverLyrics("short", (ChordAnchor(parse_chord("G"), 10),)),)),)
    )
    with pytest.raises(MalformedLineError):
        transpose_song(bad, 2)


def test_transpose_song_rejects_malformed_line_even_for_zero():
    bad = StructuredSong(
        sections=(
            Section(
                "V",
                (
                    ChordOverLyrics(
                        "Amazing grace",
                        (ChordAnchor(parse_chord("G"), 6), ChordAnchor(parse_chord("C"), 1)),
                    ),
                ),
            ),
        )
    )
    with pytest.raises(MalformedLineError):
        transpose_song(bad, 0)


def test_transpose_empty_song():
    assert transpose_song(StructuredSong(), 3) == StructuredSong()


# ---------------------------------------------------------------------------
# transpose_chord_text
# ---------------------------------------------------------------------------


def test_chord_text_keeps_columns():
    assert transpose_chord_text("G   D7  Em", 2) == "A   E7  F#m"


def test_chord_text_pushes_longer_chords():
    assert transpose_chord_text("E F", 1) == "F F#"
    assert transpose_chord_text("A B C", 1) == "A# C C#"


def test_chord_text_copies_non_chord_tokens():
    assert transpose_chord_text("| G | C | x2", 2) == "| A | D | x2"


def test_chord_text_six_nine():
    assert transpose_chord_text("C6/9  G", 2) == "D6/9  A"


def test_chord_text_keeps_brackets():
    assert transpose_chord_text("[G]   [C]", 2) == "[A]   [D]"


def test_chord_text_keeps_leading_indent():
    assert transpose_chord_text("    C", 7) == "    G"


# ---------------------------------------------------------------------------
# effective_transpose
# ---------------------------------------------------------------------------


def test_effective_transpose_with_capo_is_user_value():
    assert effective_transpose(3, capo=2, use_capo=True) == 3


def test_effective_transpose_without_capo_drops_by_capo():
    assert effective_transpose(3, capo=2, use_capo=False) == 1
    assert effective_transpose(0, capo=5, use_capo=False) == -5


def test_effective_transpose_keeps_sounding_result():
    song = _song(capo=3)
    with_capo = transpose_song(song, effective_transpose(0, song.capo, True))
    without = transpose_song(song, effective_transpose(0, song.capo, False))
    first_with = with_capo.sections[0].lines[0].chords[0].chord.root
    first_without = without.sections[0].lines[0].chords[0].chord.root
    assert (first_with - first_without) % 12 == song.capo


# ---------------------------------------------------------------------------
# key_adjustment
# ---------------------------------------------------------------------------


def test_key_adjustment_up_and_down():
    assert key_adjustment(parse_key("G"), parse_key("A")) == 2
    assert key_adjustment(parse_key("A"), parse_key("G")) == -2


def test_key_adjustment_takes_short_way():
    assert key_adjustment(parse_key("C"), parse_key("B")) == -1
    assert key_adjustment(parse_key("B"), parse_key("C")) == 1


def test_key_adjustment_ignores_mode():
    assert key_adjustment(parse_key("Am"), parse_key("C")) == 3


def test_key_adjustment_tritone():
    assert key_adjustment(parse_key("C"), parse_key("F#")) == 6
    assert key_adjustment(parse_key("F#"), parse_key("C")) == -6


# ---------------------------------------------------------------------------
# Metadata of derived songs
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("semitones", [0, 3])
def test_transposed_song_has_its_own_metadata(semitones):
    original = _song(metadata={"tempo": "90"})
    result = transpose_song(original, semitones)
    result.metadata["tempo"] = "120"
    result.metadata["time"] = "3/4"
    assert original.metadata == {"tempo": "90"}
