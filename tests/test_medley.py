import logging

import pytest

from chordmedley.chords import parse_chord
from chordmedley.medley import (
    BRIDGE_THRESHOLD,
    analyze_song,
    candidate_from_song,
    describe_medley,
    sequence_medley,
)
from chordmedley.parser import parse_song
from chordmedley.pitch import parse_key
from chordmedley.scoring import TransitionCandidate, score_transition

GRACE = """\
{title: Amazing Grace}
{key: G}
{capo: 2}

[Verse 1]
G                  C         G
Amazing grace, how sweet the sound
G                  D
That saved a wretch like me
"""


def _cand(song_id, key=None, first=None, last=None) -> TransitionCandidate:
    return TransitionCandidate(
        song_id=song_id,
        first_chord=parse_chord(first) if first else None,
        last_chord=parse_chord(last) if last else None,
        sounding_key=parse_key(key) if key else None,
    )


def _ids(sequence) -> list[str]:
    return [c.song_id for c in sequence]


def _never_called(a, b):
    raise AssertionError("scorer should not be called")


# ---------------------------------------------------------------------------
# Song analysis
# ---------------------------------------------------------------------------


def test_analyze_song_reads_chords_in_order():
    analysis = analyze_song(parse_song(GRACE))
    assert [str(c) for c in analysis.progression] == ["G", "C", "G", "G", "D"]
    assert analysis.first_chord == parse_chord("G")
    assert analysis.last_chord == parse_chord("D")


def test_analyze_song_without_chords():
    analysis = analyze_song(parse_song("Just words\n"))
    assert analysis.progression == ()
    assert analysis.first_chord is None
    assert analysis.last_chord is None


def test_candidate_from_song_uses_sounding_key():
    candidate = candidate_from_song("grace", parse_song(GRACE))
    assert candidate.song_id == "grace"
    assert candidate.sounding_key == parse_key("A")
    assert candidate.first_chord == parse_chord("G")
    assert candidate.last_chord == parse_chord("D")
    assert candidate.song.title == "Amazing Grace"


def test_candidate_from_song_overrides():
    candidate = candidate_from_song("grace", parse_song(GRACE), key=parse_key("Em"), capo=0)
    assert candidate.sounding_key == parse_key("Em")


def test_candidate_from_song_without_key():
    candidate = candidate_from_song("x", parse_song("G C\nla la\n"))
    assert candidate.sounding_key is None
    assert candidate.has_boundary_chords


# ---------------------------------------------------------------------------
# sequence_medley
# ---------------------------------------------------------------------------


def test_empty_input():
    assert sequence_medley([], 5) == []


@pytest.mark.parametrize("length", [0, -3])
def test_non_positive_length(length):
    assert sequence_medley([_cand("a", "C")], length) == []


def test_single_song_never_scores():
    only = _cand("a", "C")
    assert sequence_medley([only], 5, scorer=_never_called) == [only]


def test_length_one_never_scores():
    assert _ids(sequence_medley([_cand("a", "C"), _cand("b", "G")], 1, scorer=_never_called)) == ["a"]


def test_greedy_order():
    pool = [_cand("c", "C"), _cand("fs", "F#"), _cand("g", "G"), _cand("c2", "C")]
    # From C: C2 scores 3, G 2, F# 0.  From C2: G 2, F# 0.  Then F#.
    assert _ids(sequence_medley(pool, 4, seed_id="c")) == ["c", "c2", "g", "fs"]


def test_ties_go_to_earlier_candidate():
    pool = [_cand("c", "C"), _cand("g", "G"), _cand("f", "F")]
    assert _ids(sequence_medley(pool, 2, seed_id="c")) == ["c", "g"]
    pool = [_cand("c", "C"), _cand("f", "F"), _cand("g", "G")]
    assert _ids(sequence_medley(pool, 2, seed_id="c")) == ["c", "f"]


def test_never_repeats_and_respects_length():
    pool = [_cand(name, key) for name, key in [("a", "C"), ("b", "G"), ("c", "D"), ("d", "A"), ("e", "E")]]
    short = sequence_medley(pool, 3)
    assert len(short) == 3
    assert len(set(_ids(short))) == 3

    full = sequence_medley(pool, 50)
    assert sorted(_ids(full)) == ["a", "b", "c", "d", "e"]


def test_seed_is_first():
    pool = [_cand("a", "C"), _cand("b", "G"), _cand("c", "D")]
    assert _ids(sequence_medley(pool, 3, seed_id="c"))[0] == "c"


def test_unknown_seed_falls_back_to_first_candidate(caplog):
    pool = [_cand("a", "C"), _cand("b", "G")]
    with caplog.at_level(logging.WARNING, logger="chordmedley.medley"):
        result = sequence_medley(pool, 2, seed_id="missing")
    assert _ids(result)[0] == "a"
    assert "missing" in caplog.text


def test_seed_from_largest_sounding_key_group():
    pool = [
        _cand("a", "G", "G", "D"),
        _cand("b", "C", "C", "G"),
        _cand("c", "C", "C", "F"),
        _cand("d", "G"),  # no chords, not grouped
        _cand("e", "G"),
    ]
    assert _ids(sequence_medley(pool, 1)) == ["b"]


def test_seed_group_tie_goes_to_earliest_group():
    pool = [_cand("a", "D", "D", "A"), _cand("b", "C", "C", "G"), _cand("c", "C", "F", "C"),
            _cand("d", "D", "G", "D")]
    assert _ids(sequence_medley(pool, 1)) == ["a"]


def test_seed_without_chord_data_is_first_candidate():
    pool = [_cand("a", "C"), _cand("b", "G"), _cand("c", "G")]
    assert _ids(sequence_medley(pool, 1)) == ["a"]


def test_bridge_still_extends_medley(caplog):
    pool = [_cand("c", "C"), _cand("fs", "F#")]
    assert score_transition(pool[0], pool[1]) <= BRIDGE_THRESHOLD
    with caplog.at_level(logging.DEBUG, logger="chordmedley.medley"):
        result = sequence_medley(pool, 2, seed_id="c")
    assert _ids(result) == ["c", "fs"]
    assert "Bridge: fs" in caplog.text


def test_duplicate_ids_are_ignored(caplog):
    first = _cand("a", "C")
    pool = [first, _cand("a", "G"), _cand("b", "G")]
    with caplog.at_level(logging.WARNING, logger="chordmedley.medley"):
        result = sequence_medley(pool, 5)
    assert _ids(result) == ["a", "b"]
    assert result[0] is first
    assert "duplicate" in caplog.text


def test_injected_scorer():
    pool = [_cand("a"), _cand("b"), _cand("c")]
    prefer_c = {"b": 1, "c": 9}
    result = sequence_medley(pool, 3, seed_id="a", scorer=lambda x, y: prefer_c.get(y.song_id, 0))
    assert _ids(result) == ["a", "c", "b"]


def test_sequence_is_deterministic():
    pool = [_cand(name, key, first, last) for name, key, first, last in [
        ("a", "C", "C", "G"), ("b", "G", "G", "D"), ("c", "Am", "Am", "E"), ("d", "F", "F", "C"),
    ]]
    assert _ids(sequence_medley(pool, 4)) == _ids(sequence_medley(pool, 4))


def test_chord_term_drives_order():
    pool = [
        _cand("start", "C", "C", "G"),
        _cand("far", "F#", "F#", "F#"),
        _cand("cadence", "C", "C", "C"),  # G -> C authentic cadence
        _cand("same", "C", "D", "D"),
    ]
    assert _ids(sequence_medley(pool, 2, seed_id="start")) == ["start", "cadence"]


# ---------------------------------------------------------------------------
# describe_medley
# ---------------------------------------------------------------------------


def test_describe_medley():
    sequence = [_cand("c", "C"), _cand("c2", "C"), _cand("g", "G"), _cand("x")]
    report = describe_medley(sequence)
    assert [s.score for s in report.steps] == [None, 3, 2, 0]
    assert [s.tier for s in report.steps] == [None, "transitional", "weak", "weak"]
    assert report.average_score == pytest.approx(5 / 3)
    assert report.key_progression == ("C", "C", "G", "?")


def test_describe_single_song():
    report = describe_medley([_cand("a", "Am")])
    assert len(report.steps) == 1
    assert report.average_score == 0.0
    assert report.key_progression == ("Am",)


def test_describe_empty():
    report = describe_medley([])
    assert report.steps == ()
    assert report.key_progression == ()
