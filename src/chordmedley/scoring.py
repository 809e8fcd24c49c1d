"""Harmonic transition scoring between songs.

A transition score is the sum of two independent terms:

- a chord term, from a chord-progression scorer applied to the outgoing
  song's last chord and the incoming song's first chord (only when both are
  known), and
- a key term, from the two songs' sounding keys (only when both are known):

  ================================  =====
  Sounding keys                     Score
  ================================  =====
  Identical                           3
  Relative major / minor              2
  One step on the circle of fifths    2
  Two steps on the circle of fifths   1
  Anything else                       0
  ================================  =====

The circle-of-fifths distance compares roots only, so ``C`` and ``Gm`` are one
step apart while ``C`` and ``Cm`` (distance 0, not identical, not relative)
score 0.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .chords import Chord
from .pitch import Key, relative_key
from .progression import progression_bonus

ProgressionScorer = Callable[[Chord, Chord], int]

# Lower bounds of the display tiers, best first.
TIER_THRESHOLDS: tuple[tuple[int, str], ...] = (
    (7, "excellent"),
    (5, "good"),
    (3, "transitional"),
)
WEAK_TIER = "weak"


@dataclass(frozen=True)
class TransitionCandidate:
    """A song as seen by the sequencer: its id and harmonic boundaries."""

    song_id: str
    song: Any = None
    first_chord: Chord | None = None
    last_chord: Chord | None = None
    sounding_key: Key | None = None

    @property
    def has_boundary_chords(self) -> bool:
        return self.first_chord is not None and self.last_chord is not None


def fifths_index(pitch: int) -> int:
    """Position of *pitch* on the circle C, G, D, A, E, B, F#, Db, Ab, Eb, Bb, F."""
    return (pitch * 7) % 12


def fifths_distance(a: Key, b: Key) -> int:
    """Steps between the two roots on the circle of fifths (0-6)."""
    diff = (fifths_index(a.root) - fifths_index(b.root)) % 12
    return min(diff, 12 - diff)


def is_relative(a: Key, b: Key) -> bool:
    return relative_key(a) == b


def key_transition_score(a: Key | None, b: Key | None) -> int:
    if a is None or b is None:
        return 0
    if a == b:
        return 3
    if is_relative(a, b):
        return 2
    distance = fifths_distance(a, b)
    if distance == 1:
        return 2
    if distance == 2:
        return 1
    return 0


def score_transition(
    a: TransitionCandidate,
    b: TransitionCandidate,
    progression: ProgressionScorer = progression_bonus,
) -> int:
    """Score how well song *a* flows into song *b*.

    Args:
        a:           The outgoing song.
        b:           The incoming song.
        progression: Chord term scorer, called with ``(a.last_chord,
                     b.first_chord)``.  Defaults to
                     :func:`~chordmedley.progression.progression_bonus`.

    Returns:
        A non-negative integer; the same inputs always give the same score.
    """
    score = 0
    if a.last_chord is not None and b.first_chord is not None:
        score += max(0, int(progression(a.last_chord, b.first_chord)))
    score += key_transition_score(a.sounding_key, b.sounding_key)
    return score


def transition_tier(score: int) -> str:
    """Return the display label for a transition score."""
    for threshold, label in TIER_THRESHOLDS:
        if score >= threshold:
            return label
    return WEAK_TIER
