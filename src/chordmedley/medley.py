"""Greedy medley sequencing.

Given a set of songs, build an order in which each song leads into the next
as smoothly as possible:

1. **Seed.**  Use the requested seed song if there is one.  Otherwise take
   the songs whose first and last chords are known, group them by sounding
   key and start with the first member of the largest group (the earliest
   group wins a tie).  With no chord data at all, start with the first song.
2. **Grow.**  Repeatedly score the last song in the medley against every
   unused song and append the best one, ties going to the earlier song.  A
   best score at or below :data:`BRIDGE_THRESHOLD` still gets appended; it is
   logged as a bridge, so the medley always reaches the requested length
   when enough songs are available.

Each step scans every remaining song, so a run is O(n²) in the number of
candidates.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .chords import Chord
from .models import StructuredSong
from .pitch import Key, render_key, sounding_key
from .scoring import TransitionCandidate, score_transition, transition_tier

logger = logging.getLogger(__name__)

# Transitions scoring at or below this are bridges rather than good moves.
BRIDGE_THRESHOLD = 2

TransitionScorer = Callable[[TransitionCandidate, TransitionCandidate], int]


# ---------------------------------------------------------------------------
# Song analysis
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SongAnalysis:
    """The chords of a song in reading order, and its first and last chord."""

    progression: tuple[Chord, ...] = ()

    @property
    def first_chord(self) -> Chord | None:
        return self.progression[0] if self.progression else None

    @property
    def last_chord(self) -> Chord | None:
        return self.progression[-1] if self.progression else None


def analyze_song(song: StructuredSong) -> SongAnalysis:
    return SongAnalysis(progression=tuple(song.chords()))


def candidate_from_song(
    song_id: str,
    song: StructuredSong,
    key: Key | None = None,
    capo: int | None = None,
) -> TransitionCandidate:
    """Build a :class:`TransitionCandidate` for *song*.

    *key* and *capo* default to the song's own metadata.  The sounding key is
    left unset when no key is known.
    """
    key = key if key is not None else song.key
    capo = capo if capo is not None else song.capo
    analysis = analyze_song(song)
    return TransitionCandidate(
        song_id=song_id,
        song=song,
        first_chord=analysis.first_chord,
        last_chord=analysis.last_chord,
        sounding_key=sounding_key(key, capo) if key is not None else None,
    )


# ---------------------------------------------------------------------------
# Sequencing
# ---------------------------------------------------------------------------


def sequence_medley(
    candidates: Sequence[TransitionCandidate],
    requested_length: int,
    seed_id: str | None = None,
    scorer: TransitionScorer = score_transition,
) -> list[TransitionCandidate]:
    """Order *candidates* into a medley of up to *requested_length* songs.

    Args:
        candidates:       Songs to choose from, in preference order for ties.
        requested_length: Maximum number of songs in the result.
        seed_id:          ``song_id`` of the song to start with.  An unknown
                          id falls back to the first candidate.
        scorer:           Transition scorer, :func:`score_transition` by
                          default.

    Returns:
        ``min(requested_length, number of distinct songs)`` candidates in
        play order, never repeating a ``song_id``.  Empty input or a
        non-positive length gives an empty list.
    """
    pool = _unique(candidates)
    target = min(requested_length, len(pool))
    if target <= 0:
        return []

    used = [False] * len(pool)
    start = _seed_index(pool, seed_id)
    order = [start]
    used[start] = True
    logger.debug("Medley seed: %s", pool[start].song_id)

    while len(order) < target:
        last = pool[order[-1]]
        best_index = -1
        best_score = -1
        for index, candidate in enumerate(pool):
            if used[index]:
                continue
            score = scorer(last, candidate)
            if score > best_score:
                best_index, best_score = index, score
        if best_index < 0:
            break
        if best_score > BRIDGE_THRESHOLD:
            logger.debug("Next: %s (score %d)", pool[best_index].song_id, best_score)
        else:
            logger.debug("Bridge: %s (score %d)", pool[best_index].song_id, best_score)
        order.append(best_index)
        used[best_index] = True

    return [pool[index] for index in order]


def _unique(candidates: Sequence[TransitionCandidate]) -> list[TransitionCandidate]:
    seen: set[str] = set()
    pool: list[TransitionCandidate] = []
    for candidate in candidates:
        if candidate.song_id in seen:
            logger.warning("Ignoring duplicate medley candidate %s", candidate.song_id)
            continue
        seen.add(candidate.song_id)
        pool.append(candidate)
    return pool


def _seed_index(pool: list[TransitionCandidate], seed_id: str | None) -> int:
    if seed_id is not None:
        for index, candidate in enumerate(pool):
            if candidate.song_id == seed_id:
                return index
        logger.warning("Seed song %s not among candidates; starting with %s", seed_id, pool[0].song_id)
        return 0

    groups: dict[Key | None, list[int]] = {}
    for index, candidate in enumerate(pool):
        if candidate.has_boundary_chords:
            groups.setdefault(candidate.sounding_key, []).append(index)
    if not groups:
        return 0

    largest: list[int] = []
    for members in groups.values():
        if len(members) > len(largest):
            largest = members
    return largest[0]


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MedleyStep:
    """One song of a medley and the score of the transition into it."""

    candidate: TransitionCandidate
    score: int | None = None  # None for the opening song
    tier: str | None = None


@dataclass(frozen=True)
class MedleyReport:
    steps: tuple[MedleyStep, ...]
    average_score: float
    key_progression: tuple[str, ...]


def describe_medley(
    sequence: Sequence[TransitionCandidate],
    scorer: TransitionScorer = score_transition,
) -> MedleyReport:
    """Score each consecutive pair of *sequence* and label it with its tier."""
    steps: list[MedleyStep] = []
    scores: list[int] = []
    for index, candidate in enumerate(sequence):
        if index == 0:
            steps.append(MedleyStep(candidate))
            continue
        score = scorer(sequence[index - 1], candidate)
        scores.append(score)
        steps.append(MedleyStep(candidate, score, transition_tier(score)))

    keys = tuple(
        render_key(c.sounding_key) if c.sounding_key is not None else "?" for c in sequence
    )
    average = sum(scores) / len(scores) if scores else 0.0
    return MedleyReport(steps=tuple(steps), average_score=average, key_progression=keys)
