"""Chord-to-chord transition scoring.

Rates how naturally one song's last chord leads into the next song's first
chord.  Scores are small integers, highest first:

==========================================  =====
Relationship                                Score
==========================================  =====
Authentic cadence (major chord, down a 5th)   8
Plagal cadence (major chord, down a 4th)      7
Relative major / minor (either direction)     6
Identical chord                               5
Major chords a major third apart              4
Root moves by a half or whole step            3
Same root, different quality                  2
Anything else                                 1
==========================================  =====

"Major" and "minor" here mean the chord's quality family (``G7`` counts as
major, ``Bm7b5`` as minor).  Slash basses are ignored.
"""

from .chords import Chord

# Weight applied when the chord score is added to a song transition.
TRANSITION_WEIGHT = 3


def chord_transition_score(from_chord: Chord, to_chord: Chord) -> int:
    """Return the 1-8 score for moving from *from_chord* to *to_chord*."""
    interval = (to_chord.root - from_chord.root) % 12
    from_minor = from_chord.is_minor
    to_minor = to_chord.is_minor

    if not from_minor and interval == 5:
        return 8
    if not from_minor and interval == 7:
        return 7
    if from_minor != to_minor and _is_relative(from_chord, to_chord):
        return 6
    if interval == 0 and from_minor == to_minor:
        return 5
    if not from_minor and not to_minor and interval in (4, 8):
        return 4
    if interval in (1, 2, 10, 11):
        return 3
    if interval == 0:
        return 2
    return 1


def progression_bonus(last_chord: Chord, first_chord: Chord) -> int:
    """Return the weighted chord term of a song-to-song transition score."""
    return chord_transition_score(last_chord, first_chord) * TRANSITION_WEIGHT


def _is_relative(a: Chord, b: Chord) -> bool:
    major, minor = (b, a) if a.is_minor else (a, b)
    return (major.root + 9) % 12 == minor.root
