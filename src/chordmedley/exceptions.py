class ChordMedleyError(Exception):
    """Base exception for chordmedley."""


class ParseError(ChordMedleyError):
    """Raised when a chord or key name cannot be parsed."""

    def __init__(self, text: str, reason: str):
        self.text = text
        self.reason = reason
        super().__init__(f"Cannot parse {text!r}: {reason}")


class MalformedLineError(ChordMedleyError):
    """Raised when a chord-over-lyrics line breaks its anchor invariants."""

    def __init__(self, lyrics: str, reason: str):
        self.lyrics = lyrics
        self.reason = reason
        super().__init__(f"Malformed line {lyrics!r}: {reason}")
