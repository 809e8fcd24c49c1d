import logging
import re
import sys
from dataclasses import replace
from pathlib import Path

import click

from .chordpro import ChordProFormatter
from .exceptions import ChordMedleyError
from .medley import candidate_from_song, describe_medley, sequence_medley
from .parser import parse_song
from .pitch import parse_key, render_key
from .sheet import SheetFormatter
from .transpose import effective_transpose, key_adjustment, transpose_song

logger = logging.getLogger(__name__)


def _slugify(text: str) -> str:
    """Convert a string to a lowercase hyphenated slug suitable for ids."""
    text = text.lower()
    text = re.sub(r"[^\w\s-]", "", text)   # drop punctuation
    text = re.sub(r"[\s_]+", "-", text)     # spaces/underscores → hyphens
    text = re.sub(r"-{2,}", "-", text)      # collapse multiple hyphens
    return text.strip("-")


def _read_song(path: Path):
    try:
        return parse_song(path.read_text(encoding="utf-8"))
    except ChordMedleyError as exc:
        click.echo(f"Error: {path}: {exc}", err=True)
        sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Log debug output to stderr.")
def main(verbose: bool) -> None:
    """Transpose chord sheets and sequence them into medleys."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-s", "--semitones", default=0, show_default=True,
              help="Shift relative to the sound with the capo on.")
@click.option("--to-key", "to_key", default=None, metavar="KEY",
              help="Shift so the song's key lands on KEY (overrides --semitones).")
@click.option("--capo/--no-capo", "use_capo", default=True, show_default=True,
              help="Whether the player keeps the song's capo on.")
@click.option("-w", "--width", default=None, type=click.IntRange(min=1), metavar="COLS",
              help="Wrap lyric lines to COLS characters.")
@click.option("-f", "--format", "fmt", type=click.Choice(["sheet", "chordpro"]),
              default="sheet", show_default=True)
@click.option("-o", "--output", "output_path", default=None, metavar="PATH",
              help="Write to PATH instead of stdout.")
def transpose(
    path: Path,
    semitones: int,
    to_key: str | None,
    use_capo: bool,
    width: int | None,
    fmt: str,
    output_path: str | None,
) -> None:
    """Transpose the chord sheet at PATH.

    \b
    Reads plain chords-over-lyrics sheets and ChordPro files.
    """
    song = _read_song(path)

    if to_key:
        if song.key is None:
            click.echo("Error: --to-key needs a song with a {key: ...} directive", err=True)
            sys.exit(1)
        try:
            target = parse_key(to_key)
        except ChordMedleyError as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)
        semitones = key_adjustment(song.key, target)

    shift = effective_transpose(semitones, song.capo, use_capo)
    logger.debug("Transposing %s by %d (requested %d, capo %d)", path, shift, semitones, song.capo)

    try:
        shifted = transpose_song(song, shift)
        if not use_capo:
            shifted = replace(shifted, capo=0)
        if fmt == "chordpro":
            text = ChordProFormatter().render(shifted)
        else:
            text = SheetFormatter(width=width).render(shifted)
    except ChordMedleyError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if output_path:
        Path(output_path).write_text(text, encoding="utf-8")
        click.echo(f"Written to {output_path}")
        return
    click.echo(text, nl=False)


@main.command()
@click.argument("paths", nargs=-1, required=True,
                type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-n", "--length", default=10, show_default=True, type=click.IntRange(min=1),
              help="Maximum number of songs in the medley.")
@click.option("--seed", default=None, metavar="ID",
              help="Song id (file name without extension) to start from.")
def medley(paths: tuple[Path, ...], length: int, seed: str | None) -> None:
    """Order the songs at PATHS into a smooth medley."""
    candidates = []
    for path in paths:
        song = _read_song(path)
        candidates.append(candidate_from_song(_slugify(path.stem), song))

    sequence = sequence_medley(candidates, length, seed_id=_slugify(seed) if seed else None)
    report = describe_medley(sequence)

    for number, step in enumerate(report.steps, start=1):
        song = step.candidate.song
        label = song.title or step.candidate.song_id
        key = render_key(step.candidate.sounding_key) if step.candidate.sounding_key else "?"
        if step.score is None:
            click.echo(f"{number}. {label} [{key}]")
        else:
            click.echo(f"{number}. {label} [{key}]  <- {step.score} ({step.tier})")
    if len(report.steps) > 1:
        click.echo(f"Average transition: {report.average_score:.1f}")
