"""scltune CLI entry point."""

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click

from scltune import __version__
from scltune.errors import TuningError
from scltune.keyboard_parser import read_kbm_file
from scltune.scale_parser import read_scl_file
from scltune.tuning import Tuning

LOWEST_NOTE = -256
HIGHEST_NOTE = 255

_FILE_ARG = click.Path(exists=True, dir_okay=False, readable=True, path_type=Path)


def _load_tuning(scl: Path | None, kbm: Path | None) -> Tuning:
    """Build a Tuning from optional SCL/KBM paths, defaulting either side."""
    scale = read_scl_file(scl) if scl is not None else None
    mapping = read_kbm_file(kbm) if kbm is not None else None
    return Tuning(scale, mapping)


def _fail(exc: Exception) -> NoReturn:
    click.echo(f"  ERROR: {exc}", err=True)
    sys.exit(1)


def _echo_scale(path: Path) -> None:
    scale = read_scl_file(path)
    click.echo(f"  Description : {scale.description}")
    click.echo(f"  Notes       : {scale.count}")
    click.echo(f"  Period      : {scale.period * 1200.0:.6f} cents")
    for degree, tone in enumerate(scale.tones, start=1):
        click.echo(f"    {degree:>4}  {tone.string_rep:<16} {tone.cents:>12.6f} cents")


def _echo_mapping(path: Path) -> None:
    mapping = read_kbm_file(path)
    click.echo(f"  Map size       : {mapping.count}")
    click.echo(f"  MIDI range     : {mapping.first_midi} - {mapping.last_midi}")
    click.echo(f"  Middle note    : {mapping.middle_note}")
    click.echo(f"  Tuning note    : {mapping.tuning_constant_note} = {mapping.tuning_frequency:.6f} Hz")
    click.echo(f"  Octave degrees : {mapping.octave_degrees}")
    if mapping.count:
        keys = " ".join("x" if key < 0 else str(key) for key in mapping.keys)
        click.echo(f"  Keys           : {keys}")


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="scltune")
@click.option("--verbose", "-v", is_flag=True, help="Log parser and table diagnostics to stderr.")
def main(verbose: bool) -> None:
    """scltune: microtonal tuning tables from Scala SCL and KBM files."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


_scl_option = click.option(
    "--scl",
    type=_FILE_ARG,
    default=None,
    metavar="PATH",
    help="Scale file. Defaults to 12-tone equal temperament.",
)
_kbm_option = click.option(
    "--kbm",
    type=_FILE_ARG,
    default=None,
    metavar="PATH",
    help="Keyboard mapping file. Defaults to middle C at 261.63 Hz.",
)


# ── table subcommand ───────────────────────────────────────────────────────────

@main.command()
@_scl_option
@_kbm_option
@click.option(
    "--low",
    type=click.IntRange(LOWEST_NOTE, HIGHEST_NOTE),
    default=0,
    show_default=True,
    help="First MIDI note to print.",
)
@click.option(
    "--high",
    type=click.IntRange(LOWEST_NOTE, HIGHEST_NOTE),
    default=127,
    show_default=True,
    help="Last MIDI note to print.",
)
@click.option(
    "--interpolate",
    is_flag=True,
    help="Fill unmapped keys with pitches interpolated from their neighbours.",
)
def table(scl: Path | None, kbm: Path | None, low: int, high: int, interpolate: bool) -> None:
    """
    Print the frequency of every MIDI note in a range.

    Unmapped keys show an 'x' in the degree column.

    \b
    Examples:
      scltune table --scl 31edo.scl --low 60 --high 91
      scltune table --scl major.scl --kbm whitekeys.kbm --interpolate
    """
    if low > high:
        raise click.BadParameter(f"--low ({low}) is above --high ({high}).", param_hint="--low")

    try:
        tuning = _load_tuning(scl, kbm)
    except TuningError as exc:
        _fail(exc)

    if interpolate:
        tuning = tuning.with_skipped_notes_interpolated()

    click.echo(f"{'note':>5}  {'degree':>6}  {'frequency (Hz)':>16}  {'log2 scaled':>12}")
    for note in range(low, high + 1):
        degree = tuning.scale_degree_for_midi_note(note)
        degree_text = "x" if degree is None else str(degree)
        click.echo(
            f"{note:>5}  {degree_text:>6}  "
            f"{tuning.frequency_for_midi_note(note):>16.6f}  "
            f"{tuning.log_scaled_frequency_for_midi_note(note):>12.6f}"
        )


# ── freq subcommand ────────────────────────────────────────────────────────────

@main.command()
@click.argument("note", type=click.IntRange(LOWEST_NOTE, HIGHEST_NOTE))
@_scl_option
@_kbm_option
def freq(note: int, scl: Path | None, kbm: Path | None) -> None:
    """
    Print the frequency of a single MIDI NOTE.

    \b
    Examples:
      scltune freq 69
      scltune freq 60 --scl 31edo.scl --kbm a432.kbm
    """
    try:
        tuning = _load_tuning(scl, kbm)
    except TuningError as exc:
        _fail(exc)

    click.echo(f"{tuning.frequency_for_midi_note(note):.6f} Hz")


# ── info subcommand ────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", type=_FILE_ARG)
def info(path: Path) -> None:
    """
    Summarise an .scl or .kbm file.

    \b
    Examples:
      scltune info 31edo.scl
      scltune info whitekeys.kbm
    """
    suffix = path.suffix.lower()
    if suffix not in (".scl", ".kbm"):
        raise click.BadParameter(
            f"Unsupported file type '{path.suffix}'. Use a .scl or .kbm file.",
            param_hint="PATH",
        )

    click.echo(f"scltune v{__version__}")
    click.echo(f"  File   : {path}")
    click.echo()

    try:
        if suffix == ".scl":
            _echo_scale(path)
        else:
            _echo_mapping(path)
    except TuningError as exc:
        _fail(exc)
