"""Scale parsing: SCL text to Scale, plus the built-in scale generators."""

from __future__ import annotations

import io
import logging
import math
import re
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Final, Iterable

from scltune.errors import ParseError, TuningError
from scltune.tuning_models import Scale, Tone, ToneKind

logger = logging.getLogger(__name__)

PATCH_SCALE_NAME: Final[str] = "Scale from patch"

_CENTS_PATTERN: Final = re.compile(r"[-+]?(?:[0-9]+\.[0-9]*|\.[0-9]+)")
_RATIO_PATTERN: Final = re.compile(r"([0-9]+)(?:/([0-9]+))?")


def parse_tone(line: str, lineno: int = 0) -> Tone:
    """
    Parse one SCL tone line.

    A line containing a ``.`` is a value in cents; anything else must be a
    ratio ``N/D`` or a bare integer ``N`` (read as ``N/1``).

    Args:
        line:   The tone text. Surrounding whitespace is ignored.
        lineno: Line number used in error messages.

    Raises:
        ParseError: If the text is not a valid cents value or ratio, or the
                    ratio has a zero numerator or denominator.
    """
    text = line.strip()

    if "." in text:
        if _CENTS_PATTERN.fullmatch(text) is None:
            raise ParseError(
                f"Error parsing tone on line {lineno}: '{text}' is not a cents value.",
                lineno,
                text,
            )
        return Tone(kind=ToneKind.CENTS, cents=float(text), string_rep=text)

    match = _RATIO_PATTERN.fullmatch(text)
    if match is None:
        raise ParseError(
            f"Error parsing tone on line {lineno}: '{text}' is not a ratio.",
            lineno,
            text,
        )

    numerator = int(match.group(1))
    denominator = int(match.group(2)) if match.group(2) is not None else 1
    if numerator == 0 or denominator == 0:
        raise ParseError(
            f"Error parsing tone on line {lineno}: '{text}' has a zero term.",
            lineno,
            text,
        )

    return Tone(
        kind=ToneKind.RATIO,
        cents=1200.0 * math.log2(numerator / denominator),
        ratio_n=numerator,
        ratio_d=denominator,
        string_rep=text,
    )


class SclState(Enum):
    """Position of the SCL parser within the file."""

    READ_HEADER = auto()
    READ_COUNT = auto()
    READ_NOTE = auto()
    TRAILING = auto()


class SclParser:
    """
    Line-at-a-time SCL state machine.

    READ_HEADER -> READ_COUNT -> READ_NOTE* -> TRAILING

    ``!`` comment lines are skipped in every state and blank lines are
    skipped between notes. Anything after the last tone is kept in the raw
    text but never parsed.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.state = SclState.READ_HEADER
        self.description = ""
        self.count = 0
        self.tones: list[Tone] = []
        self._raw_lines: list[str] = []
        self._lineno = 0
        self._last_line: str | None = None
        self._handlers: dict[SclState, Callable[[str, int], None]] = {
            SclState.READ_HEADER: self._read_header,
            SclState.READ_COUNT: self._read_count,
            SclState.READ_NOTE: self._read_note,
            SclState.TRAILING: self._read_trailing,
        }

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _end_of_input_error(self, message: str) -> ParseError:
        if self._lineno:
            message += f" Input ended after line {self._lineno}: '{self._last_line}'."
        return ParseError(message, self._lineno or None, self._last_line)

    # ------------------------------------------------------------------
    # State handlers
    # ------------------------------------------------------------------

    def _read_header(self, line: str, lineno: int) -> None:
        self.description = line
        self.state = SclState.READ_COUNT

    def _read_count(self, line: str, lineno: int) -> None:
        try:
            count = int(line)
        except ValueError:
            raise ParseError(
                f"Invalid SCL note count on line {lineno}: '{line}' is not an integer.",
                lineno,
                line,
            ) from None
        if count < 1:
            raise ParseError(
                f"Invalid SCL note count on line {lineno}: expected a positive count, got {count}.",
                lineno,
                line,
            )
        self.count = count
        self.state = SclState.READ_NOTE

    def _read_note(self, line: str, lineno: int) -> None:
        if not line:
            return
        self.tones.append(parse_tone(line, lineno))
        if len(self.tones) == self.count:
            self.state = SclState.TRAILING

    def _read_trailing(self, line: str, lineno: int) -> None:
        pass

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def feed(self, raw_line: str, lineno: int) -> None:
        """Consume one line, including its line ending if it has one."""
        self._raw_lines.append(raw_line)
        line = raw_line.rstrip()
        self._lineno = lineno
        self._last_line = line
        if line.startswith("!"):
            return
        self._handlers[self.state](line, lineno)

    def finish(self) -> Scale:
        """
        Return the parsed Scale.

        Raises:
            ParseError: If the input ended before all declared tones were read.
        """
        if self.state is not SclState.TRAILING:
            raise self._end_of_input_error(
                f"Incomplete SCL content. Expected {self.count} notes and "
                f"read {len(self.tones)} before the end of input."
            )
        return Scale(
            count=self.count,
            tones=tuple(self.tones),
            description=self.description,
            raw_text="".join(self._raw_lines),
            name=self.name,
        )


def read_scl_stream(stream: Iterable[str], name: str = "") -> Scale:
    """
    Parse a Scale from an iterable of lines (an open text file, StringIO, ...).

    Raises:
        ParseError: If the content is not a valid SCL description.
    """
    parser = SclParser(name=name)
    for lineno, raw_line in enumerate(stream, start=1):
        parser.feed(raw_line, lineno)
    scale = parser.finish()
    logger.debug("Parsed %d-note scale '%s' (%s)", scale.count, scale.description, name)
    return scale


def read_scl_file(path: str | Path) -> Scale:
    """
    Parse a Scale from an SCL file.

    Raises:
        OSError:    If the file cannot be opened.
        ParseError: If the content is not a valid SCL description.
    """
    # newline="" keeps DOS line endings intact in raw_text
    with open(path, encoding="utf-8", newline="") as fh:
        return read_scl_stream(fh, name=str(path))


def parse_scl_data(scl_contents: str) -> Scale:
    """Parse a Scale from SCL content held in memory."""
    return read_scl_stream(io.StringIO(scl_contents), name=PATCH_SCALE_NAME)


# ── Generators ──────────────────────────────────────────────────────────────

def even_temperament_12_note_scale() -> Scale:
    """Return the standard 12-tone equal temperament scale."""
    lines = [
        "! 12 Tone Equal Temperament.scl",
        "!",
        "12 Tone Equal Temperament | ED2-12 - Equal division of harmonic 2 into 12 parts",
        " 12",
        "!",
    ]
    lines += [f" {100.0 * step:.5f}" for step in range(1, 12)]
    lines.append(" 2/1")
    return parse_scl_data("\n".join(lines) + "\n")


def even_division_of_span_by_m(span: int, m: int) -> Scale:
    """
    Return the "ED<span>-<m>" scale: the ratio ``span`` split into ``m`` equal steps.

    ``even_division_of_span_by_m(2, 12)`` is the standard 12-tone scale and
    ``even_division_of_span_by_m(3, 13)`` is Bohlen-Pierce.

    Raises:
        TuningError: If ``span`` or ``m`` is not positive.
    """
    if span <= 0:
        raise TuningError(f"Span should be a positive number. You entered {span}.")
    if m <= 0:
        raise TuningError(f"You should divide into at least one step. You entered {m}.")

    top_cents = 1200.0 * math.log2(span)
    step_cents = top_cents / m

    lines = [
        f"! Automatically generated ED{span}-{m} scale",
        f"Automatically generated ED{span}-{m} scale",
        str(m),
        "!",
    ]
    lines += [f"{step_cents * step:f}" for step in range(1, m)]
    lines.append(f"{span}/1")
    return parse_scl_data("\n".join(lines) + "\n")
